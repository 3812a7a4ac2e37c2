"""Reminder thresholds: how long before an event each reminder fires."""

from __future__ import annotations

from datetime import timedelta
from enum import Enum
from typing import List


class Threshold(Enum):
    """Fixed reminder lead times.

    Each member carries its wire name, lead time, the ReminderFlags field it
    owns and the message template used for its notification.
    """

    TWENTY_FOUR_HOUR = (
        "24h",
        timedelta(hours=24),
        "sent_24h",
        "Event Tomorrow! 📅",
        '"{title}" is tomorrow at {time}. Don\'t forget to attend!',
    )
    TWO_HOUR = (
        "2h",
        timedelta(hours=2),
        "sent_2h",
        "Event Starting Soon! ⏰",
        '"{title}" starts in 2 hours at {time}. Get ready!',
    )
    THIRTY_MINUTE = (
        "30m",
        timedelta(minutes=30),
        "sent_30m",
        "Event Starting Very Soon! 🚀",
        '"{title}" starts in 30 minutes at {time}. Time to go!',
    )

    def __init__(self, wire_name: str, lead_time: timedelta, flag_field: str,
                 title_template: str, body_template: str) -> None:
        self.wire_name = wire_name
        self.lead_time = lead_time
        self.flag_field = flag_field
        self.title_template = title_template
        self.body_template = body_template

    @property
    def notification_type(self) -> str:
        return f"event_reminder_{self.wire_name}"

    @classmethod
    def parse(cls, value: str | Threshold) -> Threshold:
        """Resolve '24h' / 'TWO_HOUR' style names to a Threshold."""
        if isinstance(value, cls):
            return value
        for member in cls:
            if value in (member.wire_name, member.name):
                return member
        valid = ", ".join(cls.wire_names())
        raise ValueError(f"Reminder type must be one of: {valid} (got {value!r})")

    @classmethod
    def wire_names(cls) -> List[str]:
        return [member.wire_name for member in cls]

    def __str__(self) -> str:
        return self.wire_name


__all__ = ["Threshold"]
