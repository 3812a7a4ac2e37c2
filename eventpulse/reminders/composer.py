"""Builds the push notification content for an event reminder.

Data payload keys map to the gateway contract fields as follows:
``reminderType`` is the threshold name, ``eventStartTime`` is the start
instant and ``timestamp`` is the sent-at time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict

from eventpulse.models.event import Event
from eventpulse.reminders.thresholds import Threshold
from eventpulse.utils.clock import ensure_aware


@dataclass(frozen=True)
class ReminderMessage:
    """Title, body and data payload for one reminder push."""
    title: str
    body: str
    data: Dict[str, str] = field(default_factory=dict)


def format_local_time(instant: datetime, zone) -> str:
    """Render an instant as e.g. '2:30 PM' in the given timezone."""
    return instant.astimezone(zone).strftime("%I:%M %p").lstrip("0")


def _iso(instant: datetime) -> str:
    return ensure_aware(instant).astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def compose_reminder(
    event: Event,
    threshold: Threshold,
    sent_at: datetime,
    default_tz: str = "UTC",
) -> ReminderMessage:
    """Build the reminder for ``event`` at ``threshold``.

    Args:
        event: Event being reminded about
        threshold: Which reminder this is
        sent_at: Dispatch time stamped into the data payload
        default_tz: Timezone used when the event does not carry one

    Returns:
        ReminderMessage with all data values as strings, as push payloads require

    Raises:
        ValueError: If the event has no usable start time
    """
    start_at = event.start_at(default_tz)
    time_str = format_local_time(start_at, event.zone(default_tz))

    return ReminderMessage(
        title=threshold.title_template,
        body=threshold.body_template.format(title=event.title, time=time_str),
        data={
            "eventId": str(event.id),
            "eventTitle": event.title,
            "notificationType": threshold.notification_type,
            "reminderType": threshold.wire_name,
            "eventStartTime": _iso(start_at),
            "timestamp": _iso(sent_at),
        },
    )


__all__ = ["ReminderMessage", "compose_reminder", "format_local_time"]
