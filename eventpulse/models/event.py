"""Data models for events, participants and their reminder bookkeeping."""

import re
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator


_TIME_OF_DAY = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9](:[0-5][0-9])?$")


class EventStatus(str, Enum):
    """Lifecycle status of an event. Only active events get reminders."""
    ACTIVE = "active"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class RsvpStatus(str, Enum):
    YES = "yes"
    NO = "no"
    MAYBE = "maybe"


class NotificationSettings(BaseModel):
    """Per-user notification preferences."""
    event_updates: bool = Field(default=True, description="Receive event update pushes")
    event_reminders: bool = Field(default=True, description="Receive 24h/2h/30m reminders")
    weather_alerts: bool = Field(default=True, description="Receive weather alerts")
    push_notifications: bool = Field(default=True, description="Master switch for all pushes")


class Participant(BaseModel):
    """A participant reference resolved with the user's delivery fields."""
    user_id: str = Field(description="User profile ID")
    name: Optional[str] = Field(default=None, description="Display name, used in logs")
    rsvp_status: RsvpStatus = Field(default=RsvpStatus.YES, description="RSVP given when joining")
    joined_at: Optional[datetime] = Field(default=None, description="When the user joined")
    fcm_token: Optional[str] = Field(default=None, description="Push delivery address")
    notification_settings: NotificationSettings = Field(default_factory=NotificationSettings)


class ReminderFlags(BaseModel):
    """One sent-flag per reminder threshold."""
    sent_24h: bool = Field(default=False, description="24 hour reminder dispatched")
    sent_2h: bool = Field(default=False, description="2 hour reminder dispatched")
    sent_30m: bool = Field(default=False, description="30 minute reminder dispatched")
    last_checked: Optional[datetime] = Field(default=None, description="Last time a flag was set")


class Event(BaseModel):
    """Event as seen by the reminder scheduler."""
    id: str = Field(description="Event ID")
    title: str = Field(description="Event title, used verbatim in notifications")
    start_date: date = Field(description="Calendar day the event starts on")
    start_time: Optional[str] = Field(default=None, description="Local start time, HH:MM or HH:MM:SS")
    time_zone: Optional[str] = Field(default=None, description="IANA timezone of start_time")
    status: EventStatus = Field(default=EventStatus.ACTIVE, description="Event status")
    reminders: ReminderFlags = Field(default_factory=ReminderFlags)
    participants: List[Participant] = Field(default_factory=list)

    @field_validator("start_time")
    @classmethod
    def _validate_start_time(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not _TIME_OF_DAY.match(value):
            raise ValueError("Start time must be in HH:MM format (e.g., 14:30)")
        return value

    @field_validator("time_zone")
    @classmethod
    def _validate_time_zone(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            resolve_timezone(value)
        return value

    def zone(self, default_tz: str = "UTC") -> ZoneInfo | timezone:
        return resolve_timezone(self.time_zone or default_tz)

    def start_at(self, default_tz: str = "UTC") -> datetime:
        """Absolute start instant built from start_date and start_time.

        Raises:
            ValueError: If the event has no usable start time
        """
        if not self.start_time:
            raise ValueError(f"Event {self.id} has no start time")
        if not _TIME_OF_DAY.match(self.start_time):
            raise ValueError(f"Event {self.id} has malformed start time: {self.start_time!r}")

        parts = [int(part) for part in self.start_time.split(":")]
        local = datetime.combine(self.start_date, time(*parts), tzinfo=self.zone(default_tz))
        return local.astimezone(timezone.utc)

    def is_active(self) -> bool:
        return self.status == EventStatus.ACTIVE

    @classmethod
    def starting_at(cls, instant: datetime, **fields) -> "Event":
        """Build an event whose local start matches an absolute instant.

        Sub-second precision is dropped.
        """
        zone = resolve_timezone(fields.get("time_zone") or "UTC")
        local = instant.astimezone(zone)
        return cls(start_date=local.date(), start_time=local.strftime("%H:%M:%S"), **fields)


def resolve_timezone(name: str) -> ZoneInfo | timezone:
    """Resolve an IANA name, raising ValueError for unknown zones."""
    if name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError as e:
        raise ValueError(f"Unknown time zone: {name}") from e
