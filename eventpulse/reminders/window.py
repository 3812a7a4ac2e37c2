"""Time-window matching for reminder sweeps.

A sweep that runs every ``buffer`` looks at the half-open window
``[now + lead, now + lead + buffer)``. Consecutive sweeps tile the timeline,
so an event start is seen by exactly one sweep as long as the cadence holds.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Tuple

from eventpulse.models.event import Event
from eventpulse.reminders.thresholds import Threshold
from eventpulse.utils.clock import ensure_aware
from eventpulse.utils.logger import log_warning


def reminder_window(
    threshold: Threshold,
    now: datetime,
    buffer: timedelta,
) -> Tuple[datetime, datetime]:
    """Return the (start, end) bounds a sweep for ``threshold`` covers at ``now``."""
    if buffer <= timedelta(0):
        raise ValueError("Window buffer must be positive")
    start = ensure_aware(now) + threshold.lead_time
    return start, start + buffer


def in_window(instant: datetime, window: Tuple[datetime, datetime]) -> bool:
    start, end = window
    return start <= ensure_aware(instant) < end


def flag_is_set(event: Event, threshold: Threshold) -> bool:
    return bool(getattr(event.reminders, threshold.flag_field))


def is_candidate(
    event: Event,
    threshold: Threshold,
    now: datetime,
    buffer: timedelta,
    default_tz: str = "UTC",
) -> bool:
    """Whether ``event`` should be picked up by this threshold's sweep.

    Inactive events and events whose flag is already set never match. An
    event without a usable start time or time zone does not match either.
    """
    if not event.is_active() or flag_is_set(event, threshold):
        return False
    try:
        start_at = event.start_at(default_tz)
    except ValueError as e:
        log_warning(f"Skipping event {event.id} for {threshold} reminders: {e}")
        return False
    return in_window(start_at, reminder_window(threshold, now, buffer))


__all__ = ["reminder_window", "in_window", "flag_is_set", "is_candidate"]
