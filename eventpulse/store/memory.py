"""In-memory event store for development and tests."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from eventpulse.models.event import Event
from eventpulse.reminders.thresholds import Threshold
from eventpulse.reminders.window import flag_is_set, is_candidate
from eventpulse.store.base import EventStore


class InMemoryEventStore(EventStore):
    """Dict-backed store keyed by event id.

    Reads hand out deep copies so callers can never mutate stored state;
    the only write path for reminder flags is ``try_set_flag``.
    """

    def __init__(self, default_timezone: str = "UTC", now: Optional[Callable[[], datetime]] = None) -> None:
        self._events: Dict[str, Event] = {}
        self._lock = asyncio.Lock()
        self.default_timezone = default_timezone
        self._now = now or (lambda: datetime.now(timezone.utc))

    def add(self, event: Event) -> Event:
        self._events[event.id] = event.model_copy(deep=True)
        return event

    def snapshot(self, event_id: str) -> Optional[Event]:
        event = self._events.get(event_id)
        return event.model_copy(deep=True) if event else None

    async def find_candidates(self, threshold: Threshold, now: datetime, buffer: timedelta) -> List[Event]:
        async with self._lock:
            matches = [
                event for event in self._events.values()
                if is_candidate(event, threshold, now, buffer, self.default_timezone)
            ]
            matches.sort(key=lambda event: event.start_at(self.default_timezone))
            return [event.model_copy(deep=True) for event in matches]

    async def try_set_flag(self, event_id: str, threshold: Threshold) -> bool:
        async with self._lock:
            event = self._events.get(event_id)
            if event is None or flag_is_set(event, threshold):
                return False
            setattr(event.reminders, threshold.flag_field, True)
            event.reminders.last_checked = self._now()
            return True

    async def get_event(self, event_id: str) -> Optional[Event]:
        async with self._lock:
            return self.snapshot(event_id)
