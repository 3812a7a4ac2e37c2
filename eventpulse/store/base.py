"""Event store contract consumed by the reminder scheduler."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import List, Optional

from eventpulse.models.event import Event
from eventpulse.reminders.thresholds import Threshold


class EventStore(ABC):
    """Windowed query plus an atomic flag compare-and-set.

    Implementations must enforce ``try_set_flag`` inside the data store so
    that several scheduler processes sharing it cannot both win.
    """

    @abstractmethod
    async def find_candidates(
        self,
        threshold: Threshold,
        now: datetime,
        buffer: timedelta,
    ) -> List[Event]:
        """Active events with the threshold flag unset whose start lies in
        ``[now + lead, now + lead + buffer)``, participants resolved."""

    @abstractmethod
    async def try_set_flag(self, event_id: str, threshold: Threshold) -> bool:
        """Flip the threshold flag from false to true.

        Returns:
            True only for the call that performed the flip
        """

    @abstractmethod
    async def get_event(self, event_id: str) -> Optional[Event]:
        """Single event with participants resolved, or None."""
