from __future__ import annotations

import logging
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from eventpulse.models.event import Event, EventStatus, NotificationSettings, Participant
from eventpulse.notifications.gateway import LoggingPushGateway
from eventpulse.reminders.scheduler import ReminderScheduler
from eventpulse.store.memory import InMemoryEventStore
from eventpulse.utils.clock import FakeClock
from eventpulse.utils.logger import LOGGER_NAME


BASE_TIME = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)
CADENCE = timedelta(seconds=60)


def make_participant(
    user_id: str,
    token: Optional[str] = "token",
    *,
    reminders: bool = True,
    push: bool = True,
    name: Optional[str] = None,
) -> Participant:
    return Participant(
        user_id=user_id,
        name=name or f"user-{user_id}",
        fcm_token=token,
        notification_settings=NotificationSettings(
            event_reminders=reminders,
            push_notifications=push,
        ),
    )


def make_event(
    event_id: str,
    start: datetime,
    *,
    title: str = "Team Picnic",
    status: EventStatus = EventStatus.ACTIVE,
    participants: Optional[list] = None,
    **fields,
) -> Event:
    if participants is None:
        participants = [make_participant(f"{event_id}-u1", f"{event_id}-tok-1")]
    return Event.starting_at(
        start,
        id=event_id,
        title=title,
        status=status,
        participants=participants,
        **fields,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(BASE_TIME)


@pytest.fixture
def store(clock: FakeClock) -> InMemoryEventStore:
    return InMemoryEventStore(now=clock.now)


@pytest.fixture
def gateway() -> LoggingPushGateway:
    return LoggingPushGateway()


@pytest.fixture
def scheduler(store: InMemoryEventStore, gateway: LoggingPushGateway, clock: FakeClock) -> ReminderScheduler:
    return ReminderScheduler(store, gateway, clock, cadence=CADENCE, max_concurrency=4)


@pytest.fixture
def app_log(caplog):
    """caplog wired to the application logger, which does not propagate."""
    app_logger = logging.getLogger(LOGGER_NAME)
    app_logger.addHandler(caplog.handler)
    try:
        yield caplog
    finally:
        app_logger.removeHandler(caplog.handler)
