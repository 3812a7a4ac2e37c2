from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import List

import pytest

from config.config import RemindersConfig
from eventpulse.reminders.reminder_service import ReminderService, ServiceState
from eventpulse.reminders.scheduler import ReminderScheduler
from eventpulse.reminders.thresholds import Threshold

from conftest import BASE_TIME, make_event


class RecordingScheduler:
    """Scheduler stand-in that records which thresholds were swept."""

    def __init__(self) -> None:
        self.swept: List[Threshold] = []
        self.last_reports = {}

    async def run_sweep(self, threshold: Threshold, now=None):
        self.swept.append(threshold)

    def get_stats(self):
        return {"swept": [threshold.wire_name for threshold in self.swept]}


ALL_CADENCES = ["reminders:24h", "reminders:2h", "reminders:30m"]


@pytest.mark.asyncio
async def test_start_and_stop_transitions() -> None:
    service = ReminderService(RecordingScheduler(), RemindersConfig())
    assert service.state == ServiceState.STOPPED
    assert service.get_status()["running"] is False

    await service.start()
    status = service.get_status()
    assert status["running"] is True
    assert status["active_cadences"] == ALL_CADENCES
    assert status["started_at"] is not None

    await service.stop()
    status = service.get_status()
    assert status["running"] is False
    assert status["active_cadences"] == []
    assert status["uptime_seconds"] == 0.0


@pytest.mark.asyncio
async def test_start_and_stop_are_idempotent() -> None:
    service = ReminderService(RecordingScheduler(), RemindersConfig())

    await service.stop()
    await service.start()
    await service.start()
    assert service.get_status()["active_cadences"] == ALL_CADENCES

    await service.stop()
    await service.stop()
    assert service.state == ServiceState.STOPPED


@pytest.mark.asyncio
async def test_disabled_service_does_not_start() -> None:
    service = ReminderService(RecordingScheduler(), RemindersConfig(enabled=False))

    await service.start()

    assert service.is_running is False
    assert service.active_cadences() == []


@pytest.mark.asyncio
async def test_each_threshold_swept_on_start() -> None:
    scheduler = RecordingScheduler()
    service = ReminderService(scheduler, RemindersConfig(thresholds=["2h", "30m"]))

    async with service:
        await asyncio.sleep(0.05)
        assert service.active_cadences() == ["reminders:2h", "reminders:30m"]

    assert sorted(t.wire_name for t in scheduler.swept) == ["2h", "30m"]
    assert service.is_running is False


@pytest.mark.asyncio
async def test_service_drives_real_sweeps(store, gateway, clock) -> None:
    store.add(make_event("e1", BASE_TIME + timedelta(minutes=30, seconds=20)))
    scheduler = ReminderScheduler(store, gateway, clock, cadence=timedelta(seconds=60))
    service = ReminderService(scheduler, RemindersConfig(check_interval_seconds=60))

    await service.start()
    await asyncio.sleep(0.05)
    await service.stop()

    assert store.snapshot("e1").reminders.sent_30m is True
    assert gateway.get_sent_count() == 1
    stats = service.get_stats()
    assert stats["scheduler"]["totals"]["dispatched"] == 1
    assert stats["enabled"] is True
