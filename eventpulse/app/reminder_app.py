"""Application orchestration for the reminder service.

This module centralizes startup/shutdown so the service can be run from the
command line or behind the HTTP API.
"""

from __future__ import annotations

import asyncio
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Optional

from config.config import AppConfig, load_config, validate_config
from eventpulse.errors import ConfigurationError
from eventpulse.notifications.fcm_gateway import FcmPushGateway
from eventpulse.notifications.gateway import LoggingPushGateway, PushGateway
from eventpulse.reminders.reminder_service import ReminderService
from eventpulse.reminders.scheduler import ManualSendResult, ReminderScheduler
from eventpulse.reminders.thresholds import Threshold
from eventpulse.store.base import EventStore
from eventpulse.store.memory import InMemoryEventStore
from eventpulse.utils.clock import Clock, SystemClock
from eventpulse.utils.logger import log_error, log_info, log_warning, setup_logging


class ReminderApp:
    """Builds and runs the reminder service from configuration."""

    def __init__(
        self,
        config_path: Optional[Path] = None,
        *,
        config: Optional[AppConfig] = None,
        store: Optional[EventStore] = None,
        gateway: Optional[PushGateway] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._config_path = config_path
        self._config = config
        self._store = store
        self._gateway = gateway
        self._clock = clock or SystemClock()

        self._scheduler: Optional[ReminderScheduler] = None
        self._reminder_service: Optional[ReminderService] = None

        self._startup_lock = asyncio.Lock()
        self._is_started = False

    @property
    def config(self) -> AppConfig:
        if not self._config:
            raise RuntimeError("ReminderApp not started yet; config unavailable")
        return self._config

    @property
    def scheduler(self) -> ReminderScheduler:
        if not self._scheduler:
            raise RuntimeError("ReminderApp not started yet; scheduler unavailable")
        return self._scheduler

    @property
    def reminder_service(self) -> ReminderService:
        if not self._reminder_service:
            raise RuntimeError("ReminderApp not started yet; reminder service unavailable")
        return self._reminder_service

    @property
    def is_started(self) -> bool:
        return self._is_started

    def _build_gateway(self, config: AppConfig) -> PushGateway:
        if config.fcm.enabled:
            log_info("Push delivery: Firebase Cloud Messaging")
            return FcmPushGateway(config.fcm)
        log_warning("FCM disabled; reminder pushes will only be logged")
        return LoggingPushGateway()

    async def startup(self) -> None:
        """Load configuration, wire dependencies and start the sweeps."""
        async with self._startup_lock:
            if self._is_started:
                return

            if self._config is None:
                log_info("ReminderApp startup: loading configuration")
                self._config = load_config(self._config_path)

            config = self._config
            setup_logging(config.logging.level, config.logging.date_format)

            errors = validate_config(config)
            if errors:
                for error in errors:
                    log_error(f"Configuration error: {error}")
                raise ConfigurationError("; ".join(errors))

            if self._store is None:
                log_warning("No event store supplied; using an empty in-memory store")
                self._store = InMemoryEventStore(config.reminders.default_timezone, now=self._clock.now)
            if self._gateway is None:
                self._gateway = self._build_gateway(config)

            self._scheduler = ReminderScheduler(
                store=self._store,
                gateway=self._gateway,
                clock=self._clock,
                cadence=timedelta(seconds=config.reminders.check_interval_seconds),
                max_concurrency=config.reminders.max_concurrent_events,
                default_timezone=config.reminders.default_timezone,
                thresholds=[Threshold.parse(name) for name in config.reminders.thresholds],
            )

            log_info("ReminderApp startup: starting reminder service")
            self._reminder_service = ReminderService(self._scheduler, config.reminders)
            await self._reminder_service.start()

            self._is_started = True
            log_info("ReminderApp startup complete")

    async def shutdown(self) -> None:
        """Stop the sweeps, waiting for in-flight dispatches."""
        if not self._is_started:
            return

        log_info("ReminderApp shutdown: stopping services")
        if self._reminder_service:
            await self._reminder_service.stop()

        self._is_started = False
        log_info("ReminderApp shutdown complete")

    def get_status(self) -> Dict[str, Any]:
        if not self._reminder_service:
            return {"running": False, "active_cadences": []}
        return self._reminder_service.get_status()

    def get_stats(self) -> Dict[str, Any]:
        if not self._reminder_service:
            raise RuntimeError("ReminderApp not started yet; stats unavailable")
        return self._reminder_service.get_stats()

    async def send_test_reminder(self, event_id: str, reminder_type: str) -> ManualSendResult:
        """Dispatch one reminder for an event immediately.

        Raises:
            ValueError: If reminder_type is not a known threshold
            EventNotFoundError: If the event does not exist
        """
        threshold = Threshold.parse(reminder_type)
        return await self.scheduler.send_reminder(event_id, threshold)

    def snapshot(self) -> Dict[str, Any]:
        """Return a health snapshot of the service state."""
        return {
            "is_started": self._is_started,
            "config_loaded": self._config is not None,
            "reminders": self.get_status(),
        }
