"""Reminder service that owns the sweep cadences.

This module provides the ReminderService lifecycle controller: it starts one
Ticker per threshold, stops them gracefully, and reports status for health
checks.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from config.config import RemindersConfig
from eventpulse.reminders.scheduler import ReminderScheduler
from eventpulse.reminders.thresholds import Threshold
from eventpulse.reminders.ticker import Ticker
from eventpulse.utils.logger import log_debug, log_info


class ServiceState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"


def cadence_name(threshold: Threshold) -> str:
    return f"reminders:{threshold.wire_name}"


class ReminderService:
    """Lifecycle controller for reminder sweeps.

    Each threshold runs on its own Ticker, so a slow 24h sweep never delays
    the 30m one, while two sweeps of the same threshold never overlap.
    """

    def __init__(self, scheduler: ReminderScheduler, config: RemindersConfig):
        """Initialize the reminder service.

        Args:
            scheduler: Scheduler performing the sweeps
            config: Reminders configuration
        """
        self.scheduler = scheduler
        self.config = config
        self.interval = timedelta(seconds=config.check_interval_seconds)

        self._state = ServiceState.STOPPED
        self._tickers: Dict[str, Ticker] = {}
        self._started_at: Optional[datetime] = None

        log_debug("ReminderService initialized")

    @property
    def state(self) -> ServiceState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == ServiceState.RUNNING

    def _build_tickers(self) -> Dict[str, Ticker]:
        tickers = {}
        for name in self.config.thresholds:
            threshold = Threshold.parse(name)
            tickers[cadence_name(threshold)] = Ticker(
                cadence_name(threshold),
                self.interval,
                lambda threshold=threshold: self.scheduler.run_sweep(threshold),
            )
        return tickers

    async def start(self) -> None:
        """Start one sweep cadence per configured threshold."""
        if self.is_running:
            log_info("⚠️ Reminder service is already running")
            return

        if not self.config.enabled:
            log_info("Reminders disabled in configuration")
            return

        log_info("🕐 Starting reminder service...")
        self._tickers = self._build_tickers()
        for ticker in self._tickers.values():
            ticker.start()

        self._state = ServiceState.RUNNING
        self._started_at = datetime.now(timezone.utc)
        log_info(f"✅ Reminder service started ({', '.join(self._tickers)})")

    async def stop(self) -> None:
        """Stop all cadences, letting in-flight sweeps finish."""
        if not self.is_running:
            log_debug("Reminder service is not running")
            return

        log_info("🛑 Stopping reminder service...")
        for name, ticker in list(self._tickers.items()):
            await ticker.stop()
            log_info(f"   Stopped job: {name}")

        self._tickers.clear()
        self._state = ServiceState.STOPPED
        self._started_at = None
        log_info("✅ Reminder service stopped")

    def active_cadences(self) -> List[str]:
        return [name for name, ticker in self._tickers.items() if ticker.is_running]

    def get_status(self) -> Dict[str, Any]:
        """Status used by the health endpoint.

        Returns:
            Dictionary with running flag, active cadence names and uptime
        """
        uptime = 0.0
        if self._started_at:
            uptime = (datetime.now(timezone.utc) - self._started_at).total_seconds()

        return {
            "running": self.is_running,
            "active_cadences": self.active_cadences(),
            "uptime_seconds": uptime,
            "started_at": self._started_at.isoformat() if self._started_at else None,
            "interval_seconds": self.interval.total_seconds(),
            "last_sweeps": {
                threshold.wire_name: report.summary()
                for threshold, report in self.scheduler.last_reports.items()
            },
            "cadences": {
                name: {"ticks": ticker.ticks, "skipped_ticks": ticker.skipped_ticks}
                for name, ticker in self._tickers.items()
            },
        }

    def get_stats(self) -> Dict[str, Any]:
        return {
            **self.get_status(),
            "enabled": self.config.enabled,
            "scheduler": self.scheduler.get_stats(),
        }

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()
