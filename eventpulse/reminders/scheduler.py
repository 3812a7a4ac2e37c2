"""Reminder sweeps: find events crossing a threshold and push reminders.

One sweep covers one threshold. For every candidate event the scheduler
filters recipients, composes the message, multicasts it and then flips the
event's flag through the store's compare-and-set. Events are processed
independently: a failure on one is logged and leaves its flag unset so the
next sweep retries it while it is still inside the window.

Dispatch and flag update are not transactional. If two schedulers race on
the same event both may dispatch, but only one wins the flag; the loser
logs the attempt as a duplicate. Once a window has passed an event is never
reminded for that threshold.

When a tick runs late, the sweep window starts at the end of the previous
window for that threshold, so starts falling between two ticks are not
skipped. Gaps longer than one cadence are not caught up.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional

from eventpulse.errors import EventNotFoundError
from eventpulse.models.event import Event, Participant
from eventpulse.notifications.gateway import DispatchResult, PushGateway
from eventpulse.reminders.composer import compose_reminder
from eventpulse.reminders.eligibility import eligible_recipients, recipient_tokens
from eventpulse.reminders.thresholds import Threshold
from eventpulse.reminders.window import reminder_window
from eventpulse.store.base import EventStore
from eventpulse.utils.clock import Clock, SystemClock
from eventpulse.utils.logger import log_debug, log_error, log_info, log_warning


class EventOutcome(str, Enum):
    """What happened to one candidate event during a sweep."""
    DISPATCHED = "dispatched"
    NO_RECIPIENTS = "no_recipients"
    DUPLICATE = "duplicate"
    FAILED = "failed"


@dataclass
class SweepReport:
    """Summary of one threshold sweep."""
    threshold: Threshold
    now: datetime
    window_start: datetime
    window_end: datetime
    candidates: int = 0
    outcomes: Dict[str, EventOutcome] = field(default_factory=dict)
    error: Optional[str] = None

    def _count(self, outcome: EventOutcome) -> int:
        return sum(1 for value in self.outcomes.values() if value == outcome)

    @property
    def dispatched(self) -> int:
        return self._count(EventOutcome.DISPATCHED)

    @property
    def skipped_no_recipients(self) -> int:
        return self._count(EventOutcome.NO_RECIPIENTS)

    @property
    def duplicates(self) -> int:
        return self._count(EventOutcome.DUPLICATE)

    @property
    def failed(self) -> int:
        return self._count(EventOutcome.FAILED)

    @property
    def handled(self) -> int:
        return self.candidates - self.failed

    def summary(self) -> Dict[str, object]:
        return {
            "threshold": self.threshold.wire_name,
            "now": self.now.isoformat(),
            "window": [self.window_start.isoformat(), self.window_end.isoformat()],
            "candidates": self.candidates,
            "handled": self.handled,
            "dispatched": self.dispatched,
            "skipped_no_recipients": self.skipped_no_recipients,
            "duplicates": self.duplicates,
            "failed": self.failed,
            "error": self.error,
        }


@dataclass
class ManualSendResult:
    """Result of sending one reminder on demand."""
    event_id: str
    event_title: str
    threshold: Threshold
    eligible_participants: int
    dispatch: Optional[DispatchResult] = None


class ReminderScheduler:
    """Runs threshold sweeps against an event store and a push gateway."""

    def __init__(
        self,
        store: EventStore,
        gateway: PushGateway,
        clock: Optional[Clock] = None,
        *,
        cadence: timedelta = timedelta(seconds=60),
        max_concurrency: int = 10,
        default_timezone: str = "UTC",
        thresholds: Optional[Iterable[Threshold]] = None,
    ):
        """Initialize the scheduler.

        Args:
            store: Event store providing candidates and the flag compare-and-set
            gateway: Push gateway used for multicast dispatch
            clock: Time source, system UTC clock by default
            cadence: Sweep interval; also the width of each matching window
            max_concurrency: Events dispatched in parallel across all sweeps
            default_timezone: Timezone for events that do not carry one
            thresholds: Thresholds swept by run_all, all of them by default
        """
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")

        self.store = store
        self.gateway = gateway
        self.clock = clock or SystemClock()
        self.cadence = cadence
        self.default_timezone = default_timezone
        self.thresholds: List[Threshold] = list(thresholds or Threshold)
        self._semaphore = asyncio.Semaphore(max_concurrency)

        self.last_reports: Dict[Threshold, SweepReport] = {}
        self._window_ends: Dict[Threshold, datetime] = {}
        self._totals: Dict[str, int] = {outcome.value: 0 for outcome in EventOutcome}

        log_debug(
            f"ReminderScheduler initialized: cadence={cadence.total_seconds():.0f}s, "
            f"max_concurrency={max_concurrency}, thresholds={[t.wire_name for t in self.thresholds]}"
        )

    async def run_all(self, now: Optional[datetime] = None) -> List[SweepReport]:
        """Run every configured threshold sweep concurrently."""
        now = now or self.clock.now()
        return list(await asyncio.gather(*(self.run_sweep(threshold, now) for threshold in self.thresholds)))

    async def run_sweep(self, threshold: Threshold, now: Optional[datetime] = None) -> SweepReport:
        """Run one sweep for ``threshold``.

        Never raises for store, gateway or data errors; they end up in the
        report and the log.
        """
        now = now or self.clock.now()
        window_start, window_end = reminder_window(threshold, now, self.cadence)
        previous_end = self._window_ends.get(threshold)
        if previous_end is not None and window_start - self.cadence <= previous_end < window_start:
            # Late tick: start where the previous window ended, at most one cadence back
            window_start = previous_end
        report = SweepReport(threshold=threshold, now=now, window_start=window_start, window_end=window_end)

        try:
            events = await self.store.find_candidates(
                threshold, window_start - threshold.lead_time, window_end - window_start,
            )
        except Exception as e:
            log_error(f"❌ Error checking {threshold} reminders: {e}")
            report.error = str(e)
            self.last_reports[threshold] = report
            return report

        if previous_end is None or window_end > previous_end:
            self._window_ends[threshold] = window_end
        report.candidates = len(events)
        outcomes = await asyncio.gather(*(self._process_event(event, threshold) for event in events))
        for event, outcome in zip(events, outcomes):
            report.outcomes[event.id] = outcome
            self._totals[outcome.value] += 1

        if events:
            log_info(
                f"{threshold} reminders: {report.handled}/{report.candidates} event(s) handled "
                f"({report.dispatched} dispatched, {report.skipped_no_recipients} without recipients, "
                f"{report.duplicates} duplicate, {report.failed} failed)"
            )
        else:
            log_debug(f"{threshold} reminders: no events in window {window_start.isoformat()}")

        self.last_reports[threshold] = report
        return report

    async def _process_event(self, event: Event, threshold: Threshold) -> EventOutcome:
        async with self._semaphore:
            try:
                recipients = eligible_recipients(event.participants)
                if recipients:
                    await self._dispatch(event, threshold, recipients)
                else:
                    log_warning(f"⚠️ No eligible participants for {threshold} reminder: {event.title} ({event.id})")

                flipped = await self.store.try_set_flag(event.id, threshold)
            except Exception as e:
                log_error(f"❌ Error sending {threshold} reminder for event {event.id}: {e}", exc_info=True)
                return EventOutcome.FAILED

        if not flipped:
            log_warning(f"Duplicate {threshold} reminder for event {event.id}: flag was already set")
            return EventOutcome.DUPLICATE
        return EventOutcome.DISPATCHED if recipients else EventOutcome.NO_RECIPIENTS

    async def _dispatch(
        self,
        event: Event,
        threshold: Threshold,
        recipients: List[Participant],
    ) -> DispatchResult:
        message = compose_reminder(event, threshold, self.clock.now(), self.default_timezone)
        tokens = recipient_tokens(recipients)

        result = await self.gateway.send_multicast(tokens, message)

        log_info(
            f"📱 {threshold} reminder sent for \"{event.title}\": "
            f"{result.success_count} success, {result.failure_count} failed"
        )

        if result.invalid_addresses:
            names = {participant.fcm_token: participant.name or participant.user_id for participant in recipients}
            for token in result.invalid_addresses:
                log_warning(f"⚠️ Invalid token for participant {names.get(token, 'unknown')}: {token}")

        return result

    async def send_reminder(self, event_id: str, threshold: Threshold) -> ManualSendResult:
        """Send one reminder right away, leaving the event's flags untouched.

        Raises:
            EventNotFoundError: If the event does not exist
        """
        event = await self.store.get_event(event_id)
        if event is None:
            raise EventNotFoundError(event_id)

        recipients = eligible_recipients(event.participants)
        result = ManualSendResult(
            event_id=event.id,
            event_title=event.title,
            threshold=threshold,
            eligible_participants=len(recipients),
        )

        if not recipients:
            log_warning(f"⚠️ No eligible participants for {threshold} reminder: {event.title} ({event.id})")
            return result

        result.dispatch = await self._dispatch(event, threshold, recipients)
        return result

    def get_stats(self) -> Dict[str, object]:
        return {
            "totals": dict(self._totals),
            "last_sweeps": {
                threshold.wire_name: report.summary()
                for threshold, report in self.last_reports.items()
            },
        }


__all__ = ["ReminderScheduler", "SweepReport", "ManualSendResult", "EventOutcome"]
