from __future__ import annotations

import threading
from types import SimpleNamespace
from typing import List

import pytest
from firebase_admin import exceptions, messaging

from config.config import FcmConfig
from eventpulse.errors import ConfigurationError, GatewayUnavailableError
from eventpulse.notifications import fcm_gateway
from eventpulse.notifications.fcm_gateway import FcmPushGateway, classify_error, initialize_firebase
from eventpulse.notifications.gateway import (
    INVALID_REGISTRATION_TOKEN,
    REGISTRATION_TOKEN_NOT_REGISTERED,
    SENDER_ID_MISMATCH,
    UNAVAILABLE,
    UNKNOWN_ERROR,
)
from eventpulse.reminders.composer import ReminderMessage


MESSAGE = ReminderMessage(
    title="Event Starting Soon! ⏰",
    body='"Standup" starts in 2 hours at 9:00 AM. Get ready!',
    data={"eventId": "evt-1", "reminderType": "2h"},
)


def ok(message_id: str) -> SimpleNamespace:
    return SimpleNamespace(success=True, message_id=message_id, exception=None)


def failed(exc: Exception) -> SimpleNamespace:
    return SimpleNamespace(success=False, message_id=None, exception=exc)


class FakeSender:
    """Replacement for messaging.send_each_for_multicast."""

    def __init__(self, outcomes=None, fail_on_call=None):
        self.outcomes = outcomes or {}
        self.fail_on_call = fail_on_call
        self.calls: List[messaging.MulticastMessage] = []
        self.dry_runs: List[bool] = []

    def __call__(self, multicast, dry_run=False, app=None):
        self.calls.append(multicast)
        self.dry_runs.append(dry_run)
        if self.fail_on_call == len(self.calls):
            raise exceptions.UnavailableError("backend down")
        responses = [
            self.outcomes.get(token) or ok(f"msg-{token}")
            for token in multicast.tokens
        ]
        return SimpleNamespace(responses=responses)


@pytest.fixture
def sender(monkeypatch) -> FakeSender:
    fake = FakeSender()
    monkeypatch.setattr(messaging, "send_each_for_multicast", fake)
    return fake


def make_gateway(**overrides) -> FcmPushGateway:
    return FcmPushGateway(FcmConfig(enabled=True, project_id="demo", **overrides), app=object())


def test_classify_error_codes() -> None:
    assert classify_error(messaging.UnregisteredError("gone")) == REGISTRATION_TOKEN_NOT_REGISTERED
    assert classify_error(messaging.SenderIdMismatchError("other sender")) == SENDER_ID_MISMATCH
    assert classify_error(exceptions.InvalidArgumentError("bad token")) == INVALID_REGISTRATION_TOKEN
    assert classify_error(exceptions.UnavailableError("later")) == UNAVAILABLE
    assert classify_error(None) == UNKNOWN_ERROR


def test_build_message_platform_settings() -> None:
    multicast = make_gateway(android_channel_id="reminders").build_message(["a"], MESSAGE)

    assert multicast.tokens == ["a"]
    assert multicast.notification.title == MESSAGE.title
    assert multicast.data == MESSAGE.data
    assert multicast.android.priority == "high"
    assert multicast.android.notification.channel_id == "reminders"
    assert multicast.apns.payload.aps.badge == 1
    assert multicast.apns.payload.aps.category == "EVENT_REMINDER"


@pytest.mark.asyncio
async def test_per_token_outcomes(sender) -> None:
    sender.outcomes = {
        "stale": failed(messaging.UnregisteredError("gone")),
        "flaky": failed(exceptions.UnavailableError("later")),
    }
    gateway = make_gateway(dry_run=True)

    result = await gateway.send_multicast(["good", "stale", "flaky"], MESSAGE)

    assert result.success_count == 1
    assert result.failure_count == 2
    assert result.invalid_addresses == ["stale"]
    assert result.results[0].message_id == "msg-good"
    assert sender.dry_runs == [True]


@pytest.mark.asyncio
async def test_tokens_sent_in_batches(sender) -> None:
    gateway = make_gateway(batch_size=2)
    tokens = [f"t{i}" for i in range(5)]

    result = await gateway.send_multicast(tokens, MESSAGE)

    assert [call.tokens for call in sender.calls] == [["t0", "t1"], ["t2", "t3"], ["t4"]]
    assert result.success_count == 5


def test_batch_size_capped_at_multicast_limit() -> None:
    assert FcmConfig(batch_size=2000).batch_size == 500


@pytest.mark.asyncio
async def test_empty_token_list_sends_nothing(sender) -> None:
    result = await make_gateway().send_multicast([], MESSAGE)
    assert result.results == []
    assert sender.calls == []


@pytest.mark.asyncio
async def test_first_batch_failure_raises(sender) -> None:
    sender.fail_on_call = 1

    with pytest.raises(GatewayUnavailableError):
        await make_gateway(batch_size=2).send_multicast(["a", "b", "c"], MESSAGE)

    assert len(sender.calls) == 1


@pytest.mark.asyncio
async def test_later_batch_failure_reported_per_token(sender) -> None:
    sender.fail_on_call = 2

    result = await make_gateway(batch_size=2).send_multicast(["a", "b", "c", "d", "e"], MESSAGE)

    assert len(sender.calls) == 3
    assert result.success_count == 3
    failures = [r for r in result.results if not r.success]
    assert [r.address for r in failures] == ["c", "d"]
    assert all(r.error_code == UNAVAILABLE for r in failures)
    assert result.invalid_addresses == []


def test_initialize_without_credentials_fails() -> None:
    with pytest.raises(ConfigurationError):
        initialize_firebase(FcmConfig(enabled=True))


@pytest.mark.asyncio
async def test_firebase_initialized_off_the_event_loop(sender, monkeypatch) -> None:
    init_threads = []

    def fake_initialize(config):
        init_threads.append(threading.current_thread())
        return object()

    monkeypatch.setattr(fcm_gateway, "initialize_firebase", fake_initialize)
    gateway = FcmPushGateway(FcmConfig(enabled=True, project_id="demo"))

    await gateway.send_multicast(["a"], MESSAGE)
    await gateway.send_multicast(["b"], MESSAGE)

    assert len(init_threads) == 1
    assert init_threads[0] is not threading.main_thread()
    assert len(sender.calls) == 2
