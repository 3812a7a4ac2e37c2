"""Push gateway contract and a logging gateway for development.

A gateway takes a batch of delivery tokens plus a reminder message and
reports per-token outcomes. Per-token failures are returned, never raised;
only a gateway that cannot take the batch at all raises
GatewayUnavailableError.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol, Sequence

from eventpulse.errors import GatewayUnavailableError
from eventpulse.reminders.composer import ReminderMessage
from eventpulse.utils.logger import log_debug, log_info


INVALID_REGISTRATION_TOKEN = "invalid-registration-token"
REGISTRATION_TOKEN_NOT_REGISTERED = "registration-token-not-registered"
SENDER_ID_MISMATCH = "sender-id-mismatch"
UNAVAILABLE = "unavailable"
UNKNOWN_ERROR = "unknown"

# Codes meaning the token will never work again and should be cleaned up
INVALID_ADDRESS_ERRORS = frozenset({
    INVALID_REGISTRATION_TOKEN,
    REGISTRATION_TOKEN_NOT_REGISTERED,
    SENDER_ID_MISMATCH,
})


@dataclass
class AddressResult:
    """Outcome of a send to a single token."""
    address: str
    success: bool
    error_code: Optional[str] = None
    message_id: Optional[str] = None

    @property
    def is_invalid_address(self) -> bool:
        return not self.success and self.error_code in INVALID_ADDRESS_ERRORS


@dataclass
class DispatchResult:
    """Aggregate outcome of one multicast send."""
    results: List[AddressResult] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for result in self.results if result.success)

    @property
    def failure_count(self) -> int:
        return sum(1 for result in self.results if not result.success)

    @property
    def invalid_addresses(self) -> List[str]:
        return [result.address for result in self.results if result.is_invalid_address]

    def merge(self, other: DispatchResult) -> DispatchResult:
        return DispatchResult(results=[*self.results, *other.results])


class PushGateway(Protocol):
    """Anything that can multicast a reminder to a batch of tokens."""

    async def send_multicast(self, addresses: Sequence[str], message: ReminderMessage) -> DispatchResult:
        ...


@dataclass
class SentNotification:
    """A multicast captured by the LoggingPushGateway."""
    addresses: List[str]
    message: ReminderMessage
    sent_at: datetime


class LoggingPushGateway:
    """Gateway that logs every push instead of delivering it.

    Useful when FCM credentials are not configured, and in tests. Tokens
    listed in ``failing_addresses`` are reported as failed with the given
    error code; ``unavailable`` makes every call raise.
    """

    def __init__(
        self,
        failing_addresses: Optional[Dict[str, str]] = None,
        unavailable: bool = False,
    ):
        self.failing_addresses: Dict[str, str] = dict(failing_addresses or {})
        self.unavailable = unavailable
        self.sent: List[SentNotification] = []
        log_debug("LoggingPushGateway initialized")

    async def send_multicast(self, addresses: Sequence[str], message: ReminderMessage) -> DispatchResult:
        if self.unavailable:
            raise GatewayUnavailableError("Logging gateway marked unavailable")

        record = SentNotification(
            addresses=list(addresses),
            message=message,
            sent_at=datetime.now(timezone.utc),
        )
        self.sent.append(record)

        results = []
        for address in addresses:
            error_code = self.failing_addresses.get(address)
            results.append(AddressResult(
                address=address,
                success=error_code is None,
                error_code=error_code,
                message_id=None if error_code else f"logged-{len(self.sent)}-{len(results)}",
            ))

        log_info(f"📱 [push] {message.title} | {message.body} -> {len(addresses)} device(s)")

        return DispatchResult(results=results)

    def get_sent_count(self) -> int:
        return len(self.sent)


__all__ = [
    "AddressResult",
    "DispatchResult",
    "PushGateway",
    "LoggingPushGateway",
    "SentNotification",
    "INVALID_ADDRESS_ERRORS",
    "INVALID_REGISTRATION_TOKEN",
    "REGISTRATION_TOKEN_NOT_REGISTERED",
    "SENDER_ID_MISMATCH",
    "UNAVAILABLE",
    "UNKNOWN_ERROR",
]
