"""Push gateways used to deliver reminder notifications."""

from eventpulse.notifications.gateway import (
    AddressResult,
    DispatchResult,
    LoggingPushGateway,
    PushGateway,
)

__all__ = [
    'AddressResult',
    'DispatchResult',
    'LoggingPushGateway',
    'PushGateway',
]
