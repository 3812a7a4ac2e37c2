"""Exceptions raised by the reminder service."""


class ReminderError(Exception):
    """Base class for reminder service errors."""


class EventNotFoundError(ReminderError):
    """Raised when an event id does not resolve in the event store."""

    def __init__(self, event_id: str):
        super().__init__(f"Event not found: {event_id}")
        self.event_id = event_id


class GatewayUnavailableError(ReminderError):
    """Raised when the push gateway cannot accept a batch at all."""


class ConfigurationError(ReminderError):
    """Raised when the service is wired with an unusable configuration."""
