from eventpulse.store.base import EventStore
from eventpulse.store.memory import InMemoryEventStore

__all__ = ["EventStore", "InMemoryEventStore"]
