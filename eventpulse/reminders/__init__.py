"""Reminders module for event reminder sweeps and their lifecycle."""

from eventpulse.reminders.thresholds import Threshold

__all__ = [
    'Threshold',
]
