"""Recipient eligibility for reminder pushes."""

from __future__ import annotations

from typing import Iterable, List

from eventpulse.models.event import Participant


def is_eligible(participant: Participant) -> bool:
    """A participant gets reminders only with a token and both switches on."""
    settings = participant.notification_settings
    return bool(participant.fcm_token) and settings.event_reminders and settings.push_notifications


def eligible_recipients(participants: Iterable[Participant]) -> List[Participant]:
    return [participant for participant in participants if is_eligible(participant)]


def recipient_tokens(participants: Iterable[Participant]) -> List[str]:
    """Delivery tokens in participant order, without duplicates."""
    seen = set()
    tokens: List[str] = []
    for participant in participants:
        token = participant.fcm_token
        if token and token not in seen:
            seen.add(token)
            tokens.append(token)
    return tokens


__all__ = ["is_eligible", "eligible_recipients", "recipient_tokens"]
