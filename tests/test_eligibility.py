from __future__ import annotations

from eventpulse.reminders.eligibility import eligible_recipients, is_eligible, recipient_tokens

from conftest import make_participant


def test_push_disabled_participant_excluded() -> None:
    participant = make_participant("u1", "tok", reminders=True, push=False)
    assert not is_eligible(participant)


def test_reminders_disabled_participant_excluded() -> None:
    participant = make_participant("u1", "tok", reminders=False, push=True)
    assert not is_eligible(participant)


def test_participant_without_token_excluded() -> None:
    assert not is_eligible(make_participant("u1", None))
    assert not is_eligible(make_participant("u2", ""))


def test_participant_with_token_and_both_switches_included() -> None:
    assert is_eligible(make_participant("u1", "tok"))


def test_filter_preserves_order_and_input() -> None:
    participants = [
        make_participant("a", "tok-a"),
        make_participant("b", None),
        make_participant("c", "tok-c", push=False),
        make_participant("d", "tok-d"),
    ]
    before = [p.model_dump() for p in participants]

    eligible = eligible_recipients(participants)

    assert [p.user_id for p in eligible] == ["a", "d"]
    assert [p.model_dump() for p in participants] == before


def test_empty_result_is_not_an_error() -> None:
    assert eligible_recipients([make_participant("a", None)]) == []
    assert eligible_recipients([]) == []


def test_recipient_tokens_deduplicates() -> None:
    participants = [
        make_participant("a", "shared"),
        make_participant("b", "own"),
        make_participant("c", "shared"),
    ]
    assert recipient_tokens(participants) == ["shared", "own"]
