"""Room Access Gate — tests for the join-attempt state machine.

Tests cover:
    - Public rooms join without a challenge
    - Private rooms challenge, reject wrong credentials, accept exact matches
    - Unlimited retries, cancel, and illegal transitions
"""

import pytest

from roomcast.core.domain_types import JoinState
from roomcast.core.room_access import (
    INCORRECT_PASSWORD,
    JoinAttempt,
    credential_matches,
    requires_challenge,
)
from roomcast.schemas.records import Room


def _public_room() -> Room:
    return Room(id="r1", name="General Lobby", owner_id="system")


def _private_room(credential: str = "123") -> Room:
    return Room(
        id="r3", name="Secret Club", is_private=True,
        credential=credential, owner_id="u1",
    )


def test_public_room_joins_directly():
    attempt = JoinAttempt(_public_room())
    assert attempt.begin() is JoinState.JOINED
    assert attempt.joined


def test_public_room_never_challenges():
    assert not requires_challenge(_public_room())
    attempt = JoinAttempt(_public_room())
    attempt.begin()
    assert not attempt.awaiting_credential


def test_private_room_enters_challenge():
    attempt = JoinAttempt(_private_room())
    assert attempt.begin() is JoinState.CREDENTIAL_CHALLENGE
    assert attempt.awaiting_credential


def test_wrong_credential_rejects_with_error():
    attempt = JoinAttempt(_private_room())
    attempt.begin()
    assert attempt.submit("nope") is JoinState.REJECTED
    assert attempt.error == INCORRECT_PASSWORD
    assert attempt.failed_attempts == 1


def test_correct_credential_joins():
    attempt = JoinAttempt(_private_room())
    attempt.begin()
    assert attempt.submit("123") is JoinState.JOINED
    assert attempt.error is None


def test_retry_after_rejection_is_unlimited():
    attempt = JoinAttempt(_private_room())
    attempt.begin()
    for _ in range(25):
        assert attempt.submit("wrong") is JoinState.REJECTED
    assert attempt.failed_attempts == 25
    assert attempt.submit("123") is JoinState.JOINED


def test_credential_match_is_exact():
    room = _private_room("Secret")
    assert credential_matches(room, "Secret")
    assert not credential_matches(room, "secret")
    assert not credential_matches(room, "Secret ")
    assert not credential_matches(_public_room(), "")


def test_submit_before_begin_is_rejected():
    attempt = JoinAttempt(_private_room())
    with pytest.raises(ValueError):
        attempt.submit("123")


def test_submit_after_join_is_rejected():
    attempt = JoinAttempt(_public_room())
    attempt.begin()
    with pytest.raises(ValueError):
        attempt.submit("anything")


def test_begin_twice_is_rejected():
    attempt = JoinAttempt(_private_room())
    attempt.begin()
    with pytest.raises(ValueError):
        attempt.begin()


def test_cancel_returns_to_idle_and_clears_error():
    attempt = JoinAttempt(_private_room())
    attempt.begin()
    attempt.submit("wrong")
    assert attempt.cancel() is JoinState.IDLE
    assert attempt.error is None


def test_cannot_cancel_completed_join():
    attempt = JoinAttempt(_public_room())
    attempt.begin()
    with pytest.raises(ValueError):
        attempt.cancel()
