"""Room Access Gate — per-attempt state machine for joining a room.

Invariants:
    - Public rooms go IDLE -> JOINED and never enter CREDENTIAL_CHALLENGE
    - Private rooms go IDLE -> CREDENTIAL_CHALLENGE -> (REJECTED -> ...)* -> JOINED
    - A credential is accepted only on exact equality with Room.credential
    - Rejection is local: nothing is persisted or published, retries are unlimited
    - cancel() returns to IDLE from any state except JOINED

Design Decisions:
    - Dataclass with explicit transitions: pure, deterministic, testable without mocks
    - The JOINED side effect (loading message history) belongs to the caller (ChatView)
"""

from dataclasses import dataclass

from roomcast.core.domain_types import JoinState
from roomcast.schemas.records import Room

INCORRECT_PASSWORD = "Incorrect password"


def requires_challenge(room: Room) -> bool:
    return room.is_private


def credential_matches(room: Room, credential: str) -> bool:
    return room.credential is not None and credential == room.credential


@dataclass
class JoinAttempt:
    """One attempt by one view to enter one room."""

    room: Room
    state: JoinState = JoinState.IDLE
    failed_attempts: int = 0
    error: str | None = None

    @property
    def awaiting_credential(self) -> bool:
        return self.state in (JoinState.CREDENTIAL_CHALLENGE, JoinState.REJECTED)

    @property
    def joined(self) -> bool:
        return self.state is JoinState.JOINED

    def begin(self) -> JoinState:
        if self.state is not JoinState.IDLE:
            raise ValueError(f"join attempt already started ({self.state.value})")
        if requires_challenge(self.room):
            self.state = JoinState.CREDENTIAL_CHALLENGE
        else:
            self.state = JoinState.JOINED
        return self.state

    def submit(self, credential: str) -> JoinState:
        """Check a credential. REJECTED re-enters the challenge on the next submit."""
        if not self.awaiting_credential:
            raise ValueError(f"no credential challenge pending ({self.state.value})")
        if credential_matches(self.room, credential):
            self.state = JoinState.JOINED
            self.error = None
        else:
            self.state = JoinState.REJECTED
            self.failed_attempts += 1
            self.error = INCORRECT_PASSWORD
        return self.state

    def cancel(self) -> JoinState:
        if self.state is JoinState.JOINED:
            raise ValueError("cannot cancel a completed join")
        self.state = JoinState.IDLE
        self.error = None
        return self.state
