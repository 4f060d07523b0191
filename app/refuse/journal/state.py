"""Transaction state machine.

States move along an explicit transition table; committed, rolled_back
and failed are terminal. Every attempt to leave a terminal state raises
TransactionAlreadyCompletedError, every other illegal move raises
InvalidStateTransitionError.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from refuse.models.history import parse_timestamp


class JournalError(Exception):
    """Base exception for journal errors."""


class InvalidStateTransitionError(JournalError):
    """Raised when a transaction is asked to move along an illegal edge."""


class TransactionAlreadyCompletedError(JournalError):
    """Raised when a terminal transaction is used again."""


class TransactionState(str, Enum):
    """Lifecycle state of a transaction.

    Attributes:
        INITIAL: Created, nothing staged yet.
        PREPARED: Staged document and backup exist.
        COMMITTED: Staged document replaced the live one.
        ROLLED_BACK: Aborted before commit, backup restored.
        FAILED: An unexpected error stopped the transaction.
    """

    INITIAL = "initial"
    PREPARED = "prepared"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Check if no further transitions are permitted."""
        return not TRANSITIONS[self]

    def can_transition_to(self, target: "TransactionState") -> bool:
        """Check if the transition table allows moving to target."""
        return target in TRANSITIONS[self]


TRANSITIONS: dict[TransactionState, frozenset[TransactionState]] = {
    TransactionState.INITIAL: frozenset({TransactionState.PREPARED, TransactionState.FAILED}),
    TransactionState.PREPARED: frozenset(
        {
            TransactionState.COMMITTED,
            TransactionState.ROLLED_BACK,
            TransactionState.FAILED,
        }
    ),
    TransactionState.COMMITTED: frozenset(),
    TransactionState.ROLLED_BACK: frozenset(),
    TransactionState.FAILED: frozenset(),
}


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class TransactionMetadata:
    """State and timing of a transaction.

    Attributes:
        state: Current lifecycle state.
        start_time: When the transaction was created.
        update_time: When the state last changed.
        description: Human-readable summary.
        error: Error message once the transaction failed.
    """

    description: str = ""
    state: TransactionState = TransactionState.INITIAL
    start_time: datetime = field(default_factory=_now)
    update_time: datetime = field(default_factory=_now)
    error: str | None = None

    def ensure_active(self) -> None:
        """Reject any further use of a terminal transaction.

        Raises:
            TransactionAlreadyCompletedError: If the state is terminal.
        """
        if self.state.is_terminal:
            msg = f"transaction already completed ({self.state.value})"
            raise TransactionAlreadyCompletedError(msg)

    def transition(self, target: TransactionState) -> None:
        """Move to a new state.

        Args:
            target: Desired state.

        Raises:
            TransactionAlreadyCompletedError: If the current state is terminal.
            InvalidStateTransitionError: If the table forbids the move.
        """
        self.ensure_active()
        if not self.state.can_transition_to(target):
            msg = f"invalid state transition: cannot transition from {self.state.value} to {target.value}"
            raise InvalidStateTransitionError(msg)
        self.state = target
        self.update_time = _now()

    def fail(self, error: BaseException | str) -> None:
        """Transition to FAILED and remember the error message."""
        self.transition(TransactionState.FAILED)
        self.error = str(error)

    @property
    def age_seconds(self) -> float:
        """Seconds since the last state change."""
        return (_now() - self.update_time).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        result: dict[str, Any] = {
            "state": self.state.value,
            "start_time": self.start_time.isoformat(),
            "update_time": self.update_time.isoformat(),
            "description": self.description,
        }
        if self.error is not None:
            result["error"] = self.error
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TransactionMetadata":
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If the state or a timestamp is invalid.
        """
        return cls(
            description=data.get("description", ""),
            state=TransactionState(data["state"]),
            start_time=_aware(parse_timestamp(data["start_time"])),
            update_time=_aware(parse_timestamp(data["update_time"])),
            error=data.get("error"),
        )


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.astimezone()
    return value
