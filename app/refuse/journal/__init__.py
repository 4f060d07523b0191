"""Transactional history journal for the legacy trash."""

from refuse.journal.state import (
    InvalidStateTransitionError,
    JournalError,
    TransactionAlreadyCompletedError,
    TransactionMetadata,
    TransactionState,
)
from refuse.journal.store import DEFAULT_STALE_AFTER, Journal
from refuse.journal.transaction import Transaction, TransactionType

__all__ = [
    "DEFAULT_STALE_AFTER",
    "InvalidStateTransitionError",
    "Journal",
    "JournalError",
    "Transaction",
    "TransactionAlreadyCompletedError",
    "TransactionMetadata",
    "TransactionState",
    "TransactionType",
]
