"""Data models for refuse.

This module exports the core data structures used throughout the application.
"""

from refuse.models.entry import StorageInfo, StorageLocation, StorageType, TrashedEntry
from refuse.models.history import (
    CURRENT_VERSION,
    HistoryDocument,
    HistoryRecord,
    create_history_record,
    parse_timestamp,
)

__all__ = [
    "CURRENT_VERSION",
    "HistoryDocument",
    "HistoryRecord",
    "StorageInfo",
    "StorageLocation",
    "StorageType",
    "TrashedEntry",
    "create_history_record",
    "parse_timestamp",
]
