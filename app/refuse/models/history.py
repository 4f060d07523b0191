"""History document model for the legacy trash.

This module defines the records kept in the legacy trash's
``history.json`` document, one record per trashed file or directory.
"""

import os
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

# Schema version written into every saved document
CURRENT_VERSION = 1

# Fractional seconds longer than Python's microseconds (e.g. Go nanoseconds)
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp as written by any known writer.

    Accepts a trailing "Z" and fractional seconds with more than six
    digits, which are truncated to microseconds.

    Args:
        value: Timestamp string.

    Returns:
        Parsed datetime (timezone-aware when the string carries an offset).

    Raises:
        ValueError: If the string is not a valid timestamp.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION_RE.sub(r"\1", text)
    return datetime.fromisoformat(text)


@dataclass(frozen=True, slots=True)
class HistoryRecord:
    """Single trashed object recorded in the history document.

    Attributes:
        name: Original base name.
        id: Unique identifier (32-character hex string from UUID).
        run_id: Groups records trashed by one invocation.
        from_path: Absolute path the object was trashed from.
        to_path: Location inside the trash, relative to the trash root
            (absolute in documents written by older versions).
        timestamp: When the object was trashed.
        is_dir: Whether the object is a directory.
    """

    name: str
    id: str
    run_id: str
    from_path: str
    to_path: str
    timestamp: datetime
    is_dir: bool = False

    def __post_init__(self) -> None:
        """Validate record data after initialization."""
        if not self.id:
            msg = "History record ID cannot be empty"
            raise ValueError(msg)
        if not self.from_path:
            msg = "History record source path cannot be empty"
            raise ValueError(msg)
        if not self.to_path:
            msg = "History record destination path cannot be empty"
            raise ValueError(msg)

    def resolve_to(self, root: str | os.PathLike[str]) -> str:
        """Absolute location of the payload inside a trash root.

        Args:
            root: Trash root directory.

        Returns:
            to_path joined onto root, or to_path itself if already absolute.
        """
        if os.path.isabs(self.to_path):
            return self.to_path
        return os.path.join(root, self.to_path)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage.

        Returns:
            Dictionary representation using the on-disk key names.
        """
        return {
            "name": self.name,
            "id": self.id,
            "group_id": self.run_id,
            "from": self.from_path,
            "to": self.to_path,
            "timestamp": self.timestamp.isoformat(),
            "is_dir": self.is_dir,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryRecord":
        """Deserialize from dictionary.

        Args:
            data: Dictionary containing record data.

        Returns:
            HistoryRecord instance.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If the timestamp or a field value is invalid.
        """
        return cls(
            name=data["name"],
            id=data["id"],
            run_id=data.get("group_id", "") or data["id"],
            from_path=data["from"],
            to_path=data["to"],
            timestamp=parse_timestamp(data["timestamp"]),
            is_dir=bool(data.get("is_dir", False)),
        )


@dataclass(slots=True)
class HistoryDocument:
    """The whole history document.

    Attributes:
        version: Schema version; never decreases across rewrites.
        files: Records in insertion order.
    """

    version: int = CURRENT_VERSION
    files: list[HistoryRecord] = field(default_factory=lambda: [])

    def ids(self) -> set[str]:
        """Return the set of record IDs."""
        return {record.id for record in self.files}

    def copy(self) -> "HistoryDocument":
        """Return a shallow copy with its own record list."""
        return HistoryDocument(version=self.version, files=list(self.files))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage.

        The written version is never lower than CURRENT_VERSION.
        """
        return {
            "version": max(self.version, CURRENT_VERSION),
            "files": [record.to_dict() for record in self.files],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryDocument":
        """Deserialize from dictionary.

        Args:
            data: Parsed JSON document.

        Returns:
            HistoryDocument instance.

        Raises:
            KeyError: If a record is missing required fields.
            ValueError: If a record is invalid.
        """
        files = [HistoryRecord.from_dict(item) for item in data.get("files") or []]
        return cls(version=int(data.get("version", CURRENT_VERSION)), files=files)


def create_history_record(
    source: str,
    run_id: str,
    is_dir: bool = False,
    now: datetime | None = None,
) -> HistoryRecord:
    """Factory function to create a new HistoryRecord.

    Automatically generates a unique ID and lays the payload out as
    ``YYYY/MM/DD/<run_id>/<name>.<id>`` relative to the trash root.

    Args:
        source: Absolute path of the object being trashed.
        run_id: Identifier of the current invocation.
        is_dir: Whether the object is a directory.
        now: Timestamp to record (default: current local time).

    Returns:
        New HistoryRecord.

    Raises:
        ValueError: If source is not absolute.
    """
    if not os.path.isabs(source):
        msg = f"Source path must be absolute: {source}"
        raise ValueError(msg)

    timestamp = now or datetime.now().astimezone()
    record_id = uuid.uuid4().hex
    name = os.path.basename(source.rstrip(os.sep)) or source

    to_path = os.path.join(
        f"{timestamp.year:04d}",
        f"{timestamp.month:02d}",
        f"{timestamp.day:02d}",
        run_id,
        f"{name}.{record_id}",
    )

    return HistoryRecord(
        name=name,
        id=record_id,
        run_id=run_id,
        from_path=source,
        to_path=to_path,
        timestamp=timestamp,
        is_dir=is_dir,
    )
