"""Reading and writing ``.trashinfo`` sidecar files.

A sidecar sits in a trash location's ``info/`` directory next to the
payload in ``files/`` and records where the payload came from::

    [Trash Info]
    Path=/home/user/My%20Documents/report.txt
    DeletionDate=2024-05-01T12:30:00
"""

import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from urllib.parse import quote_plus, unquote_plus

logger = logging.getLogger(__name__)

TRASHINFO_HEADER = "[Trash Info]"
TRASHINFO_SUFFIX = ".trashinfo"
DELETION_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# A "%" not followed by two hex digits
_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")


class TrashInfoError(ValueError):
    """Raised when a sidecar cannot be parsed."""


@dataclass(frozen=True, slots=True)
class TrashInfoRecord:
    """Decoded contents of a sidecar.

    Attributes:
        path: Original location of the payload.
        deletion_date: When the payload was trashed (local time).
    """

    path: str
    deletion_date: datetime

    @property
    def original_name(self) -> str:
        """Base name of the original location."""
        return os.path.basename(self.path.rstrip(os.sep)) or self.path


def encode_path(path: str) -> str:
    """Percent-encode a path for the ``Path=`` key.

    Slashes are kept, spaces become ``%20`` and every other reserved
    character is escaped.

    Args:
        path: Original path.

    Returns:
        Encoded path.
    """
    segments = []
    for segment in path.split("/"):
        tokens = [quote_plus(token) for token in segment.split(" ")]
        segments.append("%20".join(tokens))
    return "/".join(segments)


def decode_path(value: str) -> str:
    """Reverse encode_path.

    Raises:
        TrashInfoError: If value holds a malformed escape or invalid UTF-8.
    """
    if _BAD_ESCAPE_RE.search(value):
        msg = f"invalid Path encoding: {value!r}"
        raise TrashInfoError(msg)
    try:
        return unquote_plus(value, errors="strict")
    except UnicodeDecodeError as e:
        msg = f"invalid Path encoding: {e}"
        raise TrashInfoError(msg) from e


def render(record: TrashInfoRecord) -> str:
    """Render a record as sidecar text."""
    return (
        f"{TRASHINFO_HEADER}\n"
        f"Path={encode_path(record.path)}\n"
        f"DeletionDate={record.deletion_date.strftime(DELETION_DATE_FORMAT)}\n"
    )


def write_trashinfo(path: str | Path, record: TrashInfoRecord) -> None:
    """Create a sidecar file, failing if it already exists.

    Args:
        path: Sidecar location.
        record: Contents to write.

    Raises:
        FileExistsError: If path already exists.
        OSError: If the file cannot be written (a partial file is removed).
    """
    content = render(record)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
    except OSError:
        try:
            os.unlink(path)
        except OSError as e:
            logger.warning("Could not remove partial sidecar %s: %s", path, e)
        raise


def parse_trashinfo(text: str, mount_root: str | Path | None = None) -> TrashInfoRecord:
    """Parse sidecar text.

    Blank lines and ``#`` comments are ignored, as is anything before the
    header. Lines without ``=`` are skipped.

    Args:
        text: Sidecar contents.
        mount_root: Directory a relative ``Path`` is resolved against.

    Returns:
        Decoded record.

    Raises:
        TrashInfoError: If the header or a required key is missing, or a
            value cannot be decoded.
    """
    header_found = False
    path: str | None = None
    deletion_date: datetime | None = None

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line == TRASHINFO_HEADER:
            header_found = True
            continue
        if not header_found:
            continue

        key, sep, value = line.partition("=")
        if not sep:
            continue
        key, value = key.strip(), value.strip()

        if key == "Path":
            path = decode_path(value)
        elif key == "DeletionDate":
            try:
                deletion_date = datetime.strptime(value, DELETION_DATE_FORMAT).astimezone()
            except ValueError as e:
                msg = f"invalid DeletionDate format: {value!r}"
                raise TrashInfoError(msg) from e

    if not header_found:
        msg = f"missing {TRASHINFO_HEADER} header"
        raise TrashInfoError(msg)
    if not path:
        msg = "missing Path field"
        raise TrashInfoError(msg)
    if deletion_date is None:
        msg = "missing DeletionDate field"
        raise TrashInfoError(msg)

    if mount_root is not None and not os.path.isabs(path):
        path = os.path.join(mount_root, path)

    return TrashInfoRecord(path=path, deletion_date=deletion_date)


def load_trashinfo(path: str | Path, mount_root: str | Path | None = None) -> TrashInfoRecord:
    """Read and parse a sidecar file.

    Raises:
        OSError: If the file cannot be read.
        TrashInfoError: If its contents are invalid.
    """
    text = Path(path).read_text(encoding="utf-8")
    return parse_trashinfo(text, mount_root)


def is_trashinfo_name(name: str) -> bool:
    """Check if a file name is a sidecar name."""
    return name.endswith(TRASHINFO_SUFFIX)
