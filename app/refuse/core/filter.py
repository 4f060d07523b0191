"""Listing filters.

Pure functions that narrow a list of trashed entries according to the
[history] configuration. Filters are applied in a fixed order: exact
names, regular expressions, globs, size range, then age.
"""

import fnmatch
import logging
import os
import re
from collections.abc import Iterable
from datetime import datetime, timedelta

from refuse.core.config import HistoryConfig, SizeConfig
from refuse.models.entry import TrashedEntry

logger = logging.getLogger(__name__)


def apply_filters(
    entries: Iterable[TrashedEntry],
    config: HistoryConfig,
    now: datetime | None = None,
) -> list[TrashedEntry]:
    """Apply every configured filter.

    Args:
        entries: Entries to filter.
        config: Include/exclude settings.
        now: Reference time for the age window (default: current time).

    Returns:
        Entries that pass all filters, in their original order.
    """
    result = list(entries)
    exclude = config.exclude
    result = exclude_names(result, exclude.files)
    result = exclude_patterns(result, exclude.patterns)
    result = exclude_globs(result, exclude.globs)
    result = exclude_sizes(result, exclude.size)
    return include_within_days(result, config.include.within_days, now)


def exclude_names(entries: list[TrashedEntry], names: list[str]) -> list[TrashedEntry]:
    """Drop entries whose name is listed exactly."""
    if not names:
        return entries
    excluded = set(names)
    return [e for e in entries if e.name not in excluded]


def exclude_patterns(entries: list[TrashedEntry], patterns: list[str]) -> list[TrashedEntry]:
    """Drop entries whose name matches any regular expression.

    Invalid expressions are logged and ignored.
    """
    compiled: list[re.Pattern[str]] = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as e:
            logger.warning("Ignoring invalid exclude pattern %r: %s", pattern, e)
    if not compiled:
        return entries
    return [e for e in entries if not any(rx.search(e.name) for rx in compiled)]


def exclude_globs(entries: list[TrashedEntry], globs: list[str]) -> list[TrashedEntry]:
    """Drop entries whose name matches any shell-style pattern."""
    if not globs:
        return entries
    return [e for e in entries if not any(fnmatch.fnmatchcase(e.name, g) for g in globs)]


def exclude_sizes(entries: list[TrashedEntry], size: SizeConfig) -> list[TrashedEntry]:
    """Drop entries at or beyond the configured size bounds.

    Entries are hidden when ``size <= min`` or ``max <= size``.
    Directories are measured recursively; entries whose size cannot be
    read are kept.
    """
    min_bytes, max_bytes = size.min_bytes, size.max_bytes
    if min_bytes is None and max_bytes is None:
        return entries

    kept: list[TrashedEntry] = []
    for entry in entries:
        try:
            total = entry_size(entry)
        except OSError as e:
            logger.debug("Cannot size %s, keeping it: %s", entry.trash_path, e)
            kept.append(entry)
            continue
        if min_bytes is not None and total <= min_bytes:
            continue
        if max_bytes is not None and max_bytes <= total:
            continue
        kept.append(entry)
    return kept


def include_within_days(
    entries: list[TrashedEntry],
    within_days: int,
    now: datetime | None = None,
) -> list[TrashedEntry]:
    """Keep entries trashed less than within_days ago (0 keeps everything)."""
    if within_days <= 0:
        return entries
    now = _aware(now) if now is not None else datetime.now().astimezone()
    window = timedelta(days=within_days)
    return [e for e in entries if now - _aware(e.deleted_at) < window]


def entry_size(entry: TrashedEntry) -> int:
    """Size of an entry's payload, summed over the tree for directories.

    Raises:
        OSError: If the payload cannot be stat'ed.
    """
    st = os.lstat(entry.trash_path)
    if not entry.is_dir:
        return st.st_size

    total = 0
    for dirpath, _dirnames, filenames in os.walk(entry.trash_path, onerror=_raise):
        for name in filenames:
            total += os.lstat(os.path.join(dirpath, name)).st_size
    return total


def _raise(error: OSError) -> None:
    raise error


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.astimezone()
    return value
