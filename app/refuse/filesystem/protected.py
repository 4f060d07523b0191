"""Paths that must never be moved to the trash.

This module defines the trash roots and critical system directories that
`put` refuses to touch, plus the "." / ".." / "/" safety checks applied
to raw command-line arguments.
"""

import fnmatch
import os
from collections.abc import Iterable
from pathlib import Path

from refuse.core.paths import get_home_trash_dir, get_legacy_trash_dir

# Protected path patterns (glob-style).
# Patterns starting with ~ are expanded to the user's home directory
# before matching. Patterns starting with / are matched as-is.
PROTECTED_PATH_PATTERNS: list[str] = [
    # The home directory itself
    "~",
    # Trash locations and everything inside them
    "~/.local/share/Trash",
    "~/.local/share/Trash/*",
    "~/.trash",
    "~/.trash/*",
    "~/.refuse",
    "~/.refuse/*",
    "/tmp/Trash",
    "/tmp/Trash/*",
    "/var/tmp/Trash",
    "/var/tmp/Trash/*",
    # Critical system directories (the directory itself)
    "/",
    "/etc",
    "/usr",
    "/var",
    "/bin",
    "/sbin",
    "/lib",
    "/lib64",
    "/boot",
]


def is_protected_path(path: str, extra_roots: Iterable[str | Path] = ()) -> bool:
    """Check if a path is protected and must not be trashed.

    The path argument should be an absolute path. Patterns using ~
    notation are expanded to the actual home directory before comparison
    using fnmatch for glob-style matching. The current XDG home trash,
    the legacy trash root and any extra_roots are protected together
    with everything below them and every directory above them.

    Args:
        path: Absolute filesystem path to check.
        extra_roots: Additional trash roots (e.g., configured overrides).

    Returns:
        True if the path matches any protected pattern, False otherwise.
    """
    cleaned = os.path.normpath(path)
    home = str(Path.home())

    for pattern in PROTECTED_PATH_PATTERNS:
        expanded = home + pattern[1:] if pattern.startswith("~") else pattern
        if fnmatch.fnmatchcase(cleaned, expanded):
            return True

    roots = [get_home_trash_dir(), get_legacy_trash_dir(), *extra_roots]
    for root in roots:
        root_str = os.path.normpath(root)
        if cleaned == root_str or _is_within(cleaned, root_str) or _is_within(root_str, cleaned):
            return True

    return False


def _is_within(path: str, parent: str) -> bool:
    return path.startswith(parent.rstrip(os.sep) + os.sep)


def is_unsafe_argument(arg: str) -> bool:
    """Check a raw command-line argument for dangerous shapes.

    Rejects ".", "..", anything ending in them, the root directory and
    paths starting with "//".

    Args:
        arg: Path exactly as the user typed it.

    Returns:
        True if the argument must be refused.
    """
    if os.path.basename(arg.rstrip(os.sep) or arg) in (".", ".."):
        return True
    if arg.startswith("//"):
        return True
    return os.path.normpath(arg) == "/"
