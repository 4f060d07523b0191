"""Mount point discovery and device comparison.

Enumerates mounted filesystems that can hold a trash directory and
answers "which mount owns this path" and "are these two paths on the
same device" for backend selection.
"""

import logging
import os
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import psutil

logger = logging.getLogger(__name__)

# Filesystems that can never host a trash directory
PSEUDO_FS_TYPES: frozenset[str] = frozenset(
    {
        "proc",
        "sysfs",
        "devtmpfs",
        "devpts",
        "tmpfs",
        "cgroup",
        "cgroup2",
        "pstore",
        "securityfs",
        "debugfs",
        "tracefs",
        "configfs",
        "fusectl",
        "bpf",
        "nsfs",
        "efivarfs",
        "hugetlbfs",
        "mqueue",
        "binfmt_misc",
        "autofs",
    }
)

ROOT_MOUNT = "/"

PartitionSource = Callable[[], Sequence[Any]]


def _all_partitions() -> Sequence[Any]:
    return psutil.disk_partitions(all=True)


class MountIndex:
    """Index of mounted filesystems.

    Args:
        partitions: Callable returning psutil-style partition records
            (objects with mountpoint, fstype and opts attributes).
            Defaults to psutil.disk_partitions(all=True).
    """

    def __init__(self, partitions: PartitionSource | None = None) -> None:
        self._partitions = partitions or _all_partitions

    def mount_points(self) -> list[str]:
        """Return writable, non-pseudo mount points.

        The root filesystem is always included, even when the platform
        does not report it.

        Returns:
            Unique mount point paths in discovery order.

        Raises:
            OSError: If the mount table cannot be read.
        """
        points: list[str] = []
        seen: set[str] = set()

        for part in self._partitions():
            mountpoint = part.mountpoint
            if part.fstype in PSEUDO_FS_TYPES:
                logger.debug("Skipping %s filesystem at %s", part.fstype, mountpoint)
                continue
            if "ro" in (part.opts or "").split(","):
                logger.debug("Skipping read-only filesystem at %s", mountpoint)
                continue
            if mountpoint in seen:
                continue
            seen.add(mountpoint)
            points.append(mountpoint)

        if ROOT_MOUNT not in seen:
            points.append(ROOT_MOUNT)

        return points

    def owning_mount(self, path: str | Path) -> str:
        """Return the mount point that contains path.

        Matching is done on whole path components, picking the longest
        matching mount point.

        Args:
            path: Any path; it is made absolute first.

        Returns:
            The owning mount point, or "/" if none matches.
        """
        abs_path = os.path.abspath(path)
        longest = ""
        for part in self._partitions():
            mountpoint = part.mountpoint
            if _is_within(abs_path, mountpoint) and len(mountpoint) > len(longest):
                longest = mountpoint
        if not longest:
            return ROOT_MOUNT
        return longest


def _is_within(path: str, root: str) -> bool:
    if root == ROOT_MOUNT:
        return path.startswith(ROOT_MOUNT)
    return path == root or path.startswith(root.rstrip(os.sep) + os.sep)


def device_probe(path: str | Path) -> str:
    """Return the path whose device a trashed object actually lives on.

    A symlink is moved as a link, so its own directory decides the
    device rather than its target.
    """
    abs_path = os.path.abspath(path)
    if os.path.islink(abs_path):
        return os.path.dirname(abs_path)
    return abs_path


def same_device(path_a: str | Path, path_b: str | Path) -> bool:
    """Check whether two paths live on the same device.

    Symlinks are resolved before both paths are stat'ed. Errors are not
    swallowed: an unreadable path raises rather than counting as "same".

    Args:
        path_a: First path.
        path_b: Second path.

    Returns:
        True if both resolve to the same st_dev.

    Raises:
        OSError: If either path cannot be resolved or stat'ed.
    """
    real_a = os.path.realpath(path_a, strict=True)
    real_b = os.path.realpath(path_b, strict=True)
    dev_a = os.stat(real_a).st_dev
    dev_b = os.stat(real_b).st_dev
    logger.debug("Device comparison: %s=%s %s=%s", real_a, dev_a, real_b, dev_b)
    return dev_a == dev_b
