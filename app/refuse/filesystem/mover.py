"""Atomic move primitive.

Relocates a file or directory, preferring an in-place rename and
falling back to copy-then-delete when the two paths are on different
devices. The fallback never leaves zero copies behind: either the
object exists once at the destination, or it still exists at the source.
"""

import logging
import os
import shutil
from pathlib import Path

from refuse.core.errors import DestinationExistsError

logger = logging.getLogger(__name__)


class InvalidPathError(ValueError):
    """Raised when a source or destination path is empty."""


class SourceNotFoundError(FileNotFoundError):
    """Raised when the source path does not exist."""


class MoveError(OSError):
    """A move step failed.

    Attributes:
        op: Step that failed ("create_parent", "copy", "remove_source", "cleanup").
        src: Source path.
        dst: Destination path.
        err: The underlying error.
    """

    def __init__(self, op: str, src: str, dst: str, err: BaseException) -> None:
        self.op = op
        self.src = src
        self.dst = dst
        self.err = err
        super().__init__(f"move operation failed: {op} from {src!r} to {dst!r}: {err}")


def move(
    src: str | Path,
    dst: str | Path,
    *,
    allow_cross_device: bool = False,
    force: bool = False,
) -> None:
    """Move a file or directory from src to dst.

    A rename is attempted first. If it fails and allow_cross_device is
    False, the rename error is raised unchanged and both paths are left
    untouched. Otherwise the object is copied and the source removed.

    Args:
        src: Existing file, directory or symlink.
        dst: Target path.
        allow_cross_device: Fall back to copy-then-delete when rename fails.
        force: Allow dst to exist already.

    Raises:
        InvalidPathError: If src or dst is empty.
        SourceNotFoundError: If src does not exist.
        DestinationExistsError: If dst exists and force is False.
        MoveError: If a step of the copy fallback fails.
        OSError: The rename error when the fallback is not allowed.
    """
    src_str, dst_str = os.fspath(src), os.fspath(dst)
    if not src_str or not dst_str:
        msg = "invalid path specified"
        raise InvalidPathError(msg)

    if not os.path.lexists(src_str):
        msg = f"source file not found: {src_str}"
        raise SourceNotFoundError(msg)

    if not force and os.path.lexists(dst_str):
        msg = f"destination already exists: {dst_str}"
        raise DestinationExistsError(msg)

    try:
        os.makedirs(os.path.dirname(dst_str) or ".", mode=0o755, exist_ok=True)
    except OSError as e:
        raise MoveError("create_parent", src_str, dst_str, e) from e

    try:
        os.rename(src_str, dst_str)
        return
    except OSError as e:
        if not allow_cross_device:
            raise
        logger.debug("Rename %s -> %s failed (%s), copying instead", src_str, dst_str, e)

    _copy_and_delete(src_str, dst_str)


def _copy_and_delete(src: str, dst: str) -> None:
    """Copy src to dst, then remove src.

    Args:
        src: Source path.
        dst: Destination path.

    Raises:
        MoveError: If the copy or the source removal fails.
    """
    try:
        copy_path(src, dst)
    except OSError as e:
        # A partial copy must not survive next to the intact source
        _discard(dst)
        raise MoveError("copy", src, dst, e) from e

    try:
        remove_path(src)
    except OSError as e:
        try:
            remove_path(dst)
        except OSError as rm_err:
            combined = OSError(
                f"failed to remove both source and destination: {e}, {rm_err}"
            )
            raise MoveError("cleanup", src, dst, combined) from e
        raise MoveError("remove_source", src, dst, e) from e


def copy_path(src: str | Path, dst: str | Path) -> None:
    """Copy a file, symlink or directory tree, preserving metadata.

    Mode bits and timestamps are preserved; symlinks are recreated with
    the same target instead of being followed.

    Args:
        src: Source path.
        dst: Destination path (must not exist for directories).

    Raises:
        OSError: If any part of the copy fails.
    """
    src_str, dst_str = os.fspath(src), os.fspath(dst)
    if os.path.islink(src_str):
        os.symlink(os.readlink(src_str), dst_str)
    elif os.path.isdir(src_str):
        shutil.copytree(src_str, dst_str, symlinks=True, copy_function=shutil.copy2)
    else:
        shutil.copy2(src_str, dst_str, follow_symlinks=False)


def remove_path(path: str | Path) -> None:
    """Delete a file, symlink or directory tree.

    Directories (but not symlinks to directories) are removed with
    shutil.rmtree; everything else is unlinked.

    Args:
        path: Path to delete.

    Raises:
        FileNotFoundError: If the path does not exist.
        OSError: If the deletion fails.
    """
    target = Path(path)
    if target.is_dir() and not target.is_symlink():
        shutil.rmtree(target)
    else:
        target.unlink()


def _discard(path: str) -> None:
    """Remove a path if present, logging instead of raising."""
    if not os.path.lexists(path):
        return
    try:
        remove_path(path)
    except OSError as e:
        logger.warning("Could not remove partial copy %s: %s", path, e)
