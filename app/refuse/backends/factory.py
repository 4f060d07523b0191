"""Backend construction from configuration.

The set of backends is closed: xdg and legacy. ``strategy = "auto"``
always enables xdg and adds legacy only when a legacy trash already
exists, so old trashes stay listable and restorable.
"""

import logging
import os
from datetime import timedelta

from refuse.backends.base import Backend
from refuse.backends.legacy import LegacyBackend
from refuse.backends.xdg import SpecBackend
from refuse.core.config import RefuseConfig
from refuse.core.manager import Manager
from refuse.core.paths import get_legacy_trash_dir
from refuse.filesystem.mounts import MountIndex
from refuse.models.entry import StorageType

logger = logging.getLogger(__name__)


def enabled_types(config: RefuseConfig) -> list[StorageType]:
    """Resolve the configured strategy to concrete backend kinds."""
    strategy = config.core.strategy
    if strategy == "xdg":
        return [StorageType.XDG]
    if strategy == "legacy":
        return [StorageType.LEGACY]

    types = [StorageType.XDG]
    legacy_root = config.core.legacy_dir or get_legacy_trash_dir()
    if os.path.isdir(legacy_root):
        logger.debug("Found legacy trash at %s", legacy_root)
        types.append(StorageType.LEGACY)
    return types


def create_backend(
    storage_type: StorageType,
    config: RefuseConfig,
    mounts: MountIndex | None = None,
) -> Backend:
    """Build one backend.

    Raises:
        StorageNotReadyError: If the backend's storage cannot be opened.
    """
    core = config.core
    if storage_type is StorageType.XDG:
        return SpecBackend(
            core.home_trash_dir,
            force_home_trash=core.force_home_trash,
            home_fallback=core.home_fallback,
            mounts=mounts,
        )
    return LegacyBackend(
        core.legacy_dir,
        stale_after=timedelta(minutes=core.stale_transaction_minutes),
    )


def create_backends(config: RefuseConfig, mounts: MountIndex | None = None) -> list[Backend]:
    """Build every backend enabled by the configuration.

    Raises:
        StorageNotReadyError: If a backend's storage cannot be opened.
    """
    return [create_backend(t, config, mounts) for t in enabled_types(config)]


def create_manager(config: RefuseConfig, mounts: MountIndex | None = None) -> Manager:
    """Build a Manager over every enabled backend.

    Raises:
        StorageNotReadyError: If a backend's storage cannot be opened.
    """
    return Manager(
        create_backends(config, mounts),
        history=config.history,
        home_fallback=config.core.home_fallback,
    )
