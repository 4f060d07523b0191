"""One-shot rename of the old history document.

Older releases kept the legacy trash bookkeeping in ``inventory.json``.
The document format is unchanged; only the file name moved.
"""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

OLD_HISTORY_FILENAME = "inventory.json"
HISTORY_FILENAME = "history.json"


def migrate_inventory(root: str | Path) -> bool:
    """Rename ``inventory.json`` to ``history.json`` inside root.

    Nothing happens when the old document is absent. When both documents
    exist the new one wins and the old one is left in place for the user
    to inspect.

    Args:
        root: Legacy trash root directory.

    Returns:
        True if a document was renamed.

    Raises:
        OSError: If the rename fails.
    """
    old_path = os.path.join(root, OLD_HISTORY_FILENAME)
    new_path = os.path.join(root, HISTORY_FILENAME)

    if not os.path.isfile(old_path):
        return False

    if os.path.exists(new_path):
        logger.warning("Both %s and %s exist, keeping %s", old_path, new_path, new_path)
        return False

    os.rename(old_path, new_path)
    logger.info("Migrated %s to %s", old_path, new_path)
    return True
