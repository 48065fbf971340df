"""Move staged Workshop items into the target directory and delete removed ones."""

import logging
import shutil
from pathlib import Path
from typing import Iterable

from .errors import FilesystemError
from .inventory import DEFAULT_ITEM_EXTENSION
from .state import VersionedItem
from .steamcmd import staged_item_dir

logger = logging.getLogger(__name__)


def remove_entry(target_dir: Path, item_id: str, item_extension: str = DEFAULT_ITEM_EXTENSION) -> bool:
    """
    Delete an installed item, whether a directory or a packaged file.

    Returns True if something was deleted. A missing item is not an error.
    """
    dir_path = target_dir / item_id
    file_path = target_dir / f"{item_id}{item_extension}"
    removed = False
    try:
        if dir_path.is_dir():
            shutil.rmtree(dir_path)
            removed = True
        if file_path.is_file():
            file_path.unlink()
            removed = True
    except OSError as e:
        raise FilesystemError(f"Failed to remove {item_id} from {target_dir}: {e}") from e
    return removed


def remove_items(
    target_dir: Path,
    item_ids: Iterable[str],
    item_extension: str = DEFAULT_ITEM_EXTENSION,
) -> int:
    """Delete every item in ``item_ids``. Returns how many were present."""
    removed = 0
    for item_id in sorted(item_ids):
        if remove_entry(target_dir, item_id, item_extension):
            logger.debug("Removed %s", item_id)
            removed += 1
    logger.info("Finished removing items (%d)", removed)
    return removed


def install_staged_item(
    target_dir: Path,
    staged_dir: Path,
    item_id: str,
    item_extension: str = DEFAULT_ITEM_EXTENSION,
) -> None:
    """
    Move one staged item into ``target_dir`` under its item id.

    Packaged files become ``<id><ext>`` and directories become ``<id>/``.
    Any previously installed copy is deleted first. Other top-level files
    are left behind and removed with the staging directory.
    """
    try:
        children = sorted(staged_dir.iterdir())
        remove_entry(target_dir, item_id, item_extension)
        for child in children:
            if child.is_file() and child.name.endswith(item_extension):
                dest = target_dir / f"{item_id}{item_extension}"
            elif child.is_dir():
                dest = target_dir / item_id
            else:
                continue
            if dest.exists():
                logger.warning("Item %s has more than one %s, skipping %s", item_id, dest.name, child.name)
                continue
            shutil.move(str(child), str(dest))
        shutil.rmtree(staged_dir)
    except OSError as e:
        raise FilesystemError(f"Failed to install {item_id} from {staged_dir}: {e}") from e


def install_items(
    target_dir: Path,
    staging_root: Path,
    app_id: str,
    items: Iterable[VersionedItem],
    item_extension: str = DEFAULT_ITEM_EXTENSION,
) -> list[str]:
    """
    Move every staged item in ``items`` into ``target_dir``.

    Items with nothing staged are skipped with a warning and any older copy
    is deleted, so they are absent from disk and fetched again on the next
    sync.

    Returns the ids that were installed.
    """
    installed: list[str] = []
    for item in sorted(items, key=lambda i: i.id):
        staged_dir = staged_item_dir(staging_root, app_id, item.id)
        if not staged_dir.is_dir():
            logger.warning("Item %s was not downloaded, skipping", item.id)
            remove_entry(target_dir, item.id, item_extension)
            continue
        install_staged_item(target_dir, staged_dir, item.id, item_extension)
        logger.debug("Installed %s (version %d)", item.id, item.version)
        installed.append(item.id)

    logger.info("Finished moving items (%d)", len(installed))
    return installed
