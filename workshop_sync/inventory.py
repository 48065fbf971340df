"""Discovery of items already installed in a target directory."""

import logging
import os
from pathlib import Path

from .errors import FilesystemError

logger = logging.getLogger(__name__)

DEFAULT_ITEM_EXTENSION = ".pak"


def scan_installed(target_dir: Path, item_extension: str = DEFAULT_ITEM_EXTENSION) -> set[str]:
    """
    Return the ids of the items installed in ``target_dir``.

    A subdirectory is an item named after the directory. A file with the
    packaged item extension is an item named after its stem. Anything else
    is ignored. Entries that cannot be inspected are logged and skipped.
    """
    installed: set[str] = set()

    try:
        entries = os.scandir(target_dir)
    except OSError as e:
        raise FilesystemError(f"Cannot read target directory {target_dir}: {e}") from e

    with entries:
        for entry in entries:
            try:
                if entry.is_dir():
                    installed.add(entry.name)
                elif entry.is_file() and entry.name.endswith(item_extension):
                    installed.add(entry.name[: -len(item_extension)])
            except OSError as e:
                logger.warning("Skipping unreadable entry %s: %s", entry.path, e)

    logger.debug("Found %d installed item(s) in %s", len(installed), target_dir)
    return installed
