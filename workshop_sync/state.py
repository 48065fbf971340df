"""Manifest tracking the item versions installed by the last sync."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import FilesystemError

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "manifest.json"


@dataclass(frozen=True)
class VersionedItem:
    """A Workshop item at a specific ``time_updated`` version."""

    id: str
    version: int

    def to_dict(self) -> dict[str, Any]:
        return {"publishedfileid": self.id, "version": self.version}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VersionedItem":
        return cls(id=str(data["publishedfileid"]), version=int(data["version"]))


@dataclass
class Manifest:
    """Item versions recorded for a target directory."""

    items: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_versions(cls, versions: dict[str, int]) -> "Manifest":
        return cls(items=dict(versions))

    def to_dict(self) -> dict[str, Any]:
        return {
            "mods": [
                VersionedItem(item_id, version).to_dict()
                for item_id, version in sorted(self.items.items())
            ]
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Manifest":
        items: dict[str, int] = {}
        for entry in data["mods"]:
            item = VersionedItem.from_dict(entry)
            items[item.id] = item.version
        return cls(items=items)


def manifest_path(target_dir: Path) -> Path:
    return Path(target_dir) / MANIFEST_FILENAME


def read_manifest(target_dir: Path) -> Manifest:
    """
    Load the manifest from a target directory.

    A missing or unreadable manifest is not fatal: it is logged and an
    empty manifest is returned, so every item on disk is treated as
    untracked.
    """
    path = manifest_path(target_dir)
    if not path.exists():
        logger.info("No manifest at %s, starting empty", path)
        return Manifest()

    try:
        with open(path) as f:
            data = json.load(f)
        return Manifest.from_dict(data)
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.warning("Ignoring unreadable manifest %s: %s", path, e)
        return Manifest()


def write_manifest(target_dir: Path, manifest: Manifest) -> None:
    """Overwrite the manifest in a target directory."""
    path = manifest_path(target_dir)
    try:
        with open(path, "w") as f:
            json.dump(manifest.to_dict(), f, indent=2)
    except OSError as e:
        raise FilesystemError(f"Failed to write manifest {path}: {e}") from e
    logger.debug("Wrote %d item(s) to %s", len(manifest.items), path)
