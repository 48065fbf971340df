"""Sync settings and the collection bound to a target directory."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ConfigError, FilesystemError
from .inventory import DEFAULT_ITEM_EXTENSION
from .steamcmd import DEFAULT_APP_ID

BINDING_FILENAME = "workshop-sync.json"
STEAMCMD_LOG_FILENAME = "steamcmd.log"


def default_staging_dir() -> Path:
    cache_home = os.environ.get("XDG_CACHE_HOME") or str(Path.home() / ".cache")
    return Path(cache_home) / "workshop-sync" / "steamcmd"


@dataclass
class SyncSettings:
    """Tool settings shared by every sync."""

    app_id: str = DEFAULT_APP_ID
    steamcmd: str | None = None
    staging_dir: Path = field(default_factory=default_staging_dir)
    api_key: str | None = None
    item_extension: str = DEFAULT_ITEM_EXTENSION

    @classmethod
    def from_env(cls) -> "SyncSettings":
        """Build settings from WORKSHOP_SYNC_* and STEAM_API_KEY variables."""
        staging = os.environ.get("WORKSHOP_SYNC_STAGING")
        return cls(
            app_id=os.environ.get("WORKSHOP_SYNC_APP_ID") or DEFAULT_APP_ID,
            steamcmd=os.environ.get("WORKSHOP_SYNC_STEAMCMD") or None,
            staging_dir=Path(staging) if staging else default_staging_dir(),
            api_key=os.environ.get("STEAM_API_KEY") or None,
        )


def bound_collection(target_dir: Path) -> str | None:
    """Return the collection id bound to ``target_dir``, or None."""
    path = Path(target_dir) / BINDING_FILENAME
    if not path.exists():
        return None

    try:
        with open(path) as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Invalid binding file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Invalid binding file {path}: expected an object")
    collection_id = data.get("collection_id")
    return str(collection_id) if collection_id else None


def bind_collection(target_dir: Path, collection_id: str) -> None:
    """Record ``collection_id`` as the collection synced into ``target_dir``."""
    target_dir = Path(target_dir)
    path = target_dir / BINDING_FILENAME
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump({"collection_id": collection_id}, f, indent=2)
    except OSError as e:
        raise FilesystemError(f"Failed to write binding file {path}: {e}") from e
