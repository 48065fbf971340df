"""steamcmd discovery and Workshop item fetching into a staging tree."""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Iterable, Protocol

from .errors import FilesystemError, SubprocessError
from .state import VersionedItem

logger = logging.getLogger(__name__)

# Starbound
DEFAULT_APP_ID = "211820"

# Common steamcmd install locations on Linux
STEAMCMD_PATHS = [
    Path.home() / ".steam" / "steamcmd" / "steamcmd.sh",
    Path.home() / "Steam" / "steamcmd.sh",
    Path.home() / "steamcmd" / "steamcmd.sh",
    Path.home() / ".local" / "share" / "Steam" / "steamcmd" / "steamcmd.sh",
    Path("/usr/games/steamcmd"),
]


class Fetcher(Protocol):
    """Something that downloads Workshop items into a staging root."""

    def fetch(self, items: Iterable[VersionedItem], staging_root: Path) -> None:
        ...


def find_steamcmd() -> str | None:
    """Find the steamcmd executable on PATH or in a common location."""
    for name in ("steamcmd", "steamcmd.sh"):
        found = shutil.which(name)
        if found:
            return found
    for path in STEAMCMD_PATHS:
        if path.is_file():
            return str(path)
    return None


def staged_item_dir(staging_root: Path, app_id: str, item_id: str) -> Path:
    """Where steamcmd leaves the files of one downloaded item."""
    return Path(staging_root) / "steamapps" / "workshop" / "content" / app_id / item_id


def reset_staging(staging_root: Path) -> None:
    """Wipe and recreate the staging root, discarding any earlier run."""
    staging_root = Path(staging_root)
    try:
        if staging_root.exists():
            shutil.rmtree(staging_root)
        staging_root.mkdir(parents=True)
    except OSError as e:
        raise FilesystemError(f"Failed to reset staging directory {staging_root}: {e}") from e


def build_steamcmd_args(
    steamcmd: str,
    staging_root: Path,
    app_id: str,
    items: Iterable[VersionedItem],
) -> list[str]:
    """Build the steamcmd argv for an anonymous batch download."""
    args = [steamcmd, "+force_install_dir", str(staging_root), "+login", "anonymous"]
    for item in sorted(items, key=lambda i: i.id):
        args.extend(["+workshop_download_item", app_id, item.id])
    args.append("+quit")
    return args


class SteamCMDFetcher:
    """Downloads Workshop items by running steamcmd once per batch."""

    def __init__(
        self,
        steamcmd: str | None = None,
        app_id: str = DEFAULT_APP_ID,
        log_file: Path | None = None,
    ):
        self.steamcmd = steamcmd or find_steamcmd()
        self.app_id = app_id
        self.log_file = log_file

    def fetch(self, items: Iterable[VersionedItem], staging_root: Path) -> None:
        """
        Run steamcmd to download ``items`` under ``staging_root``.

        Output is not parsed; the caller checks the staging tree for the
        files it expects. Raises SubprocessError if steamcmd cannot be
        started or exits non-zero.
        """
        if not self.steamcmd:
            raise SubprocessError(
                "steamcmd not found. Install it (apt install steamcmd) or pass --steamcmd."
            )

        args = build_steamcmd_args(self.steamcmd, staging_root, self.app_id, items)
        logger.info("steamcmd parameters: %s", args[1:])

        try:
            if self.log_file is not None:
                with open(self.log_file, "w") as log:
                    result = subprocess.run(args, stdout=log, stderr=subprocess.STDOUT)
            else:
                result = subprocess.run(
                    args, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL
                )
        except OSError as e:
            raise SubprocessError(f"Failed to run {self.steamcmd}: {e}") from e

        if result.returncode != 0:
            hint = f" (see {self.log_file})" if self.log_file else ""
            raise SubprocessError(
                f"steamcmd exited with status {result.returncode}{hint}",
                returncode=result.returncode,
            )


def fetch_items(
    fetcher: Fetcher,
    items: Iterable[VersionedItem],
    staging_root: Path,
) -> None:
    """Reset the staging root, then let ``fetcher`` download ``items`` into it."""
    reset_staging(staging_root)
    fetcher.fetch(items, staging_root)
