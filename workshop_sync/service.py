"""Service layer - runs a full collection sync for one target directory."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .api import SteamWorkshopAPI
from .collection import parse_collection_id, resolve_collection
from .config import STEAMCMD_LOG_FILENAME, SyncSettings, bind_collection, bound_collection
from .errors import FilesystemError, NoCollectionConfigured, SyncError
from .installer import install_items, remove_items
from .inventory import scan_installed
from .reconcile import SyncPlan, reconcile
from .state import Manifest, read_manifest, write_manifest
from .steamcmd import Fetcher, SteamCMDFetcher, fetch_items
from .versions import query_versions

logger = logging.getLogger(__name__)


class SyncStage(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    VERSION_QUERYING = "version_querying"
    RECONCILING = "reconciling"
    FETCHING = "fetching"
    INSTALLING = "installing"
    MANIFEST_WRITING = "manifest_writing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PlanResult:
    collection_id: str
    remote: dict[str, int]
    manifest: dict[str, int]
    plan: SyncPlan


@dataclass
class SyncResult:
    collection_id: str
    items_total: int
    installed: list[str] = field(default_factory=list)
    removed: int = 0
    not_downloaded: list[str] = field(default_factory=list)


class SyncService:
    """Keeps a target directory in step with a Workshop collection."""

    def __init__(
        self,
        settings: SyncSettings | None = None,
        api: SteamWorkshopAPI | None = None,
        fetcher: Fetcher | None = None,
    ):
        self.settings = settings or SyncSettings.from_env()
        self._api = api
        self._fetcher = fetcher
        self.stage = SyncStage.IDLE

    @property
    def api(self) -> SteamWorkshopAPI:
        if self._api is None:
            self._api = SteamWorkshopAPI(self.settings.api_key)
        return self._api

    def _fetcher_for(self, target_dir: Path) -> Fetcher:
        if self._fetcher is not None:
            return self._fetcher
        return SteamCMDFetcher(
            steamcmd=self.settings.steamcmd,
            app_id=self.settings.app_id,
            log_file=target_dir / STEAMCMD_LOG_FILENAME,
        )

    def _enter(self, stage: SyncStage) -> None:
        logger.debug("Sync stage: %s -> %s", self.stage.value, stage.value)
        self.stage = stage

    def collection_for(self, target_dir: Path, collection: str | None = None) -> str:
        """Pick the explicit collection, else the one bound to ``target_dir``."""
        if collection:
            return parse_collection_id(collection)
        bound = bound_collection(target_dir)
        if not bound:
            raise NoCollectionConfigured(
                f"No collection configured for {target_dir}. "
                "Pass --collection or run 'workshop-sync bind'."
            )
        return bound

    def _remote_versions(self, collection_id: str) -> dict[str, int]:
        self._enter(SyncStage.RESOLVING)
        item_ids = resolve_collection(self.api, collection_id)

        self._enter(SyncStage.VERSION_QUERYING)
        return query_versions(self.api, item_ids)

    def plan(self, target_dir: Path, collection: str | None = None) -> PlanResult:
        """Work out what a sync would do, without touching the filesystem."""
        target_dir = Path(target_dir)
        self.stage = SyncStage.IDLE
        try:
            collection_id = self.collection_for(target_dir, collection)
            remote = self._remote_versions(collection_id)

            self._enter(SyncStage.RECONCILING)
            disk = (
                scan_installed(target_dir, self.settings.item_extension)
                if target_dir.is_dir()
                else set()
            )
            manifest = read_manifest(target_dir).items
            plan = reconcile(remote, disk, manifest)
        except SyncError:
            self._enter(SyncStage.FAILED)
            raise

        self._enter(SyncStage.DONE)
        return PlanResult(collection_id, remote, manifest, plan)

    def sync(self, target_dir: Path, collection: str | None = None) -> SyncResult:
        """
        Bring ``target_dir`` in line with a collection.

        Uses ``collection`` if given, otherwise the collection bound to the
        directory. The manifest is only rewritten once every stage has
        succeeded; any SyncError marks the run failed and propagates.
        """
        target_dir = Path(target_dir)
        self.stage = SyncStage.IDLE
        try:
            return self._sync(target_dir, collection)
        except SyncError as e:
            logger.error("Sync of %s failed while %s: %s", target_dir, self.stage.value, e)
            self._enter(SyncStage.FAILED)
            raise

    def _sync(self, target_dir: Path, collection: str | None) -> SyncResult:
        settings = self.settings
        collection_id = self.collection_for(target_dir, collection)

        try:
            target_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(f"Cannot create target directory {target_dir}: {e}") from e

        remote = self._remote_versions(collection_id)

        self._enter(SyncStage.RECONCILING)
        disk = scan_installed(target_dir, settings.item_extension)
        manifest = read_manifest(target_dir)
        logger.info("Count items in collection: %d", len(remote))
        logger.info("Count items on disk: %d", len(disk))
        logger.info("Count items in manifest: %d", len(manifest.items))
        plan = reconcile(remote, disk, manifest.items)

        if plan.install:
            self._enter(SyncStage.FETCHING)
            fetch_items(self._fetcher_for(target_dir), plan.install, settings.staging_dir)
            logger.info("Finished downloading items")

        self._enter(SyncStage.INSTALLING)
        removed = remove_items(target_dir, plan.remove, settings.item_extension)
        installed = install_items(
            target_dir,
            settings.staging_dir,
            settings.app_id,
            plan.install,
            settings.item_extension,
        )

        self._enter(SyncStage.MANIFEST_WRITING)
        write_manifest(target_dir, Manifest.from_versions(remote))
        logger.info("Wrote new manifest to %s", target_dir)
        if collection:
            bind_collection(target_dir, collection_id)

        self._enter(SyncStage.DONE)
        return SyncResult(
            collection_id=collection_id,
            items_total=len(remote),
            installed=installed,
            removed=removed,
            not_downloaded=sorted({item.id for item in plan.install} - set(installed)),
        )
