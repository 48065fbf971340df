"""Diff remote, on-disk and manifest state into install and remove sets."""

import logging
from dataclasses import dataclass, field

from .state import VersionedItem

logger = logging.getLogger(__name__)

# Why an item is (re)installed
REASON_MISSING = "missing"  # not on disk
REASON_UNTRACKED = "untracked"  # on disk but not in the manifest
REASON_OUTDATED = "outdated"  # remote version is newer than the manifest


@dataclass
class SyncPlan:
    """Work computed for one sync. Both sets are unordered."""

    install: set[VersionedItem] = field(default_factory=set)
    remove: set[str] = field(default_factory=set)
    reasons: dict[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.install and not self.remove


def install_reason(
    item_id: str,
    remote_version: int,
    disk: set[str],
    manifest: dict[str, int],
) -> str | None:
    """Return why an item needs installing, or None if it is current."""
    if item_id not in disk:
        return REASON_MISSING
    if item_id not in manifest:
        return REASON_UNTRACKED
    if remote_version > manifest[item_id]:
        return REASON_OUTDATED
    return None


def reconcile(
    remote: dict[str, int],
    disk: set[str],
    manifest: dict[str, int],
) -> SyncPlan:
    """
    Compute what to install and what to remove.

    An item is installed when it is missing from disk, untracked by the
    manifest, or strictly newer remotely. A disk entry is removed only
    when it is no longer part of the remote collection.
    """
    plan = SyncPlan()

    for item_id, version in remote.items():
        reason = install_reason(item_id, version, disk, manifest)
        if reason is not None:
            plan.install.add(VersionedItem(item_id, version))
            plan.reasons[item_id] = reason

    plan.remove = {item_id for item_id in disk if item_id not in remote}

    for item_id in manifest.keys() - disk:
        logger.info("Missing %s", item_id)

    logger.info("Items to install: %d", len(plan.install))
    logger.info("Items to remove: %d", len(plan.remove))
    return plan
