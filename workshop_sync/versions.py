"""Current-version lookup for resolved Workshop items."""

import logging

from .api import SteamWorkshopAPI

logger = logging.getLogger(__name__)


def query_versions(api: SteamWorkshopAPI, item_ids: set[str]) -> dict[str, int]:
    """
    Look up the current ``time_updated`` version of every item.

    All ids go out in one batched request. Items the API does not report
    are left out of the result, which makes them count as no longer part
    of the collection.
    """
    if not item_ids:
        return {}

    versions = api.get_item_versions(sorted(item_ids))

    unreported = item_ids - versions.keys()
    if unreported:
        logger.warning("No details returned for %d item(s): %s", len(unreported), sorted(unreported))

    # Only keep ids we asked about
    return {item_id: version for item_id, version in versions.items() if item_id in item_ids}
