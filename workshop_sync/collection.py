"""Collection id parsing and recursive collection expansion."""

import logging
import re
from urllib.parse import parse_qs, urlparse

from .api import Item, NestedCollection, SteamWorkshopAPI
from .errors import CollectionParseError

logger = logging.getLogger(__name__)

STEAM_COMMUNITY_HOSTS = ("steamcommunity.com", "www.steamcommunity.com")

FILE_ID_RE = re.compile(r"^\d+$")


def parse_collection_id(value: str) -> str:
    """
    Parse a Workshop collection id from an id or a Steam Community URL.

    Supported formats:
        - 2958053745
        - https://steamcommunity.com/sharedfiles/filedetails/?id={id}
        - https://steamcommunity.com/workshop/filedetails/?id={id}
        - Either URL with extra query params

    Returns the numeric id as a string.
    """
    value = value.strip()
    if FILE_ID_RE.match(value):
        return value

    parsed = urlparse(value)
    if parsed.netloc not in STEAM_COMMUNITY_HOSTS:
        raise CollectionParseError(
            f"Invalid collection: {value!r}. Expected a numeric id or a "
            "steamcommunity.com filedetails URL"
        )

    if not re.match(r"^/(?:sharedfiles|workshop)/filedetails/?$", parsed.path):
        raise CollectionParseError(
            f"Invalid collection URL format: {value}\n"
            "Expected: https://steamcommunity.com/sharedfiles/filedetails/?id={id}"
        )

    ids = parse_qs(parsed.query).get("id", [])
    if not ids or not FILE_ID_RE.match(ids[0]):
        raise CollectionParseError(f"No numeric 'id' parameter in {value}")

    return ids[0]


def resolve_collection(api: SteamWorkshopAPI, root_id: str) -> set[str]:
    """
    Expand a collection into the flat set of item ids it transitively holds.

    Each pass drains the worklist into a single request. Collection ids
    already requested are never requested again, so a cycle in the
    collection graph cannot loop forever. Any API error propagates and
    no partial result is returned.
    """
    items: set[str] = set()
    visited: set[str] = {root_id}
    pending = [root_id]

    while pending:
        batch, pending = pending, []
        logger.debug("Resolving %d collection(s): %s", len(batch), batch)

        for node in api.get_collection_children(batch):
            if isinstance(node, Item):
                items.add(node.id)
            elif isinstance(node, NestedCollection):
                if node.id in visited:
                    logger.debug("Collection %s already resolved, skipping", node.id)
                    continue
                visited.add(node.id)
                pending.append(node.id)

    logger.info(
        "Resolved collection %s: %d item(s) across %d collection(s)",
        root_id,
        len(items),
        len(visited),
    )
    return items
