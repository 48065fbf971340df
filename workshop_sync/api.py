"""Steam Web API client for Workshop collection and item metadata."""

import logging
from dataclasses import dataclass
from typing import Any

import requests

from .errors import DeserializationError, NetworkError

logger = logging.getLogger(__name__)

API_BASE_URL = "https://api.steampowered.com/ISteamRemoteStorage"
COLLECTION_DETAILS_URL = f"{API_BASE_URL}/GetCollectionDetails/v1/"
PUBLISHED_FILE_DETAILS_URL = f"{API_BASE_URL}/GetPublishedFileDetails/v1/"

# Workshop "filetype" values that appear in collection children
FILETYPE_ITEM = 0
FILETYPE_COLLECTION = 2


@dataclass(frozen=True)
class Item:
    """A downloadable Workshop item listed in a collection."""

    id: str


@dataclass(frozen=True)
class NestedCollection:
    """A collection linked from inside another collection."""

    id: str


CollectionNode = Item | NestedCollection


def decode_child(raw: dict[str, Any]) -> CollectionNode | None:
    """
    Decode one entry of a collection's ``children`` list.

    Returns None for filetypes that are neither items nor collections.
    Raises DeserializationError if the entry is missing required fields.
    """
    try:
        file_id = str(raw["publishedfileid"])
        filetype = int(raw["filetype"])
    except (KeyError, TypeError, ValueError) as e:
        raise DeserializationError(f"Malformed collection child {raw!r}: {e}") from e

    if filetype == FILETYPE_ITEM:
        return Item(file_id)
    if filetype == FILETYPE_COLLECTION:
        return NestedCollection(file_id)

    logger.warning("Ignoring collection child %s with unknown filetype %s", file_id, filetype)
    return None


def indexed_form(count_field: str, ids: list[str]) -> dict[str, str]:
    """Build the ``<count_field>`` + ``publishedfileids[i]`` form body."""
    form = {count_field: str(len(ids))}
    for i, file_id in enumerate(ids):
        form[f"publishedfileids[{i}]"] = file_id
    return form


class SteamWorkshopAPI:
    """Client for the ISteamRemoteStorage Web API endpoints."""

    def __init__(
        self,
        api_key: str | None = None,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": "workshop-sync/0.1.0"})

    def _post(self, url: str, form: dict[str, str]) -> dict[str, Any]:
        """POST a form to the API and return the ``response`` object."""
        if self.api_key:
            form = {**form, "key": self.api_key}

        try:
            response = self.session.post(url, data=form)
            response.raise_for_status()
        except requests.RequestException as e:
            raise NetworkError(f"Request to {url} failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise DeserializationError(f"Invalid JSON from {url}: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("response"), dict):
            raise DeserializationError(f"Missing 'response' object from {url}")
        return data["response"]

    def get_collection_children(self, collection_ids: list[str]) -> list[CollectionNode]:
        """
        Fetch the direct children of one or more collections in one request.

        Returns the decoded children of all requested collections, in
        response order. Nested collections are not followed here.
        """
        body = self._post(
            COLLECTION_DETAILS_URL, indexed_form("collectioncount", collection_ids)
        )
        details = body.get("collectiondetails")
        if not isinstance(details, list):
            raise DeserializationError("Missing 'collectiondetails' list in response")

        nodes: list[CollectionNode] = []
        for detail in details:
            if not isinstance(detail, dict):
                raise DeserializationError(f"Malformed collection details: {detail!r}")
            # result 9 (and no children) means unknown, private or not a collection
            result = detail.get("result", 1)
            if result != 1:
                raise DeserializationError(
                    f"Collection {detail.get('publishedfileid', '?')} unavailable (result {result})"
                )
            children = detail.get("children")
            if not isinstance(children, list):
                raise DeserializationError(f"Malformed children list: {children!r}")
            for raw in children:
                if not isinstance(raw, dict):
                    raise DeserializationError(f"Malformed collection child: {raw!r}")
                node = decode_child(raw)
                if node is not None:
                    nodes.append(node)
        return nodes

    def get_item_versions(self, item_ids: list[str]) -> dict[str, int]:
        """
        Fetch the ``time_updated`` stamp for each item in one request.

        Returns a mapping of item id to version.
        """
        body = self._post(PUBLISHED_FILE_DETAILS_URL, indexed_form("itemcount", item_ids))
        details = body.get("publishedfiledetails")
        if not isinstance(details, list):
            raise DeserializationError("Missing 'publishedfiledetails' list in response")

        versions: dict[str, int] = {}
        for entry in details:
            try:
                versions[str(entry["publishedfileid"])] = int(entry["time_updated"])
            except (KeyError, TypeError, ValueError) as e:
                raise DeserializationError(f"Malformed file details {entry!r}: {e}") from e
        return versions
