"""Shared fixtures: an in-memory Steam Web API and a fake steamcmd."""

from pathlib import Path
from typing import Any, Iterable

import pytest
import requests

from workshop_sync.api import COLLECTION_DETAILS_URL, PUBLISHED_FILE_DETAILS_URL, SteamWorkshopAPI
from workshop_sync.state import VersionedItem
from workshop_sync.steamcmd import staged_item_dir

APP_ID = "211820"


class FakeResponse:
    def __init__(self, payload: Any = None, status_code: int = 200, text: str | None = None):
        self.payload = payload
        self.status_code = status_code
        self.text = text

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self) -> Any:
        if self.text is not None:
            raise requests.JSONDecodeError("Expecting value", self.text, 0)
        return self.payload


class FakeSession:
    """Stands in for requests.Session, answering from a FakeWorkshop."""

    def __init__(self, workshop: "FakeWorkshop"):
        self.workshop = workshop
        self.headers: dict[str, str] = {}
        self.posts: list[tuple[str, dict[str, str]]] = []

    def post(self, url: str, data: dict[str, str]) -> FakeResponse:
        self.posts.append((url, dict(data)))
        return self.workshop.handle(url, data)


class FakeWorkshop:
    """In-memory collections and item versions."""

    def __init__(self):
        # collection id -> list of (filetype, publishedfileid)
        self.collections: dict[str, list[tuple[int, str]]] = {}
        self.versions: dict[str, int] = {}
        self.fail_with: Exception | None = None

    def add_collection(self, collection_id: str, items: Iterable[str] = (), nested: Iterable[str] = ()) -> None:
        children = [(0, item_id) for item_id in items]
        children += [(2, child_id) for child_id in nested]
        self.collections[collection_id] = children

    @staticmethod
    def requested_ids(data: dict[str, str], count_field: str) -> list[str]:
        return [data[f"publishedfileids[{i}]"] for i in range(int(data[count_field]))]

    def handle(self, url: str, data: dict[str, str]) -> FakeResponse:
        if self.fail_with is not None:
            raise self.fail_with

        if url == COLLECTION_DETAILS_URL:
            details = []
            for collection_id in self.requested_ids(data, "collectioncount"):
                children = self.collections.get(collection_id, [])
                details.append(
                    {
                        "publishedfileid": collection_id,
                        "result": 1,
                        "children": [
                            {"publishedfileid": child_id, "sortorder": i, "filetype": filetype}
                            for i, (filetype, child_id) in enumerate(children)
                        ],
                    }
                )
            return FakeResponse({"response": {"result": 1, "collectiondetails": details}})

        if url == PUBLISHED_FILE_DETAILS_URL:
            details = [
                {"publishedfileid": item_id, "result": 1, "time_updated": self.versions[item_id]}
                for item_id in self.requested_ids(data, "itemcount")
                if item_id in self.versions
            ]
            return FakeResponse({"response": {"result": 1, "publishedfiledetails": details}})

        return FakeResponse(status_code=404)


class FakeFetcher:
    """Deposits canned files in the staging tree instead of running steamcmd."""

    def __init__(self, app_id: str = APP_ID, as_pak: set[str] | None = None, skip: set[str] | None = None):
        self.app_id = app_id
        self.as_pak = as_pak or set()
        self.skip = skip or set()
        self.calls: list[set[VersionedItem]] = []
        self.error: Exception | None = None

    def fetch(self, items: Iterable[VersionedItem], staging_root: Path) -> None:
        items = set(items)
        self.calls.append(items)
        if self.error is not None:
            raise self.error
        for item in items:
            if item.id in self.skip:
                continue
            item_dir = staged_item_dir(staging_root, self.app_id, item.id)
            item_dir.mkdir(parents=True)
            if item.id in self.as_pak:
                (item_dir / "contents.pak").write_text(f"{item.id}@{item.version}")
            else:
                mod_dir = item_dir / "mod"
                mod_dir.mkdir()
                (mod_dir / "_metadata").write_text(f"{item.id}@{item.version}")


@pytest.fixture
def workshop() -> FakeWorkshop:
    return FakeWorkshop()


@pytest.fixture
def session(workshop: FakeWorkshop) -> FakeSession:
    return FakeSession(workshop)


@pytest.fixture
def api(session: FakeSession) -> SteamWorkshopAPI:
    return SteamWorkshopAPI(session=session)


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()
