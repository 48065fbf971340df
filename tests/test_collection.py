import pytest
import requests

from workshop_sync.collection import parse_collection_id, resolve_collection
from workshop_sync.errors import CollectionParseError, DeserializationError, NetworkError

from conftest import FakeResponse


class TestParseCollectionId:
    @pytest.mark.parametrize(
        "value",
        [
            "2958053745",
            " 2958053745 ",
            "https://steamcommunity.com/sharedfiles/filedetails/?id=2958053745",
            "https://steamcommunity.com/workshop/filedetails/?id=2958053745&searchtext=",
            "https://www.steamcommunity.com/sharedfiles/filedetails?id=2958053745",
        ],
    )
    def test_accepted_forms(self, value):
        assert parse_collection_id(value) == "2958053745"

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "abc",
            "https://example.com/sharedfiles/filedetails/?id=1",
            "https://steamcommunity.com/app/211820/workshop/",
            "https://steamcommunity.com/sharedfiles/filedetails/?id=abc",
        ],
    )
    def test_rejected_forms(self, value):
        with pytest.raises(CollectionParseError):
            parse_collection_id(value)


class TestResolveCollection:
    def test_flat_collection(self, workshop, api):
        workshop.add_collection("root", items=["a", "b"])
        assert resolve_collection(api, "root") == {"a", "b"}

    def test_nested_collection_items_are_included(self, workshop, api):
        workshop.add_collection("root", items=["a"], nested=["inner"])
        workshop.add_collection("inner", items=["w"])
        assert resolve_collection(api, "root") == {"a", "w"}

    def test_one_request_per_level(self, workshop, session, api):
        workshop.add_collection("root", nested=["c1", "c2"])
        workshop.add_collection("c1", items=["a"], nested=["c3"])
        workshop.add_collection("c2", items=["b"])
        workshop.add_collection("c3", items=["c"])

        assert resolve_collection(api, "root") == {"a", "b", "c"}
        assert len(session.posts) == 3
        assert session.posts[1][1]["collectioncount"] == "2"

    def test_cycle_terminates(self, workshop, session, api):
        workshop.add_collection("root", items=["a"], nested=["loop"])
        workshop.add_collection("loop", items=["b"], nested=["root", "loop"])

        assert resolve_collection(api, "root") == {"a", "b"}
        assert len(session.posts) == 2

    def test_shared_nested_collection_requested_once(self, workshop, session, api):
        workshop.add_collection("root", nested=["x", "y"])
        workshop.add_collection("x", nested=["shared"])
        workshop.add_collection("y", nested=["shared"])
        workshop.add_collection("shared", items=["s"])

        assert resolve_collection(api, "root") == {"s"}
        requested = [form["publishedfileids[0]"] for _, form in session.posts[2:]]
        assert requested == ["shared"]
        assert session.posts[2][1]["collectioncount"] == "1"

    def test_only_items_are_returned(self, workshop, api):
        workshop.add_collection("root", items=["a"], nested=["empty"])
        workshop.add_collection("empty")
        assert resolve_collection(api, "root") == {"a"}

    def test_transport_failure_aborts(self, workshop, api):
        workshop.add_collection("root", items=["a"])
        workshop.fail_with = requests.ConnectionError("down")
        with pytest.raises(NetworkError):
            resolve_collection(api, "root")

    def test_malformed_nested_response_aborts(self, workshop, session, api):
        workshop.add_collection("root", items=["a"], nested=["inner"])
        real_handle = workshop.handle

        def handle(url, data):
            if data["publishedfileids[0]"] == "inner":
                return FakeResponse({"response": {"collectiondetails": [{"children": [{"filetype": 0}]}]}})
            return real_handle(url, data)

        workshop.handle = handle
        with pytest.raises(DeserializationError):
            resolve_collection(api, "root")
