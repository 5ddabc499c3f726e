import asyncio

import pytest

from all_types.internal_types import AnchorKind
from backend_common.ttl_cache import TTLCache
from config_factory import EngineConf
from local_search_connector import LocalSearchAnchorLookup, LocalSearchClient, LocalSearchGeocoder
from risk_errors import UpstreamUnavailable


class StubClient:
    def __init__(self, payload=None, error=None):
        self.payload = payload or {}
        self.error = error
        self.requests = []

    async def get(self, path, params):
        self.requests.append((path, params))
        if self.error:
            raise self.error
        return self.payload


def test_disabled_client_raises():
    client = LocalSearchClient(EngineConf(local_search_api_key=""))
    assert not client.enabled
    with pytest.raises(UpstreamUnavailable):
        asyncio.run(client.get("/geo/coord2regioncode.json", {}))


def test_geocoder_prefers_administrative_region():
    client = StubClient(
        {
            "documents": [
                {"region_type": "B", "address_name": "Legal", "region_1depth_name": "Seoul", "region_2depth_name": "B-gu"},
                {"region_type": "H", "address_name": "Seoul Gangnam-gu Yeoksam 1-dong", "region_1depth_name": "Seoul", "region_2depth_name": "Gangnam-gu"},
            ]
        }
    )
    address = asyncio.run(LocalSearchGeocoder(client).reverse_geocode(37.5, 127.03))
    assert address.district == "Gangnam-gu"
    assert address.region == "Seoul"
    path, params = client.requests[0]
    assert params == {"x": 127.03, "y": 37.5}


def test_geocoder_failure_returns_empty_strings():
    client = StubClient(error=UpstreamUnavailable("local search", "HTTP 500"))
    address = asyncio.run(LocalSearchGeocoder(client).reverse_geocode(37.5, 127.03))
    assert (address.address, address.region, address.district) == ("", "", "")


def test_anchor_lookup_parses_and_caches():
    client = StubClient(
        {"documents": [{"place_name": "Gangnam", "x": "127.0276", "y": "37.4979", "category_name": "Transport > Subway > Line 2"}]}
    )
    lookup = LocalSearchAnchorLookup(client, TTLCache(8, 60))

    async def run():
        first = await lookup.nearest_facility(37.4980, 127.0270, AnchorKind.STATION, 1000)
        second = await lookup.nearest_facility(37.49801, 127.02701, AnchorKind.STATION, 1000)
        return first, second

    first, second = asyncio.run(run())
    assert first == second
    assert first.name == "Gangnam"
    assert first.line == "Line 2"
    assert len(client.requests) == 1
    path, params = client.requests[0]
    assert path == "/search/category.json"
    assert params["category_group_code"] == "SW8"
    assert params["sort"] == "distance"


def test_department_store_uses_keyword_search():
    client = StubClient({"documents": []})
    lookup = LocalSearchAnchorLookup(client, TTLCache(8, 60))
    assert asyncio.run(lookup.nearest_facility(37.5, 127.0, AnchorKind.DEPARTMENT_STORE, 2000)) is None
    path, params = client.requests[0]
    assert path == "/search/keyword.json"
    assert "query" in params


def test_anchor_lookup_propagates_upstream_errors():
    client = StubClient(error=UpstreamUnavailable("local search", "timeout"))
    lookup = LocalSearchAnchorLookup(client, TTLCache(8, 60))
    with pytest.raises(UpstreamUnavailable):
        asyncio.run(lookup.nearest_facility(37.5, 127.0, AnchorKind.MART, 2000))


def test_starbucks_lookup_counts_matching_branches():
    client = StubClient(
        {
            "documents": [
                {"place_name": "스타벅스 강남역점", "x": "127.0276", "y": "37.4979"},
                {"place_name": "스타벅스 가구 할인매장", "x": "127.0280", "y": "37.4990"},
                {"place_name": "카페 스타", "x": "127.0290", "y": "37.4995"},
                {"place_name": "스타벅스 역삼점", "x": "127.0300", "y": "37.5000"},
            ]
        }
    )
    lookup = LocalSearchAnchorLookup(client, TTLCache(8, 60))
    facility = asyncio.run(lookup.nearest_facility(37.4980, 127.0270, AnchorKind.STARBUCKS, 1000))

    assert facility.name == "스타벅스 강남역점"
    assert facility.kind == AnchorKind.STARBUCKS
    assert facility.count == 3
    path, params = client.requests[0]
    assert path == "/search/keyword.json"
    assert params["query"] == "스타벅스"
    assert params["size"] == 15


class TickingClock:
    """Advances a fixed step every time it is read."""

    def __init__(self, step):
        self.step = step
        self.now = 0.0

    def __call__(self):
        current = self.now
        self.now += self.step
        return current


def test_cached_facility_is_read_once_per_call():
    client = StubClient({"documents": [{"place_name": "E-Mart", "x": "127.0276", "y": "37.4979"}]})
    # Stored at t=0 with a 7 s ttl; a second clock read inside the same call would see it expired
    lookup = LocalSearchAnchorLookup(client, TTLCache(8, 7, clock=TickingClock(5)))

    async def run():
        first = await lookup.nearest_facility(37.4980, 127.0270, AnchorKind.MART, 2000)
        second = await lookup.nearest_facility(37.4980, 127.0270, AnchorKind.MART, 2000)
        return first, second

    first, second = asyncio.run(run())
    assert second is not None
    assert second == first
    assert len(client.requests) == 1
