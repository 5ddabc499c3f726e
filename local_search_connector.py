"""
HTTP collaborators backed by a local-search REST API (Kakao Local style):
reverse geocoding and nearest anchor facility lookup.

No retries: a failed call is reported as UpstreamUnavailable and the
engine degrades to its documented defaults.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from all_types.internal_types import AddressInfo, AnchorFacility, AnchorKind
from backend_common.ttl_cache import MISSING, TTLCache
from config_factory import CONF, EngineConf
from risk_errors import UpstreamUnavailable

logger = logging.getLogger(__name__)

# Category group codes understood by the search API
STATION_CATEGORY = "SW8"
MART_CATEGORY = "MT1"
DEPARTMENT_STORE_QUERY = "백화점"
STARBUCKS_QUERY = "스타벅스"
# Page size for chain searches; the branch count is capped by it
CHAIN_SEARCH_SIZE = 15
# The search API rejects radii above this
MAX_SEARCH_RADIUS_M = 20000


async def make_get_api_call(url: str, headers: Dict[str, str], params: Dict[str, Any], timeout_s: float) -> dict:
    timeout = aiohttp.ClientTimeout(total=timeout_s)
    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            logger.info(f"Request URL: {url}")
            async with session.get(url, headers=headers, params=params) as response:
                if response.status == 200:
                    return await response.json()
                response_text = await response.text()
                logger.warning(f"({response.status}):{response_text}")
                raise UpstreamUnavailable(url, f"HTTP {response.status}")
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise UpstreamUnavailable(url, str(e) or type(e).__name__)


class LocalSearchClient:
    def __init__(self, conf: EngineConf = CONF):
        self.base_url = conf.local_search_base_url.rstrip("/")
        self.api_key = conf.local_search_api_key
        self.timeout_s = conf.http_timeout_s

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def get(self, path: str, params: Dict[str, Any]) -> dict:
        if not self.enabled:
            raise UpstreamUnavailable("local search", "no API key configured")
        headers = {"Authorization": f"KakaoAK {self.api_key}"}
        return await make_get_api_call(f"{self.base_url}{path}", headers, params, self.timeout_s)


class LocalSearchGeocoder:
    """Reverse geocoder; any failure yields empty strings."""

    def __init__(self, client: LocalSearchClient):
        self.client = client

    async def reverse_geocode(self, lat: float, lng: float) -> AddressInfo:
        try:
            data = await self.client.get("/geo/coord2regioncode.json", {"x": lng, "y": lat})
        except UpstreamUnavailable as e:
            logger.warning(f"Reverse geocoding unavailable: {e}")
            return AddressInfo()

        documents = data.get("documents") or []
        if not documents:
            return AddressInfo()
        # Administrative ("H") regions are preferred over legal ("B") ones
        doc = next((d for d in documents if d.get("region_type") == "H"), documents[0])
        return AddressInfo(
            address=doc.get("address_name", "") or "",
            region=doc.get("region_1depth_name", "") or "",
            district=doc.get("region_2depth_name", "") or "",
        )


def _facility_from_document(doc: dict, kind: AnchorKind) -> Optional[AnchorFacility]:
    try:
        lat = float(doc["y"])
        lng = float(doc["x"])
    except (KeyError, TypeError, ValueError):
        return None
    line = None
    if kind == AnchorKind.STATION and doc.get("category_name"):
        line = doc["category_name"].split(">")[-1].strip() or None
    return AnchorFacility(name=doc.get("place_name", ""), kind=kind, lat=lat, lng=lng, line=line)


class LocalSearchAnchorLookup:
    """Nearest facility per kind, with results cached per rounded coordinate."""

    def __init__(self, client: LocalSearchClient, cache: Optional[TTLCache] = None):
        self.client = client
        self.cache = cache or TTLCache(CONF.anchor_cache_capacity, CONF.anchor_cache_ttl_s)

    @staticmethod
    def _params(lat: float, lng: float, kind: AnchorKind, radius_m: float) -> Dict[str, Any]:
        params = {
            "x": lng,
            "y": lat,
            "radius": int(min(radius_m, MAX_SEARCH_RADIUS_M)),
            "sort": "distance",
            "size": 1,
        }
        if kind == AnchorKind.STATION:
            params["category_group_code"] = STATION_CATEGORY
        elif kind == AnchorKind.MART:
            params["category_group_code"] = MART_CATEGORY
        elif kind == AnchorKind.STARBUCKS:
            params["query"] = STARBUCKS_QUERY
            params["size"] = CHAIN_SEARCH_SIZE
        else:
            params["query"] = DEPARTMENT_STORE_QUERY
        return params

    async def nearest_facility(self, lat: float, lng: float, kind: AnchorKind, radius_m: float) -> Optional[AnchorFacility]:
        key = (kind.value, round(lat, 4), round(lng, 4), int(radius_m))
        cached = self.cache.get(key, MISSING)
        if cached is not MISSING:
            return cached

        keyword = kind in (AnchorKind.DEPARTMENT_STORE, AnchorKind.STARBUCKS)
        path = "/search/keyword.json" if keyword else "/search/category.json"
        data = await self.client.get(path, self._params(lat, lng, kind, radius_m))

        documents = data.get("documents") or []
        if kind == AnchorKind.STARBUCKS:
            # Keyword search also matches shops that merely mention the brand
            documents = [d for d in documents if STARBUCKS_QUERY in (d.get("place_name") or "")]

        facility = None
        for doc in documents:
            facility = _facility_from_document(doc, kind)
            if facility is not None:
                break
        if facility is not None and kind == AnchorKind.STARBUCKS:
            facility = facility.model_copy(update={"count": len(documents)})
        self.cache.set(key, facility)
        return facility
