"""
Location risk analysis.

Evaluation order is fixed:

1. validate the request (nothing downstream runs on failure)
2. center cell and the cells covering the analysis radius
3. reverse geocoding, grid aggregation and anchor lookup, concurrently
4. rent lookup for the resolved district
5. provisional competition, traffic, anchor and cost metrics
6. area type, classified once from the provisional metrics
7. traffic time pattern patched if it is the placeholder, survival computed
   with the area type; the area type is not revisited
8. score, risk level, interpretation and risk cards
9. response with a data-quality block
"""

import asyncio
import logging
from typing import Optional, Tuple

from all_types.internal_types import (
    AddressInfo,
    AnchorLookup,
    GridAggregate,
    GridStoreReader,
    MetricsBundle,
    RentLookup,
    ReverseGeocoder,
)
from all_types.request_dtypes import ReqRiskAnalysis
from all_types.response_dtypes import (
    AnalysisSummary,
    DataQuality,
    Location,
    ResRiskAnalysis,
)
from area_classifier import AreaClassifier, store_mix_features
from backend_common.grid_storage import JsonGridStore, JsonRentTable
from backend_common.ttl_cache import TTLCache
from categories import Category, get_category
from config_factory import CONF, EngineConf
from grid_aggregator import GridAggregator
from interpretation.generator import InterpretationEngine
from local_search_connector import LocalSearchAnchorLookup, LocalSearchClient, LocalSearchGeocoder
from risk_cards import CardContext, RiskCardRanker
from risk_errors import RequestValidationError
from risk_metrics.anchor import (
    AnchorConfig,
    DEFAULT_ANCHOR_CONFIG,
    calculate_anchor,
    lookup_anchor_facilities,
)
from risk_metrics.competition import calculate_competition
from risk_metrics.cost import calculate_cost
from risk_metrics.survival import calculate_survival
from risk_metrics.traffic import calculate_traffic, patch_traffic_pattern
from risk_scorer import RiskScorer, risk_level
from spatial_index import SpatialIndexer, validate_coordinate

logger = logging.getLogger(__name__)


def coverage_label(store_coverage: float, traffic_coverage: float) -> str:
    if store_coverage >= 0.5 and traffic_coverage >= 0.5:
        return "high"
    if store_coverage > 0 or traffic_coverage > 0:
        return "medium"
    return "low"


def validate_request(req: ReqRiskAnalysis) -> Tuple[float, float, Category]:
    validate_coordinate(req.lat, req.lng)
    if req.target_category is None or not str(req.target_category).strip():
        raise RequestValidationError("target_category", "is required")
    return req.lat, req.lng, get_category(req.target_category.strip())


class RiskAnalysisEngine:
    def __init__(
        self,
        grid_reader: GridStoreReader,
        geocoder: ReverseGeocoder,
        rent_lookup: RentLookup,
        anchor_lookup: Optional[AnchorLookup],
        indexer: Optional[SpatialIndexer] = None,
        classifier: Optional[AreaClassifier] = None,
        scorer: Optional[RiskScorer] = None,
        interpreter: Optional[InterpretationEngine] = None,
        ranker: Optional[RiskCardRanker] = None,
        anchor_config: AnchorConfig = DEFAULT_ANCHOR_CONFIG,
        radius_m: float = CONF.analysis_radius_m,
        request_timeout_s: Optional[float] = None,
    ):
        self.aggregator = GridAggregator(grid_reader)
        self.geocoder = geocoder
        self.rent_lookup = rent_lookup
        self.anchor_lookup = anchor_lookup
        self.indexer = indexer or SpatialIndexer(CONF.h3_resolution)
        self.classifier = classifier or AreaClassifier()
        self.scorer = scorer or RiskScorer()
        self.interpreter = interpreter or InterpretationEngine()
        self.ranker = ranker or RiskCardRanker(top_n=CONF.risk_card_top_n)
        self.anchor_config = anchor_config
        self.radius_m = radius_m
        self.request_timeout_s = request_timeout_s

    async def analyze(self, req: ReqRiskAnalysis) -> ResRiskAnalysis:
        # Rejections are raised before the timeout starts
        lat, lng, category = validate_request(req)
        if self.request_timeout_s:
            return await asyncio.wait_for(self._analyze(lat, lng, category), self.request_timeout_s)
        return await self._analyze(lat, lng, category)

    async def _geocode(self, lat: float, lng: float) -> AddressInfo:
        try:
            return await self.geocoder.reverse_geocode(lat, lng)
        except Exception as e:
            logger.warning(f"Reverse geocoder failed, using empty address: {e}")
            return AddressInfo()

    async def _rent(self, district: str) -> Optional[float]:
        if not district:
            return None
        try:
            return await self.rent_lookup.average_rent(district)
        except Exception as e:
            logger.warning(f"Rent lookup failed for '{district}': {e}")
            return None

    async def _analyze(self, lat: float, lng: float, category: Category) -> ResRiskAnalysis:
        center_cell = self.indexer.cell_from_point(lat, lng)
        cells = self.indexer.cells_in_radius(lat, lng, self.radius_m)
        logger.info(f"Analysing {category.key} at ({lat:.6f}, {lng:.6f}) over {len(cells)} cells")

        address, aggregate, anchor_result = await asyncio.gather(
            self._geocode(lat, lng),
            self.aggregator.aggregate(cells),
            lookup_anchor_facilities(self.anchor_lookup, lat, lng, self.anchor_config),
        )

        district = address.district or aggregate.district or ""
        avg_rent = await self._rent(district)

        # Provisional metrics
        competition = calculate_competition(aggregate, category, self.radius_m)
        anchor = calculate_anchor(lat, lng, anchor_result, self.anchor_config)
        station_distance = anchor.station.distance_m if anchor.station else None
        traffic = calculate_traffic(aggregate, station_distance)
        cost = calculate_cost(avg_rent, district)

        features = store_mix_features(aggregate.store_counts, aggregate.total_stores, competition, traffic, anchor)
        area_type = self.classifier.classify(features)

        traffic = patch_traffic_pattern(traffic, area_type, station_distance)
        survival = calculate_survival(aggregate, category, competition, traffic, cost, area_type)

        metrics = MetricsBundle(
            competition=competition,
            traffic=traffic,
            cost=cost,
            survival=survival,
            anchor=anchor,
        )
        breakdown = self.scorer.breakdown(category, metrics, area_type)
        level = risk_level(breakdown.final_score)
        interpretation = self.interpreter.interpret(category, metrics, area_type, breakdown, level, center_cell)
        cards = self.ranker.rank(CardContext(category, metrics, area_type, breakdown.sub_scores))

        logger.info(
            f"Risk for {category.key} at {center_cell}: {breakdown.final_score} "
            f"({level.value}, {area_type.value})"
        )
        return ResRiskAnalysis(
            location=Location(
                lat=lat,
                lng=lng,
                address=address.address,
                region=address.region,
                district=district,
                cell_id=center_cell,
            ),
            analysis=AnalysisSummary(
                score=breakdown.final_score,
                risk_level=level,
                area_type=area_type,
                category=category.key,
                category_name=category.name,
            ),
            metrics=metrics,
            breakdown=breakdown,
            interpretation=interpretation,
            risk_cards=cards,
            data_quality=self._data_quality(aggregate, metrics, address),
        )

    @staticmethod
    def _data_quality(aggregate: GridAggregate, metrics: MetricsBundle, address: AddressInfo) -> DataQuality:
        return DataQuality(
            cells_requested=len(aggregate.cell_ids),
            store_coverage=round(aggregate.store_coverage, 3),
            traffic_coverage=round(aggregate.traffic_coverage, 3),
            coverage=coverage_label(aggregate.store_coverage, aggregate.traffic_coverage),
            traffic_estimated=metrics.traffic.is_estimated,
            traffic_pattern_estimated=metrics.traffic.pattern_estimated,
            survival_estimated=metrics.survival.is_estimated,
            cost_default=metrics.cost.is_default,
            anchor_unavailable=metrics.anchor.lookup_failed,
            address_unavailable=not (address.address or address.district),
            store_period=aggregate.store_period,
            traffic_period=aggregate.traffic_period,
        )


def build_engine(conf: EngineConf = CONF) -> RiskAnalysisEngine:
    """Engine wired to the snapshot files and the local-search API from ``conf``."""
    client = LocalSearchClient(conf)
    anchor_lookup = None
    if client.enabled:
        anchor_lookup = LocalSearchAnchorLookup(client, TTLCache(conf.anchor_cache_capacity, conf.anchor_cache_ttl_s))
    else:
        logger.info("No local search API key configured; anchor lookups disabled")

    return RiskAnalysisEngine(
        grid_reader=JsonGridStore(conf.grid_snapshot_path),
        geocoder=LocalSearchGeocoder(client),
        rent_lookup=JsonRentTable(conf.rent_table_path),
        anchor_lookup=anchor_lookup,
        indexer=SpatialIndexer(conf.h3_resolution),
        ranker=RiskCardRanker(top_n=conf.risk_card_top_n),
        radius_m=conf.analysis_radius_m,
        request_timeout_s=conf.request_timeout_s,
    )
