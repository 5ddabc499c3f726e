import logging
from dataclasses import dataclass
from typing import Optional

from all_types.internal_types import CostMetrics, LevelBucket

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CostConfig:
    low_max: float = 80.0
    medium_max: float = 150.0
    # Used when the district has no rent figure; lands in the medium bucket
    default_rent: float = 100.0


DEFAULT_COST_CONFIG = CostConfig()


def cost_level(avg_rent: float, config: CostConfig = DEFAULT_COST_CONFIG) -> LevelBucket:
    if avg_rent <= config.low_max:
        return LevelBucket.LOW
    elif avg_rent <= config.medium_max:
        return LevelBucket.MEDIUM
    return LevelBucket.HIGH


def calculate_cost(avg_rent: Optional[float], district: str = "", config: CostConfig = DEFAULT_COST_CONFIG) -> CostMetrics:
    is_default = avg_rent is None or avg_rent < 0
    if is_default:
        logger.info(f"No rent figure for district '{district}', using default {config.default_rent:.0f}")
        avg_rent = config.default_rent
    return CostMetrics(
        avg_rent=avg_rent,
        level=cost_level(avg_rent, config),
        district=district or "",
        is_default=is_default,
    )
