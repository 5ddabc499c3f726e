from dataclasses import dataclass

from all_types.internal_types import CompetitionMetrics, GridAggregate, LevelBucket
from categories import Category


@dataclass(frozen=True)
class CompetitionConfig:
    # Same-category count at which density saturates to 1.0
    saturation_count: int = 20
    # Bucket upper bounds at the reference radius
    low_max: float = 5
    medium_max: float = 15
    reference_radius_m: float = 500.0


DEFAULT_COMPETITION_CONFIG = CompetitionConfig()


def density_level(same_category: int, radius_m: float, config: CompetitionConfig = DEFAULT_COMPETITION_CONFIG) -> LevelBucket:
    # Thresholds grow with the analysed area, not the radius
    scale = (radius_m / config.reference_radius_m) ** 2
    if same_category <= config.low_max * scale:
        return LevelBucket.LOW
    elif same_category <= config.medium_max * scale:
        return LevelBucket.MEDIUM
    return LevelBucket.HIGH


def calculate_competition(
    aggregate: GridAggregate,
    category: Category,
    radius_m: float = 500.0,
    config: CompetitionConfig = DEFAULT_COMPETITION_CONFIG,
) -> CompetitionMetrics:
    same = aggregate.store_counts.get(category.key, 0)
    return CompetitionMetrics(
        same_category=same,
        total=aggregate.total_stores,
        density=min(1.0, same / config.saturation_count),
        density_level=density_level(same, radius_m, config),
        has_category_data=aggregate.store_cells_with_data > 0,
    )
