import os
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

ROOT_DIR = Path(__file__).resolve().parent


class EngineConf(BaseModel):
    """Process-wide settings. Business tuning tables are not kept here."""

    model_config = ConfigDict(frozen=True)

    # Endpoint paths
    risk_analysis: str = "/fastapi/risk_analysis"

    # Analysis geometry
    analysis_radius_m: float = 500.0
    h3_resolution: int = 9
    risk_card_top_n: int = 3

    # External collaborators
    local_search_base_url: str = "https://dapi.kakao.com/v2/local"
    local_search_api_key: str = ""
    http_timeout_s: float = 5.0
    request_timeout_s: Optional[float] = 15.0
    anchor_cache_capacity: int = 512
    anchor_cache_ttl_s: float = 600.0

    # Read-only data snapshots
    grid_snapshot_path: str = str(ROOT_DIR / "data" / "grid_snapshot.json")
    rent_table_path: str = str(ROOT_DIR / "data" / "district_rent.json")

    # Logging
    log_file: str = "risk_engine.log"
    log_level: str = "INFO"

    test_mode: bool = False


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return float(raw)


def get_conf(env_path: Optional[Path] = None) -> EngineConf:
    load_dotenv(env_path or ROOT_DIR / ".env")
    defaults = EngineConf()
    return EngineConf(
        risk_analysis=os.getenv("RISK_ANALYSIS_PATH", defaults.risk_analysis),
        analysis_radius_m=_env_float("ANALYSIS_RADIUS_M", defaults.analysis_radius_m),
        h3_resolution=int(os.getenv("H3_RESOLUTION", defaults.h3_resolution)),
        risk_card_top_n=int(os.getenv("RISK_CARD_TOP_N", defaults.risk_card_top_n)),
        local_search_base_url=os.getenv("LOCAL_SEARCH_BASE_URL", defaults.local_search_base_url),
        local_search_api_key=os.getenv("LOCAL_SEARCH_API_KEY", defaults.local_search_api_key),
        http_timeout_s=_env_float("HTTP_TIMEOUT_S", defaults.http_timeout_s),
        request_timeout_s=_env_float("REQUEST_TIMEOUT_S", defaults.request_timeout_s),
        anchor_cache_capacity=int(os.getenv("ANCHOR_CACHE_CAPACITY", defaults.anchor_cache_capacity)),
        anchor_cache_ttl_s=_env_float("ANCHOR_CACHE_TTL_S", defaults.anchor_cache_ttl_s),
        grid_snapshot_path=os.getenv("GRID_SNAPSHOT_PATH", defaults.grid_snapshot_path),
        rent_table_path=os.getenv("RENT_TABLE_PATH", defaults.rent_table_path),
        log_file=os.getenv("LOG_FILE", defaults.log_file),
        log_level=os.getenv("LOG_LEVEL", defaults.log_level),
        test_mode=os.getenv("TEST_MODE", "false").lower() == "true",
    )


CONF = get_conf()
