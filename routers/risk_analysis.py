"""
Risk analysis router module
Scores a candidate location for a target business category
"""

import asyncio
import logging
import uuid
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException

from all_types.request_dtypes import ReqModel, ReqRiskAnalysis
from all_types.response_dtypes import ResModel, ResRiskAnalysis
from config_factory import CONF
from risk_analysis import RiskAnalysisEngine, build_engine
from risk_errors import RequestValidationError

logger = logging.getLogger(__name__)

risk_router = APIRouter()


@lru_cache(maxsize=1)
def get_engine() -> RiskAnalysisEngine:
    return build_engine(CONF)


@risk_router.post(CONF.risk_analysis, response_model=ResModel[ResRiskAnalysis])
async def ep_risk_analysis(
    req: ReqModel[ReqRiskAnalysis],
    engine: RiskAnalysisEngine = Depends(get_engine),
):
    try:
        result = await engine.analyze(req.request_body)
    except RequestValidationError as e:
        logger.info(f"Rejected risk analysis request: {e}")
        raise HTTPException(status_code=400, detail={"field": e.field, "message": e.message})
    except asyncio.TimeoutError:
        logger.error(f"Risk analysis exceeded {engine.request_timeout_s}s")
        raise HTTPException(status_code=504, detail="Risk analysis timed out")

    return ResModel[ResRiskAnalysis](
        data=result,
        message="Risk analysis completed",
        request_id=str(uuid.uuid4()),
    )
