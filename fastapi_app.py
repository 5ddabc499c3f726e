import logging

from fastapi import FastAPI

import logger  # noqa: F401  configures the root logger
from routers.risk_analysis import risk_router

app = FastAPI(title="Location Risk Engine")

app.include_router(risk_router)

logging.getLogger(__name__).info("Risk analysis API ready")
