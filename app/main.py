"""
FastAPI application: photo-evidence trust scoring and attachment ingestion.

    uvicorn app.main:app
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api import evidence, system
from app.integrations import evidence_store

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    evidence_store.initialize()
    logger.info("[STARTUP] Photo evidence service ready")
    yield
    logger.info("[SHUTDOWN] Photo evidence service stopped")


app = FastAPI(title="Photo Evidence Trust API", lifespan=lifespan)

app.include_router(system.router)
app.include_router(evidence.router)
