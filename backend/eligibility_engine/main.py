"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from eligibility_engine.api.v1.router import api_router
from eligibility_engine.config import settings
from eligibility_engine.deps import get_operator_registry

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Operators are registered once, before the first request
    registry = get_operator_registry()
    logger.info(
        f"Eligibility engine starting ({settings.ENVIRONMENT}) with {len(registry)} operators"
    )
    yield
    logger.info("Eligibility engine shutting down")


app = FastAPI(
    title="Eligibility Rule Engine API",
    description="API for evaluating and explaining benefit program eligibility rules",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


@app.get("/")
async def root() -> dict:
    """Root endpoint."""
    return {
        "message": "Eligibility Rule Engine API",
        "version": "1.0.0",
        "docs": "/api/docs",
    }
