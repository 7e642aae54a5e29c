"""API v1 router configuration."""

from fastapi import APIRouter

from eligibility_engine.api.v1.endpoints import eligibility, health, rules

api_router = APIRouter()

# Include endpoint routers
api_router.include_router(
    health.router,
    tags=["health"],
)

api_router.include_router(
    eligibility.router,
    prefix="/eligibility",
    tags=["eligibility"],
)

api_router.include_router(
    rules.router,
    prefix="/rules",
    tags=["rules"],
)
