"""Health check endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from eligibility_engine.deps import get_db, get_operator_registry
from eligibility_engine.services.rule_engine import OperatorRegistry

router = APIRouter()


@router.get("/health")
async def health_check(
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Annotated[OperatorRegistry, Depends(get_operator_registry)],
) -> dict:
    """
    Health check endpoint.

    Verifies that the database is reachable and the rule engine has its
    operators loaded.

    Returns:
        dict: Overall status plus database and engine status
    """
    try:
        await db.execute(text("SELECT 1"))
        db_status = "healthy"
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"

    engine_status = "healthy" if len(registry) > 0 else "no operators registered"

    return {
        "status": "healthy" if db_status == engine_status == "healthy" else "degraded",
        "database": db_status,
        "engine": engine_status,
        "operators": len(registry),
    }
