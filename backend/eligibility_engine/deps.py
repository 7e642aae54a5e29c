"""Dependency injection for FastAPI endpoints."""

from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from eligibility_engine.config import settings
from eligibility_engine.db.session import SessionLocal, get_db
from eligibility_engine.services.eligibility.store import SqlAlchemyEligibilityStore
from eligibility_engine.services.eligibility_service import EligibilityService
from eligibility_engine.services.explanation.explainer import RuleExplainer
from eligibility_engine.services.rule_engine import (
    EvaluationOptions,
    OperatorRegistry,
    RuleEngine,
    create_registry,
)
from eligibility_engine.services.rule_engine.evaluators import BenefitOperators
from eligibility_engine.services.rule_engine.validator import RuleValidator, ValidationOptions

__all__ = [
    "get_db",
    "get_eligibility_service",
    "get_operator_registry",
    "get_rule_engine",
    "get_rule_explainer",
    "get_rule_validator",
    "get_session",
]


# Re-export get_db for convenience
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Get database session dependency.

    This is an alias for get_db for clarity in endpoint signatures.
    """
    async for session in get_db():
        yield session


@lru_cache
def get_operator_registry() -> OperatorRegistry:
    """Process-wide registry with the standard and benefit operators, built once."""
    return create_registry([BenefitOperators()])


@lru_cache
def get_rule_engine() -> RuleEngine:
    return RuleEngine(
        registry=get_operator_registry(),
        options=EvaluationOptions(
            max_depth=settings.EVALUATION_MAX_DEPTH,
            step_budget=settings.EVALUATION_STEP_BUDGET,
            timeout_ms=settings.EVALUATION_TIMEOUT_MS,
        ),
    )


@lru_cache
def get_rule_validator() -> RuleValidator:
    return RuleValidator(
        registry=get_operator_registry(),
        options=ValidationOptions(
            max_depth=settings.RULE_MAX_DEPTH,
            max_complexity=settings.RULE_MAX_COMPLEXITY,
        ),
    )


@lru_cache
def get_rule_explainer() -> RuleExplainer:
    return RuleExplainer(registry=get_operator_registry(), validator=get_rule_validator())


def get_eligibility_service() -> EligibilityService:
    """
    Get the eligibility service dependency.

    The service reads and writes through a store that opens its own
    sessions, so it does not take the request session.
    """
    return EligibilityService(
        store=SqlAlchemyEligibilityStore(SessionLocal),
        engine=get_rule_engine(),
    )
