"""Service layer for business logic."""

from eligibility_engine.services.eligibility_service import EligibilityService
from eligibility_engine.services.explanation.explainer import RuleExplainer

__all__ = ["EligibilityService", "RuleExplainer"]
