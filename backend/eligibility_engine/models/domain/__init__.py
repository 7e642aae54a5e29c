"""Domain models for the application."""

from eligibility_engine.models.domain.profile import HouseholdProfile
from eligibility_engine.models.domain.program import BenefitProgram, EligibilityRule
from eligibility_engine.models.domain.result import EligibilityResultRecord

__all__ = [
    "HouseholdProfile",
    "BenefitProgram",
    "EligibilityRule",
    "EligibilityResultRecord",
]
