"""Confidence scoring and result wording for eligibility determinations."""

from typing import Optional

from eligibility_engine.core.enums import ComplexityLevel

CONFIDENCE_FAILED = 0
CONFIDENCE_INCOMPLETE = 50
CONFIDENCE_COMPLETE = 95

REASON_ERROR = "Unable to evaluate eligibility due to an error"
REASON_INCOMPLETE = "Cannot fully determine eligibility - missing required information"
REASON_ELIGIBLE = "You meet the eligibility criteria for this program"
REASON_INELIGIBLE = "You do not meet the eligibility criteria for this program"


class ScoringEngine:
    """
    Coarse confidence model and human-readable reasons for a determination.

    Confidence is one of three fixed tiers, not a probability:
    - 0: the rule could not be evaluated
    - 50: the rule ran but required data was missing
    - 95: the rule ran on complete data
    """

    @staticmethod
    def calculate_confidence(success: bool, incomplete: bool) -> int:
        """
        Calculate confidence for an evaluation.

        Args:
            success: Whether the evaluator produced a result
            incomplete: Whether any required field was missing

        Returns:
            Confidence tier (0, 50 or 95)
        """
        if not success:
            return CONFIDENCE_FAILED
        if incomplete:
            return CONFIDENCE_INCOMPLETE
        return CONFIDENCE_COMPLETE

    @staticmethod
    def build_reason(
        success: bool,
        incomplete: bool,
        eligible: bool,
        explanation: Optional[str] = None,
    ) -> str:
        """
        Pick the reason text shown with a determination.

        Args:
            success: Whether the evaluator produced a result
            incomplete: Whether any required field was missing
            eligible: Evaluated eligibility
            explanation: Rule-authored explanation used for eligible outcomes

        Returns:
            Reason string
        """
        if not success:
            return REASON_ERROR
        if incomplete:
            return REASON_INCOMPLETE
        if eligible:
            return explanation or REASON_ELIGIBLE
        return REASON_INELIGIBLE

    @staticmethod
    def classify_complexity(score: int) -> ComplexityLevel:
        """
        Band a validator complexity score.

        Bands: above 80 very complex, above 50 complex, above 20 moderate,
        otherwise simple.
        """
        if score > 80:
            return ComplexityLevel.VERY_COMPLEX
        if score > 50:
            return ComplexityLevel.COMPLEX
        if score > 20:
            return ComplexityLevel.MODERATE
        return ComplexityLevel.SIMPLE
