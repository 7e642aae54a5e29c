"""Reasoning and suggestions derived from an evaluation result."""

from dataclasses import dataclass, field
from typing import Any, List, Sequence

from eligibility_engine.models.schemas.eligibility import (
    CriterionResult,
    EligibilityEvaluationResult,
)
from eligibility_engine.services.explanation.formatting import format_field_name, format_value

REASONING_ELIGIBLE = "You meet all the eligibility requirements for this program."
REASONING_INCOMPLETE = "We need more information to determine your eligibility."
REASONING_INELIGIBLE = (
    "Based on the information provided, you do not currently meet the eligibility requirements."
)
SUGGESTION_COMPLETE_PROFILE = "Complete your profile by providing the missing information"


@dataclass
class ResultAnalysis:
    """Reasoning lines and per-criterion outcomes for one result."""

    reasoning: List[str] = field(default_factory=list)
    criteria_passed: List[str] = field(default_factory=list)
    criteria_failed: List[str] = field(default_factory=list)


def _passed(criterion_name: str) -> str:
    return f"✓ We verified {format_field_name(criterion_name)} and you meet this requirement"


def analyze_result(
    result: EligibilityEvaluationResult, variables: Sequence[str]
) -> ResultAnalysis:
    """
    Split a result into reasoning, passed and failed criteria.

    Eligible results list every traced criterion (or every rule variable) as
    passed. Incomplete results list each missing field as failed. Ineligible
    results split the traced criteria by whether they were met.

    Args:
        result: Evaluation result
        variables: Variables referenced by the rule

    Returns:
        ResultAnalysis
    """
    analysis = ResultAnalysis()

    if result.eligible:
        analysis.reasoning.append(REASONING_ELIGIBLE)
        if result.criteria_results:
            names = [criterion.criterion for criterion in result.criteria_results]
        else:
            names = list(variables)
        analysis.criteria_passed.extend(_passed(name) for name in names)

    elif result.incomplete:
        analysis.reasoning.append(REASONING_INCOMPLETE)
        for field_name in result.missing_fields or []:
            description = format_field_name(field_name)
            analysis.reasoning.append(f"Please provide information about {description}")
            analysis.criteria_failed.append(
                f"? We need information about {description} to continue"
            )

    else:
        analysis.reasoning.append(REASONING_INELIGIBLE)
        for criterion in result.criteria_results or []:
            if criterion.met:
                analysis.criteria_passed.append(_passed(criterion.criterion))
                continue
            description = _failed_description(criterion)
            analysis.criteria_failed.append(f"✗ {description} does not meet the program requirements")
            analysis.reasoning.append(f"• {description} does not meet the program requirements")

    return analysis


def _failed_description(criterion: CriterionResult) -> str:
    description = format_field_name(criterion.criterion)
    if criterion.comparison:
        description = f"{description} ({criterion.comparison})"
    return description


def _format_threshold(threshold: Any) -> str:
    if isinstance(threshold, list) and len(threshold) == 2:
        return f"{format_value(threshold[0])} to {format_value(threshold[1])}"
    return format_value(threshold)


def generate_change_suggestions(result: EligibilityEvaluationResult) -> List[str]:
    """
    Suggest what would change a negative outcome.

    Returns:
        Suggestions, possibly empty
    """
    suggestions: List[str] = []
    if result.missing_fields:
        suggestions.append(SUGGESTION_COMPLETE_PROFILE)

    for criterion in result.criteria_results or []:
        if criterion.met or criterion.threshold is None:
            continue
        name = criterion.criterion.lower()
        description = format_field_name(criterion.criterion)
        current = format_value(criterion.value)
        required = _format_threshold(criterion.threshold)

        if "income" in name:
            suggestions.append(
                f"If {description} changes from {current} to {required} or below, you may qualify"
            )
        elif "age" in name:
            # Age cannot be changed by the household
            suggestions.append(
                f"This program requires a different age range than your current age of {current}"
            )
        else:
            suggestions.append(
                f"If {description} changes from {current} to meet the requirement of "
                f"{required}, you may qualify"
            )

    return suggestions
