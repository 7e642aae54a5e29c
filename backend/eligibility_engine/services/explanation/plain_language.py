"""Plain-language narrative for an evaluation result."""

from typing import List, Sequence

from eligibility_engine.core.enums import LanguageLevel
from eligibility_engine.models.schemas.eligibility import EligibilityEvaluationResult
from eligibility_engine.services.explanation.formatting import format_field_name

# (simple, other levels)
STATUS_MESSAGES = {
    "eligible": (
        "Good news! You qualify for this program.",
        "Based on the information you provided, you appear to be eligible for this benefit program.",
    ),
    "incomplete": (
        "We need more information to check if you qualify.",
        "We need additional information to complete your eligibility evaluation.",
    ),
    "ineligible": (
        "Unfortunately, you do not qualify for this program right now.",
        "Based on the information provided, you do not currently meet the eligibility "
        "requirements for this program.",
    ),
}

ELLIPSIS = "..."


def _status_message(result: EligibilityEvaluationResult, simple: bool) -> str:
    if result.eligible:
        status = "eligible"
    elif result.incomplete:
        status = "incomplete"
    else:
        status = "ineligible"
    simple_text, standard_text = STATUS_MESSAGES[status]
    return simple_text if simple else standard_text


def build_plain_language(
    result: EligibilityEvaluationResult,
    reasoning: Sequence[str],
    language_level: LanguageLevel = LanguageLevel.STANDARD,
) -> str:
    """
    Assemble the narrative shown to the household.

    Sections, separated by blank lines: status headline, reasoning (not at
    the simple level), next steps (eligible only), missing information
    (incomplete only).
    """
    simple = language_level == LanguageLevel.SIMPLE
    parts: List[str] = [_status_message(result, simple)]

    if reasoning and not simple:
        parts.append("")
        parts.extend(reasoning)

    if result.eligible and result.next_steps:
        parts.append("")
        parts.append("Here's what to do next:" if simple else "Recommended next steps:")
        parts.extend(f"• {step.step}" for step in result.next_steps)

    if result.incomplete and result.missing_fields:
        parts.append("")
        parts.append("We need to know:" if simple else "Please provide the following information:")
        parts.extend(f"• {format_field_name(field_name)}" for field_name in result.missing_fields)

    return "\n".join(parts)


def truncate(text: str, max_length: int) -> str:
    """Cut ``text`` to at most ``max_length`` characters, ending with an ellipsis."""
    if len(text) <= max_length:
        return text
    if max_length <= len(ELLIPSIS):
        return text[:max_length]
    return text[: max_length - len(ELLIPSIS)].rstrip() + ELLIPSIS
