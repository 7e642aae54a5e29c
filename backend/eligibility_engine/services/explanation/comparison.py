"""What-would-pass analysis and differences between two evaluations."""

from typing import Any, List, Mapping, Optional

from eligibility_engine.models.schemas.eligibility import EligibilityEvaluationResult
from eligibility_engine.models.schemas.rule import ChangedField, DifferenceExplanation
from eligibility_engine.services.explanation.descriptions import split_operation, variable_name
from eligibility_engine.services.explanation.formatting import (
    MISSING,
    format_field_name,
    format_value,
)
from eligibility_engine.services.rule_engine.base import is_number
from eligibility_engine.services.rule_engine.evaluators.data import lookup

NO_SUGGESTIONS = (
    "Eligibility criteria cannot be easily modified. Please consult program guidelines."
)


def _comparison_suggestion(operator: str, operands: List[Any], data: Mapping[str, Any]) -> Optional[str]:
    if operator not in (">", ">=", "<", "<=") or len(operands) < 2:
        return None
    left, right = operands[0], operands[1]
    if not (isinstance(left, dict) and len(left) == 1 and "var" in left):
        return None
    if isinstance(right, bool) or not is_number(right):
        return None

    name = variable_name(left["var"])
    current = format_value(lookup(data, name, MISSING))
    field_description = format_field_name(name)
    if operator in (">", ">="):
        return f"Increase {field_description} from {current} to at least {format_value(right)}"
    return f"Reduce {field_description} from {current} to {format_value(right)} or below"


def explain_what_would_pass(rule: Any, data: Optional[Mapping[str, Any]] = None) -> List[str]:
    """
    Suggest changes that would make ``rule`` pass for ``data``.

    Walks the whole rule and, for every ordering comparison between a
    variable and a number, suggests moving the variable past the number.

    Args:
        rule: Rule in JSON form
        data: Current data context

    Returns:
        Suggestions; a generic message when no comparison qualifies
    """
    data = data or {}
    suggestions: List[str] = []
    seen = set()
    stack = [rule]
    while stack:
        node = stack.pop()
        if isinstance(node, (dict, list)):
            if id(node) in seen:
                continue
            seen.add(id(node))

        operation = split_operation(node)
        if operation is None:
            continue
        operator, operands = operation
        suggestion = _comparison_suggestion(operator, operands, data)
        if suggestion:
            suggestions.append(suggestion)
        # Reversed so operands are visited left to right
        stack.extend(reversed(operands))

    return suggestions or [NO_SUGGESTIONS]


def _same_value(before: Any, after: Any) -> bool:
    if before is MISSING or after is MISSING:
        return before is after
    return isinstance(before, bool) == isinstance(after, bool) and before == after


def explain_difference(
    result1: EligibilityEvaluationResult,
    result2: EligibilityEvaluationResult,
    data1: Mapping[str, Any],
    data2: Mapping[str, Any],
) -> DifferenceExplanation:
    """
    Explain why two evaluations of the same rule came out differently.

    Args:
        result1: Earlier result
        result2: Later result
        data1: Data context behind ``result1``
        data2: Data context behind ``result2``

    Returns:
        DifferenceExplanation listing every changed field
    """
    differences: List[str] = []
    changed_fields: List[ChangedField] = []

    eligibility_changed = result1.eligible != result2.eligible
    if eligibility_changed:
        change = "eligible → ineligible" if result1.eligible else "ineligible → eligible"
        differences.append(f"Eligibility status changed: {change}")

    keys = list(data1)
    keys.extend(key for key in data2 if key not in data1)
    for key in keys:
        before = data1.get(key, MISSING)
        after = data2.get(key, MISSING)
        if _same_value(before, after):
            continue
        changed_fields.append(
            ChangedField(
                field=key,
                before=None if before is MISSING else before,
                after=None if after is MISSING else after,
            )
        )
        differences.append(
            f"{format_field_name(key)} changed from {format_value(before)} to {format_value(after)}"
        )

    if changed_fields:
        summary = f"{len(changed_fields)} field(s) changed between evaluations"
    else:
        summary = "No data changes detected - results differ due to rule changes"

    return DifferenceExplanation(
        summary=summary,
        differences=differences,
        changed_fields=changed_fields,
        eligibility_changed=eligibility_changed,
    )
