"""Traces individual comparisons in a rule to explain which criteria passed."""

import logging
from typing import Any, List, Mapping, Optional, Sequence

from eligibility_engine.models.schemas.eligibility import CriterionResult
from eligibility_engine.services.explanation.formatting import format_field_name, format_plain
from eligibility_engine.services.rule_engine.ast import Node, Operation, iter_operations, var_path
from eligibility_engine.services.rule_engine.base import EvaluationOptions, is_truthy
from eligibility_engine.services.rule_engine.engine import RuleEngine
from eligibility_engine.services.rule_engine.evaluators.array import ARRAY_PREDICATE_OPERATORS
from eligibility_engine.services.rule_engine.evaluators.benefit import snap_income_threshold
from eligibility_engine.services.rule_engine.evaluators.data import is_missing_value, lookup

logger = logging.getLogger(__name__)

COMPARISON_OPERATORS = ("<", ">", "<=", ">=", "==", "!=", "in")

# Operators that also accept a third operand as a range: low < x < high
RANGE_OPERATORS = ("<", "<=")

_FAILED = object()

# (met, not met) phrasing with the variable's value first and the threshold second
_PHRASES = {
    "<=": ("is within the limit of", "exceeds the limit of"),
    "<": ("is below the threshold of", "is not below the threshold of"),
    ">=": ("meets the minimum of", "is below the minimum of"),
    ">": ("exceeds the minimum of", "does not exceed the minimum of"),
    "==": ("matches the required value of", "does not match the required value of"),
    "in": ("is one of the allowed values:", "is not one of the allowed values:"),
}


def format_comparison(operator: str, value: Any, threshold: Any, met: bool) -> str:
    """Sentence describing one comparison, e.g. ``$2,500 is within the limit of $2,888``."""
    value_text, threshold_text = format_plain(value), format_plain(threshold)
    if operator == "!=":
        if met:
            return f"{value_text} is different from {threshold_text} (as required)"
        return f"{value_text} incorrectly matches {threshold_text}"
    if operator == "between":
        low, high = (threshold + [None, None])[:2] if isinstance(threshold, list) else (None, None)
        verb = "is between" if met else "is outside the range of"
        joiner = "and" if met else "to"
        return f"{value_text} {verb} {format_plain(low)} {joiner} {format_plain(high)}"
    phrases = _PHRASES.get(operator)
    if phrases is None:
        return f"{value_text} compared to {threshold_text}"
    return f"{value_text} {phrases[0] if met else phrases[1]} {threshold_text}"


class CriteriaAnalyzer:
    """
    Records the individual comparisons inside a rule.

    For every comparison with a ``var`` on one side, the other side is
    evaluated as the threshold and the comparison itself is evaluated to decide
    whether the criterion was met. Comparisons whose variable is absent from
    the data are skipped; they surface as missing fields instead.
    """

    def __init__(self, engine: RuleEngine):
        self.engine = engine

    def analyze(
        self,
        tree: Node,
        data: Mapping[str, Any],
        options: Optional[EvaluationOptions] = None,
    ) -> List[CriterionResult]:
        """
        Trace comparisons in evaluation order.

        Args:
            tree: Parsed rule
            data: Data context
            options: Evaluation options (timestamp, overrides)

        Returns:
            One CriterionResult per traceable comparison
        """
        results: List[CriterionResult] = []
        # Sub-rules of array predicates see array elements, not the data context
        for operation in iter_operations(tree, scoped=ARRAY_PREDICATE_OPERATORS):
            if operation.name in RANGE_OPERATORS and len(operation.args) == 3:
                traced = self._trace_between(
                    operation, operation.args[1], operation.args[0], operation.args[2], data, options
                )
                if traced:
                    results.append(traced)
            elif operation.name in COMPARISON_OPERATORS and len(operation.args) >= 2:
                traced = self._trace_comparison(operation, data, options)
                if traced:
                    results.append(traced)
            elif operation.name == "between" and len(operation.args) == 3:
                traced = self._trace_between(
                    operation, operation.args[0], operation.args[1], operation.args[2], data, options
                )
                if traced:
                    results.append(traced)
            elif operation.name == "snap_income_eligible" and len(operation.args) == 2:
                results.extend(self._trace_snap(operation, data, options))
        return results

    def breakdown_from_required_fields(
        self, required_fields: Sequence[str], data: Mapping[str, Any]
    ) -> List[CriterionResult]:
        """
        Fallback criteria when no comparison could be traced.

        Present boolean fields count as met only when true; other present
        fields count as met. Absent fields are left out.
        """
        results = []
        for field_name in required_fields:
            value = lookup(data, field_name)
            if is_missing_value(value):
                continue
            met = value if isinstance(value, bool) else True
            results.append(
                CriterionResult(
                    criterion=field_name,
                    met=met,
                    value=value,
                    comparison=f"{format_field_name(field_name)}: {format_plain(value)}",
                )
            )
        return results

    def _trace_comparison(
        self, operation: Operation, data: Mapping[str, Any], options: Optional[EvaluationOptions]
    ) -> Optional[CriterionResult]:
        left, right = operation.args[0], operation.args[1]
        path = var_path(left)
        other = right
        if path is None:
            path = var_path(right)
            other = left
        if path is None:
            return None

        value = lookup(data, path)
        if value is None:
            return None
        threshold = self._evaluate(other, data, options)
        if threshold is _FAILED:
            return None
        met = self._evaluate(operation, data, options)
        if met is _FAILED:
            return None

        met = is_truthy(met)
        return CriterionResult(
            criterion=path,
            met=met,
            value=value,
            threshold=threshold,
            comparison=format_comparison(operation.name, value, threshold, met),
            operator=operation.name,
        )

    def _trace_between(
        self,
        operation: Operation,
        subject: Node,
        lower: Node,
        upper: Node,
        data: Mapping[str, Any],
        options: Optional[EvaluationOptions],
    ) -> Optional[CriterionResult]:
        path = var_path(subject)
        if path is None:
            return None
        value = lookup(data, path)
        if value is None:
            return None
        low = self._evaluate(lower, data, options)
        high = self._evaluate(upper, data, options)
        met = self._evaluate(operation, data, options)
        if _FAILED in (low, high, met):
            return None
        met = is_truthy(met)
        return CriterionResult(
            criterion=path,
            met=met,
            value=value,
            threshold=[low, high],
            comparison=format_comparison("between", value, [low, high], met),
            operator=operation.name,
        )

    def _trace_snap(
        self, operation: Operation, data: Mapping[str, Any], options: Optional[EvaluationOptions]
    ) -> List[CriterionResult]:
        income = self._evaluate(operation.args[0], data, options)
        size = self._evaluate(operation.args[1], data, options)
        if _FAILED in (income, size) or income is None or size is None:
            return []
        limit = snap_income_threshold(size)
        if limit is None:
            return []

        outcome = self._evaluate(operation, data, options)
        if outcome is _FAILED:
            return []
        met = is_truthy(outcome)
        income_field = var_path(operation.args[0]) or "household_income"
        size_field = var_path(operation.args[1]) or "household_size"
        people = "person" if size == 1 else "people"
        return [
            CriterionResult(
                criterion=income_field,
                met=met,
                value=income,
                threshold=limit,
                comparison=format_comparison("<=", income, limit, met),
                operator="snap_income_eligible",
            ),
            CriterionResult(
                criterion=size_field,
                met=True,
                value=size,
                threshold=size,
                comparison=f"{format_plain(size)} {people} (determines income limit)",
                operator="household_size",
            ),
        ]

    def _evaluate(
        self, node: Node, data: Mapping[str, Any], options: Optional[EvaluationOptions]
    ) -> Any:
        outcome = self.engine.evaluate(node, data, options)
        if not outcome.success:
            logger.debug(f"Criterion sub-expression failed: {outcome.error_message}")
            return _FAILED
        return outcome.result

