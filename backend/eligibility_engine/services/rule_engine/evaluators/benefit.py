"""Benefit-program domain operators."""

import math
from typing import Any, Dict, List

from eligibility_engine.services.rule_engine.base import (
    OperatorFamily,
    OperatorSpec,
    Scope,
    is_truthy,
    parse_date,
    to_number,
)

# 2024 monthly gross income limits at 130% of the federal poverty level
SNAP_130_FPL_MONTHLY = {
    1: 1696,
    2: 2292,
    3: 2888,
    4: 3483,
    5: 4079,
    6: 4675,
    7: 5271,
    8: 5867,
}
SNAP_130_FPL_ADDITIONAL_MEMBER = 596


def snap_income_threshold(household_size: Any) -> Any:
    """
    Monthly SNAP gross income limit for a household size.

    Returns:
        Dollar limit, or None when the size is missing or below 1
    """
    size = to_number(household_size)
    if math.isnan(size) or size < 1:
        return None
    size = int(size)
    if size <= 8:
        return SNAP_130_FPL_MONTHLY[size]
    return SNAP_130_FPL_MONTHLY[8] + (size - 8) * SNAP_130_FPL_ADDITIONAL_MEMBER


class BenefitOperators(OperatorFamily):
    """
    Operators used by benefit eligibility rules.

    Handles:
    - between: inclusive numeric range check
    - within_percent: value within a percentage of a target
    - age_from_dob: whole years from a birth date to the evaluation time
    - date_in_past / date_in_future: relative to the evaluation time
    - matches_any: case-insensitive membership
    - count_true / all_true / any_true: truthiness over arrays
    - snap_income_threshold_130_fpl / snap_income_eligible: SNAP income test
    """

    def operators(self) -> Dict[str, OperatorSpec]:
        return {
            "between": OperatorSpec(
                "between",
                self._between,
                describe=lambda parts: self._describe_between(parts),
            ),
            "within_percent": OperatorSpec("within_percent", self._within_percent),
            "age_from_dob": OperatorSpec(
                "age_from_dob",
                self._age_from_dob,
                describe=lambda parts: (
                    f"age calculated from date of birth {parts[0] if parts else '?'}"
                ),
            ),
            "date_in_past": OperatorSpec("date_in_past", self._date_in_past),
            "date_in_future": OperatorSpec("date_in_future", self._date_in_future),
            "matches_any": OperatorSpec(
                "matches_any",
                self._matches_any,
                describe=lambda parts: (
                    f"{parts[0] if parts else '?'} matches one of the allowed values"
                ),
            ),
            "count_true": OperatorSpec("count_true", self._count_true),
            "all_true": OperatorSpec("all_true", self._all_true),
            "any_true": OperatorSpec("any_true", self._any_true),
            "snap_income_threshold_130_fpl": OperatorSpec(
                "snap_income_threshold_130_fpl", self._snap_threshold
            ),
            "snap_income_eligible": OperatorSpec(
                "snap_income_eligible", self._snap_income_eligible
            ),
        }

    @staticmethod
    def _describe_between(parts: List[str]) -> str:
        padded = list(parts) + ["?"] * (3 - len(parts))
        return f"{padded[0]} is between {padded[1]} and {padded[2]}"

    def _between(self, operands: List[Any], scope: Scope) -> bool:
        self._require_arity("between", operands, 3)
        value, low, high = (to_number(v) for v in operands)
        if any(math.isnan(n) for n in (value, low, high)):
            return False
        return low <= value <= high

    def _within_percent(self, operands: List[Any], scope: Scope) -> bool:
        self._require_arity("within_percent", operands, 3)
        value, target, percent = (to_number(v) for v in operands)
        if any(math.isnan(n) for n in (value, target, percent)):
            return False
        return abs(value - target) <= target * (percent / 100)

    def _age_from_dob(self, operands: List[Any], scope: Scope) -> Any:
        self._require_arity("age_from_dob", operands, 1)
        born = parse_date(operands[0])
        if born is None:
            return None
        now = scope.now
        age = now.year - born.year
        if (now.month, now.day) < (born.month, born.day):
            age -= 1
        return age

    def _date_in_past(self, operands: List[Any], scope: Scope) -> bool:
        self._require_arity("date_in_past", operands, 1)
        moment = parse_date(operands[0])
        return moment is not None and moment < scope.now

    def _date_in_future(self, operands: List[Any], scope: Scope) -> bool:
        self._require_arity("date_in_future", operands, 1)
        moment = parse_date(operands[0])
        return moment is not None and moment > scope.now

    def _matches_any(self, operands: List[Any], scope: Scope) -> bool:
        self._require_arity("matches_any", operands, 2)
        value, allowed = operands
        if not isinstance(value, str) or not isinstance(allowed, list):
            return False
        lowered = value.lower()
        return any(isinstance(item, str) and item.lower() == lowered for item in allowed)

    def _truthy_items(self, name: str, operands: List[Any]) -> List[bool]:
        self._require_arity(name, operands, 1)
        items = operands[0]
        if not isinstance(items, list):
            return []
        return [is_truthy(item) for item in items]

    def _count_true(self, operands: List[Any], scope: Scope) -> int:
        return sum(self._truthy_items("count_true", operands))

    def _all_true(self, operands: List[Any], scope: Scope) -> bool:
        return all(self._truthy_items("all_true", operands))

    def _any_true(self, operands: List[Any], scope: Scope) -> bool:
        return any(self._truthy_items("any_true", operands))

    def _snap_threshold(self, operands: List[Any], scope: Scope) -> Any:
        self._require_arity("snap_income_threshold_130_fpl", operands, 1)
        return snap_income_threshold(operands[0])

    def _snap_income_eligible(self, operands: List[Any], scope: Scope) -> bool:
        self._require_arity("snap_income_eligible", operands, 2)
        income = to_number(operands[0])
        threshold = snap_income_threshold(operands[1])
        if threshold is None or math.isnan(income):
            return False
        return income <= threshold
