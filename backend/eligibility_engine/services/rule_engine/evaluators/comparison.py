"""Equality and ordering operators."""

import math
from typing import Any, Callable, Dict, List

from eligibility_engine.services.rule_engine.base import (
    OperatorFamily,
    OperatorSpec,
    Scope,
    loose_equals,
    strict_equals,
    to_number,
)


def binary_template(template: str) -> Callable[[List[str]], str]:
    """Build a describe function for a two-operand template like ``"{0} is {1}"``."""

    def describe(parts: List[str]) -> str:
        padded = list(parts) + ["?"] * (2 - len(parts))
        return template.format(*padded)

    return describe


def _ordered(left: Any, right: Any, compare: Callable[[Any, Any], bool]) -> bool:
    if isinstance(left, str) and isinstance(right, str):
        left_num, right_num = to_number(left), to_number(right)
        if math.isnan(left_num) or math.isnan(right_num):
            # ISO dates and other plain strings compare lexicographically
            return compare(left, right)
        return compare(left_num, right_num)
    left_num, right_num = to_number(left), to_number(right)
    if math.isnan(left_num) or math.isnan(right_num):
        return False
    return compare(left_num, right_num)


class ComparisonOperators(OperatorFamily):
    """
    Equality (``==``, ``===``, ``!=``, ``!==``) and ordering operators.

    ``<`` and ``<=`` accept a third operand for range checks:
    ``{"<": [0, {"var": "x"}, 10]}`` is ``0 < x < 10``.
    """

    def operators(self) -> Dict[str, OperatorSpec]:
        return {
            "==": OperatorSpec("==", self._equals, describe=binary_template("{0} equals {1}")),
            "===": OperatorSpec(
                "===", self._strict_equals, describe=binary_template("{0} strictly equals {1}")
            ),
            "!=": OperatorSpec(
                "!=", self._not_equals, describe=binary_template("{0} does not equal {1}")
            ),
            "!==": OperatorSpec(
                "!==",
                self._strict_not_equals,
                describe=binary_template("{0} does not strictly equal {1}"),
            ),
            ">": OperatorSpec(
                ">", self._greater, describe=binary_template("{0} is greater than {1}")
            ),
            ">=": OperatorSpec(
                ">=",
                self._greater_or_equal,
                describe=binary_template("{0} is greater than or equal to {1}"),
            ),
            "<": OperatorSpec("<", self._less, describe=binary_template("{0} is less than {1}")),
            "<=": OperatorSpec(
                "<=",
                self._less_or_equal,
                describe=binary_template("{0} is less than or equal to {1}"),
            ),
        }

    def _equals(self, operands: List[Any], scope: Scope) -> bool:
        self._require_arity("==", operands, 2)
        return loose_equals(operands[0], operands[1])

    def _strict_equals(self, operands: List[Any], scope: Scope) -> bool:
        self._require_arity("===", operands, 2)
        return strict_equals(operands[0], operands[1])

    def _not_equals(self, operands: List[Any], scope: Scope) -> bool:
        self._require_arity("!=", operands, 2)
        return not loose_equals(operands[0], operands[1])

    def _strict_not_equals(self, operands: List[Any], scope: Scope) -> bool:
        self._require_arity("!==", operands, 2)
        return not strict_equals(operands[0], operands[1])

    def _greater(self, operands: List[Any], scope: Scope) -> bool:
        self._require_arity(">", operands, 2)
        return _ordered(operands[0], operands[1], lambda a, b: a > b)

    def _greater_or_equal(self, operands: List[Any], scope: Scope) -> bool:
        self._require_arity(">=", operands, 2)
        return _ordered(operands[0], operands[1], lambda a, b: a >= b)

    def _less(self, operands: List[Any], scope: Scope) -> bool:
        self._require_arity("<", operands, 2, 3)
        return self._chain(operands, lambda a, b: a < b)

    def _less_or_equal(self, operands: List[Any], scope: Scope) -> bool:
        self._require_arity("<=", operands, 2, 3)
        return self._chain(operands, lambda a, b: a <= b)

    @staticmethod
    def _chain(operands: List[Any], compare: Callable[[Any, Any], bool]) -> bool:
        return all(
            _ordered(operands[i], operands[i + 1], compare) for i in range(len(operands) - 1)
        )
