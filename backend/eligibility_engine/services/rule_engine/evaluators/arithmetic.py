"""Arithmetic operators."""

import math
from typing import Any, Dict, List

from eligibility_engine.core.enums import EvaluationErrorCode
from eligibility_engine.core.exceptions import EvaluationError
from eligibility_engine.services.rule_engine.base import (
    OperatorFamily,
    OperatorSpec,
    Scope,
    normalize_number,
    to_number,
)
from eligibility_engine.services.rule_engine.evaluators.comparison import binary_template


def _describe_minus(parts: List[str]) -> str:
    if len(parts) == 1:
        return f"negative {parts[0]}"
    return binary_template("{0} minus {1}")(parts)


class ArithmeticOperators(OperatorFamily):
    """
    ``+``, ``-``, ``*``, ``/``, ``%``, ``min`` and ``max``.

    Operands are coerced with ``to_number``; a missing operand yields NaN and
    therefore fails every later comparison instead of aborting evaluation.
    Division or modulo by zero is an evaluation error.
    """

    def operators(self) -> Dict[str, OperatorSpec]:
        return {
            "+": OperatorSpec("+", self._add, describe=lambda parts: f"sum of {len(parts)} values"),
            "-": OperatorSpec("-", self._subtract, describe=_describe_minus),
            "*": OperatorSpec(
                "*", self._multiply, describe=lambda parts: f"product of {len(parts)} values"
            ),
            "/": OperatorSpec("/", self._divide, describe=binary_template("{0} divided by {1}")),
            "%": OperatorSpec("%", self._modulo, describe=binary_template("{0} modulo {1}")),
            "min": OperatorSpec("min", self._min),
            "max": OperatorSpec("max", self._max),
        }

    def _add(self, operands: List[Any], scope: Scope) -> Any:
        total = 0
        for value in operands:
            total += to_number(value)
        return normalize_number(total)

    def _subtract(self, operands: List[Any], scope: Scope) -> Any:
        self._require_arity("-", operands, 1, 2)
        if len(operands) == 1:
            return normalize_number(-to_number(operands[0]))
        return normalize_number(to_number(operands[0]) - to_number(operands[1]))

    def _multiply(self, operands: List[Any], scope: Scope) -> Any:
        self._require_operands("*", operands)
        product = 1
        for value in operands:
            product *= to_number(value)
        return normalize_number(product)

    def _divide(self, operands: List[Any], scope: Scope) -> Any:
        self._require_arity("/", operands, 2)
        dividend, divisor = self._dividend_and_divisor("/", operands)
        return normalize_number(dividend / divisor)

    def _modulo(self, operands: List[Any], scope: Scope) -> Any:
        self._require_arity("%", operands, 2)
        dividend, divisor = self._dividend_and_divisor("%", operands)
        # Sign follows the dividend, as in JSON-logic
        return normalize_number(math.fmod(dividend, divisor))

    def _min(self, operands: List[Any], scope: Scope) -> Any:
        if not operands:
            return None
        numbers = [to_number(value) for value in operands]
        if any(math.isnan(n) for n in numbers):
            return math.nan
        return normalize_number(min(numbers))

    def _max(self, operands: List[Any], scope: Scope) -> Any:
        if not operands:
            return None
        numbers = [to_number(value) for value in operands]
        if any(math.isnan(n) for n in numbers):
            return math.nan
        return normalize_number(max(numbers))

    @staticmethod
    def _dividend_and_divisor(name: str, operands: List[Any]) -> tuple:
        dividend, divisor = to_number(operands[0]), to_number(operands[1])
        if divisor == 0:
            raise EvaluationError(
                f'Division by zero in "{name}"',
                EvaluationErrorCode.DIVISION_BY_ZERO,
                {"operator": name},
            )
        return dividend, divisor
