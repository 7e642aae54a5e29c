"""Rule engine foundation: evaluation scope, outcomes, operator specs and coercions."""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from eligibility_engine.core.enums import EvaluationErrorCode
from eligibility_engine.core.exceptions import EvaluationError


@dataclass(frozen=True)
class Scope:
    """
    Read-only view of the data a rule is evaluated against.

    Attributes:
        data: The data context (or the current element inside array operators)
        now: Evaluation timestamp used by date-relative operators
    """

    data: Any
    now: datetime

    @classmethod
    def create(cls, data: Optional[Mapping[str, Any]], now: Optional[datetime] = None) -> "Scope":
        frozen = MappingProxyType(dict(data or {}))
        return cls(data=frozen, now=now or datetime.now(timezone.utc))

    def with_data(self, data: Any) -> "Scope":
        return replace(self, data=data)


@dataclass
class EvaluationOptions:
    """
    Per-call evaluator options.

    Attributes:
        max_depth: Deepest nesting of operator calls allowed
        step_budget: Maximum number of node visits before evaluation aborts
        timeout_ms: Wall-clock limit checked while walking the tree
        operators: Extra operators merged over the registry (callers win by name)
        now: Fixed evaluation timestamp (defaults to the current time)
    """

    max_depth: int = 100
    step_budget: int = 10_000
    timeout_ms: int = 5_000
    operators: Optional[Mapping[str, Any]] = None
    now: Optional[datetime] = None


@dataclass
class EvaluationOutcome:
    """
    Result of interpreting one rule.

    Exactly one of ``result`` (on success) or ``error`` (on failure) is
    meaningful. The evaluator never raises; every failure ends up here.
    """

    success: bool
    result: Any = None
    error: Optional[EvaluationError] = None
    steps: int = 0

    @property
    def error_message(self) -> Optional[str]:
        return self.error.message if self.error else None


# Signature of an operator that receives already-evaluated operands
EagerOperator = Callable[[List[Any], Scope], Any]
# Signature of an operator that controls evaluation of its own operands
LazyOperator = Callable[[Sequence[Any], Scope, Callable[[Any, Scope], Any]], Any]


@dataclass(frozen=True)
class OperatorSpec:
    """
    Registry entry for one operator.

    Attributes:
        name: Operator key as it appears in rules
        fn: Implementation; eager operators get evaluated values, lazy ones get
            operand nodes plus an ``evaluate(node, scope)`` callback
        lazy: Whether the operator evaluates its own operands
        describe: Optional function rendering the operator in prose from
            formatted operand strings
    """

    name: str
    fn: Callable[..., Any]
    lazy: bool = False
    describe: Optional[Callable[[List[str]], str]] = field(default=None, compare=False)


class OperatorFamily(ABC):
    """
    Abstract base class for a group of related operators (Strategy pattern).

    Each concrete family contributes a set of operator specs to a registry.
    Helpers here give every family the same arity and coercion behavior.
    """

    @abstractmethod
    def operators(self) -> Dict[str, OperatorSpec]:
        """
        Return the operators this family provides, keyed by name.

        Returns:
            Mapping of operator name to its spec
        """
        pass

    def _require_arity(
        self,
        name: str,
        operands: Sequence[Any],
        minimum: int,
        maximum: Optional[int] = None,
    ) -> None:
        """
        Validate operand count.

        Raises:
            EvaluationError: With code ``EVAL_ARITY`` when the count is out of range
        """
        count = len(operands)
        upper = minimum if maximum is None else maximum
        if count < minimum or count > upper:
            expected = str(minimum) if upper == minimum else f"{minimum}-{upper}"
            raise EvaluationError(
                f'Operator "{name}" expects {expected} operand(s), got {count}',
                EvaluationErrorCode.ARITY,
                {"operator": name, "count": count},
            )

    def _require_operands(self, name: str, operands: Sequence[Any], minimum: int = 1) -> None:
        """Validate that a variadic operator received at least ``minimum`` operands."""
        if len(operands) < minimum:
            raise EvaluationError(
                f'Operator "{name}" expects at least {minimum} operand(s), got {len(operands)}',
                EvaluationErrorCode.ARITY,
                {"operator": name, "count": len(operands)},
            )


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_number(value: Any) -> float:
    """
    Coerce a scalar to a number.

    Missing values and unparseable strings become NaN so that any ordering
    comparison against them is false.

    Raises:
        EvaluationError: With code ``EVAL_TYPE_MISMATCH`` for arrays and objects
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if value is None:
        return math.nan
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return math.nan
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            return math.nan
    raise EvaluationError(
        f"Cannot use {type(value).__name__} value as a number",
        EvaluationErrorCode.TYPE_MISMATCH,
        {"value_type": type(value).__name__},
    )


def normalize_number(value: float) -> Any:
    """Collapse integral floats to ints so results read like JSON numbers."""
    if isinstance(value, float) and value.is_integer() and abs(value) < 2**53:
        return int(value)
    return value


def is_truthy(value: Any) -> bool:
    """JSON-logic truthiness: empty arrays are falsy, any object is truthy."""
    if isinstance(value, float) and math.isnan(value):
        return False
    if isinstance(value, dict):
        return True
    return bool(value)


def loose_equals(left: Any, right: Any) -> bool:
    """Equality with numeric coercion across scalars."""
    if left is None or right is None:
        return left is None and right is None
    if isinstance(left, (list, dict)) or isinstance(right, (list, dict)):
        return left == right
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    return to_number(left) == to_number(right)


def strict_equals(left: Any, right: Any) -> bool:
    """Equality without coercion; booleans are never equal to numbers."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if is_number(left) and is_number(right):
        return left == right
    return type(left) is type(right) and left == right


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def parse_date(value: Any) -> Optional[datetime]:
    """
    Parse an ISO date or datetime into an aware UTC datetime.

    Returns:
        The parsed datetime, or None when the value is missing or malformed
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
