"""Array operators: iteration predicates, membership and merge."""

from typing import Any, Callable, Dict, List, Sequence

from eligibility_engine.core.enums import EvaluationErrorCode
from eligibility_engine.core.exceptions import EvaluationError
from eligibility_engine.services.rule_engine.base import (
    OperatorFamily,
    OperatorSpec,
    Scope,
    is_truthy,
    strict_equals,
)
from eligibility_engine.services.rule_engine.evaluators.comparison import binary_template

Evaluate = Callable[[Any, Scope], Any]

# Operators that run a sub-rule once per element; the validator weights these higher
ARRAY_PREDICATE_OPERATORS = frozenset({"map", "filter", "reduce", "all", "some", "none"})


class ArrayOperators(OperatorFamily):
    """
    ``map``, ``filter``, ``reduce``, ``all``, ``some``, ``none``, ``in`` and ``merge``.

    The iterating operators evaluate their second operand with the current
    element as the data context, so ``{"var": ""}`` refers to the element.
    ``reduce`` exposes ``current`` and ``accumulator`` instead.
    """

    def operators(self) -> Dict[str, OperatorSpec]:
        return {
            "map": OperatorSpec("map", self._map, lazy=True),
            "filter": OperatorSpec("filter", self._filter, lazy=True),
            "reduce": OperatorSpec("reduce", self._reduce, lazy=True),
            "all": OperatorSpec("all", self._all, lazy=True),
            "some": OperatorSpec("some", self._some, lazy=True),
            "none": OperatorSpec("none", self._none, lazy=True),
            "in": OperatorSpec("in", self._in, describe=binary_template("{0} is in {1}")),
            "merge": OperatorSpec("merge", self._merge),
        }

    def _items(self, name: str, args: Sequence[Any], scope: Scope, evaluate: Evaluate) -> List[Any]:
        self._require_arity(name, args, 2)
        items = evaluate(args[0], scope)
        if items is None:
            return []
        if not isinstance(items, list):
            raise EvaluationError(
                f'Operator "{name}" expects an array, got {type(items).__name__}',
                EvaluationErrorCode.TYPE_MISMATCH,
                {"operator": name},
            )
        return items

    def _map(self, args: Sequence[Any], scope: Scope, evaluate: Evaluate) -> List[Any]:
        items = self._items("map", args, scope, evaluate)
        return [evaluate(args[1], scope.with_data(item)) for item in items]

    def _filter(self, args: Sequence[Any], scope: Scope, evaluate: Evaluate) -> List[Any]:
        items = self._items("filter", args, scope, evaluate)
        return [item for item in items if is_truthy(evaluate(args[1], scope.with_data(item)))]

    def _all(self, args: Sequence[Any], scope: Scope, evaluate: Evaluate) -> bool:
        items = self._items("all", args, scope, evaluate)
        if not items:
            return False
        return all(is_truthy(evaluate(args[1], scope.with_data(item))) for item in items)

    def _some(self, args: Sequence[Any], scope: Scope, evaluate: Evaluate) -> bool:
        items = self._items("some", args, scope, evaluate)
        return any(is_truthy(evaluate(args[1], scope.with_data(item))) for item in items)

    def _none(self, args: Sequence[Any], scope: Scope, evaluate: Evaluate) -> bool:
        items = self._items("none", args, scope, evaluate)
        return not any(is_truthy(evaluate(args[1], scope.with_data(item))) for item in items)

    def _reduce(self, args: Sequence[Any], scope: Scope, evaluate: Evaluate) -> Any:
        self._require_arity("reduce", args, 2, 3)
        items = self._items("reduce", args[:2], scope, evaluate)
        accumulator = evaluate(args[2], scope) if len(args) > 2 else None
        for item in items:
            accumulator = evaluate(
                args[1], scope.with_data({"current": item, "accumulator": accumulator})
            )
        return accumulator

    def _in(self, operands: List[Any], scope: Scope) -> bool:
        self._require_arity("in", operands, 2)
        needle, haystack = operands
        if haystack is None:
            return False
        if isinstance(haystack, str):
            return isinstance(needle, str) and needle in haystack
        if isinstance(haystack, list):
            return any(strict_equals(needle, item) for item in haystack)
        raise EvaluationError(
            f'Operator "in" expects a string or array, got {type(haystack).__name__}',
            EvaluationErrorCode.TYPE_MISMATCH,
            {"operator": "in"},
        )

    def _merge(self, operands: List[Any], scope: Scope) -> List[Any]:
        merged: List[Any] = []
        for value in operands:
            if isinstance(value, list):
                merged.extend(value)
            else:
                merged.append(value)
        return merged
