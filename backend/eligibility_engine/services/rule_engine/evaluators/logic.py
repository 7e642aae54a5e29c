"""Boolean and conditional operators."""

from typing import Any, Callable, Dict, List, Sequence

from eligibility_engine.services.rule_engine.base import (
    OperatorFamily,
    OperatorSpec,
    Scope,
    is_truthy,
)

Evaluate = Callable[[Any, Scope], Any]


def _describe_if(parts: List[str]) -> str:
    if len(parts) < 2:
        return f"If {parts[0] if parts else '?'}"
    otherwise = parts[2] if len(parts) > 2 else "nothing"
    return f"If {parts[0]}, then {parts[1]}, otherwise {otherwise}"


class LogicOperators(OperatorFamily):
    """
    ``and``, ``or``, ``!``, ``!!`` and the ``if`` / ``?:`` conditional.

    ``and``/``or`` short-circuit and return the deciding operand, not a
    coerced boolean, matching JSON-logic.
    """

    def operators(self) -> Dict[str, OperatorSpec]:
        return {
            "and": OperatorSpec(
                "and",
                self._and,
                lazy=True,
                describe=lambda parts: f"All of the following are true: {len(parts)} conditions",
            ),
            "or": OperatorSpec(
                "or",
                self._or,
                lazy=True,
                describe=lambda parts: (
                    f"At least one of the following is true: {len(parts)} conditions"
                ),
            ),
            "!": OperatorSpec(
                "!", self._not, describe=lambda parts: f"NOT {parts[0] if parts else '?'}"
            ),
            "!!": OperatorSpec("!!", self._truthy),
            "if": OperatorSpec("if", self._if, lazy=True, describe=_describe_if),
            "?:": OperatorSpec("?:", self._if, lazy=True, describe=_describe_if),
        }

    def _and(self, args: Sequence[Any], scope: Scope, evaluate: Evaluate) -> Any:
        self._require_operands("and", args)
        value = None
        for arg in args:
            value = evaluate(arg, scope)
            if not is_truthy(value):
                return value
        return value

    def _or(self, args: Sequence[Any], scope: Scope, evaluate: Evaluate) -> Any:
        self._require_operands("or", args)
        value = None
        for arg in args:
            value = evaluate(arg, scope)
            if is_truthy(value):
                return value
        return value

    def _not(self, operands: List[Any], scope: Scope) -> bool:
        self._require_arity("!", operands, 1)
        return not is_truthy(operands[0])

    def _truthy(self, operands: List[Any], scope: Scope) -> bool:
        self._require_arity("!!", operands, 1)
        return is_truthy(operands[0])

    def _if(self, args: Sequence[Any], scope: Scope, evaluate: Evaluate) -> Any:
        # Pairs of (condition, result) followed by an optional else branch
        index = 0
        while index + 1 < len(args):
            if is_truthy(evaluate(args[index], scope)):
                return evaluate(args[index + 1], scope)
            index += 2
        if index < len(args):
            return evaluate(args[index], scope)
        return None
