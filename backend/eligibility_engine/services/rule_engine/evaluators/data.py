"""Data access operators: ``var``, ``missing``, ``missing_some`` and ``log``."""

import logging
from typing import Any, Callable, Dict, List, Mapping, Sequence

from eligibility_engine.services.rule_engine.ast import to_json
from eligibility_engine.services.rule_engine.base import (
    OperatorFamily,
    OperatorSpec,
    Scope,
    to_number,
)

logger = logging.getLogger(__name__)

Evaluate = Callable[[Any, Scope], Any]

_ABSENT = object()


def lookup(data: Any, path: Any, default: Any = None) -> Any:
    """
    Resolve a dotted path (``"household.members.0.age"``) against nested data.

    Args:
        data: Mapping, list or scalar to read from
        path: Dotted string, integer index, or None/"" for the whole value
        default: Returned when any segment is absent

    Returns:
        The value at ``path``, or ``default``
    """
    if path is None or path == "" or path == []:
        return data
    segments = str(path).split(".")
    current = data
    for segment in segments:
        current = _step(current, segment)
        if current is _ABSENT:
            return default
    return default if current is None and default is not None else current


def _step(current: Any, segment: str) -> Any:
    if isinstance(current, Mapping):
        return current.get(segment, _ABSENT)
    if isinstance(current, list):
        try:
            index = int(segment)
        except ValueError:
            return _ABSENT
        if 0 <= index < len(current):
            return current[index]
    return _ABSENT


def is_missing_value(value: Any) -> bool:
    """Missing means absent, null or the empty string."""
    return value is None or value == ""


class DataOperators(OperatorFamily):
    """
    Variable lookup and missing-data checks.

    ``var`` reads its operands as a literal path and default; they are never
    evaluated. A path that is absent yields the default (or None) instead of
    failing, so missing data stays a value-level concern.
    """

    def operators(self) -> Dict[str, OperatorSpec]:
        return {
            "var": OperatorSpec(
                "var",
                self._var,
                lazy=True,
                describe=lambda parts: f"the value of {parts[0] if parts else 'the data'}",
            ),
            "missing": OperatorSpec("missing", self._missing),
            "missing_some": OperatorSpec("missing_some", self._missing_some),
            "log": OperatorSpec("log", self._log),
        }

    def _var(self, args: Sequence[Any], scope: Scope, evaluate: Evaluate) -> Any:
        self._require_arity("var", args, 0, 2)
        path = to_json(args[0]) if args else None
        default = to_json(args[1]) if len(args) > 1 else None
        return lookup(scope.data, path, default)

    def _missing(self, operands: List[Any], scope: Scope) -> List[Any]:
        keys = operands[0] if len(operands) == 1 and isinstance(operands[0], list) else operands
        return [key for key in keys if is_missing_value(lookup(scope.data, key))]

    def _missing_some(self, operands: List[Any], scope: Scope) -> List[Any]:
        self._require_arity("missing_some", operands, 2)
        need = to_number(operands[0])
        keys = operands[1] if isinstance(operands[1], list) else [operands[1]]
        missing = [key for key in keys if is_missing_value(lookup(scope.data, key))]
        if len(keys) - len(missing) >= need:
            return []
        return missing

    def _log(self, operands: List[Any], scope: Scope) -> Any:
        self._require_arity("log", operands, 1)
        logger.debug(f"Rule log: {operands[0]!r}")
        return operands[0]
