"""String operators."""

import math
from typing import Any, Dict, List

from eligibility_engine.services.rule_engine.base import (
    OperatorFamily,
    OperatorSpec,
    Scope,
    normalize_number,
    to_number,
)


def stringify(value: Any) -> str:
    """Render a value the way JSON-logic concatenation does."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return str(normalize_number(value))
    if isinstance(value, list):
        return ",".join(stringify(item) for item in value)
    return str(value)


def _to_int(value: Any) -> int:
    number = to_number(value)
    return 0 if math.isnan(number) else int(number)


class StringOperators(OperatorFamily):
    """``cat`` and ``substr``."""

    def operators(self) -> Dict[str, OperatorSpec]:
        return {
            "cat": OperatorSpec("cat", self._cat),
            "substr": OperatorSpec("substr", self._substr),
        }

    def _cat(self, operands: List[Any], scope: Scope) -> str:
        return "".join(stringify(value) for value in operands)

    def _substr(self, operands: List[Any], scope: Scope) -> str:
        """Negative start counts from the end; negative length stops short of the end."""
        self._require_arity("substr", operands, 2, 3)
        text = stringify(operands[0])
        start = _to_int(operands[1])
        if start < 0:
            start = max(len(text) + start, 0)
        if len(operands) < 3 or operands[2] is None:
            return text[start:]
        length = _to_int(operands[2])
        if length < 0:
            return text[start:len(text) + length]
        return text[start:start + length]
