"""Operator families for the JSON-logic rule language."""

from .arithmetic import ArithmeticOperators
from .array import ARRAY_PREDICATE_OPERATORS, ArrayOperators
from .benefit import BenefitOperators
from .comparison import ComparisonOperators
from .data import DataOperators
from .logic import LogicOperators
from .string import StringOperators

# Families every registry starts with
STANDARD_FAMILIES = (
    ComparisonOperators,
    LogicOperators,
    ArithmeticOperators,
    ArrayOperators,
    StringOperators,
    DataOperators,
)

__all__ = [
    "ARRAY_PREDICATE_OPERATORS",
    "ArithmeticOperators",
    "ArrayOperators",
    "BenefitOperators",
    "ComparisonOperators",
    "DataOperators",
    "LogicOperators",
    "STANDARD_FAMILIES",
    "StringOperators",
]
