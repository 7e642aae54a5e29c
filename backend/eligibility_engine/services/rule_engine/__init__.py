"""Rule engine for interpreting JSON-logic eligibility rules."""

from .base import EvaluationOptions, EvaluationOutcome, OperatorFamily, OperatorSpec, Scope
from .engine import RuleEngine
from .registry import OperatorRegistry, create_registry

__all__ = [
    "EvaluationOptions",
    "EvaluationOutcome",
    "OperatorFamily",
    "OperatorRegistry",
    "OperatorSpec",
    "RuleEngine",
    "Scope",
    "create_registry",
]
