"""Natural-language descriptions of rules and operators."""

import json
from typing import Any, List, Optional, Sequence

from eligibility_engine.core.enums import LanguageLevel
from eligibility_engine.services.explanation.formatting import format_value
from eligibility_engine.services.rule_engine.registry import OperatorRegistry

SIMPLE_DESCRIPTIONS = {
    ">": "Your value must be higher",
    "<": "Your value must be lower",
    ">=": "Your value must be at least the required amount",
    "<=": "Your value must be no more than the required amount",
    "==": "Your value must match exactly",
    "and": "You must meet all of these requirements",
    "or": "You must meet at least one of these requirements",
    "in": "Your value must be one of the allowed options",
    "between": "Your value must be in the acceptable range",
}

SIMPLE_FALLBACK = "You must meet this requirement"


def split_operation(rule: Any) -> Optional[tuple]:
    """
    Split a single-key mapping into ``(operator, operands)``.

    Returns:
        Operator name and operand list, or None when ``rule`` is not an operation
    """
    if not isinstance(rule, dict) or len(rule) != 1:
        return None
    operator, operand_value = next(iter(rule.items()))
    operands = list(operand_value) if isinstance(operand_value, list) else [operand_value]
    return operator, operands


def variable_name(operand_value: Any) -> str:
    """Path of a ``var`` operand, which may be ``"path"`` or ``["path", default]``."""
    if isinstance(operand_value, list):
        operand_value = operand_value[0] if operand_value else ""
    return "" if operand_value is None else str(operand_value)


def describe_operation(
    operator: str,
    operands: Sequence[Any],
    registry: Optional[OperatorRegistry] = None,
) -> Optional[str]:
    """
    Render one operator application with its registered description.

    Returns:
        Description, or None when the operator has no description
    """
    spec = registry.resolve(operator) if registry is not None else None
    if spec is None or spec.describe is None:
        return None
    if operator == "var":
        parts: List[str] = [variable_name(list(operands))]
    else:
        parts = [format_value(operand) for operand in operands]
    return spec.describe(parts)


def describe_rule(
    rule: Any,
    language_level: LanguageLevel = LanguageLevel.STANDARD,
    registry: Optional[OperatorRegistry] = None,
) -> str:
    """
    One-sentence description of a rule's top-level condition.

    Args:
        rule: Rule in JSON form
        language_level: ``simple`` uses fixed plain phrases, ``standard`` the
            operator descriptions, ``technical`` the raw rule
        registry: Registry supplying operator descriptions

    Returns:
        Description string
    """
    if isinstance(rule, list):
        return "Multiple conditions must be met"
    if isinstance(rule, dict) and not rule:
        return "Empty rule"

    operation = split_operation(rule)
    if operation is None:
        return f"The value must be {format_value(rule)}"
    operator, operands = operation

    if language_level == LanguageLevel.SIMPLE:
        return SIMPLE_DESCRIPTIONS.get(operator, SIMPLE_FALLBACK)
    if language_level == LanguageLevel.TECHNICAL:
        return f"Rule: {json.dumps(rule, default=str)}"
    return describe_operation(operator, operands, registry) or f"Must meet {operator} condition"
