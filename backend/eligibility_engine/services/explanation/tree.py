"""Explanation tree mirroring the structure of a rule."""

from typing import Any, List, Optional

from eligibility_engine.core.enums import ExplanationNodeType
from eligibility_engine.models.schemas.rule import ExplanationNode
from eligibility_engine.services.explanation.descriptions import (
    describe_operation,
    split_operation,
    variable_name,
)
from eligibility_engine.services.explanation.formatting import format_field_name, format_value
from eligibility_engine.services.rule_engine.registry import OperatorRegistry


def build_explanation_tree(
    rule: Any,
    level: int = 0,
    registry: Optional[OperatorRegistry] = None,
) -> List[ExplanationNode]:
    """
    Build explanation nodes for a rule.

    Operators become ``operator`` nodes with their operands as children,
    ``var`` references become ``variable`` nodes, lists become ``expression``
    nodes and everything else is a ``constant``.

    Args:
        rule: Rule in JSON form; must be acyclic
        level: Nesting level of ``rule``
        registry: Registry supplying operator descriptions

    Returns:
        Nodes for ``rule`` (a single node, as a list for easy flattening)
    """
    if isinstance(rule, list):
        children: List[ExplanationNode] = []
        for item in rule:
            children.extend(build_explanation_tree(item, level + 1, registry))
        return [
            ExplanationNode(
                type=ExplanationNodeType.EXPRESSION,
                description=f"Array of {len(rule)} items",
                level=level,
                children=children,
            )
        ]

    operation = split_operation(rule)
    if operation is None:
        return [
            ExplanationNode(
                type=ExplanationNodeType.CONSTANT,
                description=f"Constant value: {format_value(rule)}",
                level=level,
                value=rule,
            )
        ]

    operator, operands = operation
    if operator == "var":
        name = variable_name(rule["var"])
        return [
            ExplanationNode(
                type=ExplanationNodeType.VARIABLE,
                description=f"Get {format_field_name(name)}",
                level=level,
                operator=operator,
                variable=name,
            )
        ]

    children = []
    for operand in operands:
        children.extend(build_explanation_tree(operand, level + 1, registry))
    description = describe_operation(operator, operands, registry) or f"Operation: {operator}"
    return [
        ExplanationNode(
            type=ExplanationNodeType.OPERATOR,
            description=description,
            level=level,
            operator=operator,
            children=children or None,
        )
    ]
