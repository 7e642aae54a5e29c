"""Typed expression tree for JSON-logic eligibility rules.

Rules arrive as plain JSON values. ``parse_rule`` turns them once into a
small tagged union so the interpreter never has to guess what a node is:

- ``Literal``: a string, number, boolean, null, or a data object that is not
  an operator application (an empty object or one with several keys)
- ``ListNode``: an array whose elements are rules
- ``Operation``: an object with exactly one key, the operator name, applied to
  its operands
"""

from dataclasses import dataclass
from typing import AbstractSet, Any, Iterator, Tuple, Union

from eligibility_engine.core.exceptions import CircularReferenceError, RuleParseError

SCALAR_TYPES = (str, int, float, bool, type(None))


@dataclass(frozen=True)
class Literal:
    """A constant value."""

    value: Any


@dataclass(frozen=True)
class ListNode:
    """An array of sub-rules, evaluated element by element."""

    items: Tuple["Node", ...]


@dataclass(frozen=True)
class Operation:
    """
    An operator application.

    Attributes:
        name: Operator name as written in the rule (e.g. ``">="``, ``"var"``)
        args: Operand nodes; a non-array operand is wrapped into a single arg
    """

    name: str
    args: Tuple["Node", ...]


Node = Union[Literal, ListNode, Operation]


def parse_rule(raw: Any) -> Node:
    """
    Parse a JSON-shaped rule into a typed expression tree.

    Args:
        raw: Rule as decoded from JSON (dict, list or scalar)

    Returns:
        Root node of the parsed tree

    Raises:
        CircularReferenceError: If a container contains itself
        RuleParseError: If the rule holds non-JSON values or nests too deeply
    """
    try:
        return _parse(raw, set())
    except RecursionError:
        raise RuleParseError("Rule is nested too deeply to parse")


def _parse(raw: Any, ancestors: set) -> Node:
    if isinstance(raw, SCALAR_TYPES):
        return Literal(raw)

    if not isinstance(raw, (list, tuple, dict)):
        raise RuleParseError(
            f"Unsupported value of type {type(raw).__name__} in rule",
            {"type": type(raw).__name__},
        )

    marker = id(raw)
    if marker in ancestors:
        raise CircularReferenceError()
    ancestors.add(marker)
    try:
        if isinstance(raw, (list, tuple)):
            return ListNode(tuple(_parse(item, ancestors) for item in raw))

        if len(raw) != 1:
            # Not an operator application; keep it as opaque data
            _check_data(raw, ancestors)
            return Literal(raw)

        name, operands = next(iter(raw.items()))
        if not isinstance(name, str):
            raise RuleParseError(f"Operator name must be a string, got {name!r}")
        if isinstance(operands, (list, tuple)):
            marker_ops = id(operands)
            if marker_ops in ancestors:
                raise CircularReferenceError()
            ancestors.add(marker_ops)
            try:
                args = tuple(_parse(item, ancestors) for item in operands)
            finally:
                ancestors.discard(marker_ops)
        else:
            args = (_parse(operands, ancestors),)
        return Operation(name, args)
    finally:
        ancestors.discard(marker)


def _check_data(raw: Any, ancestors: set) -> None:
    """Reject cycles and non-JSON values inside literal data objects."""
    for value in raw.values() if isinstance(raw, dict) else raw:
        if isinstance(value, SCALAR_TYPES):
            continue
        if not isinstance(value, (list, tuple, dict)):
            raise RuleParseError(f"Unsupported value of type {type(value).__name__} in rule")
        if id(value) in ancestors:
            raise CircularReferenceError()
        ancestors.add(id(value))
        try:
            _check_data(value, ancestors)
        finally:
            ancestors.discard(id(value))


def to_json(node: Node) -> Any:
    """Convert a node back into its JSON-shaped form."""
    if isinstance(node, Literal):
        return node.value
    if isinstance(node, ListNode):
        return [to_json(item) for item in node.items]
    if len(node.args) == 1 and not isinstance(node.args[0], ListNode):
        return {node.name: to_json(node.args[0])}
    return {node.name: [to_json(arg) for arg in node.args]}


def iter_operations(node: Node, scoped: AbstractSet[str] = frozenset()) -> Iterator[Operation]:
    """
    Yield every operation in the tree, parents before children.

    Args:
        node: Root of the tree
        scoped: Operators whose later operands run against another scope (such
            as array elements); only their first operand is walked
    """
    stack = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, Operation):
            yield current
            args = current.args[:1] if current.name in scoped else current.args
            stack.extend(reversed(args))
        elif isinstance(current, ListNode):
            stack.extend(reversed(current.items))


def var_path(node: Node) -> Union[str, None]:
    """Return the variable path when ``node`` is a ``var`` lookup, else None."""
    if not isinstance(node, Operation) or node.name != "var" or not node.args:
        return None
    path = node.args[0]
    if isinstance(path, Literal) and isinstance(path.value, (str, int)) and not isinstance(
        path.value, bool
    ):
        return str(path.value)
    return None
