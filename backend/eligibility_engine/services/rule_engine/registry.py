"""Operator registry mapping operator names to implementations."""

import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from eligibility_engine.services.rule_engine.base import OperatorFamily, OperatorSpec
from eligibility_engine.services.rule_engine.evaluators import STANDARD_FAMILIES

logger = logging.getLogger(__name__)

OperatorLike = Union[OperatorSpec, Callable[..., Any]]


class OperatorRegistry:
    """
    Name-indexed table of operators used by the evaluator.

    A registry is built once at start-up and passed to the engine. Families of
    operators are installed through ``install``, which is idempotent: installing
    the same family twice, from one thread or several, is a no-op.
    """

    def __init__(self, operators: Optional[Mapping[str, OperatorSpec]] = None):
        self._operators: Dict[str, OperatorSpec] = dict(operators or {})
        self._installed: set[str] = set()
        self._lock = threading.Lock()

    def register(
        self,
        name: str,
        fn: Callable[..., Any],
        lazy: bool = False,
        describe: Optional[Callable[[List[str]], str]] = None,
    ) -> None:
        """
        Register (or replace) a single operator.

        Args:
            name: Operator key as it appears in rules
            fn: Implementation, see ``OperatorSpec``
            lazy: Whether ``fn`` evaluates its own operands
            describe: Optional prose renderer for explanations
        """
        self._operators[name] = OperatorSpec(name=name, fn=fn, lazy=lazy, describe=describe)

    def install(self, family: OperatorFamily) -> bool:
        """
        Install every operator of a family once.

        Args:
            family: Operator family instance

        Returns:
            True if the family was installed now, False if it already was
        """
        key = type(family).__name__
        with self._lock:
            if key in self._installed:
                return False
            self._operators.update(family.operators())
            self._installed.add(key)
        logger.debug(f"Installed operator family {key}")
        return True

    def resolve(self, name: str) -> Optional[OperatorSpec]:
        """Return the operator registered under ``name``, or None."""
        return self._operators.get(name)

    def merged(self, overrides: Optional[Mapping[str, OperatorLike]]) -> "OperatorRegistry":
        """
        Return a registry with ``overrides`` layered on top of this one.

        Plain callables in ``overrides`` are treated as eager operators.
        """
        if not overrides:
            return self
        combined = OperatorRegistry(self._operators)
        combined._installed = set(self._installed)
        for name, operator in overrides.items():
            if isinstance(operator, OperatorSpec):
                combined._operators[name] = operator
            else:
                combined.register(name, operator)
        return combined

    def names(self) -> List[str]:
        return sorted(self._operators)

    def __contains__(self, name: object) -> bool:
        return name in self._operators

    def __len__(self) -> int:
        return len(self._operators)


def create_registry(families: Optional[Iterable[OperatorFamily]] = None) -> OperatorRegistry:
    """
    Build a registry with the standard JSON-logic operators installed.

    Args:
        families: Extra operator families (e.g. benefit-domain operators)

    Returns:
        New OperatorRegistry
    """
    registry = OperatorRegistry()
    for family_cls in STANDARD_FAMILIES:
        registry.install(family_cls())
    for family in families or ():
        registry.install(family)
    return registry
