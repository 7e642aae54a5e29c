"""Rule engine: interprets JSON-logic rules against a data context."""

import logging
import time
from typing import Any, Mapping, Optional

from eligibility_engine.core.enums import EvaluationErrorCode
from eligibility_engine.core.exceptions import EvaluationError
from eligibility_engine.services.rule_engine.ast import ListNode, Literal, Node, Operation, parse_rule
from eligibility_engine.services.rule_engine.base import (
    EvaluationOptions,
    EvaluationOutcome,
    Scope,
)
from eligibility_engine.services.rule_engine.evaluators import BenefitOperators
from eligibility_engine.services.rule_engine.registry import OperatorRegistry, create_registry

logger = logging.getLogger(__name__)

# How many node visits happen between wall-clock checks
_CLOCK_CHECK_INTERVAL = 64


class _Interpreter:
    """Single-use tree walker carrying the step and time budgets of one call."""

    def __init__(self, registry: OperatorRegistry, options: EvaluationOptions):
        self.registry = registry
        self.max_depth = options.max_depth
        self.step_budget = options.step_budget
        self.deadline = time.monotonic() + options.timeout_ms / 1000
        self.steps = 0

    def run(self, node: Node, scope: Scope) -> Any:
        return self._eval(node, scope, 0)

    def _eval(self, node: Node, scope: Scope, depth: int) -> Any:
        self._tick(depth)

        if isinstance(node, Literal):
            return node.value

        if isinstance(node, ListNode):
            return [self._eval(item, scope, depth + 1) for item in node.items]

        spec = self.registry.resolve(node.name)
        if spec is None:
            raise EvaluationError(
                f'Unknown operator "{node.name}"',
                EvaluationErrorCode.UNKNOWN_OPERATOR,
                {"operator": node.name},
            )

        if spec.lazy:

            def evaluate(child: Node, child_scope: Scope) -> Any:
                return self._eval(child, child_scope, depth + 1)

            return spec.fn(node.args, scope, evaluate)

        operands = [self._eval(arg, scope, depth + 1) for arg in node.args]
        return spec.fn(operands, scope)

    def _tick(self, depth: int) -> None:
        self.steps += 1
        if depth > self.max_depth:
            raise EvaluationError(
                f"Maximum evaluation depth of {self.max_depth} exceeded",
                EvaluationErrorCode.MAX_DEPTH_EXCEEDED,
                {"max_depth": self.max_depth},
            )
        if self.steps > self.step_budget:
            raise EvaluationError(
                f"Evaluation step budget of {self.step_budget} exceeded",
                EvaluationErrorCode.STEP_BUDGET_EXCEEDED,
                {"step_budget": self.step_budget},
            )
        if self.steps % _CLOCK_CHECK_INTERVAL == 0 and time.monotonic() > self.deadline:
            raise EvaluationError(
                "Evaluation timed out",
                EvaluationErrorCode.TIMEOUT,
                {"steps": self.steps},
            )


class RuleEngine:
    """
    Rule engine orchestrator for interpreting eligibility rules.

    This class:
    - Holds the operator registry (standard operators plus benefit operators)
    - Parses raw JSON rules into typed trees
    - Interprets a tree against an immutable data context
    - Converts every failure into an ``EvaluationOutcome`` instead of raising
    """

    def __init__(
        self,
        registry: Optional[OperatorRegistry] = None,
        options: Optional[EvaluationOptions] = None,
    ):
        """
        Initialize the rule engine.

        Args:
            registry: Operator registry; defaults to standard + benefit operators
            options: Default evaluation options for every call
        """
        self.registry = registry or create_registry([BenefitOperators()])
        self.options = options or EvaluationOptions()

    def register_operator(self, name: str, fn: Any, lazy: bool = False) -> None:
        """
        Register a custom operator on this engine's registry.

        Args:
            name: Operator key as it appears in rules
            fn: Implementation (see ``OperatorSpec``)
            lazy: Whether ``fn`` evaluates its own operands
        """
        self.registry.register(name, fn, lazy=lazy)

    def evaluate(
        self,
        rule: Any,
        data: Optional[Mapping[str, Any]] = None,
        options: Optional[EvaluationOptions] = None,
    ) -> EvaluationOutcome:
        """
        Evaluate a rule against a data context.

        Args:
            rule: JSON-shaped rule or an already parsed node
            data: Data context; never mutated
            options: Per-call options overriding the engine defaults

        Returns:
            EvaluationOutcome with ``success`` and either ``result`` or ``error``
        """
        options = options or self.options
        interpreter: Optional[_Interpreter] = None
        try:
            node = rule if isinstance(rule, (Literal, ListNode, Operation)) else parse_rule(rule)
            if data is not None and not isinstance(data, Mapping):
                raise EvaluationError(
                    "Data context must be a mapping",
                    EvaluationErrorCode.INVALID_DATA,
                    {"data_type": type(data).__name__},
                )
            registry = self.registry.merged(options.operators)
            interpreter = _Interpreter(registry, options)
            result = interpreter.run(node, Scope.create(data, options.now))
            return EvaluationOutcome(success=True, result=result, steps=interpreter.steps)
        except EvaluationError as e:
            error = e
        except RecursionError:
            error = EvaluationError(
                "Maximum evaluation depth exceeded",
                EvaluationErrorCode.MAX_DEPTH_EXCEEDED,
            )
        except ZeroDivisionError as e:
            error = EvaluationError(str(e), EvaluationErrorCode.DIVISION_BY_ZERO)
        except (TypeError, ValueError, KeyError, IndexError) as e:
            error = EvaluationError(f"Operator error: {str(e)}", EvaluationErrorCode.OPERATOR_ERROR)
        except Exception as e:
            error = EvaluationError(f"Evaluation error: {str(e)}", EvaluationErrorCode.UNKNOWN_ERROR)

        logger.debug(f"Rule evaluation failed [{error.code}]: {error.message}")
        return EvaluationOutcome(
            success=False,
            error=error,
            steps=interpreter.steps if interpreter else 0,
        )
