"""Tests for rule parsing and the evaluator's failure handling."""

import copy

import pytest

from eligibility_engine.core.enums import EvaluationErrorCode
from eligibility_engine.core.exceptions import CircularReferenceError, RuleParseError
from eligibility_engine.services.rule_engine import (
    EvaluationOptions,
    RuleEngine,
    create_registry,
)
from eligibility_engine.services.rule_engine.ast import (
    ListNode,
    Literal,
    Operation,
    iter_operations,
    parse_rule,
    to_json,
    var_path,
)
from eligibility_engine.services.rule_engine.evaluators import BenefitOperators


def nested_not(levels):
    rule = True
    for _ in range(levels):
        rule = {"!": rule}
    return rule


class TestParseRule:
    """Conversion of JSON rules into typed trees."""

    def test_single_key_object_is_operation(self):
        """An object with one key is an operator application."""
        node = parse_rule({">": [{"var": "age"}, 18]})
        assert isinstance(node, Operation)
        assert node.name == ">"
        assert var_path(node.args[0]) == "age"
        assert node.args[1] == Literal(18)

    def test_non_array_operand_becomes_single_argument(self):
        """{"var": "x"} has one argument."""
        node = parse_rule({"var": "x"})
        assert node.args == (Literal("x"),)

    def test_multi_key_object_is_literal(self):
        """Objects with zero or several keys are data, not operations."""
        assert parse_rule({"a": 1, "b": 2}) == Literal({"a": 1, "b": 2})
        assert parse_rule({}) == Literal({})

    def test_array_becomes_list_node(self):
        """Arrays parse element by element."""
        node = parse_rule([1, {"var": "x"}])
        assert isinstance(node, ListNode)
        assert len(node.items) == 2

    def test_cycle_is_rejected(self):
        """A rule that contains itself cannot be parsed."""
        rule = {"and": [True]}
        rule["and"].append(rule)
        with pytest.raises(CircularReferenceError):
            parse_rule(rule)

    def test_shared_subtree_is_not_a_cycle(self):
        """Reusing the same sub-rule twice is fine for the parser."""
        shared = {"var": "x"}
        node = parse_rule({"and": [shared, shared]})
        assert len(node.args) == 2

    def test_non_json_value_is_rejected(self):
        """Arbitrary Python objects are not rules."""
        with pytest.raises(RuleParseError):
            parse_rule({"==": [object(), 1]})

    def test_to_json_round_trips_structure(self):
        """to_json restores the JSON shape of a parsed rule."""
        rule = {"and": [{"<": [{"var": "a"}, 1]}, {"!": {"var": "b"}}]}
        assert to_json(parse_rule(rule)) == rule

    def test_iter_operations_is_pre_order(self):
        """Parents come before children."""
        names = [op.name for op in iter_operations(parse_rule({"and": [{"var": "a"}, {"!": 1}]}))]
        assert names == ["and", "var", "!"]

    def test_iter_operations_skips_scoped_sub_rules(self):
        """Only the first operand of a scoped operator is walked."""
        tree = parse_rule({"some": [{"var": "xs"}, {">": [{"var": ""}, 1]}]})
        assert [op.name for op in iter_operations(tree)] == ["some", "var", ">", "var"]
        assert [op.name for op in iter_operations(tree, scoped={"some"})] == ["some", "var"]


class TestRuleEngine:
    """Evaluator behavior outside individual operators."""

    def test_evaluation_is_deterministic(self, engine):
        """The same rule and data always give the same outcome."""
        rule = {"if": [{">": [{"var": "age"}, 64]}, "senior", "adult"]}
        results = {engine.evaluate(rule, {"age": 70}).result for _ in range(5)}
        assert results == {"senior"}

    def test_data_is_not_mutated(self, engine):
        """Evaluation leaves the data context untouched."""
        data = {"xs": [3, 1, 2], "household": {"size": 3}}
        snapshot = copy.deepcopy(data)
        engine.evaluate({"map": [{"var": "xs"}, {"+": [{"var": ""}, 1]}]}, data)
        engine.evaluate({"merge": [{"var": "xs"}, [4]]}, data)
        assert data == snapshot

    def test_unknown_operator(self, engine):
        """Unregistered operators fail with a dedicated code."""
        outcome = engine.evaluate({"frobnicate": [1]}, {})
        assert not outcome.success
        assert outcome.error.code == EvaluationErrorCode.UNKNOWN_OPERATOR.value
        assert "frobnicate" in outcome.error_message

    def test_non_mapping_data(self, engine):
        """The data context must be an object."""
        outcome = engine.evaluate({"var": "a"}, [1, 2])
        assert not outcome.success
        assert outcome.error.code == EvaluationErrorCode.INVALID_DATA.value

    def test_none_data_is_empty_context(self, engine):
        """Missing data behaves like an empty object."""
        outcome = engine.evaluate({"var": ["a", "fallback"]}, None)
        assert outcome.success
        assert outcome.result == "fallback"

    def test_circular_rule_fails_cleanly(self, engine):
        """A cyclic rule becomes an invalid-rule failure, not an exception."""
        rule = {"and": [True]}
        rule["and"].append(rule)
        outcome = engine.evaluate(rule, {})
        assert not outcome.success
        assert outcome.error.code == EvaluationErrorCode.INVALID_RULE.value

    def test_step_budget(self, engine):
        """Evaluation aborts once the node budget is spent."""
        outcome = engine.evaluate(
            {"+": [1, 2, 3, 4, 5, 6]}, {}, EvaluationOptions(step_budget=5)
        )
        assert not outcome.success
        assert outcome.error.code == EvaluationErrorCode.STEP_BUDGET_EXCEEDED.value

    def test_max_depth(self, engine):
        """Nesting beyond max_depth aborts evaluation."""
        outcome = engine.evaluate(nested_not(10), {}, EvaluationOptions(max_depth=3))
        assert not outcome.success
        assert outcome.error.code == EvaluationErrorCode.MAX_DEPTH_EXCEEDED.value

    def test_timeout(self, engine):
        """A rule still running past the wall-clock limit is aborted."""
        outcome = engine.evaluate(
            {"+": list(range(200))}, {}, EvaluationOptions(timeout_ms=0)
        )
        assert not outcome.success
        assert outcome.error.code == EvaluationErrorCode.TIMEOUT.value
        assert outcome.error_message == "Evaluation timed out"

    def test_within_limits_succeeds(self, engine):
        """The same nesting passes with default limits."""
        outcome = engine.evaluate(nested_not(10), {})
        assert outcome.success
        assert outcome.result is True
        assert outcome.steps == 11

    def test_operator_exception_becomes_failure(self, engine):
        """Exceptions raised by custom operators are contained."""

        def broken(values, scope):
            raise TypeError("bad operand")

        outcome = engine.evaluate({"broken": []}, {}, EvaluationOptions(operators={"broken": broken}))
        assert not outcome.success
        assert outcome.error.code == EvaluationErrorCode.OPERATOR_ERROR.value
        assert "bad operand" in outcome.error_message

    def test_scalar_rule_evaluates_to_itself(self, engine):
        """A bare constant is a valid rule."""
        assert engine.evaluate(42, {}).result == 42

    def test_parsed_rule_is_accepted(self, engine):
        """Pre-parsed trees skip parsing."""
        node = parse_rule({"==": [{"var": "a"}, 1]})
        assert engine.evaluate(node, {"a": 1}).result is True


class TestOperatorRegistry:
    """Registry construction and family installation."""

    def test_install_is_idempotent(self):
        """Installing the same family twice is a no-op."""
        registry = create_registry()
        assert "between" not in registry
        assert registry.install(BenefitOperators()) is True
        count = len(registry)
        assert registry.install(BenefitOperators()) is False
        assert len(registry) == count

    def test_default_engine_has_benefit_operators(self):
        """The engine installs benefit operators on top of the standard set."""
        engine = RuleEngine()
        assert "snap_income_eligible" in engine.registry
        assert "var" in engine.registry

    def test_merged_does_not_touch_original(self):
        """Per-call overrides never leak into the shared registry."""
        registry = create_registry()
        merged = registry.merged({"custom": lambda values, scope: True})
        assert "custom" in merged
        assert "custom" not in registry
