"""Tests for static rule validation."""

import pytest

from eligibility_engine.core.enums import IssueSeverity, ValidationErrorCode
from eligibility_engine.services.rule_engine import create_registry
from eligibility_engine.services.rule_engine.evaluators import BenefitOperators
from eligibility_engine.services.rule_engine.validator import (
    RuleValidator,
    ValidationOptions,
    calculate_complexity,
    calculate_depth,
    sanitize_rule,
)

AGE_RULE = {">": [{"var": "age"}, 18]}


def codes(issues):
    return [issue.code for issue in issues]


@pytest.fixture
def validator():
    return RuleValidator()


class TestValidateRule:
    """Structure, metrics and operator checks."""

    def test_simple_rule(self, validator):
        """A basic comparison is valid and its metadata is extracted."""
        result = validator.validate(AGE_RULE)
        assert result.valid is True
        assert result.errors == []
        assert result.variables == ["age"]
        assert result.operators == [">"]
        assert result.complexity == 8
        assert result.depth == 3

    def test_non_json_value_is_critical(self, validator):
        """Python objects are rejected before any other check."""
        result = validator.validate({"==": [object(), 1]})
        assert result.valid is False
        assert result.errors[0].code == ValidationErrorCode.INVALID_STRUCTURE
        assert result.errors[0].severity == IssueSeverity.CRITICAL

    def test_cycle_is_critical(self, validator):
        """A rule containing itself is reported, not followed."""
        rule = {"and": [True]}
        rule["and"].append(rule)
        result = validator.validate(rule)
        assert result.valid is False
        assert result.errors[0].code == ValidationErrorCode.CIRCULAR_REFERENCE
        assert result.errors[0].message == "Rule contains circular reference"

    def test_aliased_subtree_is_reported(self, validator):
        """The same container reached twice counts as a circular reference."""
        shared = {"var": "x"}
        result = validator.validate({"and": [shared, shared]})
        assert codes(result.errors) == [ValidationErrorCode.CIRCULAR_REFERENCE]

    def test_non_string_key(self, validator):
        """Object keys must be strings."""
        result = validator.validate({"and": [{1: "x"}]})
        assert result.errors[0].code == ValidationErrorCode.INVALID_STRUCTURE

    def test_depth_limit(self, validator):
        """Nesting deeper than max_depth is an error."""
        rule = True
        for _ in range(30):
            rule = {"!": rule}
        result = validator.validate(rule)
        assert result.valid is False
        assert ValidationErrorCode.MAX_DEPTH_EXCEEDED in codes(result.errors)
        assert result.depth == 30

    def test_pathological_nesting_does_not_raise(self, validator):
        """Very deep arrays are measured without recursion."""
        rule = []
        for _ in range(10000):
            rule = [rule]
        result = validator.validate(rule)
        assert result.valid is False
        assert result.depth == 10000

    def test_complexity_warning_and_error(self, validator):
        """Scores above 80% of the limit warn, above the limit fail."""
        warned = validator.validate(AGE_RULE, ValidationOptions(max_complexity=9))
        assert warned.valid is True
        assert codes(warned.warnings) == [ValidationErrorCode.COMPLEXITY_WARNING]

        failed = validator.validate(AGE_RULE, ValidationOptions(max_complexity=5))
        assert failed.valid is False
        assert ValidationErrorCode.MAX_COMPLEXITY_EXCEEDED in codes(failed.errors)

    def test_complexity_grows_with_nesting(self):
        """Wrapping a rule never lowers its complexity."""
        inner = calculate_complexity(AGE_RULE)
        assert calculate_complexity({"and": [AGE_RULE]}) > inner
        assert calculate_complexity({"all": [{"var": "xs"}, AGE_RULE]}) > inner

    def test_disallowed_operator(self, validator):
        """Denied operators are errors wherever they appear."""
        rule = {"and": [{"var": "a"}, {"log": 1}]}
        result = validator.validate(rule, ValidationOptions(disallowed_operators=["log"]))
        assert result.valid is False
        assert codes(result.errors) == [ValidationErrorCode.DISALLOWED_OPERATOR]
        assert "log" in result.errors[0].message

    def test_unknown_operator_warns(self, validator):
        """Unknown operators are warnings unless validation is strict."""
        result = validator.validate({"foo": [1]})
        assert result.valid is True
        assert result.warnings[0].code == ValidationErrorCode.UNKNOWN_OPERATOR
        assert result.warnings[0].message == 'Unknown operator "foo" - may be custom'

        strict = validator.validate({"foo": [1]}, ValidationOptions(strict=True))
        assert strict.valid is False
        assert codes(strict.errors) == [ValidationErrorCode.UNKNOWN_OPERATOR]

    def test_registry_operators_are_known(self):
        """Operators provided by the registry do not trigger warnings."""
        rule = {"between": [{"var": "age"}, 18, 64]}
        assert RuleValidator().validate(rule).warnings != []

        validator = RuleValidator(registry=create_registry([BenefitOperators()]))
        assert validator.validate(rule).warnings == []

    def test_allowed_operators_override(self, validator):
        """An explicit allow list replaces the default known set."""
        result = validator.validate(
            AGE_RULE, ValidationOptions(allowed_operators=["<"], strict=True)
        )
        assert codes(result.errors) == [ValidationErrorCode.UNKNOWN_OPERATOR]

    def test_var_is_not_subject_to_allow_list(self, validator):
        """Allowing exactly the operators a rule uses is enough; var is implicit."""
        result = validator.validate(
            AGE_RULE, ValidationOptions(allowed_operators=[">"], strict=True)
        )
        assert result.valid is True
        assert result.errors == []
        assert result.operators == [">"]

        disallowed = validator.validate(AGE_RULE, ValidationOptions(disallowed_operators=["var"]))
        assert disallowed.valid is True

    def test_required_variable(self, validator):
        """Rules must reference every required variable."""
        result = validator.validate(AGE_RULE, ValidationOptions(required_variables=["income"]))
        assert codes(result.errors) == [ValidationErrorCode.MISSING_REQUIRED_VARIABLE]

    def test_invalid_var_path(self, validator):
        """var paths must be strings or indexes."""
        result = validator.validate({"var": {"a": 1}})
        assert codes(result.errors) == [ValidationErrorCode.INVALID_OPERANDS]

    def test_array_predicate_needs_sub_rule(self, validator):
        """map without a sub-rule is malformed."""
        result = validator.validate({"map": [{"var": "xs"}]})
        assert ValidationErrorCode.INVALID_OPERANDS in codes(result.errors)

    def test_variables_are_deduplicated_in_order(self, validator):
        """Each variable is listed once in first-seen order."""
        rule = {"and": [{"var": "b"}, {"var": "a"}, {"var": "b"}]}
        assert validator.validate(rule).variables == ["b", "a"]

    def test_validate_rules_and_is_valid_rule(self, validator):
        """Batch validation keeps input order."""
        results = validator.validate_rules([AGE_RULE, {"var": {"a": 1}}])
        assert [r.valid for r in results] == [True, False]
        assert validator.is_valid_rule(AGE_RULE) is True


class TestRuleMetrics:
    """Depth and sanitizing helpers."""

    def test_depth(self):
        """Every container level adds one."""
        assert calculate_depth(5) == 0
        assert calculate_depth({"and": [1, 2]}) == 2

    def test_sanitize_removes_disallowed(self):
        """Disallowed operators are stripped and empty containers dropped."""
        rule = {"and": [{"var": "a"}, {"log": "x"}]}
        assert sanitize_rule(rule, ["log"]) == {"and": [{"var": "a"}]}

    def test_sanitize_everything_removed(self):
        """Nothing left means None."""
        assert sanitize_rule({"log": 1}, ["log"]) is None

    def test_sanitize_leaves_input_untouched(self):
        """Sanitizing returns a copy."""
        rule = {"and": [{"log": 1}, True]}
        sanitize_rule(rule, ["log"])
        assert rule == {"and": [{"log": 1}, True]}
