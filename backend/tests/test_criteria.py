"""Tests for criteria tracing and confidence scoring."""

import pytest

from eligibility_engine.core.enums import ComplexityLevel
from eligibility_engine.services.eligibility import CriteriaAnalyzer, ScoringEngine
from eligibility_engine.services.eligibility.criteria import format_comparison
from eligibility_engine.services.eligibility.scoring import (
    REASON_ELIGIBLE,
    REASON_ERROR,
    REASON_INCOMPLETE,
    REASON_INELIGIBLE,
)
from eligibility_engine.services.rule_engine import EvaluationOptions
from eligibility_engine.services.rule_engine.ast import parse_rule

from .conftest import FIXED_NOW

OPTIONS = EvaluationOptions(now=FIXED_NOW)


@pytest.fixture
def analyzer(engine):
    return CriteriaAnalyzer(engine)


class TestCriteriaAnalyzer:
    """Tracing comparisons inside a rule."""

    def test_traces_each_comparison(self, analyzer):
        """Every var comparison becomes one criterion, in rule order."""
        rule = {
            "and": [
                {"<=": [{"var": "household_income"}, 2888]},
                {">=": [{"var": "age"}, 18]},
            ]
        }
        results = analyzer.analyze(parse_rule(rule), {"household_income": 3000, "age": 30}, OPTIONS)

        assert [r.criterion for r in results] == ["household_income", "age"]
        income, age = results
        assert income.met is False
        assert income.threshold == 2888
        assert income.comparison == "$3,000 exceeds the limit of $2,888"
        assert age.met is True
        assert age.comparison == "30 meets the minimum of 18"

    def test_threshold_expression_is_evaluated(self, analyzer):
        """The non-variable side is evaluated to get the threshold."""
        rule = {"<": [{"var": "rent"}, {"*": [2, 100]}]}
        results = analyzer.analyze(parse_rule(rule), {"rent": 150}, OPTIONS)
        assert results[0].threshold == 200
        assert results[0].met is True

    def test_variable_on_right_side(self, analyzer):
        """Comparisons written constant-first are still traced."""
        rule = {">": [65, {"var": "age"}]}
        results = analyzer.analyze(parse_rule(rule), {"age": 30}, OPTIONS)
        assert results[0].criterion == "age"
        assert results[0].threshold == 65
        assert results[0].met is True

    def test_absent_variable_is_skipped(self, analyzer):
        """Missing data is not reported as a failed criterion."""
        rule = {">=": [{"var": "age"}, 18]}
        assert analyzer.analyze(parse_rule(rule), {}, OPTIONS) == []

    def test_between(self, analyzer):
        """between reports both bounds as the threshold."""
        rule = parse_rule({"between": [{"var": "age"}, 18, 64]})
        inside = analyzer.analyze(rule, {"age": 30}, OPTIONS)[0]
        assert inside.threshold == [18, 64]
        assert inside.comparison == "30 is between 18 and 64"

        outside = analyzer.analyze(rule, {"age": 70}, OPTIONS)[0]
        assert outside.met is False
        assert outside.comparison == "70 is outside the range of 18 to 64"

    def test_range_form_of_less_than(self, analyzer):
        """Three-operand < is traced as a range around the middle variable."""
        rule = parse_rule({"<": [0, {"var": "x"}, 10]})
        inside = analyzer.analyze(rule, {"x": 5}, OPTIONS)
        assert len(inside) == 1
        assert inside[0].criterion == "x"
        assert inside[0].met is True
        assert inside[0].threshold == [0, 10]
        assert inside[0].operator == "<"
        assert inside[0].comparison == "5 is between 0 and 10"

        outside = analyzer.analyze(parse_rule({"<=": [0, {"var": "x"}, 10]}), {"x": 12}, OPTIONS)
        assert outside[0].met is False
        assert outside[0].comparison == "12 is outside the range of 0 to 10"

    def test_array_predicate_sub_rules_are_not_traced(self, analyzer, engine):
        """Comparisons inside some/all/filter refer to elements, not the household."""
        rule = {"some": [{"var": "members"}, {">": [{"var": "age"}, 60]}]}
        data = {"age": 36, "members": [{"age": 70}, {"age": 5}]}

        assert engine.evaluate(rule, data).result is True
        assert analyzer.analyze(parse_rule(rule), data, OPTIONS) == []

    def test_array_predicate_alongside_comparison(self, analyzer):
        """Top-level comparisons next to an array predicate are still traced."""
        rule = {
            "and": [
                {">=": [{"var": "age"}, 18]},
                {"all": [{"var": "members"}, {"<": [{"var": "age"}, 100]}]},
            ]
        }
        data = {"age": 36, "members": [{"age": 70}]}
        results = analyzer.analyze(parse_rule(rule), data, OPTIONS)
        assert [(r.criterion, r.value) for r in results] == [("age", 36)]

    def test_snap_income_test(self, analyzer):
        """The SNAP operator yields an income and a household size criterion."""
        rule = {"snap_income_eligible": [{"var": "household_income"}, {"var": "household_size"}]}
        income, size = analyzer.analyze(
            parse_rule(rule), {"household_income": 2500, "household_size": 3}, OPTIONS
        )
        assert income.threshold == 2888
        assert income.met is True
        assert income.comparison == "$2,500 is within the limit of $2,888"
        assert size.comparison == "3 people (determines income limit)"

    def test_snap_without_size_is_skipped(self, analyzer):
        """No household size means no traceable income limit."""
        rule = {"snap_income_eligible": [{"var": "household_income"}, {"var": "household_size"}]}
        assert analyzer.analyze(parse_rule(rule), {"household_income": 2500}, OPTIONS) == []

    def test_breakdown_from_required_fields(self, analyzer):
        """Present fields are listed; booleans count only when true."""
        results = analyzer.breakdown_from_required_fields(
            ["has_children", "state", "missing_one"], {"has_children": False, "state": "GA"}
        )
        assert [r.criterion for r in results] == ["has_children", "state"]
        assert results[0].met is False
        assert results[1].met is True
        assert results[1].comparison == "your state of residence: GA"


class TestFormatComparison:
    """Criterion sentences."""

    def test_not_equal(self):
        """!= explains both outcomes."""
        assert format_comparison("!=", "CA", "NY", True) == "CA is different from NY (as required)"
        assert format_comparison("!=", "CA", "CA", False) == "CA incorrectly matches CA"

    def test_in_lists_allowed_values(self):
        """Array thresholds are joined."""
        assert (
            format_comparison("in", "CA", ["CA", "NY"], True)
            == "CA is one of the allowed values: CA, NY"
        )

    def test_unknown_operator(self):
        """Operators without phrasing fall back to a neutral sentence."""
        assert format_comparison("===", 1, 2, False) == "1 compared to 2"


class TestScoringEngine:
    """Confidence tiers and reasons."""

    @pytest.mark.parametrize(
        "success,incomplete,expected",
        [(False, False, 0), (False, True, 0), (True, True, 50), (True, False, 95)],
    )
    def test_confidence(self, success, incomplete, expected):
        """Confidence is one of three fixed tiers."""
        assert ScoringEngine.calculate_confidence(success, incomplete) == expected

    def test_reasons(self):
        """Reasons follow error, incomplete, eligible, ineligible precedence."""
        assert ScoringEngine.build_reason(False, True, False) == REASON_ERROR
        assert ScoringEngine.build_reason(True, True, True) == REASON_INCOMPLETE
        assert ScoringEngine.build_reason(True, False, True) == REASON_ELIGIBLE
        assert ScoringEngine.build_reason(True, False, True, "Custom") == "Custom"
        assert ScoringEngine.build_reason(True, False, False, "Custom") == REASON_INELIGIBLE

    @pytest.mark.parametrize(
        "score,expected",
        [
            (20, ComplexityLevel.SIMPLE),
            (21, ComplexityLevel.MODERATE),
            (51, ComplexityLevel.COMPLEX),
            (81, ComplexityLevel.VERY_COMPLEX),
        ],
    )
    def test_classify_complexity(self, score, expected):
        """Complexity bands have exclusive lower bounds."""
        assert ScoringEngine.classify_complexity(score) == expected
