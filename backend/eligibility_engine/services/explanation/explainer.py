"""Rule explainer: turns rules and evaluation results into prose."""

import logging
from typing import Any, List, Mapping, Optional

from eligibility_engine.core.enums import IssueSeverity, LanguageLevel
from eligibility_engine.models.schemas.eligibility import EligibilityEvaluationResult
from eligibility_engine.models.schemas.rule import (
    DifferenceExplanation,
    ExplanationOptions,
    ResultExplanation,
    RuleExplanation,
)
from eligibility_engine.services.eligibility.scoring import ScoringEngine
from eligibility_engine.services.explanation.analysis import (
    analyze_result,
    generate_change_suggestions,
)
from eligibility_engine.services.explanation.comparison import (
    NO_SUGGESTIONS,
    explain_difference,
    explain_what_would_pass,
)
from eligibility_engine.services.explanation.descriptions import describe_rule
from eligibility_engine.services.explanation.formatting import format_field_name
from eligibility_engine.services.explanation.plain_language import build_plain_language, truncate
from eligibility_engine.services.explanation.tree import build_explanation_tree
from eligibility_engine.services.rule_engine.evaluators import BenefitOperators
from eligibility_engine.services.rule_engine.registry import OperatorRegistry, create_registry
from eligibility_engine.services.rule_engine.validator import RuleValidator

logger = logging.getLogger(__name__)

UNEXPLAINABLE_RULE = "This rule could not be explained"


class RuleExplainer:
    """
    Explanation generator for rules and eligibility results.

    This class:
    - Describes a rule on its own, with a tree mirroring its structure
    - Explains why a result is eligible, ineligible or incomplete
    - Suggests what would change a negative outcome
    - Explains the difference between two evaluations

    Explaining never raises; malformed input yields a minimal explanation.
    """

    def __init__(
        self,
        registry: Optional[OperatorRegistry] = None,
        validator: Optional[RuleValidator] = None,
    ):
        """
        Initialize the explainer.

        Args:
            registry: Registry supplying operator descriptions
            validator: Validator used to harvest variables, operators and complexity
        """
        self.registry = registry or create_registry([BenefitOperators()])
        self.validator = validator or RuleValidator(self.registry)

    def explain_rule(
        self,
        rule: Any,
        language_level: LanguageLevel = LanguageLevel.STANDARD,
    ) -> RuleExplanation:
        """
        Explain what a rule checks.

        Args:
            rule: Rule in JSON form
            language_level: Phrasing level for the description

        Returns:
            RuleExplanation with description, breakdown tree, variables,
            operators and complexity band
        """
        validation = self.validator.validate(rule)
        structurally_sound = not any(
            issue.severity == IssueSeverity.CRITICAL for issue in validation.errors
        )

        try:
            description = (
                describe_rule(rule, language_level, self.registry)
                if structurally_sound
                else UNEXPLAINABLE_RULE
            )
            breakdown = build_explanation_tree(rule, 0, self.registry) if structurally_sound else []
        except Exception as e:
            logger.error(f"Failed to explain rule: {str(e)}", exc_info=True)
            description, breakdown = UNEXPLAINABLE_RULE, []

        return RuleExplanation(
            description=description,
            breakdown=breakdown,
            variables=validation.variables,
            operators=validation.operators,
            complexity=ScoringEngine.classify_complexity(validation.complexity),
            criteria_checked=[format_field_name(name) for name in validation.variables],
        )

    def explain_result(
        self,
        result: EligibilityEvaluationResult,
        rule: Any,
        data: Optional[Mapping[str, Any]] = None,
        options: Optional[ExplanationOptions] = None,
    ) -> ResultExplanation:
        """
        Explain why an evaluation came out the way it did.

        Args:
            result: Evaluation result
            rule: Rule that produced the result
            data: Data context the rule was evaluated against
            options: Language level, suggestions, technical details and length limit

        Returns:
            ResultExplanation
        """
        options = options or ExplanationOptions()
        rule_explanation = self.explain_rule(rule, options.language_level)
        analysis = analyze_result(result, rule_explanation.variables)

        what_would_change: Optional[List[str]] = None
        if options.include_suggestions and not result.eligible:
            what_would_change = generate_change_suggestions(result) or None

        plain_language = truncate(
            build_plain_language(result, analysis.reasoning, options.language_level),
            options.max_length,
        )

        technical_details = None
        if options.include_technical:
            technical_details = {
                "rule_id": result.rule_id,
                "rule_version": result.rule_version,
                "confidence": result.confidence,
                "execution_time_ms": result.execution_time_ms,
                "operators": rule_explanation.operators,
                "variables": rule_explanation.variables,
                "complexity": rule_explanation.complexity.value,
                "data_fields": sorted(data or {}),
            }

        return ResultExplanation(
            summary=result.reason,
            reasoning=analysis.reasoning,
            criteria_checked=rule_explanation.criteria_checked,
            criteria_passed=analysis.criteria_passed,
            criteria_failed=analysis.criteria_failed,
            missing_information=list(result.missing_fields or []),
            what_would_change=what_would_change,
            plain_language=plain_language,
            technical_details=technical_details,
        )

    def explain_what_would_pass(
        self, rule: Any, data: Optional[Mapping[str, Any]] = None
    ) -> List[str]:
        """Suggestions that would make ``rule`` pass for ``data``."""
        try:
            return explain_what_would_pass(rule, data)
        except Exception as e:
            logger.error(f"Failed to analyze rule for suggestions: {str(e)}", exc_info=True)
            return [NO_SUGGESTIONS]

    def explain_difference(
        self,
        result1: EligibilityEvaluationResult,
        result2: EligibilityEvaluationResult,
        data1: Optional[Mapping[str, Any]] = None,
        data2: Optional[Mapping[str, Any]] = None,
    ) -> DifferenceExplanation:
        return explain_difference(result1, result2, data1 or {}, data2 or {})

    @staticmethod
    def format_rule_explanation(explanation: RuleExplanation) -> str:
        """
        Render a rule explanation as text.

        Returns:
            Description, a bullet list of checked criteria and, unless the
            rule is simple, its complexity
        """
        lines = [explanation.description, "", "This rule checks:"]
        lines.extend(f"• {criterion}" for criterion in explanation.criteria_checked)
        if explanation.complexity.value != "simple":
            lines.append("")
            lines.append(f"Complexity: {explanation.complexity.value}")
        return "\n".join(lines)
