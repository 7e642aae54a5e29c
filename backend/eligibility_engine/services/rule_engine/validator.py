"""Static validation and complexity analysis for JSON-logic rules."""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence, Set, Tuple

from eligibility_engine.core.enums import IssueSeverity, ValidationErrorCode
from eligibility_engine.services.rule_engine.base import round_half_up
from eligibility_engine.services.rule_engine.evaluators import ARRAY_PREDICATE_OPERATORS
from eligibility_engine.services.rule_engine.registry import OperatorRegistry

logger = logging.getLogger(__name__)

STANDARD_OPERATORS = frozenset(
    {
        "if", "?:", "and", "or", "!", "!!",
        "==", "===", "!=", "!==", ">", ">=", "<", "<=",
        "+", "-", "*", "/", "%", "min", "max",
        "map", "filter", "reduce", "all", "some", "none", "merge", "in",
        "cat", "substr", "var", "missing", "missing_some", "log",
    }
)

_JSON_SCALARS = (str, int, float, bool, type(None))
_WARNING_RATIO = 0.8


@dataclass
class ValidationIssue:
    """A single problem found in a rule."""

    code: ValidationErrorCode
    message: str
    severity: IssueSeverity = IssueSeverity.ERROR
    path: Optional[str] = None


@dataclass
class ValidationOptions:
    """
    Validator options.

    Attributes:
        allowed_operators: Operators considered known; None means the standard
            set plus whatever the validator's registry provides
        disallowed_operators: Operators that are always an error
        max_depth: Maximum nesting depth
        max_complexity: Maximum complexity score
        required_variables: Variables the rule must reference
        strict: Treat unknown operators as errors instead of warnings
    """

    allowed_operators: Optional[Iterable[str]] = None
    disallowed_operators: Iterable[str] = field(default_factory=list)
    max_depth: int = 20
    max_complexity: int = 100
    required_variables: Iterable[str] = field(default_factory=list)
    strict: bool = False


@dataclass
class ValidationResult:
    """Outcome of validating one rule. ``valid`` is true when there are no errors."""

    valid: bool
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)
    complexity: int = 0
    depth: int = 0
    operators: List[str] = field(default_factory=list)
    variables: List[str] = field(default_factory=list)


class RuleValidator:
    """
    Static analyzer for rules in their raw JSON form.

    Checks structure, detects aliasing (the same container reached twice),
    measures depth and complexity, extracts operators and variables, and
    enforces operator allow/deny lists and required variables. Validation never
    raises; every problem comes back as data.
    """

    def __init__(
        self,
        registry: Optional[OperatorRegistry] = None,
        options: Optional[ValidationOptions] = None,
    ):
        self.registry = registry
        self.options = options or ValidationOptions()

    def validate(self, rule: Any, options: Optional[ValidationOptions] = None) -> ValidationResult:
        """
        Validate a rule.

        Args:
            rule: Rule in JSON form
            options: Per-call options overriding the validator defaults

        Returns:
            ValidationResult with errors, warnings and extracted metadata
        """
        options = options or self.options
        try:
            return self._validate(rule, options)
        except Exception as e:
            logger.error(f"Unexpected failure while validating rule: {str(e)}", exc_info=True)
            return ValidationResult(
                valid=False,
                errors=[
                    ValidationIssue(
                        ValidationErrorCode.INVALID_STRUCTURE,
                        f"Rule could not be validated: {str(e)}",
                        IssueSeverity.CRITICAL,
                    )
                ],
            )

    def validate_rules(
        self, rules: Sequence[Any], options: Optional[ValidationOptions] = None
    ) -> List[ValidationResult]:
        """Validate several rules, preserving order."""
        return [self.validate(rule, options) for rule in rules]

    def is_valid_rule(self, rule: Any, options: Optional[ValidationOptions] = None) -> bool:
        return self.validate(rule, options).valid

    def _validate(self, rule: Any, options: ValidationOptions) -> ValidationResult:
        errors: List[ValidationIssue] = []
        warnings: List[ValidationIssue] = []

        structural = self._check_structure(rule)
        if structural:
            return ValidationResult(valid=False, errors=structural)

        depth = calculate_depth(rule)
        if depth > options.max_depth:
            errors.append(
                ValidationIssue(
                    ValidationErrorCode.MAX_DEPTH_EXCEEDED,
                    f"Rule depth ({depth}) exceeds maximum of {options.max_depth}",
                )
            )

        complexity = calculate_complexity(rule)
        if complexity > options.max_complexity:
            errors.append(
                ValidationIssue(
                    ValidationErrorCode.MAX_COMPLEXITY_EXCEEDED,
                    f"Rule complexity ({complexity}) exceeds maximum of {options.max_complexity}",
                )
            )
        elif complexity > options.max_complexity * _WARNING_RATIO:
            warnings.append(
                ValidationIssue(
                    ValidationErrorCode.COMPLEXITY_WARNING,
                    f"Rule complexity ({complexity}) is approaching the maximum of "
                    f"{options.max_complexity}",
                    IssueSeverity.WARNING,
                )
            )

        operators, variables, operand_issues = extract_operators_and_variables(rule)
        errors.extend(operand_issues)

        allowed = self._allowed_operators(options)
        disallowed = set(options.disallowed_operators)
        for name, path in operators:
            if name == "var":
                continue
            if name in disallowed:
                errors.append(
                    ValidationIssue(
                        ValidationErrorCode.DISALLOWED_OPERATOR,
                        f'Operator "{name}" is not allowed',
                        path=path,
                    )
                )
            elif name not in allowed:
                if options.strict:
                    errors.append(
                        ValidationIssue(
                            ValidationErrorCode.UNKNOWN_OPERATOR,
                            f'Unknown operator "{name}"',
                            path=path,
                        )
                    )
                else:
                    warnings.append(
                        ValidationIssue(
                            ValidationErrorCode.UNKNOWN_OPERATOR,
                            f'Unknown operator "{name}" - may be custom',
                            IssueSeverity.WARNING,
                            path=path,
                        )
                    )

        variable_names = [name for name, _ in variables]
        for required in options.required_variables:
            if required not in variable_names:
                errors.append(
                    ValidationIssue(
                        ValidationErrorCode.MISSING_REQUIRED_VARIABLE,
                        f'Required variable "{required}" not found in rule',
                    )
                )

        return ValidationResult(
            valid=not errors,
            errors=errors,
            warnings=warnings,
            complexity=complexity,
            depth=depth,
            operators=[name for name, _ in operators if name != "var"],
            variables=variable_names,
        )

    def _allowed_operators(self, options: ValidationOptions) -> Set[str]:
        if options.allowed_operators is not None:
            return set(options.allowed_operators)
        allowed = set(STANDARD_OPERATORS)
        if self.registry is not None:
            allowed.update(self.registry.names())
        return allowed

    @staticmethod
    def _check_structure(rule: Any) -> List[ValidationIssue]:
        """
        Reject non-JSON values and aliased containers before any metric walk.

        The walk is iterative so pathological nesting cannot overflow the stack.
        """
        if not isinstance(rule, _JSON_SCALARS + (list, tuple, dict)):
            return [
                ValidationIssue(
                    ValidationErrorCode.INVALID_STRUCTURE,
                    f"Rule must be a JSON value, got {type(rule).__name__}",
                    IssueSeverity.CRITICAL,
                )
            ]

        seen: Set[int] = set()
        stack: List[Tuple[Any, str]] = [(rule, "$")]
        while stack:
            node, path = stack.pop()
            if isinstance(node, _JSON_SCALARS):
                continue
            if not isinstance(node, (list, tuple, dict)):
                return [
                    ValidationIssue(
                        ValidationErrorCode.INVALID_STRUCTURE,
                        f"Unsupported value of type {type(node).__name__}",
                        IssueSeverity.CRITICAL,
                        path=path,
                    )
                ]
            if id(node) in seen:
                return [
                    ValidationIssue(
                        ValidationErrorCode.CIRCULAR_REFERENCE,
                        "Rule contains circular reference",
                        IssueSeverity.CRITICAL,
                        path=path,
                    )
                ]
            seen.add(id(node))
            if isinstance(node, dict):
                for key, value in node.items():
                    if not isinstance(key, str):
                        return [
                            ValidationIssue(
                                ValidationErrorCode.INVALID_STRUCTURE,
                                f"Object keys must be strings, got {type(key).__name__}",
                                IssueSeverity.CRITICAL,
                                path=path,
                            )
                        ]
                    stack.append((value, f"{path}.{key}"))
            else:
                stack.extend((item, f"{path}[{i}]") for i, item in enumerate(node))
        return []


def calculate_depth(rule: Any) -> int:
    """Maximum nesting depth; every array element or operand level adds one."""
    deepest = 0
    stack: List[Tuple[Any, int]] = [(rule, 0)]
    while stack:
        node, depth = stack.pop()
        deepest = max(deepest, depth)
        if isinstance(node, dict):
            stack.extend((value, depth + 1) for value in node.values())
        elif isinstance(node, (list, tuple)):
            stack.extend((item, depth + 1) for item in node)
    return deepest


def calculate_complexity(rule: Any) -> int:
    """
    Complexity score of a rule.

    Every container contributes twice its depth; each ``var`` key adds 0.5,
    each array predicate 3, any other key 1. The total is rounded half up.
    """
    score = 0.0
    stack: List[Tuple[Any, int]] = [(rule, 0)]
    while stack:
        node, depth = stack.pop()
        if isinstance(node, (list, tuple)):
            score += depth * 2
            stack.extend((item, depth + 1) for item in node)
        elif isinstance(node, dict):
            score += depth * 2
            for key, value in node.items():
                if key == "var":
                    score += 0.5
                elif key in ARRAY_PREDICATE_OPERATORS:
                    score += 3
                else:
                    score += 1
                stack.append((value, depth + 1))
    return round_half_up(score)


def extract_operators_and_variables(
    rule: Any,
) -> Tuple[List[Tuple[str, str]], List[Tuple[str, str]], List[ValidationIssue]]:
    """
    Collect operators and variable paths referenced by a rule.

    Only single-key objects are operator applications; other objects are data.

    Returns:
        Deduplicated ``(operator, path)`` pairs including ``var``, deduplicated
        ``(variable, path)`` pairs, and issues for malformed ``var`` operands
    """
    operators: List[Tuple[str, str]] = []
    variables: List[Tuple[str, str]] = []
    issues: List[ValidationIssue] = []
    seen_operators: Set[str] = set()
    seen_variables: Set[str] = set()

    stack: List[Tuple[Any, str]] = [(rule, "$")]
    while stack:
        node, path = stack.pop()
        if isinstance(node, (list, tuple)):
            stack.extend(
                (item, f"{path}[{i}]") for i, item in reversed(list(enumerate(node)))
            )
            continue
        if not isinstance(node, dict) or len(node) != 1:
            continue

        name, operand = next(iter(node.items()))
        here = f"{path}.{name}"
        if name not in seen_operators:
            seen_operators.add(name)
            operators.append((name, here))

        if name == "var":
            target = operand[0] if isinstance(operand, (list, tuple)) and operand else operand
            if isinstance(target, bool) or not isinstance(target, (str, int, type(None))):
                issues.append(
                    ValidationIssue(
                        ValidationErrorCode.INVALID_OPERANDS,
                        "Variable path must be a string or index",
                        path=here,
                    )
                )
            elif target not in (None, "") and str(target) not in seen_variables:
                seen_variables.add(str(target))
                variables.append((str(target), here))
            continue

        if name in ARRAY_PREDICATE_OPERATORS and not (
            isinstance(operand, (list, tuple)) and len(operand) >= 2
        ):
            issues.append(
                ValidationIssue(
                    ValidationErrorCode.INVALID_OPERANDS,
                    f'Operator "{name}" requires an array and a sub-rule',
                    path=here,
                )
            )
        stack.append((operand, here))

    return operators, variables, issues


def sanitize_rule(rule: Any, disallowed_operators: Iterable[str] = ()) -> Any:
    """
    Strip disallowed operators from a rule.

    Arrays and objects left empty after sanitizing are dropped as well.

    Args:
        rule: Rule in JSON form
        disallowed_operators: Operator names to remove

    Returns:
        The sanitized rule, or None when nothing remains
    """
    blocked = set(disallowed_operators)

    def sanitize(node: Any) -> Any:
        if isinstance(node, (list, tuple)):
            items = [item for item in (sanitize(child) for child in node) if item is not None]
            return items or None
        if isinstance(node, dict):
            cleaned = {}
            for key, value in node.items():
                if key in blocked:
                    continue
                sanitized = sanitize(value)
                if sanitized is not None:
                    cleaned[key] = sanitized
            return cleaned or None
        return node

    return sanitize(rule)
