"""Core enums for type safety across the application."""

from enum import Enum


class EvaluationErrorCode(str, Enum):
    """Failure kinds reported by the rule evaluator."""

    INVALID_RULE = "EVAL_INVALID_RULE"
    INVALID_DATA = "EVAL_INVALID_DATA"
    UNKNOWN_OPERATOR = "EVAL_UNKNOWN_OPERATOR"
    MAX_DEPTH_EXCEEDED = "EVAL_MAX_DEPTH"
    STEP_BUDGET_EXCEEDED = "EVAL_STEP_BUDGET"
    TIMEOUT = "EVAL_TIMEOUT"
    OPERATOR_ERROR = "EVAL_OPERATOR_ERROR"
    DIVISION_BY_ZERO = "EVAL_DIVISION_BY_ZERO"
    TYPE_MISMATCH = "EVAL_TYPE_MISMATCH"
    ARITY = "EVAL_ARITY"
    UNKNOWN_ERROR = "EVAL_UNKNOWN"


class ValidationErrorCode(str, Enum):
    """Issue codes reported by the static rule validator."""

    INVALID_STRUCTURE = "VAL_INVALID_STRUCTURE"
    UNKNOWN_OPERATOR = "VAL_UNKNOWN_OPERATOR"
    DISALLOWED_OPERATOR = "VAL_DISALLOWED_OPERATOR"
    MAX_DEPTH_EXCEEDED = "VAL_MAX_DEPTH"
    MAX_COMPLEXITY_EXCEEDED = "VAL_MAX_COMPLEXITY"
    INVALID_OPERANDS = "VAL_INVALID_OPERANDS"
    CIRCULAR_REFERENCE = "VAL_CIRCULAR_REFERENCE"
    MISSING_REQUIRED_VARIABLE = "VAL_MISSING_VARIABLE"
    COMPLEXITY_WARNING = "COMPLEXITY_WARNING"


class IssueSeverity(str, Enum):
    """Severity of a validation issue."""

    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"


class LanguageLevel(str, Enum):
    """Phrasing level for generated explanations."""

    SIMPLE = "simple"
    STANDARD = "standard"
    TECHNICAL = "technical"


class ComplexityLevel(str, Enum):
    """Human bands for the numeric complexity score."""

    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"
    VERY_COMPLEX = "very-complex"


class ExplanationNodeType(str, Enum):
    """Kinds of nodes in a rule explanation tree."""

    OPERATOR = "operator"
    VARIABLE = "variable"
    CONSTANT = "constant"
    EXPRESSION = "expression"


class IncomePeriod(str, Enum):
    """Period a stored household income figure covers."""

    ANNUAL = "annual"
    MONTHLY = "monthly"


class StepPriority(str, Enum):
    """Priority of a recommended next step."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
