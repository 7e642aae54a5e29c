"""Pydantic schemas for API validation and serialization."""

from eligibility_engine.models.schemas.eligibility import (
    BatchEligibilityResult,
    BatchEvaluateRequest,
    BatchSummary,
    CachedEligibilityResult,
    ClearCacheResponse,
    CriterionResult,
    EligibilityEvaluationOptions,
    EligibilityEvaluationResult,
    EvaluateRequest,
    NextStep,
)
from eligibility_engine.models.schemas.profile import HouseholdProfileSnapshot
from eligibility_engine.models.schemas.rule import (
    ChangedField,
    DifferenceExplanation,
    ExplainDifferenceRequest,
    ExplainResultRequest,
    ExplainRuleRequest,
    ExplanationNode,
    ExplanationOptions,
    ProgramSummary,
    ResultExplanation,
    RuleDefinition,
    RuleExplanation,
    RuleValidationResponse,
    SuggestionsResponse,
    ValidateRuleRequest,
    ValidationIssueResponse,
    WhatWouldPassRequest,
)

__all__ = [
    # Eligibility
    "BatchEligibilityResult",
    "BatchEvaluateRequest",
    "BatchSummary",
    "CachedEligibilityResult",
    "ClearCacheResponse",
    "CriterionResult",
    "EligibilityEvaluationOptions",
    "EligibilityEvaluationResult",
    "EvaluateRequest",
    "NextStep",
    # Profile
    "HouseholdProfileSnapshot",
    # Rules & explanations
    "ChangedField",
    "DifferenceExplanation",
    "ExplainDifferenceRequest",
    "ExplainResultRequest",
    "ExplainRuleRequest",
    "ExplanationNode",
    "ExplanationOptions",
    "ProgramSummary",
    "ResultExplanation",
    "RuleDefinition",
    "RuleExplanation",
    "RuleValidationResponse",
    "SuggestionsResponse",
    "ValidateRuleRequest",
    "ValidationIssueResponse",
    "WhatWouldPassRequest",
]
