"""Pydantic schemas for rule definitions, validation and explanations."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from eligibility_engine.core.enums import (
    ComplexityLevel,
    ExplanationNodeType,
    IssueSeverity,
    LanguageLevel,
    ValidationErrorCode,
)
from eligibility_engine.models.schemas.eligibility import EligibilityEvaluationResult, NextStep


# ==================== Rule Definition Schemas ====================


class RuleDefinition(BaseModel):
    """Persisted eligibility rule as read by the pipeline."""

    id: str
    program_id: str
    rule_logic: Any
    explanation: Optional[str] = None
    required_fields: list[str] = Field(default_factory=list)
    required_documents: list[str] = Field(default_factory=list)
    next_steps: list[NextStep] = Field(default_factory=list)
    priority: int = 0
    version: Optional[str] = None
    effective_date: Optional[datetime] = None
    expiration_date: Optional[datetime] = None
    active: bool = True

    model_config = ConfigDict(from_attributes=True)


class ProgramSummary(BaseModel):
    """Benefit program metadata."""

    id: str
    name: str
    jurisdiction: Optional[str] = None
    category: Optional[str] = None
    active: bool = True

    model_config = ConfigDict(from_attributes=True)


# ==================== Validation Schemas ====================


class ValidationIssueResponse(BaseModel):
    """One validation error or warning."""

    code: ValidationErrorCode
    message: str
    severity: IssueSeverity
    path: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class RuleValidationResponse(BaseModel):
    """Validator output."""

    valid: bool
    errors: list[ValidationIssueResponse] = Field(default_factory=list)
    warnings: list[ValidationIssueResponse] = Field(default_factory=list)
    complexity: int = 0
    depth: int = 0
    operators: list[str] = Field(default_factory=list)
    variables: list[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class ValidateRuleRequest(BaseModel):
    """Request body for validating a rule."""

    rule: Any
    allowed_operators: Optional[list[str]] = None
    disallowed_operators: list[str] = Field(default_factory=list)
    max_depth: Optional[int] = Field(default=None, ge=1)
    max_complexity: Optional[int] = Field(default=None, ge=1)
    required_variables: list[str] = Field(default_factory=list)
    strict: bool = False


# ==================== Explanation Schemas ====================


class ExplanationNode(BaseModel):
    """Node of a rule explanation tree, mirroring the rule's structure."""

    type: ExplanationNodeType
    description: str
    level: int
    operator: Optional[str] = None
    variable: Optional[str] = None
    value: Optional[Any] = None
    children: Optional[list["ExplanationNode"]] = None


class RuleExplanation(BaseModel):
    """Standalone description of what a rule checks."""

    description: str
    breakdown: list[ExplanationNode] = Field(default_factory=list)
    variables: list[str] = Field(default_factory=list)
    operators: list[str] = Field(default_factory=list)
    complexity: ComplexityLevel = ComplexityLevel.SIMPLE
    criteria_checked: list[str] = Field(default_factory=list)


class ExplanationOptions(BaseModel):
    """Options for explaining an evaluation result."""

    include_technical: bool = False
    language_level: LanguageLevel = LanguageLevel.STANDARD
    include_suggestions: bool = True
    max_length: int = Field(default=1000, ge=1)


class ResultExplanation(BaseModel):
    """Why an evaluation came out eligible, ineligible or incomplete."""

    summary: str
    reasoning: list[str] = Field(default_factory=list)
    criteria_checked: list[str] = Field(default_factory=list)
    criteria_passed: list[str] = Field(default_factory=list)
    criteria_failed: list[str] = Field(default_factory=list)
    missing_information: list[str] = Field(default_factory=list)
    what_would_change: Optional[list[str]] = None
    plain_language: str
    technical_details: Optional[dict[str, Any]] = None


class ChangedField(BaseModel):
    """A data field whose value differs between two evaluations."""

    field: str
    before: Optional[Any] = None
    after: Optional[Any] = None


class DifferenceExplanation(BaseModel):
    """Why two evaluations of the same rule diverge."""

    summary: str
    differences: list[str] = Field(default_factory=list)
    changed_fields: list[ChangedField] = Field(default_factory=list)
    eligibility_changed: bool = False


# ==================== Explanation Request Schemas ====================


class ExplainRuleRequest(BaseModel):
    rule: Any
    language_level: LanguageLevel = LanguageLevel.STANDARD


class ExplainResultRequest(BaseModel):
    result: EligibilityEvaluationResult
    rule: Any
    data: dict[str, Any] = Field(default_factory=dict)
    options: ExplanationOptions = Field(default_factory=ExplanationOptions)


class WhatWouldPassRequest(BaseModel):
    rule: Any
    data: dict[str, Any] = Field(default_factory=dict)


class ExplainDifferenceRequest(BaseModel):
    result1: EligibilityEvaluationResult
    result2: EligibilityEvaluationResult
    data1: dict[str, Any] = Field(default_factory=dict)
    data2: dict[str, Any] = Field(default_factory=dict)


class SuggestionsResponse(BaseModel):
    suggestions: list[str]
