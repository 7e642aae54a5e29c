"""Pydantic schemas for eligibility evaluation results and requests."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ==================== Criteria Schemas ====================


class CriterionResult(BaseModel):
    """Outcome of one traced comparison inside a rule."""

    criterion: str
    met: bool
    value: Optional[Any] = None
    threshold: Optional[Any] = None
    comparison: Optional[str] = None
    operator: Optional[str] = None


class NextStep(BaseModel):
    """Recommended action attached to a rule definition."""

    step: str
    url: Optional[str] = None
    priority: Optional[str] = None


# ==================== Evaluation Result Schemas ====================


class EligibilityEvaluationResult(BaseModel):
    """
    Eligibility determination for one profile and program.

    ``incomplete`` is forced to true whenever ``missing_fields`` is non-empty.
    """

    profile_id: str
    program_id: str
    rule_id: str
    eligible: bool
    confidence: int = Field(ge=0, le=100)
    reason: str
    criteria_results: Optional[list[CriterionResult]] = None
    missing_fields: Optional[list[str]] = None
    required_documents: Optional[list[str]] = None
    next_steps: Optional[list[NextStep]] = None
    rule_version: Optional[str] = None
    evaluated_at: datetime
    execution_time_ms: float = 0.0
    incomplete: bool = False
    needs_review: bool = False

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="after")
    def _mark_incomplete(self) -> "EligibilityEvaluationResult":
        if self.missing_fields:
            self.incomplete = True
        return self


class CachedEligibilityResult(EligibilityEvaluationResult):
    """Evaluation result as persisted in the result cache."""

    id: str
    expires_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BatchSummary(BaseModel):
    """Counts across a batch of program evaluations."""

    total: int = 0
    eligible: int = 0
    ineligible: int = 0
    incomplete: int = 0
    needs_review: int = 0


class BatchEligibilityResult(BaseModel):
    """Results of evaluating one profile against many programs."""

    profile_id: str
    program_results: dict[str, EligibilityEvaluationResult] = Field(default_factory=dict)
    summary: BatchSummary = Field(default_factory=BatchSummary)
    total_time_ms: float = 0.0


# ==================== Options & Request Schemas ====================


class EligibilityEvaluationOptions(BaseModel):
    """Options for a single or batch evaluation."""

    force_re_evaluation: bool = False
    cache_result: bool = True
    include_breakdown: bool = True
    expires_in_days: Optional[int] = Field(default=None, ge=0)
    concurrency: Optional[int] = Field(default=None, ge=1)


class EvaluateRequest(BaseModel):
    """Request body for evaluating one program."""

    profile_id: str
    program_id: str
    options: EligibilityEvaluationOptions = Field(default_factory=EligibilityEvaluationOptions)


class BatchEvaluateRequest(BaseModel):
    """Request body for evaluating several programs."""

    profile_id: str
    program_ids: list[str] = Field(min_length=1)
    options: EligibilityEvaluationOptions = Field(default_factory=EligibilityEvaluationOptions)


class ClearCacheResponse(BaseModel):
    """Number of cache entries removed."""

    deleted: int
