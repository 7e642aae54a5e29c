"""Eligibility evaluation endpoints."""

import logging
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, status

from eligibility_engine.deps import get_eligibility_service
from eligibility_engine.models.schemas.eligibility import (
    BatchEligibilityResult,
    BatchEvaluateRequest,
    CachedEligibilityResult,
    ClearCacheResponse,
    EligibilityEvaluationOptions,
    EligibilityEvaluationResult,
    EvaluateRequest,
)
from eligibility_engine.services.eligibility_service import EligibilityService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/evaluate",
    response_model=EligibilityEvaluationResult,
    summary="Evaluate one program",
    description="Determine whether a household profile qualifies for a benefit program",
)
async def evaluate_eligibility(
    request: EvaluateRequest,
    service: Annotated[EligibilityService, Depends(get_eligibility_service)],
) -> EligibilityEvaluationResult:
    """
    Evaluate a household profile against one program.

    A cached result is returned when one exists and has not expired, unless
    ``force_re_evaluation`` is set. Missing profiles, programs or rules come
    back as a result with ``rule_id="error"`` rather than an HTTP error.
    """
    return await service.evaluate_eligibility(
        request.profile_id,
        request.program_id,
        request.options,
    )


@router.post(
    "/batch",
    response_model=BatchEligibilityResult,
    summary="Evaluate several programs",
    description="Evaluate a household profile against a list of programs",
)
async def evaluate_batch(
    request: BatchEvaluateRequest,
    service: Annotated[EligibilityService, Depends(get_eligibility_service)],
) -> BatchEligibilityResult:
    """
    Evaluate a household profile against several programs.

    A failure for one program is reported in that program's result and does
    not stop the others.
    """
    return await service.evaluate_multiple_programs(
        request.profile_id,
        request.program_ids,
        request.options,
    )


@router.post(
    "/profiles/{profile_id}/evaluate-all",
    response_model=BatchEligibilityResult,
    summary="Evaluate every active program",
)
async def evaluate_all_programs(
    profile_id: str,
    service: Annotated[EligibilityService, Depends(get_eligibility_service)],
    options: Optional[EligibilityEvaluationOptions] = None,
) -> BatchEligibilityResult:
    return await service.evaluate_all_programs(profile_id, options)


@router.get(
    "/profiles/{profile_id}/results",
    response_model=List[CachedEligibilityResult],
    summary="List cached results",
    description="Retrieve every cached eligibility result for a profile, newest first",
)
async def get_cached_results(
    profile_id: str,
    service: Annotated[EligibilityService, Depends(get_eligibility_service)],
) -> List[CachedEligibilityResult]:
    return await service.get_cached_results(profile_id)


@router.delete(
    "/profiles/{profile_id}/results",
    response_model=ClearCacheResponse,
    status_code=status.HTTP_200_OK,
    summary="Clear cached results",
)
async def clear_cached_results(
    profile_id: str,
    service: Annotated[EligibilityService, Depends(get_eligibility_service)],
    program_id: Annotated[
        Optional[str], Query(description="Only clear results for this program")
    ] = None,
) -> ClearCacheResponse:
    """
    Delete cached results for a profile.

    Subsequent evaluations re-run the rules instead of reading the cache.
    """
    deleted = await service.clear_cached_results(profile_id, program_id)
    return ClearCacheResponse(deleted=deleted)
