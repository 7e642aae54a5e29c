"""Rule validation and explanation endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from eligibility_engine.deps import get_rule_explainer, get_rule_validator
from eligibility_engine.models.schemas.rule import (
    DifferenceExplanation,
    ExplainDifferenceRequest,
    ExplainResultRequest,
    ExplainRuleRequest,
    ResultExplanation,
    RuleExplanation,
    RuleValidationResponse,
    SuggestionsResponse,
    ValidateRuleRequest,
    WhatWouldPassRequest,
)
from eligibility_engine.services.explanation.explainer import RuleExplainer
from eligibility_engine.services.rule_engine.validator import RuleValidator, ValidationOptions

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/validate",
    response_model=RuleValidationResponse,
    summary="Validate a rule",
    description="Statically check a rule's structure, depth, complexity and operators",
)
async def validate_rule(
    request: ValidateRuleRequest,
    validator: Annotated[RuleValidator, Depends(get_rule_validator)],
) -> RuleValidationResponse:
    """
    Validate a rule without evaluating it.

    Problems are returned as ``errors`` and ``warnings``; an invalid rule is
    still a 200 response.
    """
    defaults = validator.options
    options = ValidationOptions(
        allowed_operators=request.allowed_operators,
        disallowed_operators=request.disallowed_operators,
        max_depth=request.max_depth or defaults.max_depth,
        max_complexity=request.max_complexity or defaults.max_complexity,
        required_variables=request.required_variables,
        strict=request.strict,
    )
    result = validator.validate(request.rule, options)
    if not result.valid:
        logger.debug(f"Rule failed validation with {len(result.errors)} error(s)")
    return RuleValidationResponse.model_validate(result)


@router.post(
    "/explain",
    response_model=RuleExplanation,
    summary="Explain a rule",
)
async def explain_rule(
    request: ExplainRuleRequest,
    explainer: Annotated[RuleExplainer, Depends(get_rule_explainer)],
) -> RuleExplanation:
    return explainer.explain_rule(request.rule, request.language_level)


@router.post(
    "/explain-result",
    response_model=ResultExplanation,
    summary="Explain an evaluation result",
    description="Explain why a result is eligible, ineligible or incomplete",
)
async def explain_result(
    request: ExplainResultRequest,
    explainer: Annotated[RuleExplainer, Depends(get_rule_explainer)],
) -> ResultExplanation:
    return explainer.explain_result(request.result, request.rule, request.data, request.options)


@router.post(
    "/what-would-pass",
    response_model=SuggestionsResponse,
    summary="Suggest changes that would pass a rule",
)
async def what_would_pass(
    request: WhatWouldPassRequest,
    explainer: Annotated[RuleExplainer, Depends(get_rule_explainer)],
) -> SuggestionsResponse:
    return SuggestionsResponse(
        suggestions=explainer.explain_what_would_pass(request.rule, request.data)
    )


@router.post(
    "/explain-difference",
    response_model=DifferenceExplanation,
    summary="Explain the difference between two evaluations",
)
async def explain_difference(
    request: ExplainDifferenceRequest,
    explainer: Annotated[RuleExplainer, Depends(get_rule_explainer)],
) -> DifferenceExplanation:
    return explainer.explain_difference(
        request.result1, request.result2, request.data1, request.data2
    )
