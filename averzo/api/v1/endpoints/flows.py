"""AI flow endpoints: thin routes delegating to the flows.

Flow failures answer 500 with a short message, as the storefront expects;
a missing model provider propagates as FLOW_UNAVAILABLE (503).
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from averzo.api.v1.dependencies import get_flow_context
from averzo.application.flows import (
    AnswerPolicyQuestionsInput,
    AnswerPolicyQuestionsOutput,
    NewsletterSubscriptionOutput,
    PersonalizedProductRecommendationsInput,
    PersonalizedProductRecommendationsOutput,
    answer_policy_questions,
    get_personalized_product_recommendations,
    subscribe_to_newsletter,
)
from averzo.core.limiter import limit_flows
from averzo.domain.exceptions import (
    FirestorePermissionError,
    FlowOutputException,
    FlowRequestException,
)
from averzo.infrastructure.ai.flow import FlowContext

logger = logging.getLogger(__name__)

router = APIRouter()

_FLOW_FAILURES = (FlowOutputException, FlowRequestException, FirestorePermissionError)


def _failed(message: str) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": message})


@router.post(
    "/recommendations",
    response_model=PersonalizedProductRecommendationsOutput,
    responses={500: {"description": "Flow failed"}},
)
@limit_flows
async def recommendations(
    request: Request,
    body: PersonalizedProductRecommendationsInput,
    ctx: Annotated[FlowContext, Depends(get_flow_context)],
):
    """Recommend product ids from purchase and browsing history."""
    try:
        return await get_personalized_product_recommendations(body, ctx)
    except _FLOW_FAILURES:
        logger.exception("Error in recommendations API")
        return _failed("Failed to get recommendations.")


@router.post(
    "/subscribe",
    response_model=NewsletterSubscriptionOutput,
    responses={400: {"description": "Email is required"}, 500: {"description": "Flow failed"}},
)
@limit_flows
async def subscribe(
    request: Request,
    body: Annotated[
        dict[str, Any],
        Body(openapi_examples={"subscriber": {"value": {"email": "ada@example.com"}}}),
    ],
    ctx: Annotated[FlowContext, Depends(get_flow_context)],
):
    """Subscribe an email address to the newsletter.

    A missing or non-string email answers 400 before the flow runs; a
    malformed address fails flow input validation (VALIDATION_ERROR, 400).
    """
    email = body.get("email")
    if not email or not isinstance(email, str):
        return JSONResponse(status_code=400, content={"error": "Email is required"})
    try:
        return await subscribe_to_newsletter(body, ctx)
    except _FLOW_FAILURES:
        logger.exception("Error in subscribe API")
        return _failed("Failed to subscribe.")


@router.post(
    "/policy-questions",
    response_model=AnswerPolicyQuestionsOutput,
    responses={500: {"description": "Flow failed"}},
)
@limit_flows
async def policy_questions(
    request: Request,
    body: AnswerPolicyQuestionsInput,
    ctx: Annotated[FlowContext, Depends(get_flow_context)],
):
    """Answer a question about the campaign's policies from the given context."""
    try:
        return await answer_policy_questions(body, ctx)
    except _FLOW_FAILURES:
        logger.exception("Error in policy questions API")
        return _failed("Failed to answer the question.")
