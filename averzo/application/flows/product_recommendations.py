"""Personalized product recommendations from purchase and browsing history."""

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from averzo.domain.exceptions import FlowOutputException, FlowUnavailableException
from averzo.infrastructure.ai.flow import Flow, FlowContext

FLOW_NAME = "personalizedProductRecommendationsFlow"

INSTRUCTIONS = (
    "You are a product recommendation expert for an e-commerce website. "
    "Based on the user's purchase history and browsing history, you will recommend "
    "products that the user is likely to be interested in. "
    "Only return a list of product IDs. Do not include any other explanation."
)

PROMPT = """Purchase History: {purchase_history}
Browsing History: {browsing_history}

Number of Recommendations: {number_of_recommendations}"""


class PersonalizedProductRecommendationsInput(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    purchase_history: list[str] = Field(
        default_factory=list, description="List of product IDs the user has purchased."
    )
    browsing_history: list[str] = Field(
        default_factory=list, description="List of product IDs the user has viewed."
    )
    number_of_recommendations: int = Field(
        default=5, ge=1, le=50, description="The number of product recommendations to return."
    )


class PersonalizedProductRecommendationsOutput(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    product_recommendations: list[str] = Field(
        ..., description="List of product IDs recommended for the user."
    )


async def _recommend(
    data: PersonalizedProductRecommendationsInput, ctx: FlowContext
) -> PersonalizedProductRecommendationsOutput:
    if ctx.runner is None:
        raise FlowUnavailableException(FLOW_NAME)
    out = await ctx.runner.generate(
        FLOW_NAME,
        INSTRUCTIONS,
        PROMPT.format(
            purchase_history=", ".join(data.purchase_history) or "none",
            browsing_history=", ".join(data.browsing_history) or "none",
            number_of_recommendations=data.number_of_recommendations,
        ),
        PersonalizedProductRecommendationsOutput,
    )
    try:
        recommendations = PersonalizedProductRecommendationsOutput.model_validate(out)
    except ValidationError as exc:
        raise FlowOutputException(FLOW_NAME, "output does not match schema") from exc
    # Models sometimes return more ids than asked for.
    recommendations.product_recommendations = recommendations.product_recommendations[
        : data.number_of_recommendations
    ]
    return recommendations


personalized_product_recommendations_flow = Flow(
    FLOW_NAME,
    PersonalizedProductRecommendationsInput,
    PersonalizedProductRecommendationsOutput,
    _recommend,
)


async def get_personalized_product_recommendations(
    payload: PersonalizedProductRecommendationsInput | dict, ctx: FlowContext
) -> PersonalizedProductRecommendationsOutput:
    return await personalized_product_recommendations_flow.run(payload, ctx)
