"""Newsletter subscription flow.

No model call: records the address (when a writer is available) and
returns a confirmation message.
"""

import logging

from pydantic import BaseModel, EmailStr, Field

from averzo.domain.value_objects import LogicalPath
from averzo.infrastructure.ai.flow import Flow, FlowContext
from averzo.infrastructure.firebase.collections import COLLECTION_NEWSLETTER_SUBSCRIBERS
from averzo.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)

FLOW_NAME = "subscribeToNewsletterFlow"


class NewsletterSubscriptionInput(BaseModel):
    email: EmailStr = Field(..., description="The email address of the subscriber.")


class NewsletterSubscriptionOutput(BaseModel):
    message: str = Field(..., description="The result of the subscription attempt.")


async def _subscribe(data: NewsletterSubscriptionInput, ctx: FlowContext) -> dict:
    logger.info("New newsletter subscription from: %s", data.email)
    if ctx.writer is not None:
        await ctx.writer.add(
            LogicalPath.of(COLLECTION_NEWSLETTER_SUBSCRIBERS),
            {"email": data.email, "subscribedAt": utc_now()},
        )
    return {"message": f"Successfully subscribed {data.email} to the newsletter."}


subscribe_to_newsletter_flow = Flow(
    FLOW_NAME, NewsletterSubscriptionInput, NewsletterSubscriptionOutput, _subscribe
)


async def subscribe_to_newsletter(
    payload: NewsletterSubscriptionInput | dict, ctx: FlowContext
) -> NewsletterSubscriptionOutput:
    return await subscribe_to_newsletter_flow.run(payload, ctx)
