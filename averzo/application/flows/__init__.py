"""AI flows used by the storefront and the campaign micro-site."""

from averzo.application.flows.newsletter import (
    NewsletterSubscriptionInput,
    NewsletterSubscriptionOutput,
    subscribe_to_newsletter,
)
from averzo.application.flows.policy_questions import (
    AnswerPolicyQuestionsInput,
    AnswerPolicyQuestionsOutput,
    answer_policy_questions,
)
from averzo.application.flows.product_recommendations import (
    PersonalizedProductRecommendationsInput,
    PersonalizedProductRecommendationsOutput,
    get_personalized_product_recommendations,
)

__all__ = [
    "AnswerPolicyQuestionsInput",
    "AnswerPolicyQuestionsOutput",
    "NewsletterSubscriptionInput",
    "NewsletterSubscriptionOutput",
    "PersonalizedProductRecommendationsInput",
    "PersonalizedProductRecommendationsOutput",
    "answer_policy_questions",
    "get_personalized_product_recommendations",
    "subscribe_to_newsletter",
]
