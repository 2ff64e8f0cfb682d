"""Answer questions about Dr. Chakraborty's policies from supplied statements.

Backs the campaign micro-site's policy Q&A section.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from averzo.domain.exceptions import FlowUnavailableException
from averzo.infrastructure.ai.flow import Flow, FlowContext

FLOW_NAME = "answerPolicyQuestionsFlow"

INSTRUCTIONS = (
    "You are an AI assistant designed to answer questions about Dr. Chakraborty's policies. "
    "Use the provided context to answer the question accurately and concisely. "
    "If the answer is not in the context, say you do not know."
)

PROMPT = """Context: {context}

Question: {question}

Answer:"""


class AnswerPolicyQuestionsInput(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    question: str = Field(
        ..., min_length=1, description="The question about Dr. Chakraborty's policies."
    )
    context: str = Field(
        ..., description="The context containing Dr. Chakraborty's provided statements."
    )


class AnswerPolicyQuestionsOutput(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    answer: str = Field(
        ..., description="The answer to the question about Dr. Chakraborty's policies."
    )


async def _answer(data: AnswerPolicyQuestionsInput, ctx: FlowContext) -> dict:
    if ctx.runner is None:
        raise FlowUnavailableException(FLOW_NAME)
    return await ctx.runner.generate(
        FLOW_NAME,
        INSTRUCTIONS,
        PROMPT.format(context=data.context, question=data.question),
        AnswerPolicyQuestionsOutput,
    )


answer_policy_questions_flow = Flow(
    FLOW_NAME, AnswerPolicyQuestionsInput, AnswerPolicyQuestionsOutput, _answer
)


async def answer_policy_questions(
    payload: AnswerPolicyQuestionsInput | dict, ctx: FlowContext
) -> AnswerPolicyQuestionsOutput:
    return await answer_policy_questions_flow.run(payload, ctx)
