"""Tests for AI flows, the Flow wrapper and the OpenAI prompt runner."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from openai import OpenAIError
from pydantic import BaseModel

from averzo.application.flows import (
    AnswerPolicyQuestionsOutput,
    answer_policy_questions,
    get_personalized_product_recommendations,
    subscribe_to_newsletter,
)
from averzo.domain.exceptions import (
    FlowOutputException,
    FlowRequestException,
    FlowUnavailableException,
    ValidationException,
)
from averzo.domain.value_objects import LogicalPath
from averzo.infrastructure.ai import Flow, FlowContext, PromptRunner


def _runner(reply: dict) -> MagicMock:
    runner = MagicMock(spec=PromptRunner)
    runner.generate = AsyncMock(return_value=reply)
    return runner


def _completion(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _openai_client(*, returns=None, raises=None) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=returns, side_effect=raises)
    return client


class _Echo(BaseModel):
    text: str


class TestFlow:
    async def test_invalid_input_raises_validation_exception(self) -> None:
        flow = Flow("echo", _Echo, _Echo, AsyncMock(return_value={"text": "x"}))
        with pytest.raises(ValidationException) as exc_info:
            await flow.run({})
        assert exc_info.value.details == {"field": "text"}

    async def test_no_output(self) -> None:
        flow = Flow("echo", _Echo, _Echo, AsyncMock(return_value=None))
        with pytest.raises(FlowOutputException, match="invalid output") as exc_info:
            await flow.run({"text": "hi"})
        assert exc_info.value.details["reason"] == "no output"

    async def test_output_not_matching_schema(self) -> None:
        flow = Flow("echo", _Echo, _Echo, AsyncMock(return_value={"wrong": 1}))
        with pytest.raises(FlowOutputException):
            await flow.run({"text": "hi"})

    async def test_handler_gets_validated_input_and_context(self) -> None:
        handler = AsyncMock(return_value={"text": "ok"})
        ctx = FlowContext()
        out = await Flow("echo", _Echo, _Echo, handler).run({"text": "hi"}, ctx)
        assert out == _Echo(text="ok")
        handler.assert_awaited_once_with(_Echo(text="hi"), ctx)


class TestPolicyQuestions:
    async def test_answers_from_runner(self) -> None:
        runner = _runner({"answer": "Free tuition for all."})
        out = await answer_policy_questions(
            {"question": "Education?", "context": "Free tuition for all."},
            FlowContext(runner=runner),
        )
        assert out == AnswerPolicyQuestionsOutput(answer="Free tuition for all.")
        _, _, prompt, schema = runner.generate.await_args.args
        assert "Question: Education?" in prompt
        assert schema is AnswerPolicyQuestionsOutput

    async def test_without_runner(self) -> None:
        with pytest.raises(FlowUnavailableException):
            await answer_policy_questions({"question": "q", "context": "c"}, FlowContext())

    async def test_empty_question_rejected(self) -> None:
        with pytest.raises(ValidationException):
            await answer_policy_questions(
                {"question": "", "context": "c"}, FlowContext(runner=_runner({}))
            )


class TestProductRecommendations:
    async def test_truncates_to_requested_count(self) -> None:
        runner = _runner({"product_recommendations": ["p1", "p2", "p3", "p4"]})
        out = await get_personalized_product_recommendations(
            {"purchaseHistory": ["p9"], "browsingHistory": [], "numberOfRecommendations": 2},
            FlowContext(runner=runner),
        )
        assert out.product_recommendations == ["p1", "p2"]
        prompt = runner.generate.await_args.args[2]
        assert "Purchase History: p9" in prompt
        assert "Browsing History: none" in prompt

    async def test_camel_case_reply_accepted_and_truncated(self) -> None:
        runner = _runner({"productRecommendations": ["a", "b", "c", "d"]})
        out = await get_personalized_product_recommendations(
            {"numberOfRecommendations": 2}, FlowContext(runner=runner)
        )
        assert out.product_recommendations == ["a", "b"]

    async def test_reply_without_recommendations(self) -> None:
        runner = _runner({"ids": ["a"]})
        with pytest.raises(FlowOutputException) as exc_info:
            await get_personalized_product_recommendations({}, FlowContext(runner=runner))
        assert exc_info.value.details["flow"] == "personalizedProductRecommendationsFlow"

    async def test_count_out_of_range(self) -> None:
        with pytest.raises(ValidationException):
            await get_personalized_product_recommendations(
                {"numberOfRecommendations": 0}, FlowContext(runner=_runner({}))
            )


class TestNewsletter:
    async def test_confirms_without_writer(self) -> None:
        out = await subscribe_to_newsletter({"email": "ada@example.com"}, FlowContext())
        assert out.message == "Successfully subscribed ada@example.com to the newsletter."

    async def test_records_subscriber_with_writer(self) -> None:
        writer = MagicMock()
        writer.add = AsyncMock(return_value="gen1")
        await subscribe_to_newsletter({"email": "ada@example.com"}, FlowContext(writer=writer))
        collection, data = writer.add.await_args.args
        assert collection == LogicalPath.of("newsletterSubscribers")
        assert data["email"] == "ada@example.com"
        assert "subscribedAt" in data

    async def test_invalid_email(self) -> None:
        with pytest.raises(ValidationException) as exc_info:
            await subscribe_to_newsletter({"email": "not-an-email"}, FlowContext())
        assert exc_info.value.details == {"field": "email"}


class TestPromptRunner:
    async def test_returns_decoded_object(self) -> None:
        client = _openai_client(returns=_completion(json.dumps({"answer": "yes"})))
        runner = PromptRunner(client, model="test-model")

        out = await runner.generate("f", "Be brief.", "Q?", AnswerPolicyQuestionsOutput)

        assert out == {"answer": "yes"}
        kwargs = client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][0]["content"].startswith("Be brief.")
        assert kwargs["messages"][1] == {"role": "user", "content": "Q?"}

    async def test_unavailable_without_client(self) -> None:
        runner = PromptRunner(None)
        assert not runner.available
        with pytest.raises(FlowUnavailableException):
            await runner.generate("f", "", "", AnswerPolicyQuestionsOutput)

    async def test_api_error_is_a_failed_request(self) -> None:
        runner = PromptRunner(_openai_client(raises=OpenAIError("boom")))
        assert runner.available
        with pytest.raises(FlowRequestException) as exc_info:
            await runner.generate("f", "", "", AnswerPolicyQuestionsOutput)
        assert exc_info.value.details == {"flow": "f", "reason": "OpenAIError"}

    @pytest.mark.parametrize("content", [None, "not json", "[1, 2]"])
    async def test_bad_reply(self, content: str | None) -> None:
        runner = PromptRunner(_openai_client(returns=_completion(content)))
        with pytest.raises(FlowOutputException):
            await runner.generate("f", "", "", AnswerPolicyQuestionsOutput)
