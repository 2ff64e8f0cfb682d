"""Prompt runner over the OpenAI chat completions API.

Renders a prompt template, asks for a JSON object shaped like the flow's
output schema, and returns the decoded object. Schema validation is left
to the Flow that called it.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel

from averzo.core.config import Settings
from averzo.domain.exceptions import (
    FlowOutputException,
    FlowRequestException,
    FlowUnavailableException,
)

logger = logging.getLogger(__name__)

_SYSTEM_TEMPLATE = """{instructions}

Reply with a single JSON object that matches this JSON schema and nothing else:
{schema}"""


class PromptRunner:
    """Runs prompts for AI flows; without a client every call is unavailable."""

    def __init__(
        self,
        client: AsyncOpenAI | None,
        model: str = "gpt-4o-mini",
        temperature: float = 0.2,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = temperature

    @classmethod
    def from_settings(cls, settings: Settings) -> PromptRunner:
        """Build from OPENAI_API_KEY / OPENAI_MODEL; no key gives a runner with no client."""
        api_key = settings.openai_key_value()
        if not api_key:
            logger.warning("No OpenAI API key, AI flows that need a model are disabled")
            return cls(None, settings.openai_model)
        return cls(AsyncOpenAI(api_key=api_key), settings.openai_model)

    @property
    def available(self) -> bool:
        return self._client is not None

    async def generate(
        self,
        flow_name: str,
        instructions: str,
        prompt: str,
        output_schema: type[BaseModel],
    ) -> dict[str, Any]:
        """Send the prompt and return the model's JSON object.

        Raises:
            FlowUnavailableException: No client configured.
            FlowRequestException: The API call failed (timeout, connection, rate limit).
            FlowOutputException: Empty reply, or reply is not a JSON object.
        """
        if self._client is None:
            raise FlowUnavailableException(flow_name)
        system = _SYSTEM_TEMPLATE.format(
            instructions=instructions,
            schema=json.dumps(output_schema.model_json_schema(by_alias=False)),
        )
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                response_format={"type": "json_object"},
                temperature=self._temperature,
            )
        except OpenAIError as exc:
            logger.exception("OpenAI request for flow %s failed", flow_name)
            raise FlowRequestException(flow_name, type(exc).__name__) from exc
        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise FlowOutputException(flow_name, "empty reply")
        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            raise FlowOutputException(flow_name, "reply is not JSON") from exc
        if not isinstance(data, dict):
            raise FlowOutputException(flow_name, "reply is not a JSON object")
        return data
