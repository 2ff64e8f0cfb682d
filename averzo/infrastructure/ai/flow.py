"""Typed request/response flows.

A Flow pairs a pydantic input schema, a pydantic output schema and an async
handler. Input is validated before the handler runs and the handler's
result is validated against the output schema, so callers only ever see a
well-formed output or a domain exception.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from averzo.domain.exceptions import FlowOutputException, ValidationException
from averzo.shared.telemetry.tracing import TracedOperation, add_span_event

if TYPE_CHECKING:
    from averzo.infrastructure.ai.prompt import PromptRunner
    from averzo.infrastructure.firebase.writes import GuardedWriter

logger = logging.getLogger(__name__)

InT = TypeVar("InT", bound=BaseModel)
OutT = TypeVar("OutT", bound=BaseModel)


@dataclass(frozen=True)
class FlowContext:
    """Collaborators a flow handler may use; either can be absent."""

    runner: PromptRunner | None = None
    writer: GuardedWriter | None = None


Handler = Callable[[InT, FlowContext], Awaitable[OutT | dict[str, Any] | None]]


class Flow(Generic[InT, OutT]):
    """Named, schema-checked async operation."""

    def __init__(
        self,
        name: str,
        input_schema: type[InT],
        output_schema: type[OutT],
        handler: Handler,
    ) -> None:
        self.name = name
        self.input_schema = input_schema
        self.output_schema = output_schema
        self._handler = handler

    async def run(
        self, payload: InT | dict[str, Any], context: FlowContext | None = None
    ) -> OutT:
        """Validate payload, run the handler, validate and return its output.

        Raises:
            ValidationException: payload does not match the input schema.
            FlowOutputException: handler output missing or invalid.
        """
        try:
            data = self.input_schema.model_validate(payload)
        except ValidationError as exc:
            first = exc.errors()[0] if exc.errors() else {}
            field = ".".join(str(p) for p in first.get("loc", ())) or None
            raise ValidationException(
                f"Invalid input for {self.name}: {first.get('msg', 'validation failed')}",
                field=field,
            ) from exc
        async with TracedOperation(f"flow.{self.name}", {"flow.name": self.name}):
            result = await self._handler(data, context or FlowContext())
            if result is None:
                add_span_event("flow.no_output")
                raise FlowOutputException(self.name, "no output")
            try:
                return self.output_schema.model_validate(result)
            except ValidationError as exc:
                logger.warning("Flow %s produced invalid output: %s", self.name, exc)
                add_span_event("flow.invalid_output")
                raise FlowOutputException(self.name, "output does not match schema") from exc
