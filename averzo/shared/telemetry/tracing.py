"""Span helpers for AI flows and data-access operations."""

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode


class TracedOperation:
    """Async context manager that wraps a block in a span.

    Records the exception and marks the span as failed when the block raises.
    """

    def __init__(self, operation_name: str, attributes: dict | None = None) -> None:
        self.operation_name = operation_name
        self.attributes = attributes or {}
        self.tracer = trace.get_tracer(__name__)
        self.span: trace.Span | None = None
        self._activation = None

    async def __aenter__(self) -> "TracedOperation":
        self.span = self.tracer.start_span(self.operation_name)
        for key, value in self.attributes.items():
            self.span.set_attribute(key, value)
        self._activation = trace.use_span(self.span, end_on_exit=False)
        self._activation.__enter__()
        return self

    async def __aexit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        if self.span is None:
            return
        if exc_val is not None:
            self.span.set_status(Status(StatusCode.ERROR, str(exc_val)))
            self.span.record_exception(exc_val)
        else:
            self.span.set_status(Status(StatusCode.OK))
        if self._activation is not None:
            self._activation.__exit__(None, None, None)
            self._activation = None
        self.span.end()


def add_span_event(name: str, attributes: dict | None = None) -> None:
    """Add an event to the current span."""
    span = trace.get_current_span()
    if span and span.is_recording():
        span.add_event(name, attributes=attributes or {})
