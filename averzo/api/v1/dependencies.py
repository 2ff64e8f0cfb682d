"""FastAPI dependencies reading the infrastructure wired in the lifespan."""

from fastapi import Request

from averzo.infrastructure.ai.flow import FlowContext


def get_flow_context(request: Request) -> FlowContext:
    """Prompt runner and (when Firestore is configured) guarded writer for flows."""
    state = request.app.state
    return FlowContext(
        runner=getattr(state, "prompt_runner", None),
        writer=getattr(state, "writer", None),
    )
