"""Health check endpoints. Used for liveness and readiness probes."""

from fastapi import APIRouter, Request

from averzo.schemas.health import HealthResponse, ReadinessResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return simple ok status for liveness."""
    return HealthResponse()


@router.get("/ready", response_model=ReadinessResponse)
def readiness_check(request: Request) -> ReadinessResponse:
    """Report which external collaborators are configured.

    The service runs without either; live subscriptions and AI flows then
    answer with an error instead.
    """
    state = request.app.state
    runner = getattr(state, "prompt_runner", None)
    return ReadinessResponse(
        firestore=getattr(state, "snapshot_source", None) is not None,
        ai_flows=bool(runner is not None and runner.available),
    )
