"""API v1 router aggregation.

Includes all endpoint modules with consistent prefix and tags. Routes read
their collaborators from app.state through averzo.api.v1.dependencies.
"""

from fastapi import APIRouter

from averzo.api.v1.endpoints import flows, health, websocket as ws_endpoint

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(flows.router, prefix="/flows", tags=["flows"])
api_router.include_router(ws_endpoint.router, prefix="/ws", tags=["websocket"])
