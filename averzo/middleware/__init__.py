"""ASGI middleware."""

from averzo.middleware.request_id import RequestIDMiddleware

__all__ = ["RequestIDMiddleware"]
