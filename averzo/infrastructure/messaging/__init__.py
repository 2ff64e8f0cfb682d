"""Messaging: in-process error event channel."""

from averzo.infrastructure.messaging.error_emitter import (
    PERMISSION_ERROR,
    ErrorEmitter,
)

__all__ = ["PERMISSION_ERROR", "ErrorEmitter"]
