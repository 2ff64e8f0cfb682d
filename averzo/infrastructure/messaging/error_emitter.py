"""In-process event channel for data-access failures.

Subscription adapters and guarded writes emit a PermissionErrorEvent on the
``permission-error`` channel; UI-facing code far from the call site (the
permission-error WebSocket, a toast surface) listens without every caller
threading error callbacks through.

One emitter is built per application in the lifespan and injected; tests
construct their own.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

PERMISSION_ERROR = "permission-error"

Listener = Callable[[Any], None]


class ErrorEmitter:
    """Synchronous publish/subscribe keyed by event name.

    - ``emit`` delivers to the listeners registered at the moment of the call,
      in registration order; registering or removing listeners during
      delivery affects only later emits.
    - Emitting with no listeners is a no-op.
    - A listener that raises is logged; the remaining listeners still run.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}
        self._lock = threading.Lock()

    def on(self, event_name: str, listener: Listener) -> Callable[[], None]:
        """Register listener for event_name. Returns a function that removes it."""
        with self._lock:
            self._listeners.setdefault(event_name, []).append(listener)
        return lambda: self.off(event_name, listener)

    def off(self, event_name: str, listener: Listener) -> None:
        """Remove one registration of listener; unknown listeners are ignored."""
        with self._lock:
            listeners = self._listeners.get(event_name)
            if not listeners or listener not in listeners:
                return
            listeners.remove(listener)
            if not listeners:
                del self._listeners[event_name]

    def emit(self, event_name: str, payload: Any) -> None:
        """Deliver payload to every listener of event_name."""
        with self._lock:
            snapshot = list(self._listeners.get(event_name, ()))
        for listener in snapshot:
            try:
                listener(payload)
            except Exception:
                logger.exception("Listener for %s raised", event_name)

    def listener_count(self, event_name: str) -> int:
        with self._lock:
            return len(self._listeners.get(event_name, ()))
