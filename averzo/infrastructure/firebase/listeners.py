"""Live snapshot listeners over the Firestore REST client.

The REST API has no push channel, so each listener is an asyncio task that
re-reads its target every ``interval_seconds`` and delivers a snapshot on the
first read and whenever the content changes. Like a Firestore SDK listener,
it reports the first error once and then stops.

Anything with the ``SnapshotSource`` shape can back the subscription
adapters (tests use an in-memory fake).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from averzo.domain.value_objects import CollectionQuery, DocumentRef
from averzo.infrastructure.firebase._rest_client import (
    DocumentSnapshot,
    FirestoreRESTClient,
    QuerySnapshot,
)

logger = logging.getLogger(__name__)

Unsubscribe = Callable[[], None]
QuerySnapshotCallback = Callable[[QuerySnapshot], None]
DocumentSnapshotCallback = Callable[[DocumentSnapshot], None]
ErrorCallback = Callable[[Exception], None]


class SnapshotSource(Protocol):
    """Live-query primitive: register callbacks, get back an unsubscribe function.

    Queries and references passed here are already physical (tenant-scoped).
    """

    def listen_query(
        self,
        query: CollectionQuery,
        on_snapshot: QuerySnapshotCallback,
        on_error: ErrorCallback,
    ) -> Unsubscribe: ...

    def listen_document(
        self,
        ref: DocumentRef,
        on_snapshot: DocumentSnapshotCallback,
        on_error: ErrorCallback,
    ) -> Unsubscribe: ...


_UNSET: Any = object()


class PollingSnapshotListener:
    """SnapshotSource backed by periodic REST reads.

    Must be used from inside a running event loop. Call ``aclose()`` on
    shutdown to cancel listeners that callers never released.
    """

    def __init__(self, client: FirestoreRESTClient, interval_seconds: float = 2.0) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be greater than 0")
        self._client = client
        self._interval = interval_seconds
        self._tasks: set[asyncio.Task] = set()

    @property
    def active_count(self) -> int:
        """Number of listeners still running."""
        return sum(1 for t in self._tasks if not t.done())

    def listen_query(
        self,
        query: CollectionQuery,
        on_snapshot: QuerySnapshotCallback,
        on_error: ErrorCallback,
    ) -> Unsubscribe:
        target = query.collection_group or str(query.path)
        return self._start(
            lambda: self._client.run_query(query), on_snapshot, on_error, target
        )

    def listen_document(
        self,
        ref: DocumentRef,
        on_snapshot: DocumentSnapshotCallback,
        on_error: ErrorCallback,
    ) -> Unsubscribe:
        doc = self._client.document(str(ref.path))
        return self._start(doc.get, on_snapshot, on_error, doc.path)

    def _start(
        self,
        read: Callable[[], Awaitable[Any]],
        on_snapshot: Callable[[Any], None],
        on_error: ErrorCallback,
        target: str,
    ) -> Unsubscribe:
        task = asyncio.get_running_loop().create_task(
            self._poll(read, on_snapshot, on_error, target), name=f"listen:{target}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        def unsubscribe() -> None:
            if not task.done():
                task.cancel()
                logger.debug("Listener on %s cancelled", target)

        return unsubscribe

    async def _poll(
        self,
        read: Callable[[], Awaitable[Any]],
        on_snapshot: Callable[[Any], None],
        on_error: ErrorCallback,
        target: str,
    ) -> None:
        last = _UNSET
        while True:
            try:
                snapshot = await read()
            except Exception as exc:
                logger.warning("Listener on %s failed: %s", target, exc)
                on_error(exc)
                return
            if snapshot != last:
                last = snapshot
                on_snapshot(snapshot)
            await asyncio.sleep(self._interval)

    async def aclose(self) -> None:
        """Cancel all running listeners and wait for them to finish."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Stopped %d Firestore listener(s)", len(tasks))
