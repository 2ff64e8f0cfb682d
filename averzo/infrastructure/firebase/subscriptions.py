"""Live collection/document subscriptions with tenant path rewriting.

Each adapter owns at most one listener on a SnapshotSource and exposes a
``{data, loading, error}`` state that is current as of the latest delivered
snapshot:

    subs = CollectionSubscription(source, emitter, tenant_id="proj1")
    subs.watch(render)
    subs.subscribe(CollectionQuery.collection("products"))   # loading=True
    ...                                                      # first snapshot -> data
    subs.subscribe(None)                                     # released, loading=False

Changing the input tears the old listener down before the new one is
registered. Teardown bumps a generation counter; callbacks that arrive
with an older generation are dropped. Listener errors are never raised:
they become ``state.error`` plus one event on the permission-error channel.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any, Generic, TypeVar

from averzo.domain.enums import PermissionOperation
from averzo.domain.value_objects import (
    CollectionQuery,
    DocumentRef,
    PermissionErrorEvent,
)
from averzo.infrastructure.firebase._rest_client import DocumentSnapshot, QuerySnapshot
from averzo.infrastructure.firebase.listeners import SnapshotSource, Unsubscribe
from averzo.infrastructure.firebase.paths import normalize_document, normalize_query
from averzo.infrastructure.messaging.error_emitter import PERMISSION_ERROR, ErrorEmitter

logger = logging.getLogger(__name__)

UNKNOWN_COLLECTION = "unknown collection"

Record = dict[str, Any]
T = TypeVar("T")
InputT = TypeVar("InputT")


def to_record(doc: DocumentSnapshot) -> Record:
    """Document fields merged with ``id``; the document id wins over a field named id."""
    return {**doc.to_dict(), "id": doc.id}


@dataclass(frozen=True)
class SubscriptionState(Generic[T]):
    """Observable state of a subscription.

    ``constraints_dropped`` is True when a rewritten query was run without its
    filters/order/limit (see CollectionSubscription).
    """

    data: T | None = None
    loading: bool = True
    error: Exception | None = None
    constraints_dropped: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": self.data,
            "loading": self.loading,
            "error": str(self.error) if self.error is not None else None,
            "constraints_dropped": self.constraints_dropped,
        }


StateCallback = Callable[[SubscriptionState[Any]], None]


class _Subscription(Generic[InputT, T]):
    """Shared lifecycle: one listener, generation-guarded callbacks, watchers."""

    operation: PermissionOperation

    def __init__(
        self,
        source: SnapshotSource,
        emitter: ErrorEmitter,
        tenant_id: str | None,
    ) -> None:
        self._source = source
        self._emitter = emitter
        self._tenant_id = tenant_id
        self._input: InputT | None = None
        self._has_input = False
        self._generation = 0
        self._unsubscribe: Unsubscribe | None = None
        self._state: SubscriptionState[T] = SubscriptionState()
        self._watchers: list[StateCallback] = []

    @property
    def state(self) -> SubscriptionState[T]:
        return self._state

    @property
    def input(self) -> InputT | None:
        return self._input

    @property
    def is_listening(self) -> bool:
        """True while a backend listener is held."""
        return self._unsubscribe is not None

    def watch(self, callback: StateCallback) -> Callable[[], None]:
        """Call callback on every state change. Returns a function that stops it."""
        self._watchers.append(callback)

        def unwatch() -> None:
            if callback in self._watchers:
                self._watchers.remove(callback)

        return unwatch

    def subscribe(self, target: InputT | None) -> None:
        """Point the subscription at target (None releases it).

        An input equal to the current one keeps the existing listener.
        """
        if self._has_input and target == self._input:
            return
        self._teardown()
        self._input = target
        self._has_input = True
        if target is None:
            self._set_state(SubscriptionState(data=None, loading=False))
            return
        physical, constraints_dropped = self._resolve(target)
        generation = self._generation
        self._set_state(SubscriptionState(loading=True, constraints_dropped=constraints_dropped))
        try:
            self._unsubscribe = self._listen(physical, generation)
        except Exception as exc:
            self._fail(generation, self._error_path(physical), exc)

    def close(self) -> None:
        """Release the listener; later callbacks are ignored."""
        self._teardown()
        self._input = None
        self._has_input = False

    def __enter__(self) -> _Subscription[InputT, T]:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _resolve(self, target: InputT) -> tuple[InputT, bool]:
        raise NotImplementedError

    def _listen(self, physical: InputT, generation: int) -> Unsubscribe:
        raise NotImplementedError

    def _error_path(self, physical: InputT) -> str:
        raise NotImplementedError

    def _teardown(self) -> None:
        self._generation += 1
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()

    def _is_current(self, generation: int) -> bool:
        if generation != self._generation:
            logger.debug(
                "Dropping stale %s callback (generation %d, current %d)",
                self.operation.value,
                generation,
                self._generation,
            )
            return False
        return True

    def _deliver(self, generation: int, data: T | None) -> None:
        if self._is_current(generation):
            self._set_state(replace(self._state, data=data, loading=False))

    def _fail(self, generation: int, path: str, exc: Exception) -> None:
        if not self._is_current(generation):
            return
        logger.warning("Subscription %s on %s failed: %s", self.operation.value, path, exc)
        self._emitter.emit(PERMISSION_ERROR, PermissionErrorEvent(path, self.operation))
        self._set_state(replace(self._state, error=exc, loading=False))

    def _set_state(self, state: SubscriptionState[T]) -> None:
        self._state = state
        for callback in list(self._watchers):
            try:
                callback(state)
            except Exception:
                logger.exception("Subscription watcher raised")


class CollectionSubscription(_Subscription[CollectionQuery, list[Record]]):
    """Live list of records for a collection query.

    A query whose path is rewritten keeps its filters, orderings and limit.
    With ``drop_rewritten_constraints=True`` it instead runs as a bare query
    over the physical collection and over-fetches; that case is flagged in
    ``state.constraints_dropped`` and logged.
    """

    operation = PermissionOperation.LIST

    def __init__(
        self,
        source: SnapshotSource,
        emitter: ErrorEmitter,
        tenant_id: str | None,
        *,
        drop_rewritten_constraints: bool = False,
    ) -> None:
        super().__init__(source, emitter, tenant_id)
        self._drop_constraints = drop_rewritten_constraints

    def _resolve(self, target: CollectionQuery) -> tuple[CollectionQuery, bool]:
        physical = normalize_query(
            target, self._tenant_id, drop_constraints=self._drop_constraints
        )
        dropped = (
            self._drop_constraints and target.has_constraints and physical.path != target.path
        )
        if dropped:
            logger.warning(
                "Query on %s rewritten to %s without its constraints; results are unfiltered",
                target.path,
                physical.path,
            )
        return physical, dropped

    def _listen(self, physical: CollectionQuery, generation: int) -> Unsubscribe:
        return self._source.listen_query(
            physical,
            lambda snapshot: self._on_snapshot(generation, snapshot),
            lambda exc: self._fail(generation, self._error_path(physical), exc),
        )

    def _on_snapshot(self, generation: int, snapshot: QuerySnapshot) -> None:
        self._deliver(generation, [to_record(doc) for doc in snapshot.docs])

    def _error_path(self, physical: CollectionQuery) -> str:
        return str(physical.path) or physical.collection_group or UNKNOWN_COLLECTION


class DocumentSubscription(_Subscription[DocumentRef, Record]):
    """Live record for one document; a missing document is ``data=None``, not an error."""

    operation = PermissionOperation.GET

    def _resolve(self, target: DocumentRef) -> tuple[DocumentRef, bool]:
        return normalize_document(target, self._tenant_id), False

    def _listen(self, physical: DocumentRef, generation: int) -> Unsubscribe:
        return self._source.listen_document(
            physical,
            lambda snapshot: self._on_snapshot(generation, snapshot),
            lambda exc: self._fail(generation, self._error_path(physical), exc),
        )

    def _on_snapshot(self, generation: int, snapshot: DocumentSnapshot) -> None:
        self._deliver(generation, to_record(snapshot) if snapshot.exists else None)

    def _error_path(self, physical: DocumentRef) -> str:
        return str(physical.path)
