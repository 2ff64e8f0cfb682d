"""Tenant-scoped writes that report rejected operations.

Writes go to the same physical paths the subscriptions read from. When the
store rejects one, a PermissionErrorEvent (with the payload for
create/update) goes out on the permission-error channel and the caller gets
a FirestorePermissionError, since writes are awaited.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from averzo.domain.enums import PermissionOperation
from averzo.domain.exceptions import FirestorePermissionError
from averzo.domain.value_objects import DocumentRef, LogicalPath, PermissionErrorEvent
from averzo.infrastructure.firebase._rest_client import (
    FirestoreAPIError,
    FirestoreRESTClient,
)
from averzo.infrastructure.firebase.paths import normalize_document, normalize_path
from averzo.infrastructure.messaging.error_emitter import PERMISSION_ERROR, ErrorEmitter

logger = logging.getLogger(__name__)

_WRITE_ERRORS = (FirestoreAPIError, httpx.HTTPError)


class GuardedWriter:
    """Create/set/update/delete documents under the tenant namespace."""

    def __init__(
        self,
        client: FirestoreRESTClient,
        emitter: ErrorEmitter,
        tenant_id: str | None,
    ) -> None:
        self._client = client
        self._emitter = emitter
        self._tenant_id = tenant_id

    async def add(self, collection: LogicalPath, data: dict[str, Any]) -> str:
        """Create a document with a generated id in collection; return the id."""
        path = str(normalize_path(collection, self._tenant_id))
        try:
            ref = await self._client.collection(path).add(data)
        except _WRITE_ERRORS as exc:
            raise self._report(path, PermissionOperation.CREATE, exc, data) from exc
        logger.debug("Created %s/%s", path, ref.id)
        return ref.id

    async def set(self, ref: DocumentRef, data: dict[str, Any], *, create: bool = False) -> None:
        """Create or overwrite the document at ref.

        Pass ``create=True`` for a first write so a rejection is reported as
        a create rather than an update.
        """
        path = self._physical(ref)
        operation = PermissionOperation.CREATE if create else PermissionOperation.UPDATE
        try:
            await self._client.document(path).set(data)
        except _WRITE_ERRORS as exc:
            raise self._report(path, operation, exc, data) from exc

    async def update(self, ref: DocumentRef, data: dict[str, Any]) -> None:
        """Update the given fields of an existing document."""
        path = self._physical(ref)
        try:
            await self._client.document(path).update(data)
        except _WRITE_ERRORS as exc:
            raise self._report(path, PermissionOperation.UPDATE, exc, data) from exc

    async def delete(self, ref: DocumentRef) -> None:
        path = self._physical(ref)
        try:
            await self._client.document(path).delete()
        except _WRITE_ERRORS as exc:
            raise self._report(path, PermissionOperation.DELETE, exc) from exc

    def _physical(self, ref: DocumentRef) -> str:
        return str(normalize_document(ref, self._tenant_id).path)

    def _report(
        self,
        path: str,
        operation: PermissionOperation,
        exc: Exception,
        data: dict[str, Any] | None = None,
    ) -> FirestorePermissionError:
        logger.warning("Write %s on %s rejected: %s", operation.value, path, exc)
        self._emitter.emit(PERMISSION_ERROR, PermissionErrorEvent(path, operation, data))
        return FirestorePermissionError(path, operation.value, data)
