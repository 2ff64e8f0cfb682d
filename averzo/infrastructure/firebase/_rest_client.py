"""Thin Firestore REST API client (no firebase-admin).

Uses google-auth for service account tokens and Firestore REST v1.
Keeps the deployment small (avoids grpcio / firebase-admin).
All HTTP calls use httpx.AsyncClient so they do not block the event loop.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Iterator
from typing import Any
from urllib.parse import quote

import httpx

from averzo.domain.value_objects import CollectionQuery, FieldFilter
from averzo.infrastructure.firebase._rest_encoding import (
    decode_fields,
    encode_document,
    encode_value,
)

_FIRESTORE_SCOPE = "https://www.googleapis.com/auth/datastore"
_BASE = "https://firestore.googleapis.com/v1"


def _get_credentials(key_dict: dict):
    """Return google.oauth2.service_account.Credentials for Firestore."""
    from google.oauth2 import service_account

    return service_account.Credentials.from_service_account_info(
        key_dict, scopes=[_FIRESTORE_SCOPE]
    )


def _get_access_token(credentials) -> str:
    from google.auth.transport.requests import Request

    if not credentials.valid:
        credentials.refresh(Request())
    return credentials.token


class FirestoreAPIError(Exception):
    """Non-success response from the Firestore REST API.

    Attributes:
        status_code: HTTP status code.
        status: Google RPC status name (e.g. PERMISSION_DENIED), if given.
        message: Error message from the response body.
    """

    def __init__(self, status_code: int, status: str | None, message: str) -> None:
        self.status_code = status_code
        self.status = status
        self.message = message
        super().__init__(f"{status or status_code}: {message}")

    @property
    def is_permission_denied(self) -> bool:
        return self.status_code == 403 or self.status == "PERMISSION_DENIED"

    @classmethod
    def from_response(cls, resp: httpx.Response) -> FirestoreAPIError:
        """Build from an error response; tolerates non-JSON bodies."""
        status: str | None = None
        message = resp.reason_phrase or "Firestore request failed"
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            status = body["error"].get("status")
            message = body["error"].get("message") or message
        return cls(resp.status_code, status, message)


class DocumentExistsError(FirestoreAPIError):
    """Raised when createDocument returns 409 (document ID already exists)."""

    def __init__(self, message: str = "Document already exists") -> None:
        super().__init__(409, "ALREADY_EXISTS", message)


async def _request_async(
    client: httpx.AsyncClient,
    url: str,
    method: str = "GET",
    body: dict | None = None,
    access_token: str | None = None,
    params: list[tuple[str, str]] | None = None,
) -> Any:
    """Perform async HTTP request to Firestore REST API. 404 returns None."""
    headers = {"Content-Type": "application/json"}
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
    if method not in ("GET", "PATCH", "POST", "DELETE"):
        raise ValueError(f"Unsupported method: {method!r}")
    resp = await client.request(method, url, headers=headers, json=body, params=params)
    if resp.status_code == 404:
        return None
    if resp.status_code == 409:
        raise DocumentExistsError()
    if resp.status_code not in (200, 204):
        raise FirestoreAPIError.from_response(resp)
    if method == "DELETE":
        return {}
    raw = resp.content
    return json.loads(raw.decode()) if raw else {}


def _doc_id(name: str) -> str:
    return name.rsplit("/", 1)[-1] if name else ""


class DocumentSnapshot:
    """Snapshot of a document (id + data); ``exists`` is False for a missing document."""

    def __init__(self, id_: str, data: dict | None, path: str = "", exists: bool = True):
        self.id = id_
        self.path = path
        self.exists = exists
        self._data = data or {}

    def to_dict(self) -> dict:
        return self._data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DocumentSnapshot):
            return NotImplemented
        return (self.id, self.path, self.exists, self._data) == (
            other.id,
            other.path,
            other.exists,
            other._data,
        )

    def __repr__(self) -> str:
        return f"DocumentSnapshot(id={self.id!r}, exists={self.exists})"


class QuerySnapshot:
    """Result of one query read: documents in server order."""

    def __init__(self, docs: list[DocumentSnapshot]):
        self.docs = docs

    @property
    def size(self) -> int:
        return len(self.docs)

    @property
    def empty(self) -> bool:
        return not self.docs

    def __iter__(self) -> Iterator[DocumentSnapshot]:
        return iter(self.docs)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, QuerySnapshot):
            return NotImplemented
        return self.docs == other.docs


class DocumentReference:
    """Reference to a single document; path is relative to the database root."""

    def __init__(self, client: FirestoreRESTClient, path: str):
        self._client = client
        self.path = path.strip("/")

    @property
    def id(self) -> str:
        return _doc_id(self.path)

    @property
    def _url(self) -> str:
        return f"{_BASE}/{self._client.documents_root}/{self.path}"

    async def get(self) -> DocumentSnapshot:
        """Fetch the document; a missing document gives ``exists=False``."""
        out = await _request_async(
            self._client._http, self._url, access_token=await self._client.get_token()
        )
        if not out:
            return DocumentSnapshot(self.id, None, self.path, exists=False)
        return DocumentSnapshot(self.id, decode_fields(out.get("fields")), self.path)

    async def set(self, data: dict[str, Any]) -> None:
        """Create or overwrite the document (PATCH with full replace)."""
        await _request_async(
            self._client._http,
            self._url,
            method="PATCH",
            body=encode_document(data),
            access_token=await self._client.get_token(),
        )

    async def update(self, data: dict[str, Any]) -> None:
        """Update only the given fields; fails with 404 semantics if missing."""
        params = [("updateMask.fieldPaths", key) for key in data]
        params.append(("currentDocument.exists", "true"))
        out = await _request_async(
            self._client._http,
            self._url,
            method="PATCH",
            body=encode_document(data),
            access_token=await self._client.get_token(),
            params=params,
        )
        if out is None:
            raise FirestoreAPIError(404, "NOT_FOUND", f"No document to update: {self.path}")

    async def delete(self) -> None:
        """Delete the document. Idempotent if document is already missing (404)."""
        await _request_async(
            self._client._http,
            self._url,
            method="DELETE",
            access_token=await self._client.get_token(),
        )


class CollectionReference:
    """Reference to a collection; path is relative to the database root."""

    def __init__(self, client: FirestoreRESTClient, path: str):
        self._client = client
        self.path = path.strip("/")

    @property
    def id(self) -> str:
        return _doc_id(self.path)

    def document(self, document_id: str) -> DocumentReference:
        return DocumentReference(self._client, f"{self.path}/{document_id}")

    async def add(self, data: dict[str, Any]) -> DocumentReference:
        """Create a document with a server-assigned ID."""
        out = await _request_async(
            self._client._http,
            f"{_BASE}/{self._client.documents_root}/{self.path}",
            method="POST",
            body=encode_document(data),
            access_token=await self._client.get_token(),
        )
        return self.document(_doc_id((out or {}).get("name", "")))

    async def create(self, document_id: str, data: dict[str, Any]) -> None:
        """Create a document with the given ID (fail with DocumentExistsError if it exists)."""
        url = (
            f"{_BASE}/{self._client.documents_root}/{self.path}"
            f"?documentId={quote(document_id, safe='')}"
        )
        await _request_async(
            self._client._http,
            url,
            method="POST",
            body=encode_document(data),
            access_token=await self._client.get_token(),
        )

    async def stream(self) -> AsyncIterator[DocumentSnapshot]:
        """List documents in the collection (shallow, follows page tokens)."""
        url = f"{_BASE}/{self._client.documents_root}/{self.path}"
        page_token: str | None = None
        while True:
            params = [("pageToken", page_token)] if page_token else None
            out = await _request_async(
                self._client._http,
                url,
                access_token=await self._client.get_token(),
                params=params,
            )
            if not out:
                return
            for doc in out.get("documents", []):
                name = doc.get("name", "")
                yield DocumentSnapshot(
                    _doc_id(name), decode_fields(doc.get("fields")), f"{self.path}/{_doc_id(name)}"
                )
            page_token = out.get("nextPageToken")
            if not page_token:
                return


_OP_MAP: dict[str, str] = {
    "==": "EQUAL",
    "!=": "NOT_EQUAL",
    "<": "LESS_THAN",
    "<=": "LESS_THAN_OR_EQUAL",
    ">": "GREATER_THAN",
    ">=": "GREATER_THAN_OR_EQUAL",
    "in": "IN",
    "not-in": "NOT_IN",
    "array-contains": "ARRAY_CONTAINS",
    "array-contains-any": "ARRAY_CONTAINS_ANY",
}


def _encode_filter(f: FieldFilter) -> dict[str, Any]:
    field = {"fieldPath": f.field_path}
    if f.value is None and f.op in ("==", "!="):
        op = "IS_NULL" if f.op == "==" else "IS_NOT_NULL"
        return {"unaryFilter": {"field": field, "op": op}}
    return {
        "fieldFilter": {
            "field": field,
            "op": _OP_MAP[f.op],
            "value": encode_value(f.value),
        }
    }


def build_structured_query(query: CollectionQuery) -> dict[str, Any]:
    """Translate a query descriptor into a runQuery structuredQuery body."""
    if query.collection_group:
        selector = {"collectionId": query.collection_group, "allDescendants": True}
    else:
        selector = {"collectionId": query.path.segments[-1]}
    structured: dict[str, Any] = {"from": [selector]}
    filters = [_encode_filter(f) for f in query.filters]
    if len(filters) == 1:
        structured["where"] = filters[0]
    elif filters:
        structured["where"] = {"compositeFilter": {"op": "AND", "filters": filters}}
    if query.orderings:
        structured["orderBy"] = [
            {"field": {"fieldPath": o.field_path}, "direction": o.direction.value}
            for o in query.orderings
        ]
    if query.limit_to is not None:
        structured["limit"] = query.limit_to
    return structured


def query_parent_path(query: CollectionQuery) -> str:
    """Path (below the database root) of the document the query runs under."""
    if query.collection_group:
        return str(query.path)
    return "/".join(query.path.segments[:-1])


class FirestoreRESTClient:
    """Lightweight Firestore client using REST API (no firebase-admin)."""

    def __init__(
        self,
        project_id: str,
        credentials,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._project_id = project_id
        self._credentials = credentials
        self.documents_root = f"projects/{project_id}/databases/(default)/documents"
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=30.0)
        self._owns_http = http_client is None

    @property
    def project_id(self) -> str:
        return self._project_id

    async def aclose(self) -> None:
        """Close the HTTP client only if we created it (do not close injected client)."""
        if self._owns_http:
            await self._http.aclose()

    async def get_token(self) -> str | None:
        """Return a valid access token; refreshes in thread pool to avoid blocking.

        Without credentials (emulator, tests with a mock transport) no token is sent.
        """
        if self._credentials is None:
            return None
        return await asyncio.to_thread(_get_access_token, self._credentials)

    def collection(self, path: str) -> CollectionReference:
        return CollectionReference(self, path)

    def document(self, path: str) -> DocumentReference:
        return DocumentReference(self, path)

    async def run_query(self, query: CollectionQuery) -> QuerySnapshot:
        """Run a structured query and return its documents in server order.

        Raises:
            ValueError: If the query names neither a collection nor a group.
        """
        if not query.collection_group and not query.path.segments:
            raise ValueError("Query has no collection path or collection group")
        parent = query_parent_path(query)
        root = f"{_BASE}/{self.documents_root}"
        url = f"{root}/{parent}:runQuery" if parent else f"{root}:runQuery"
        resp = await _request_async(
            self._http,
            url,
            method="POST",
            body={"structuredQuery": build_structured_query(query)},
            access_token=await self.get_token(),
        )
        items = resp if isinstance(resp, list) else ([resp] if resp else [])
        docs: list[DocumentSnapshot] = []
        prefix = f"{self.documents_root}/"
        for item in items:
            if "document" not in item:
                continue
            doc = item["document"]
            name = doc.get("name", "")
            path = name[len(prefix):] if name.startswith(prefix) else name
            docs.append(DocumentSnapshot(_doc_id(name), decode_fields(doc.get("fields")), path))
        return QuerySnapshot(docs)
