"""Tests for the polling snapshot listener."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from averzo.domain.value_objects import CollectionQuery, DocumentRef
from averzo.infrastructure.firebase._rest_client import (
    DocumentSnapshot,
    FirestoreAPIError,
    QuerySnapshot,
)
from averzo.infrastructure.firebase.listeners import PollingSnapshotListener

INTERVAL = 0.01


async def _settle(rounds: int = 10) -> None:
    await asyncio.sleep(INTERVAL * rounds)


def _snapshot(*ids: str) -> QuerySnapshot:
    return QuerySnapshot([DocumentSnapshot(i, {"n": i}) for i in ids])


async def test_delivers_first_read_and_changes_only() -> None:
    reads = [_snapshot("a"), _snapshot("a"), _snapshot("a", "b")]

    def next_read(query: CollectionQuery) -> QuerySnapshot:
        return reads.pop(0) if len(reads) > 1 else reads[0]

    client = MagicMock()
    client.run_query = AsyncMock(side_effect=next_read)
    listener = PollingSnapshotListener(client, INTERVAL)
    delivered: list[QuerySnapshot] = []

    unsubscribe = listener.listen_query(
        CollectionQuery.collection("products"), delivered.append, MagicMock()
    )
    await _settle()
    unsubscribe()

    assert [[d.id for d in s] for s in delivered] == [["a"], ["a", "b"]]
    await listener.aclose()


async def test_error_reported_once_then_stops() -> None:
    client = MagicMock()
    client.run_query = AsyncMock(side_effect=FirestoreAPIError(403, "PERMISSION_DENIED", "no"))
    listener = PollingSnapshotListener(client, INTERVAL)
    on_snapshot = MagicMock()
    on_error = MagicMock()

    listener.listen_query(CollectionQuery.collection("orders"), on_snapshot, on_error)
    await _settle()

    on_error.assert_called_once()
    assert isinstance(on_error.call_args.args[0], FirestoreAPIError)
    on_snapshot.assert_not_called()
    assert client.run_query.await_count == 1
    assert listener.active_count == 0


async def test_unsubscribe_stops_polling() -> None:
    client = MagicMock()
    client.run_query = AsyncMock(return_value=_snapshot())
    listener = PollingSnapshotListener(client, INTERVAL)

    unsubscribe = listener.listen_query(
        CollectionQuery.collection("products"), MagicMock(), MagicMock()
    )
    await _settle(2)
    unsubscribe()
    await asyncio.sleep(0)
    calls = client.run_query.await_count
    await _settle()

    assert client.run_query.await_count == calls
    assert listener.active_count == 0


async def test_document_listener_reads_document() -> None:
    doc_ref = MagicMock()
    doc_ref.path = "artifacts/p/users/u1"
    doc_ref.get = AsyncMock(return_value=DocumentSnapshot("u1", {"displayName": "Ada"}))
    client = MagicMock()
    client.document.return_value = doc_ref
    listener = PollingSnapshotListener(client, INTERVAL)
    delivered: list[DocumentSnapshot] = []

    listener.listen_document(DocumentRef.of("artifacts/p/users/u1"), delivered.append, MagicMock())
    await _settle()
    await listener.aclose()

    client.document.assert_called_once_with("artifacts/p/users/u1")
    assert len(delivered) == 1
    assert delivered[0].to_dict() == {"displayName": "Ada"}
    assert listener.active_count == 0


def test_interval_must_be_positive() -> None:
    with pytest.raises(ValueError, match="greater than 0"):
        PollingSnapshotListener(MagicMock(), 0)
