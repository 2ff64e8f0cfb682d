"""Tests for domain value objects (LogicalPath, FieldFilter, CollectionQuery, DocumentRef)."""

import pytest

from averzo.domain.enums import PermissionOperation, SortDirection
from averzo.domain.value_objects import (
    CollectionQuery,
    DocumentRef,
    FieldFilter,
    LogicalPath,
    PermissionErrorEvent,
)


class TestLogicalPath:
    """LogicalPath: segments without '/', empty parts dropped."""

    def test_of_splits_and_drops_empty_parts(self) -> None:
        path = LogicalPath.of("users/u1/", "/addresses")
        assert path.segments == ("users", "u1", "addresses")
        assert len(path) == 3
        assert str(path) == "users/u1/addresses"

    def test_child(self) -> None:
        assert str(LogicalPath.of("users").child("u1", "wishlist")) == "users/u1/wishlist"

    def test_empty_path(self) -> None:
        assert LogicalPath.of("") == LogicalPath()
        assert str(LogicalPath()) == ""


class TestFieldFilter:
    def test_valid_operators(self) -> None:
        for op in FieldFilter.OPERATORS:
            FieldFilter("price", op, 1)

    def test_empty_field_rejected(self) -> None:
        with pytest.raises(ValueError, match="non-empty"):
            FieldFilter("", "==", 1)

    def test_unknown_operator_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unsupported"):
            FieldFilter("price", "~=", 1)


class TestCollectionQuery:
    def test_builders_return_new_queries(self) -> None:
        base = CollectionQuery.collection("products")
        narrowed = base.where("brand", "==", "acme").order_by("price").limit(5)
        assert not base.has_constraints
        assert narrowed.has_constraints
        assert narrowed.filters == (FieldFilter("brand", "==", "acme"),)
        assert narrowed.orderings[0].direction == SortDirection.ASCENDING
        assert narrowed.limit_to == 5

    def test_equal_descriptors_compare_equal(self) -> None:
        a = CollectionQuery.collection("products").where("brand", "==", "acme")
        b = CollectionQuery.collection("products").where("brand", "==", "acme")
        assert a == b
        assert a != b.limit(1)

    @pytest.mark.parametrize("n", [0, -1])
    def test_non_positive_limit_rejected(self, n: int) -> None:
        with pytest.raises(ValueError, match="positive"):
            CollectionQuery.collection("products").limit(n)

    def test_group(self) -> None:
        query = CollectionQuery.group("reviews")
        assert query.collection_group == "reviews"
        assert len(query.path) == 0


class TestDocumentRef:
    def test_of(self) -> None:
        ref = DocumentRef.of("users/u1/addresses/a1")
        assert str(ref.collection) == "users/u1/addresses"
        assert ref.document_id == "a1"
        assert str(ref.path) == "users/u1/addresses/a1"

    def test_of_needs_collection_and_id(self) -> None:
        with pytest.raises(ValueError, match="collection and an id"):
            DocumentRef.of("products")

    @pytest.mark.parametrize("doc_id", ["", "a/b"])
    def test_invalid_id_rejected(self, doc_id: str) -> None:
        with pytest.raises(ValueError, match="Document id"):
            DocumentRef(LogicalPath.of("products"), doc_id)


class TestPermissionErrorEvent:
    def test_to_dict(self) -> None:
        event = PermissionErrorEvent(
            "artifacts/p/public/data/orders", PermissionOperation.CREATE, {"total": 3}
        )
        assert event.to_dict() == {
            "path": "artifacts/p/public/data/orders",
            "operation": "create",
            "request_resource_data": {"total": 3},
        }

    def test_resource_data_ignored_in_equality(self) -> None:
        a = PermissionErrorEvent("x", PermissionOperation.LIST, {"a": 1})
        b = PermissionErrorEvent("x", PermissionOperation.LIST)
        assert a == b


def test_permission_operation_values() -> None:
    assert PermissionOperation.values() == ["list", "get", "create", "update", "delete"]
