"""Domain value objects for AVERzO data access.

Value objects are immutable types with no identity, only value. Callers
describe what they want to read or write with these (logical paths, query
descriptors, document references) instead of handing around backend SDK
objects, so path rewriting never has to inspect opaque client state.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, ClassVar

from averzo.domain.enums import PermissionOperation, SortDirection


@dataclass(frozen=True)
class LogicalPath:
    """Tenant-agnostic path as used by application call sites.

    Segments never contain '/'; ``LogicalPath.of`` splits and drops empty parts,
    so ``LogicalPath.of("users/u1", "addresses")`` has three segments.
    An empty path is allowed and is left alone by the normalizer.
    """

    segments: tuple[str, ...] = ()

    @classmethod
    def of(cls, *parts: str) -> LogicalPath:
        """Build a path from strings that may themselves contain '/'."""
        segments: list[str] = []
        for part in parts:
            segments.extend(s for s in part.split("/") if s)
        return cls(tuple(segments))

    def child(self, *parts: str) -> LogicalPath:
        """Return this path extended with more segments."""
        return LogicalPath.of(*self.segments, *parts)

    def __str__(self) -> str:
        return "/".join(self.segments)

    def __len__(self) -> int:
        return len(self.segments)


@dataclass(frozen=True)
class FieldFilter:
    """Single field comparison in a collection query (e.g. price < 100)."""

    field_path: str
    op: str
    value: Any

    OPERATORS: ClassVar[frozenset[str]] = frozenset(
        {
            "==",
            "!=",
            "<",
            "<=",
            ">",
            ">=",
            "in",
            "not-in",
            "array-contains",
            "array-contains-any",
        }
    )

    def __post_init__(self) -> None:
        """Validate field path and operator.

        Raises:
            ValueError: If field_path is empty or op is not supported.
        """
        if not self.field_path:
            raise ValueError("Filter field path must be a non-empty string")
        if self.op not in self.OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.op!r}")


@dataclass(frozen=True)
class Ordering:
    """Sort key of a collection query."""

    field_path: str
    direction: SortDirection = SortDirection.ASCENDING


@dataclass(frozen=True)
class CollectionQuery:
    """Live-query descriptor over a logical collection path.

    Builders return new descriptors; two descriptors with the same path and
    constraints compare equal, which is how subscriptions detect an
    unchanged input. ``collection_group`` queries every collection with that
    id below ``path`` (usually the root).
    """

    path: LogicalPath
    filters: tuple[FieldFilter, ...] = ()
    orderings: tuple[Ordering, ...] = ()
    limit_to: int | None = None
    collection_group: str | None = None

    @classmethod
    def collection(cls, *parts: str) -> CollectionQuery:
        """Query over the collection at the given path."""
        return cls(LogicalPath.of(*parts))

    @classmethod
    def group(cls, collection_id: str) -> CollectionQuery:
        """Collection-group query over every collection named collection_id."""
        return cls(LogicalPath(), collection_group=collection_id)

    def where(self, field_path: str, op: str, value: Any) -> CollectionQuery:
        return replace(self, filters=(*self.filters, FieldFilter(field_path, op, value)))

    def order_by(
        self, field_path: str, direction: SortDirection = SortDirection.ASCENDING
    ) -> CollectionQuery:
        return replace(self, orderings=(*self.orderings, Ordering(field_path, direction)))

    def limit(self, n: int) -> CollectionQuery:
        if n <= 0:
            raise ValueError("Query limit must be a positive integer")
        return replace(self, limit_to=n)

    @property
    def has_constraints(self) -> bool:
        """True when the query narrows or orders the collection."""
        return bool(self.filters or self.orderings or self.limit_to is not None)


@dataclass(frozen=True)
class DocumentRef:
    """Reference to one logical document (collection path + document id)."""

    collection: LogicalPath
    document_id: str

    def __post_init__(self) -> None:
        if not self.document_id or "/" in self.document_id:
            raise ValueError("Document id must be a non-empty string without '/'")

    @classmethod
    def of(cls, path: str) -> DocumentRef:
        """Parse 'collection/.../docId'; the last segment is the document id."""
        logical = LogicalPath.of(path)
        if len(logical) < 2:
            raise ValueError(f"Document path needs a collection and an id: {path!r}")
        return cls(LogicalPath(logical.segments[:-1]), logical.segments[-1])

    @property
    def path(self) -> LogicalPath:
        """Full document path (collection segments + document id)."""
        return self.collection.child(self.document_id)


@dataclass(frozen=True)
class PermissionErrorEvent:
    """Broadcast once per data-access operation the store rejected."""

    path: str
    operation: PermissionOperation
    request_resource_data: dict[str, Any] | None = field(default=None, compare=False)

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly form for WebSocket push."""
        return {
            "path": self.path,
            "operation": self.operation.value,
            "request_resource_data": self.request_resource_data,
        }
