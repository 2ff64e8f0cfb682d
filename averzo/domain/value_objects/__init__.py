"""Domain value objects: logical paths, query descriptors, error events."""

from averzo.domain.value_objects.core import (
    CollectionQuery,
    DocumentRef,
    FieldFilter,
    LogicalPath,
    Ordering,
    PermissionErrorEvent,
)

__all__ = [
    "CollectionQuery",
    "DocumentRef",
    "FieldFilter",
    "LogicalPath",
    "Ordering",
    "PermissionErrorEvent",
]
