"""Domain layer: value objects, enums, and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from averzo.domain.enums import PermissionOperation, SortDirection
from averzo.domain.exceptions import (
    AverzoException,
    FirestorePermissionError,
    FlowOutputException,
    FlowUnavailableException,
    ValidationException,
)
from averzo.domain.value_objects import (
    CollectionQuery,
    DocumentRef,
    FieldFilter,
    LogicalPath,
    Ordering,
    PermissionErrorEvent,
)

__all__ = [
    # Enums
    "PermissionOperation",
    "SortDirection",
    # Exceptions
    "AverzoException",
    "FirestorePermissionError",
    "FlowOutputException",
    "FlowUnavailableException",
    "ValidationException",
    # Value objects
    "CollectionQuery",
    "DocumentRef",
    "FieldFilter",
    "LogicalPath",
    "Ordering",
    "PermissionErrorEvent",
]
