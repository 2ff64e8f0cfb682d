"""Domain enumerations for AVERzO.

Enums represent fixed sets of domain values (e.g. data-access operations).
"""

from enum import Enum


class PermissionOperation(str, Enum):
    """Data-access operation reported when the store denies a request.

    List and get come from live subscriptions; create, update and delete
    from guarded writes.
    """

    LIST = "list"
    GET = "get"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid operation values as strings."""
        return [op.value for op in cls]


class SortDirection(str, Enum):
    """Firestore structured-query ordering direction."""

    ASCENDING = "ASCENDING"
    DESCENDING = "DESCENDING"
