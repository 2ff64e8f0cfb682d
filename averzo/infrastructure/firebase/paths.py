"""Tenant path rewriting for Firestore (logical path -> physical path).

Every deployment keeps its data under ``artifacts/<tenant>``. User-private
data stays under the literal ``users/<uid>/...`` tree inside the tenant
namespace; everything else is shared data nested under ``public/data``:

    ["products"]                        -> artifacts/<t>/public/data/products
    ["users", "u123", "paymentMethods"] -> artifacts/<t>/users/u123/paymentMethods

The split is decided by the first segment only. A new top-level user-private
collection has to be added here explicitly.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from averzo.domain.value_objects import CollectionQuery, DocumentRef, LogicalPath

TENANT_NAMESPACE = "artifacts"
USERS_SEGMENT = "users"
PUBLIC_DATA_SEGMENTS: tuple[str, ...] = ("public", "data")


def normalize_segments(
    segments: Sequence[str], tenant_id: str | None
) -> tuple[str, ...]:
    """Rewrite logical segments into the tenant-scoped physical segments.

    Returns the input unchanged when the tenant is unknown (e.g. before
    credentials load), when it is empty, or when it already starts with the
    tenant namespace. Never raises.
    """
    segments = tuple(segments)
    if not tenant_id or not segments or segments[0] == TENANT_NAMESPACE:
        return segments
    if segments[0] == USERS_SEGMENT and len(segments) > 1:
        return (TENANT_NAMESPACE, tenant_id, *segments)
    return (TENANT_NAMESPACE, tenant_id, *PUBLIC_DATA_SEGMENTS, *segments)


def to_physical_path(segments: Sequence[str], tenant_id: str | None) -> str:
    """Same as normalize_segments, joined with '/'."""
    return "/".join(normalize_segments(segments, tenant_id))


def normalize_path(path: LogicalPath, tenant_id: str | None) -> LogicalPath:
    return LogicalPath(normalize_segments(path.segments, tenant_id))


def is_physical(path: LogicalPath) -> bool:
    """True when the path already lives under the tenant namespace."""
    return bool(path.segments) and path.segments[0] == TENANT_NAMESPACE


def normalize_query(
    query: CollectionQuery,
    tenant_id: str | None,
    *,
    drop_constraints: bool = False,
) -> CollectionQuery:
    """Return the query re-targeted at its physical collection.

    Constraints are carried over to the rewritten path. With
    ``drop_constraints`` a rewritten query keeps only its path (the legacy
    over-fetching behaviour); queries that need no rewrite are returned as is.
    """
    physical = normalize_path(query.path, tenant_id)
    if physical == query.path:
        return query
    if drop_constraints:
        return CollectionQuery(physical, collection_group=query.collection_group)
    return replace(query, path=physical)


def normalize_document(ref: DocumentRef, tenant_id: str | None) -> DocumentRef:
    """Return the reference re-targeted at its physical document.

    The rule is applied to the full document path, so ``users/<uid>`` (the
    profile document) lands in the user's private tree.
    """
    physical = normalize_segments(ref.path.segments, tenant_id)
    return DocumentRef(LogicalPath(physical[:-1]), physical[-1])
