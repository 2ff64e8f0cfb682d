"""Firestore integration: REST client, tenant paths, live subscriptions, writes."""

from averzo.infrastructure.firebase._rest_client import (
    DocumentSnapshot,
    FirestoreAPIError,
    FirestoreRESTClient,
    QuerySnapshot,
)
from averzo.infrastructure.firebase.client import (
    create_firestore_client,
    resolve_tenant_id,
)
from averzo.infrastructure.firebase.listeners import (
    PollingSnapshotListener,
    SnapshotSource,
)
from averzo.infrastructure.firebase.paths import (
    normalize_segments,
    to_physical_path,
)
from averzo.infrastructure.firebase.subscriptions import (
    CollectionSubscription,
    DocumentSubscription,
    SubscriptionState,
)
from averzo.infrastructure.firebase.writes import GuardedWriter

__all__ = [
    "CollectionSubscription",
    "DocumentSnapshot",
    "DocumentSubscription",
    "FirestoreAPIError",
    "FirestoreRESTClient",
    "GuardedWriter",
    "PollingSnapshotListener",
    "QuerySnapshot",
    "SnapshotSource",
    "SubscriptionState",
    "create_firestore_client",
    "normalize_segments",
    "resolve_tenant_id",
    "to_physical_path",
]
