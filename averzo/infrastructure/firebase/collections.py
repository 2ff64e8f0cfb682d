"""Firestore collection names written by the backend itself, as logical paths.

Firestore has no DDL; collections appear on first write. The path
normalizer moves these tenant-agnostic names under the tenant namespace.
"""

COLLECTION_NEWSLETTER_SUBSCRIBERS = "newsletterSubscribers"
