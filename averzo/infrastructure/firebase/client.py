"""Firestore client (REST-based, no firebase-admin).

Initialized at app startup using either FIREBASE_SERVICE_ACCOUNT_KEY (JSON
string) or FIREBASE_SERVICE_ACCOUNT_PATH (file path). The service account's
project_id is the tenant used for path rewriting unless FIREBASE_PROJECT_ID
overrides it.
"""

import json
import logging
from pathlib import Path

from averzo.core.config import Settings, get_settings
from averzo.infrastructure.firebase._rest_client import (
    FirestoreRESTClient,
    _get_credentials,
)

logger = logging.getLogger(__name__)


def _load_key_dict(settings: Settings) -> dict | None:
    """Return service account dict from env key or file path."""
    key = settings.firebase_service_account_key
    key_json = key.get_secret_value() if key else None
    if key_json:
        try:
            return json.loads(key_json)
        except json.JSONDecodeError as e:
            raise ValueError("FIREBASE_SERVICE_ACCOUNT_KEY is not valid JSON") from e
    path = settings.firebase_service_account_path
    if path:
        resolved = Path(path).expanduser().resolve()
        if not resolved.is_file():
            logger.warning(
                "FIREBASE_SERVICE_ACCOUNT_PATH set but file not found: %s (resolved: %s)",
                path,
                resolved,
            )
            return None
        with open(resolved, encoding="utf-8") as f:
            return json.load(f)
    return None


def create_firestore_client(settings: Settings | None = None) -> FirestoreRESTClient | None:
    """Build the Firestore client from settings.

    Safe to call when no credentials are configured (returns None). On
    malformed credentials logs the exception and returns None so the app
    can start without Firestore.
    """
    settings = settings or get_settings()
    try:
        key_dict = _load_key_dict(settings)
        if not key_dict:
            logger.info("Firestore not configured; live data disabled")
            return None
        project_id = settings.firebase_project_id or key_dict.get("project_id")
        if not project_id:
            logger.error("Firebase service account JSON missing 'project_id'")
            return None
        client = FirestoreRESTClient(project_id, _get_credentials(key_dict))
    except Exception:
        logger.exception("Firebase initialization failed")
        return None
    logger.info("Firestore client initialized for project %s", project_id)
    return client


def resolve_tenant_id(
    client: FirestoreRESTClient | None, settings: Settings | None = None
) -> str | None:
    """Tenant for path rewriting: explicit setting, else the client's project."""
    settings = settings or get_settings()
    if settings.firebase_project_id:
        return settings.firebase_project_id
    return client.project_id if client is not None else None
