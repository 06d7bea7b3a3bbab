"""Firestore client construction (REST-based, no firebase-admin).

Credentials come from FILEFLOW_FIREBASE_SERVICE_ACCOUNT_KEY (JSON string)
or FILEFLOW_FIREBASE_SERVICE_ACCOUNT_PATH (file path).
"""

import json
import logging
from pathlib import Path

from fileflow.core.config import Settings
from fileflow.infrastructure.firebase._rest_client import (
    FirestoreRESTClient,
    get_credentials,
)

logger = logging.getLogger(__name__)


def load_service_account(settings: Settings) -> dict | None:
    """Return service account dict from the env key or the file path."""
    key = settings.firebase_service_account_key
    key_json = key.get_secret_value() if key else None
    if key_json:
        try:
            return json.loads(key_json)
        except json.JSONDecodeError as e:
            raise ValueError("FILEFLOW_FIREBASE_SERVICE_ACCOUNT_KEY is not valid JSON") from e
    path = settings.firebase_service_account_path
    if path:
        resolved = Path(path).expanduser().resolve()
        if not resolved.is_file():
            logger.warning(
                "Firebase service account file not found: %s (resolved: %s)", path, resolved
            )
            return None
        with open(resolved, encoding="utf-8") as f:
            return json.load(f)
    return None


def create_firestore_client(settings: Settings) -> FirestoreRESTClient:
    """Build a Firestore REST client from settings.

    Raises:
        ValueError: No usable service account, or it lacks ``project_id``.
    """
    key_dict = load_service_account(settings)
    if not key_dict:
        raise ValueError("Firestore backend selected but no service account is available")
    project_id = key_dict.get("project_id")
    if not project_id:
        raise ValueError("Firebase service account JSON missing 'project_id'")
    client = FirestoreRESTClient(project_id, get_credentials(key_dict))
    logger.info("Firestore client initialized for project %s", project_id)
    return client
