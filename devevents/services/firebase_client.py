"""
Firebase initialization and helpers
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from typing import Any
import base64
import os

import firebase_admin
from firebase_admin import credentials, firestore, storage

from devevents.core.config import settings
from devevents.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _load_credentials_info() -> dict[str, Any] | None:
    if settings.FIREBASE_CREDENTIALS_JSON:
        return json.loads(settings.FIREBASE_CREDENTIALS_JSON)
    if settings.FIREBASE_CREDENTIALS_B64:
        decoded = base64.b64decode(settings.FIREBASE_CREDENTIALS_B64).decode("utf-8")
        return json.loads(decoded)
    if settings.FIREBASE_CREDENTIALS_FILE and os.path.exists(settings.FIREBASE_CREDENTIALS_FILE):
        with open(settings.FIREBASE_CREDENTIALS_FILE, "r", encoding="utf-8") as f:
            return json.load(f)
    return None


def get_firebase_app() -> firebase_admin.App:
    """Initialize the default Firebase app once per process."""
    if not firebase_admin._apps:
        info = _load_credentials_info()
        if not info:
            raise ConfigurationError(
                "Firebase credentials not provided. Set FIREBASE_CREDENTIALS_FILE, "
                "FIREBASE_CREDENTIALS_JSON, or FIREBASE_CREDENTIALS_B64"
            )

        options = {}
        if settings.FIREBASE_STORAGE_BUCKET:
            options["storageBucket"] = settings.FIREBASE_STORAGE_BUCKET

        firebase_admin.initialize_app(credentials.Certificate(info), options)
        logger.info("Firebase app initialized")

    return firebase_admin.get_app()


@lru_cache(maxsize=1)
def get_firestore_client():
    """Return a cached Firestore client.

    Errors are not cached by lru_cache, so a failed initialization is retried
    on the next call.
    """
    return firestore.client(app=get_firebase_app())


@lru_cache(maxsize=1)
def get_storage_bucket():
    """Return the cached Cloud Storage bucket used for event images."""
    if not settings.FIREBASE_STORAGE_BUCKET:
        raise ConfigurationError("Please define the FIREBASE_STORAGE_BUCKET environment variable")
    return storage.bucket(app=get_firebase_app())
