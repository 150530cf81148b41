"""Firebase Admin SDK setup for account creation and user lookups."""

import json
from pathlib import Path

import firebase_admin
from firebase_admin import credentials
from structlog import get_logger

logger = get_logger(__name__)

_firebase_app: firebase_admin.App | None = None


def _load_credentials(
    credentials_path: str | None, config_json: str | None
) -> credentials.Base | None:
    if config_json:
        logger.info("firebase_credentials_source", source="json")
        return credentials.Certificate(json.loads(config_json))

    if credentials_path and Path(credentials_path).exists():
        logger.info("firebase_credentials_source", source="file", path=credentials_path)
        return credentials.Certificate(credentials_path)

    if credentials_path:
        logger.warning("firebase_credentials_file_missing", path=credentials_path)
    return None


def initialize_firebase(
    credentials_path: str | None = None, config_json: str | None = None
) -> firebase_admin.App:
    """
    Initialize the Admin SDK once per process.

    The raw service account JSON wins over the file path; with neither,
    Application Default Credentials are used.

    Raises:
        ValueError: If the service account JSON or file is malformed
    """
    global _firebase_app

    if _firebase_app is None:
        cred = _load_credentials(credentials_path, config_json)
        _firebase_app = firebase_admin.initialize_app(cred)
        logger.info("firebase_app_created", default_credentials=cred is None)

    return _firebase_app


def is_firebase_initialized() -> bool:
    """Whether account management calls can be made."""
    return _firebase_app is not None
