# services/api/core/google_credentials.py
from __future__ import annotations
import json
import logging
from typing import Optional

from google.oauth2.credentials import Credentials as UserCredentials
from google.oauth2.service_account import Credentials as ServiceAccountCredentials

from core.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Sheets for the worksheet, drive.file to upload + share the files we create
SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive.file",
]


def _service_account_credentials(google_sa_json: str) -> ServiceAccountCredentials:
    """
    Accepts either:
      - absolute/relative path to a service-account JSON file, OR
      - a literal JSON string.
    """
    # Try to treat as inline JSON first
    try:
        parsed = json.loads(google_sa_json)
        return ServiceAccountCredentials.from_service_account_info(parsed, scopes=SCOPES)
    except json.JSONDecodeError:
        # Not JSON; treat as file path
        return ServiceAccountCredentials.from_service_account_file(google_sa_json, scopes=SCOPES)


def load_credentials(
    *,
    access_token: Optional[str] = None,
    google_sa_json: Optional[str] = None,
):
    """
    Resolve Google credentials for one submission.

    Priority:
    1) The signed-in user's OAuth access token (files land in their Drive).
    2) The configured service account.
    """
    if access_token:
        return UserCredentials(token=access_token)

    if not google_sa_json:
        raise ConfigurationError(
            "No Google credentials: sign in or set GOOGLE_SA_JSON / GOOGLE_SA_JSON_BASE64"
        )

    try:
        return _service_account_credentials(google_sa_json)
    except (OSError, ValueError) as e:
        logger.exception("Failed to load service account credentials: %s", e)
        raise ConfigurationError(f"Invalid service account credentials: {e}") from e
