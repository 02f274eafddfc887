"""
Google credentials for the shared contacts feed.

Two ways in:
1. An authorized-user token file (OAuth consent done elsewhere), refreshed
   and written back when expired
2. A service account key with domain-wide delegation, impersonating a
   Workspace user (subject)
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import credentials as user_credentials
from google.oauth2 import service_account

from .config import DEFAULT_TOKEN_PATH, SCOPES
from .errors import CredentialsError

logger = logging.getLogger(__name__)


def load_user_credentials(token_path: Path = DEFAULT_TOKEN_PATH,
                          scopes: Optional[List[str]] = None) -> user_credentials.Credentials:
    """Load an authorized-user token, refreshing and persisting it if expired."""
    token_path = Path(token_path)
    if not token_path.exists():
        raise CredentialsError(f"No credentials available at {token_path}. Complete OAuth flow first.")

    try:
        creds = user_credentials.Credentials.from_authorized_user_file(str(token_path), scopes)
    except (ValueError, GoogleAuthError) as e:
        raise CredentialsError(f"Failed to load token file {token_path}: {e}") from e

    if creds.expired and creds.refresh_token:
        try:
            creds.refresh(Request())
        except GoogleAuthError as e:
            raise CredentialsError(f"Failed to refresh token from {token_path}: {e}") from e
        token_path.write_text(creds.to_json())
        logger.info("Token refreshed and saved")

    return creds


def load_service_account_credentials(key_file: Path, subject: str,
                                     scopes: Optional[List[str]] = None) -> service_account.Credentials:
    """Service account credentials impersonating subject via domain-wide delegation."""
    key_file = Path(key_file)
    if not key_file.exists():
        raise CredentialsError(f"Service account key not found: {key_file}")

    try:
        creds = service_account.Credentials.from_service_account_file(
            str(key_file), scopes=scopes or SCOPES
        )
    except (ValueError, GoogleAuthError) as e:
        raise CredentialsError(f"Failed to load service account key {key_file}: {e}") from e
    return creds.with_subject(subject)


def credentials_for(config: Dict[str, Any]):
    """
    Pick credentials from an account's credentials config.

    service_account_file + subject wins over token_path; with neither set the
    default token path is used.
    """
    key_file = config.get("service_account_file")
    if key_file:
        subject = config.get("subject")
        if not subject:
            raise CredentialsError("service_account_file requires a subject to impersonate")
        return load_service_account_credentials(Path(key_file), subject, config.get("scopes"))

    return load_user_credentials(Path(config.get("token_path", str(DEFAULT_TOKEN_PATH))), config.get("scopes"))
