"""
Shared configuration constants for the shared contacts client.

Import from here to avoid duplication across the client, manager and CLI.
"""

import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

# Base paths
CONFIG_DIR = Path(os.environ.get("SHARED_CONTACTS_CONFIG_DIR", "/data/config"))
ACCOUNTS_FILE = CONFIG_DIR / "directory_accounts.json"
DEFAULT_TOKEN_PATH = CONFIG_DIR / "gcontacts_token.json"
USER_SETTINGS_FILE = CONFIG_DIR / "user_settings.json"

# Domain Shared Contacts feed
CONTACTS_FEED_URL = "https://www.google.com/m8/feeds/contacts"
DEFAULT_PROJECTION = "full"
THIN_PROJECTION = "thin"
GDATA_VERSION = "3.0"
ATOM_CONTENT_TYPE = "application/atom+xml"
WILDCARD_ETAG = "*"

# Seconds to wait on a single HTTP exchange
DEFAULT_TIMEOUT = 30.0

# The legacy scope https://www.google.com/m8/feeds is an alias of the contacts scope
SCOPES = [
    "https://www.googleapis.com/auth/contacts",
    "https://www.googleapis.com/auth/contacts.other.readonly",
    "https://www.googleapis.com/auth/directory.readonly",
]

DEFAULT_USER_SETTINGS = {
    "log_level": "INFO",
    "default_account": "default",
}


def get_user_settings() -> dict:
    """Get all user settings, falling back to defaults."""
    settings = DEFAULT_USER_SETTINGS.copy()
    if not USER_SETTINGS_FILE.exists():
        return settings
    try:
        settings.update(json.loads(USER_SETTINGS_FILE.read_text()))
    except (OSError, ValueError) as e:
        logger.warning(f"Failed to read user settings: {e}")
    return settings


def get_log_level() -> str:
    """Log level from the environment, then user settings."""
    return os.environ.get("SHARED_CONTACTS_LOG_LEVEL") or get_user_settings()["log_level"]
