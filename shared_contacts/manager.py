"""
Directory Account Manager

Manages named directory accounts and their connected clients.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple
import logging

from .auth import credentials_for
from .client import DirectoryClient
from .config import ACCOUNTS_FILE, DEFAULT_PROJECTION
from .errors import ContactsError
from .interface import Contact, GetResult, QueryStatus, Transport
from .options import QueryOption
from .transport import HttpxTransport

logger = logging.getLogger(__name__)


@dataclass
class DirectoryAccount:
    """A named directory account configuration."""
    name: str
    domain: str
    projection: str = DEFAULT_PROJECTION
    credentials: Dict[str, Any] = field(default_factory=dict)


def default_transport_factory(account: DirectoryAccount) -> Transport:
    """httpx transport authorized with the account's credentials config."""
    return HttpxTransport.from_credentials(credentials_for(account.credentials))


class DirectoryManager:
    """Manages directory accounts and client instances."""

    def __init__(
        self,
        config_path: Optional[Path] = None,
        transport_factory: Callable[[DirectoryAccount], Transport] = default_transport_factory
    ):
        self.config_path = config_path or ACCOUNTS_FILE
        self.accounts: Dict[str, DirectoryAccount] = {}
        self.clients: Dict[str, DirectoryClient] = {}
        self._transports: Dict[str, Transport] = {}
        self._transport_factory = transport_factory

        self._load_accounts()

    def _load_accounts(self) -> None:
        """Load accounts from config file."""
        if not self.config_path.exists():
            logger.info("No directory accounts config found, starting fresh")
            return

        try:
            config = json.loads(self.config_path.read_text())
        except (OSError, ValueError) as e:
            logger.error(f"❌ Failed to load accounts: {e}")
            return

        for name, data in config.get("accounts", {}).items():
            self.accounts[name] = DirectoryAccount(
                name=name,
                domain=data.get("domain", ""),
                projection=data.get("projection", DEFAULT_PROJECTION),
                credentials=data.get("credentials", {})
            )
        logger.info(f"✅ Loaded {len(self.accounts)} directory accounts")

    def _save_accounts(self) -> None:
        """Save accounts to config file."""
        config = {"accounts": {}}
        for name, account in self.accounts.items():
            config["accounts"][name] = {
                "domain": account.domain,
                "projection": account.projection,
                "credentials": account.credentials
            }

        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        self.config_path.write_text(json.dumps(config, indent=2))

    def add_account(
        self,
        name: str,
        domain: str,
        projection: str = DEFAULT_PROJECTION,
        credentials: Optional[Dict[str, Any]] = None
    ) -> str:
        """Add a new directory account."""
        if name in self.accounts:
            return f"❌ Account '{name}' already exists"

        if not domain:
            return f"❌ Account '{name}' needs a domain"

        self.accounts[name] = DirectoryAccount(
            name=name,
            domain=domain,
            projection=projection or DEFAULT_PROJECTION,
            credentials=credentials or {}
        )
        self._save_accounts()

        return f"✅ Added directory account: {name} ({domain})"

    async def remove_account(self, name: str) -> str:
        """Remove a directory account, closing its transport."""
        if name not in self.accounts:
            return f"❌ Account '{name}' not found"

        await self.disconnect(name)
        del self.accounts[name]
        self._save_accounts()

        return f"✅ Removed directory account: {name}"

    def list_accounts(self) -> str:
        """List all configured accounts."""
        if not self.accounts:
            return "👤 No directory accounts configured"

        lines = ["👤 Directory Accounts", "─" * 40]
        for name, account in self.accounts.items():
            connected = "🟢" if name in self.clients else "⚪"
            lines.append(f"{connected} {name} ({account.domain}, {account.projection})")

        return "\n".join(lines)

    def get_client(self, account_name: str) -> DirectoryClient:
        """
        Get or create the client for an account.

        Raises:
            KeyError: If the account is not configured
            CredentialsError: If its credentials cannot be loaded
        """
        if account_name in self.clients:
            return self.clients[account_name]

        if account_name not in self.accounts:
            raise KeyError(f"Account not found: {account_name}")

        account = self.accounts[account_name]
        transport = self._transport_factory(account)
        client = DirectoryClient(transport, account.domain, account.projection)

        self._transports[account_name] = transport
        self.clients[account_name] = client
        logger.info(f"✅ Connected to shared contacts: {account_name} ({account.domain})")
        return client

    async def disconnect(self, account_name: str) -> None:
        self.clients.pop(account_name, None)
        transport = self._transports.pop(account_name, None)
        if transport is not None:
            await transport.close()

    async def close(self) -> None:
        for name in list(self._transports):
            await self.disconnect(name)

    # Convenience methods

    async def list_contacts(
        self,
        account_name: str,
        *options: QueryOption,
        feed_etag: str = ""
    ) -> Tuple[List[Contact], QueryStatus]:
        return await self.get_client(account_name).list_contacts("", feed_etag, *options)

    async def get_contact(self, account_name: str, contact_id: str, etag: str = "") -> GetResult:
        return await self.get_client(account_name).get_contact(contact_id, "", etag)

    async def create_contact(self, account_name: str, contact: Contact) -> Contact:
        return await self.get_client(account_name).create_contact(contact)

    async def update_contact(self, account_name: str, contact_id: str, etag: str, contact: Contact) -> Contact:
        return await self.get_client(account_name).update_contact(contact_id, etag, contact)

    async def delete_contact(self, account_name: str, contact_id: str, etag: str) -> str:
        try:
            await self.get_client(account_name).delete_contact(contact_id, etag)
        except (KeyError, ContactsError) as e:
            logger.error(f"Failed to delete contact: {e}")
            return f"❌ Failed to delete contact: {e}"
        return f"✅ Deleted contact: {contact_id}"
