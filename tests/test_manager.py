"""Tests for directory account management."""

import asyncio
import json
from pathlib import Path

import pytest

from shared_contacts.manager import DirectoryAccount, DirectoryManager

from conftest import FakeTransport, entry_bytes, entry_xml, feed_bytes


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    return tmp_path / "config" / "directory_accounts.json"


@pytest.fixture
def transports() -> dict:
    return {}


@pytest.fixture
def manager(config_path: Path, transports: dict) -> DirectoryManager:
    def factory(account: DirectoryAccount) -> FakeTransport:
        transports[account.name] = FakeTransport()
        return transports[account.name]

    return DirectoryManager(config_path, transport_factory=factory)


class TestAccounts:
    def test_starts_empty(self, manager: DirectoryManager):
        assert manager.accounts == {}
        assert manager.list_accounts() == "👤 No directory accounts configured"

    def test_add_persists(self, manager: DirectoryManager, config_path: Path):
        message = manager.add_account("work", "example.com", credentials={"token_path": "/tmp/token.json"})

        assert message == "✅ Added directory account: work (example.com)"
        saved = json.loads(config_path.read_text())
        assert saved == {
            "accounts": {
                "work": {
                    "domain": "example.com",
                    "projection": "full",
                    "credentials": {"token_path": "/tmp/token.json"},
                }
            }
        }

    def test_add_duplicate(self, manager: DirectoryManager):
        manager.add_account("work", "example.com")

        assert manager.add_account("work", "other.com") == "❌ Account 'work' already exists"

    def test_add_requires_domain(self, manager: DirectoryManager):
        assert manager.add_account("work", "") == "❌ Account 'work' needs a domain"

    def test_reload(self, manager: DirectoryManager, config_path: Path):
        manager.add_account("work", "example.com", "thin")

        reloaded = DirectoryManager(config_path)

        assert reloaded.accounts["work"] == DirectoryAccount(name="work", domain="example.com", projection="thin")

    def test_corrupt_config_is_ignored(self, config_path: Path):
        config_path.parent.mkdir(parents=True)
        config_path.write_text("{not json")

        assert DirectoryManager(config_path).accounts == {}

    def test_list_shows_connection_state(self, manager: DirectoryManager):
        manager.add_account("work", "example.com")
        manager.add_account("home", "home.example")
        manager.get_client("work")

        listing = manager.list_accounts()

        assert "🟢 work (example.com, full)" in listing
        assert "⚪ home (home.example, full)" in listing


class TestClients:
    def test_get_client_is_cached(self, manager: DirectoryManager, transports: dict):
        manager.add_account("work", "example.com", "thin")

        client = manager.get_client("work")

        assert client is manager.get_client("work")
        assert client.endpoint.endswith("/example.com")
        assert client.projection == "thin"
        assert len(transports) == 1

    def test_unknown_account(self, manager: DirectoryManager):
        with pytest.raises(KeyError):
            manager.get_client("nope")

    def test_remove_closes_transport(self, manager: DirectoryManager, transports: dict, config_path: Path):
        manager.add_account("work", "example.com")
        manager.get_client("work")

        message = asyncio.run(manager.remove_account("work"))

        assert message == "✅ Removed directory account: work"
        assert transports["work"].closed
        assert "work" not in manager.clients
        assert json.loads(config_path.read_text()) == {"accounts": {}}

    def test_remove_unknown(self, manager: DirectoryManager):
        assert asyncio.run(manager.remove_account("nope")) == "❌ Account 'nope' not found"

    def test_list_contacts(self, manager: DirectoryManager, transports: dict):
        manager.add_account("work", "example.com")
        manager.get_client("work")
        transports["work"].queue(200, feed_bytes([entry_xml("a", root=False)], etag='"f"'))

        contacts, status = asyncio.run(manager.list_contacts("work"))

        assert [c.resource_id for c in contacts] == ["a"]
        assert status.etag == '"f"'

    def test_delete_contact_reports_failure(self, manager: DirectoryManager, transports: dict):
        manager.add_account("work", "example.com")
        manager.get_client("work")
        transports["work"].queue(200, entry_bytes("c1", etag='"v2"'))

        message = asyncio.run(manager.delete_contact("work", "c1", '"v1"'))

        assert message.startswith("❌ Failed to delete contact")

    def test_delete_contact(self, manager: DirectoryManager, transports: dict):
        manager.add_account("work", "example.com")
        manager.get_client("work")
        transports["work"].queue(200, entry_bytes("c1", etag='"v1"')).queue(200)

        assert asyncio.run(manager.delete_contact("work", "c1", '"v1"')) == "✅ Deleted contact: c1"
