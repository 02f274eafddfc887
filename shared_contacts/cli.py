#!/usr/bin/env python3
"""
Shared contacts command line.

Usage:
    shared-contacts status                          # Show configured accounts
    shared-contacts add work example.com --subject user@example.com --key sa.json
    shared-contacts list work --max-results 100     # List contacts
    shared-contacts list work --query "Darcy -Austen" # Full-text search
    shared-contacts get work 20017e218fa39973       # Show one contact
    shared-contacts delete work 20017e218fa39973 --etag '*'
"""

import argparse
import asyncio
import logging
import shlex
import sys
from datetime import datetime
from typing import List, Optional

from .config import get_log_level
from .errors import ContactsError
from .interface import Contact
from .manager import DirectoryManager
from .options import (
    QueryOption, with_max_results, with_show_deleted, with_sort,
    with_text_query, with_updated_min
)

logger = logging.getLogger(__name__)


def format_contact(contact: Contact) -> str:
    lines = [f"👤 {contact.display_name}  (ID: {contact.resource_id}, etag: {contact.etag})"]
    if contact.deleted:
        lines.append("   🗑️  deleted")
    for email in contact.emails:
        marker = " ⭐" if email.primary else ""
        lines.append(f"   📧 {email.address}{marker}")
    for phone in contact.phone_numbers:
        lines.append(f"   📞 {phone.number}")
    for address in contact.postal_addresses:
        text = address.formatted_address or ", ".join(
            p for p in (address.street, address.city, address.region, address.postcode, address.country) if p
        )
        lines.append(f"   🏠 {text}")
    for im in contact.ims:
        lines.append(f"   💬 {im.address}")
    return "\n".join(lines)


def _timestamp(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an ISO timestamp: {value!r}")


def _terms(value: str) -> List[str]:
    try:
        return shlex.split(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"bad query {value!r}: {e}")


def _list_options(args: argparse.Namespace) -> List[QueryOption]:
    options = []
    if args.max_results:
        options.append(with_max_results(args.max_results))
    if args.updated_min:
        options.append(with_updated_min(args.updated_min))
    if args.show_deleted:
        options.append(with_show_deleted(True))
    if args.sort:
        options.append(with_sort(args.sort))
    if args.query:
        options.append(with_text_query(args.query))
    return options


async def run(args: argparse.Namespace, manager: DirectoryManager) -> int:
    try:
        if args.command == "status":
            print(manager.list_accounts())
            return 0

        if args.command == "add":
            credentials = {}
            if args.key:
                credentials["service_account_file"] = args.key
            if args.subject:
                credentials["subject"] = args.subject
            if args.token:
                credentials["token_path"] = args.token
            print(manager.add_account(args.account, args.domain, args.projection, credentials))
            return 0

        if args.command == "list":
            contacts, status = await manager.list_contacts(args.account, *_list_options(args))
            for contact in contacts:
                print(format_contact(contact))
            print(f"\nlist status: updated={status.updated} etag={status.etag} ({len(contacts)} contacts)")
            return 0

        if args.command == "get":
            result = await manager.get_contact(args.account, args.contact_id, args.etag)
            if result.is_changed:
                print(format_contact(result.contact))
                return 0
            if result.is_unchanged:
                print(f"⚪ Contact {args.contact_id} not modified")
                return 0
            print(f"❌ Contact {args.contact_id} not found")
            return 1

        if args.command == "delete":
            message = await manager.delete_contact(args.account, args.contact_id, args.etag)
            print(message)
            return 0 if message.startswith("✅") else 1

    except (KeyError, ContactsError) as e:
        logger.error(f"❌ {args.command} failed: {e}")
        return 1
    finally:
        await manager.close()

    return 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Domain Shared Contacts client")
    parser.add_argument("--log-level", default=None, help="Logging level (default from settings)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Show configured accounts")

    add = sub.add_parser("add", help="Add a directory account")
    add.add_argument("account")
    add.add_argument("domain")
    add.add_argument("--projection", default="full")
    add.add_argument("--key", help="Service account key file")
    add.add_argument("--subject", help="User to impersonate with the service account")
    add.add_argument("--token", help="Authorized user token file")

    lst = sub.add_parser("list", help="List contacts")
    lst.add_argument("account")
    lst.add_argument("--max-results", type=int, default=0)
    lst.add_argument("--updated-min", type=_timestamp, help="ISO timestamp; only contacts updated since")
    lst.add_argument("--show-deleted", action="store_true")
    lst.add_argument("--sort", choices=["ascending", "descending"])
    lst.add_argument("--query", type=_terms, help="Search terms, prefix with - to exclude; quote phrases")

    get = sub.add_parser("get", help="Show a contact")
    get.add_argument("account")
    get.add_argument("contact_id")
    get.add_argument("--etag", default="", help="Only fetch if changed since this etag")

    delete = sub.add_parser("delete", help="Delete a contact")
    delete.add_argument("account")
    delete.add_argument("contact_id")
    delete.add_argument("--etag", required=True, help="Current etag, or '*' to force")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=(args.log_level or get_log_level()).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    return asyncio.run(run(args, DirectoryManager()))


if __name__ == "__main__":
    sys.exit(main())
