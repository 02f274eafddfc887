"""
Shared Contacts

Client for the Domain Shared Contacts Atom feed.

- interface.py: dataclasses for contacts and the Transport ABC
- codec.py: Atom entry/feed encoding and decoding
- client.py: DirectoryClient (create, get, list, update, delete)
- options.py: query options for listing
- transport.py: httpx transport with google-auth credentials
- auth.py: token file and service account credentials
- cli.py: shared-contacts command
- manager.py: named accounts, client routing
"""

from .interface import (
    Contact, Name, Email, PhoneNumber, IM, StructuredPostalAddress,
    ExtendedProperty, Rel, MailClass, Usage, FetchStatus, GetResult,
    QueryStatus, FeedPage, HttpResponse, Transport, check_relation
)
from .errors import (
    ContactsError, TransportError, FormatError, VersionConflictError,
    ResponseError, RequestError, ContactNotFoundError, UnknownResponseError,
    CredentialsError
)
from .client import DirectoryClient, ContactFeed
from .options import (
    with_max_results, with_start_index, with_updated_min, with_updated_max,
    with_show_deleted, with_sort, filter_by_author, filter_by_category,
    with_text_query
)
from .manager import DirectoryManager, DirectoryAccount

__all__ = [
    "Contact", "Name", "Email", "PhoneNumber", "IM", "StructuredPostalAddress",
    "ExtendedProperty", "Rel", "MailClass", "Usage", "FetchStatus", "GetResult",
    "QueryStatus", "FeedPage", "HttpResponse", "Transport", "check_relation",
    "ContactsError", "TransportError", "FormatError", "VersionConflictError",
    "ResponseError", "RequestError", "ContactNotFoundError", "UnknownResponseError",
    "CredentialsError",
    "DirectoryClient", "ContactFeed",
    "with_max_results", "with_start_index", "with_updated_min", "with_updated_max",
    "with_show_deleted", "with_sort", "filter_by_author", "filter_by_category",
    "with_text_query",
    "DirectoryManager", "DirectoryAccount",
]
