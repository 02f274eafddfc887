"""
Shared Contacts Interface

Core data model for Domain Shared Contacts plus the transport abstraction the
directory client consumes. Transports implement Transport to issue HTTP
requests with whatever authenticated session the caller provides.
"""

import copy
from abc import ABC, abstractmethod
from typing import Dict, List, Mapping, Optional, Union
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

GD_NS = "http://schemas.google.com/g/2005"


class Rel(str, Enum):
    """Common gd relation values for emails, phones, addresses and IMs."""
    HOME = GD_NS + "#home"
    WORK = GD_NS + "#work"
    OTHER = GD_NS + "#other"
    MOBILE = GD_NS + "#mobile"
    MAIN = GD_NS + "#main"
    FAX = GD_NS + "#fax"
    HOME_FAX = GD_NS + "#home_fax"
    WORK_FAX = GD_NS + "#work_fax"
    WORK_MOBILE = GD_NS + "#work_mobile"
    PAGER = GD_NS + "#pager"
    NETMEETING = GD_NS + "#netmeeting"


class MailClass(str, Enum):
    """Postal address mail classes."""
    BOTH = GD_NS + "#both"
    LETTERS = GD_NS + "#letters"
    PARCELS = GD_NS + "#parcels"
    NEITHER = GD_NS + "#neither"


class Usage(str, Enum):
    """Postal address usage."""
    GENERAL = GD_NS + "#general"
    LOCAL = GD_NS + "#local"


class FetchStatus(Enum):
    """Outcome of a (possibly conditional) contact fetch."""
    CHANGED = "changed"
    UNCHANGED = "unchanged"
    NOT_FOUND = "not_found"


@dataclass
class Name:
    """Structured name. full_name is whitespace-trimmed on the wire."""
    given_name: str = ""
    additional_name: str = ""
    family_name: str = ""
    prefix: str = ""
    suffix: str = ""
    full_name: str = ""

    def is_empty(self) -> bool:
        return not any((
            self.given_name, self.additional_name, self.family_name,
            self.prefix, self.suffix, self.full_name.strip(),
        ))

    def __str__(self):
        if self.full_name:
            return self.full_name.strip()
        parts = [self.prefix, self.given_name, self.additional_name, self.family_name, self.suffix]
        return " ".join(p for p in parts if p)


@dataclass
class Email:
    """
    Email address.

    rel is one of the home/work/other relations; use label instead when none
    of them fits. Supplying both or neither is rejected by the server.
    """
    address: str
    rel: str = ""
    label: str = ""
    primary: bool = False
    display_name: str = ""


@dataclass
class PhoneNumber:
    """Phone number. number is free text and may carry formatting whitespace."""
    number: str
    rel: str = ""
    label: str = ""
    uri: str = ""
    primary: bool = False


@dataclass
class IM:
    """Instant messaging account."""
    address: str
    protocol: str = ""
    rel: str = ""
    label: str = ""
    primary: bool = False


@dataclass
class StructuredPostalAddress:
    """Postal address broken down into its parts."""
    rel: str = ""
    mail_class: str = ""
    usage: str = ""
    label: str = ""
    primary: bool = False

    agent: str = ""
    house_name: str = ""
    po_box: str = ""
    neighborhood: str = ""
    street: str = ""
    city: str = ""
    region: str = ""
    sub_region: str = ""
    postcode: str = ""
    country: str = ""
    formatted_address: str = ""


@dataclass
class ExtendedProperty:
    """A single name/value pair as it appears on the wire."""
    name: str
    value: str = ""


RelationEntry = Union[Email, PhoneNumber, IM, StructuredPostalAddress]


def check_relation(entry: RelationEntry) -> None:
    """
    Raise ValueError unless exactly one of rel or label is set.

    The directory client never calls this; the server enforces the same rule.
    """
    if bool(entry.rel) == bool(entry.label):
        kind = type(entry).__name__
        raise ValueError(f"{kind} needs exactly one of rel or label, got rel={entry.rel!r} label={entry.label!r}")


@dataclass
class Contact:
    """
    A shared contact entry.

    id, etag, updated, deleted and the links are managed by the server: they
    are filled in when decoding and never sent back.
    """
    name: Name = field(default_factory=Name)
    emails: List[Email] = field(default_factory=list)
    phone_numbers: List[PhoneNumber] = field(default_factory=list)
    postal_addresses: List[StructuredPostalAddress] = field(default_factory=list)
    ims: List[IM] = field(default_factory=list)
    extended_properties: Dict[str, str] = field(default_factory=dict)
    content: str = ""

    id: str = ""
    etag: str = ""
    updated: Optional[datetime] = None
    deleted: bool = False
    edit_link: str = ""
    self_link: str = ""
    photo_link: str = ""

    @property
    def resource_id(self) -> str:
        """Last path segment of the entry id, as used in feed URLs."""
        return self.id.rsplit("/", 1)[-1]

    @property
    def display_name(self) -> str:
        """Get display name."""
        return str(self.name) or "(No name)"

    @property
    def primary_email(self) -> Optional[str]:
        """Get primary email address."""
        for email in self.emails:
            if email.primary:
                return email.address
        return self.emails[0].address if self.emails else None

    def clone(self) -> "Contact":
        return copy.deepcopy(self)


@dataclass
class GetResult:
    """Result of get_contact: changed (with contact), unchanged (304) or not found."""
    status: FetchStatus
    contact: Optional[Contact] = None

    @classmethod
    def changed(cls, contact: Contact) -> "GetResult":
        return cls(FetchStatus.CHANGED, contact)

    @classmethod
    def unchanged(cls) -> "GetResult":
        return cls(FetchStatus.UNCHANGED)

    @classmethod
    def not_found(cls) -> "GetResult":
        return cls(FetchStatus.NOT_FOUND)

    @property
    def is_changed(self) -> bool:
        return self.status is FetchStatus.CHANGED

    @property
    def is_unchanged(self) -> bool:
        return self.status is FetchStatus.UNCHANGED

    @property
    def is_not_found(self) -> bool:
        return self.status is FetchStatus.NOT_FOUND


@dataclass
class QueryStatus:
    """Etag and updated time of the last feed page of a listing."""
    etag: str = ""
    updated: Optional[datetime] = None
    modified: bool = True


@dataclass
class FeedPage:
    """One decoded page of a contacts feed."""
    etag: str = ""
    updated: Optional[datetime] = None
    contacts: List[Contact] = field(default_factory=list)
    next_link: Optional[str] = None


@dataclass
class HttpResponse:
    """What a transport hands back: status, headers and the raw body."""
    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""
    reason: str = ""


class Transport(ABC):
    """
    Base class for HTTP transports.

    A transport owns authentication (credentials, token refresh) and the
    connection. The directory client never closes it.
    """

    @abstractmethod
    async def request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[bytes] = None
    ) -> HttpResponse:
        """
        Issue a single HTTP request.

        Raises:
            TransportError: If the exchange could not be completed
        """
        pass

    async def close(self) -> None:
        """Release the underlying connection, if any."""
        pass
