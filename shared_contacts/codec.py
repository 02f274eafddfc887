"""
Atom wire codec for shared contacts.

Pure functions converting between Contact values and the Atom entry dialect
the Domain Shared Contacts feed speaks. Each gd: structure (name, email,
phoneNumber, structuredPostalAddress, im, extendedProperty) has its own
encode/decode pair registered in STRUCTURES; the entry and feed codecs
compose them.

Decoding is lenient about what it reads (server-managed id, etag, updated,
links, deleted flag) while encoding only ever emits fields a caller may set.
"""

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from .errors import FormatError
from .interface import (
    GD_NS, Contact, Name, Email, PhoneNumber, IM, StructuredPostalAddress,
    ExtendedProperty, FeedPage
)

logger = logging.getLogger(__name__)

ATOM_NS = "http://www.w3.org/2005/Atom"
KIND_SCHEME = GD_NS + "#kind"
CONTACT_TERM = "http://schemas.google.com/contact/2008#contact"
PHOTO_REL = "http://schemas.google.com/contacts/2008/rel#photo"

# (attribute on Name, gd child element)
NAME_PARTS = (
    ("given_name", "givenName"),
    ("additional_name", "additionalName"),
    ("family_name", "familyName"),
    ("prefix", "namePrefix"),
    ("suffix", "nameSuffix"),
    ("full_name", "fullName"),
)

ADDRESS_ATTRS = (
    ("rel", "rel"),
    ("mail_class", "mailClass"),
    ("usage", "usage"),
    ("label", "label"),
)

ADDRESS_PARTS = (
    ("agent", "agent"),
    ("house_name", "housename"),
    ("po_box", "pobox"),
    ("neighborhood", "neighborhood"),
    ("street", "street"),
    ("city", "city"),
    ("region", "region"),
    ("sub_region", "subregion"),
    ("postcode", "postcode"),
    ("country", "country"),
    ("formatted_address", "formattedAddress"),
)

LINK_FIELDS = {
    "edit": "edit_link",
    "self": "self_link",
    PHOTO_REL: "photo_link",
}


def _gd(local: str) -> str:
    return f"{{{GD_NS}}}{local}"


def _atom(local: str) -> str:
    return f"{{{ATOM_NS}}}{local}"


def _set_attr(elem: ET.Element, key: str, value: Any) -> None:
    """Set an attribute, skipping zero values."""
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        if value:
            elem.set(key, "true")
        return
    if value:
        elem.set(key, value)


def _add_child(parent: ET.Element, tag: str, text: str) -> None:
    if text:
        ET.SubElement(parent, tag).text = text


def _parse_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("true", "1")


# date, time, optional fraction, offset; "t" and "z" may be lowercase
RFC3339 = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[Tt ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$"
)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an RFC3339 timestamp as used in atom:updated.

    Fractions of any length are accepted; digits past microseconds are
    dropped.
    """
    if not value or not value.strip():
        return None
    match = RFC3339.match(value.strip())
    if not match:
        raise FormatError(f"invalid timestamp {value!r}")

    date, clock, fraction, offset = match.groups()
    if fraction:
        clock += "." + fraction[:6].ljust(6, "0")
    if offset in ("Z", "z"):
        offset = "+00:00"
    try:
        return datetime.fromisoformat(f"{date}T{clock}{offset}")
    except ValueError as e:
        raise FormatError(f"invalid timestamp {value!r}: {e}") from e


def parse_xml(data: Union[bytes, str]) -> ET.Element:
    """Parse a response body, turning parser failures into FormatError."""
    try:
        return ET.fromstring(data)
    except ET.ParseError as e:
        raise FormatError(f"malformed xml: {e}") from e


def to_bytes(elem: ET.Element) -> bytes:
    return ET.tostring(elem, encoding="utf-8")


# =============================================================================
# STRUCTURES
# =============================================================================

def encode_name(name: Name) -> ET.Element:
    elem = ET.Element("gd:name")
    for attr, tag in NAME_PARTS:
        value = getattr(name, attr)
        if attr == "full_name":
            value = value.strip()
        _add_child(elem, "gd:" + tag, value)
    return elem


def decode_name(elem: ET.Element) -> Name:
    values = {attr: elem.findtext(_gd(tag), default="") for attr, tag in NAME_PARTS}
    values["full_name"] = values["full_name"].strip()
    return Name(**values)


def encode_email(email: Email) -> ET.Element:
    elem = ET.Element("gd:email")
    elem.set("address", email.address)
    _set_attr(elem, "rel", email.rel)
    _set_attr(elem, "label", email.label)
    _set_attr(elem, "primary", email.primary)
    _set_attr(elem, "displayName", email.display_name)
    return elem


def decode_email(elem: ET.Element) -> Email:
    return Email(
        address=elem.get("address", ""),
        rel=elem.get("rel", ""),
        label=elem.get("label", ""),
        primary=_parse_bool(elem.get("primary")),
        display_name=elem.get("displayName", ""),
    )


def encode_phone_number(phone: PhoneNumber) -> ET.Element:
    elem = ET.Element("gd:phoneNumber")
    _set_attr(elem, "rel", phone.rel)
    _set_attr(elem, "label", phone.label)
    _set_attr(elem, "uri", phone.uri)
    _set_attr(elem, "primary", phone.primary)
    number = phone.number.strip()
    if number:
        elem.text = number
    return elem


def decode_phone_number(elem: ET.Element) -> PhoneNumber:
    # Dial strings are usually pretty-printed onto their own line
    return PhoneNumber(
        number=(elem.text or "").strip(),
        rel=elem.get("rel", ""),
        label=elem.get("label", ""),
        uri=elem.get("uri", ""),
        primary=_parse_bool(elem.get("primary")),
    )


def encode_im(im: IM) -> ET.Element:
    elem = ET.Element("gd:im")
    elem.set("address", im.address)
    _set_attr(elem, "label", im.label)
    _set_attr(elem, "rel", im.rel)
    _set_attr(elem, "protocol", im.protocol)
    _set_attr(elem, "primary", im.primary)
    return elem


def decode_im(elem: ET.Element) -> IM:
    return IM(
        address=elem.get("address", ""),
        protocol=elem.get("protocol", ""),
        rel=elem.get("rel", ""),
        label=elem.get("label", ""),
        primary=_parse_bool(elem.get("primary")),
    )


def encode_postal_address(address: StructuredPostalAddress) -> ET.Element:
    elem = ET.Element("gd:structuredPostalAddress")
    for attr, key in ADDRESS_ATTRS:
        _set_attr(elem, key, getattr(address, attr))
    _set_attr(elem, "primary", address.primary)
    for attr, tag in ADDRESS_PARTS:
        _add_child(elem, "gd:" + tag, getattr(address, attr))
    return elem


def decode_postal_address(elem: ET.Element) -> StructuredPostalAddress:
    values: Dict[str, Any] = {attr: elem.get(key, "") for attr, key in ADDRESS_ATTRS}
    values["primary"] = _parse_bool(elem.get("primary"))
    for attr, tag in ADDRESS_PARTS:
        values[attr] = elem.findtext(_gd(tag), default="")
    return StructuredPostalAddress(**values)


def encode_extended_property(prop: ExtendedProperty) -> ET.Element:
    elem = ET.Element("gd:extendedProperty")
    elem.set("name", prop.name)
    _set_attr(elem, "value", prop.value)
    return elem


def decode_extended_property(elem: ET.Element) -> ExtendedProperty:
    return ExtendedProperty(name=elem.get("name", ""), value=elem.get("value", ""))


@dataclass(frozen=True)
class Structure:
    """Encode/decode pair for one gd: element kind."""
    tag: str
    encode: Callable[[Any], ET.Element]
    decode: Callable[[ET.Element], Any]

    @property
    def qname(self) -> str:
        return _gd(self.tag)


STRUCTURES: Dict[str, Structure] = {
    "name": Structure("name", encode_name, decode_name),
    "email": Structure("email", encode_email, decode_email),
    "phoneNumber": Structure("phoneNumber", encode_phone_number, decode_phone_number),
    "structuredPostalAddress": Structure(
        "structuredPostalAddress", encode_postal_address, decode_postal_address
    ),
    "im": Structure("im", encode_im, decode_im),
    "extendedProperty": Structure(
        "extendedProperty", encode_extended_property, decode_extended_property
    ),
}

# (Contact attribute, structure kind) for repeated elements, in emit order
REPEATED = (
    ("emails", "email"),
    ("phone_numbers", "phoneNumber"),
    ("postal_addresses", "structuredPostalAddress"),
    ("ims", "im"),
)


def encode_structure(kind: str, value: Any) -> ET.Element:
    return STRUCTURES[kind].encode(value)


def decode_structure(kind: str, elem: ET.Element) -> Any:
    structure = STRUCTURES[kind]
    if elem.tag != structure.qname:
        raise FormatError(f"expected gd:{structure.tag}, got {elem.tag}")
    return structure.decode(elem)


# =============================================================================
# ENTRY
# =============================================================================

def _etag(elem: ET.Element) -> str:
    return elem.get(_gd("etag")) or elem.get("etag", "")


def decode_entry(data: Union[bytes, str, ET.Element]) -> Contact:
    """
    Decode an Atom entry into a Contact.

    Raises:
        FormatError: If the XML is malformed or the entry is not a contact
    """
    entry = data if isinstance(data, ET.Element) else parse_xml(data)
    if entry.tag != _atom("entry"):
        raise FormatError(f"expected atom entry, got {entry.tag}")

    category = entry.find(_atom("category"))
    term = category.get("term", "") if category is not None else ""
    if term != CONTACT_TERM:
        raise FormatError(f"xml type mismatch: expect {CONTACT_TERM}, got {term!r}")

    contact = Contact(
        id=entry.findtext(_atom("id"), default=""),
        etag=_etag(entry),
        updated=parse_timestamp(entry.findtext(_atom("updated"))),
        content=entry.findtext(_atom("content"), default=""),
        deleted=entry.find(_gd("deleted")) is not None,
    )

    name = entry.find(STRUCTURES["name"].qname)
    if name is not None:
        contact.name = decode_name(name)

    for attr, kind in REPEATED:
        structure = STRUCTURES[kind]
        setattr(contact, attr, [structure.decode(e) for e in entry.findall(structure.qname)])

    # Last one wins on duplicate names
    for e in entry.findall(STRUCTURES["extendedProperty"].qname):
        prop = decode_extended_property(e)
        contact.extended_properties[prop.name] = prop.value

    for link in entry.findall(_atom("link")):
        target = LINK_FIELDS.get(link.get("rel", ""))
        if target:
            setattr(contact, target, link.get("href", ""))

    return contact


def build_entry(contact: Contact) -> ET.Element:
    """Build the request entry element for a contact's caller-settable fields."""
    entry = ET.Element("entry")
    entry.set("xmlns", ATOM_NS)
    entry.set("xmlns:gd", GD_NS)
    category = ET.SubElement(entry, "category")
    category.set("scheme", KIND_SCHEME)
    category.set("term", CONTACT_TERM)

    _add_child(entry, "content", contact.content)

    if not contact.name.is_empty():
        entry.append(encode_name(contact.name))

    for attr, kind in REPEATED:
        encode = STRUCTURES[kind].encode
        for value in getattr(contact, attr):
            entry.append(encode(value))

    for key, value in contact.extended_properties.items():
        entry.append(encode_extended_property(ExtendedProperty(name=key, value=value)))

    return entry


def encode_entry(contact: Contact) -> bytes:
    return to_bytes(build_entry(contact))


# =============================================================================
# FEED
# =============================================================================

def decode_feed(data: Union[bytes, str]) -> FeedPage:
    """
    Decode one page of a contacts feed.

    Raises:
        FormatError: If the XML is malformed or any entry is not a contact
    """
    feed = parse_xml(data)
    if feed.tag != _atom("feed"):
        raise FormatError(f"expected atom feed, got {feed.tag}")

    next_link = None
    for link in feed.findall(_atom("link")):
        if link.get("rel") == "next":
            next_link = link.get("href")
            break

    contacts: List[Contact] = [decode_entry(e) for e in feed.findall(_atom("entry"))]
    logger.debug(f"Decoded feed page: {len(contacts)} contacts, next={next_link}")
    return FeedPage(
        etag=_etag(feed),
        updated=parse_timestamp(feed.findtext(_atom("updated"))),
        contacts=contacts,
        next_link=next_link,
    )
