"""
Domain Shared Contacts Client

Drives the Atom feed protocol over an injected Transport: endpoint and query
construction, conditional fetches, etag-gated updates and deletes, and
transparent pagination across feed pages.
"""

import logging
from typing import AsyncIterator, Dict, List, Optional, Tuple
from urllib.parse import urlencode

from .codec import decode_entry, decode_feed, encode_entry
from .config import (
    ATOM_CONTENT_TYPE, CONTACTS_FEED_URL, DEFAULT_PROJECTION, GDATA_VERSION,
    THIN_PROJECTION, WILDCARD_ETAG
)
from .errors import (
    ContactNotFoundError, FormatError, RequestError, UnknownResponseError,
    VersionConflictError
)
from .interface import (
    Contact, FeedPage, GetResult, HttpResponse, QueryStatus, Transport
)
from .options import QueryOption, QueryParams, with_strict

logger = logging.getLogger(__name__)

REQUEST_ERROR_STATUSES = (400, 401, 403, 404)
CONFLICT_STATUSES = (409, 412)
DELETE_OK_STATUSES = (200, 204)


def _raise_for_status(operation: str, res: HttpResponse) -> None:
    """Raise the error matching an unaccepted response status."""
    if res.status in CONFLICT_STATUSES:
        raise VersionConflictError(f"{operation} error: version conflict", status=res.status)
    if res.status in REQUEST_ERROR_STATUSES:
        raise RequestError(operation, res.status, res.reason)
    raise UnknownResponseError(operation, res.status, res.reason)


def _conditional(etag: str) -> Dict[str, str]:
    """If-None-Match header for a conditional fetch, skipped for empty or wildcard etags."""
    if etag and etag != WILDCARD_ETAG:
        return {"If-None-Match": etag}
    return {}


class ContactFeed:
    """
    Lazy, restartable view over a paginated contacts listing.

    Iterating requests one page at a time, following each page's "next" link
    verbatim, and only asks for the next page once the current one has been
    consumed. Each new iteration starts over from the first page. The feed
    etag, if any, conditions the first page request only.

    After a complete iteration, status holds the last page's etag and
    updated time. When the first page comes back 304, iteration yields
    nothing and status.modified is False.
    """

    def __init__(self, client: "DirectoryClient", url: str, etag: str = ""):
        self._client = client
        self.url = url
        self.etag = etag
        self.status: Optional[QueryStatus] = None

    async def pages(self) -> AsyncIterator[FeedPage]:
        self.status = None
        url: Optional[str] = self.url
        headers = _conditional(self.etag)
        page_count = 0

        while url:
            res = await self._client._request("GET", url, headers)
            if res.status == 304 and headers:
                logger.debug(f"Feed not modified since {self.etag}")
                self.status = QueryStatus(etag=self.etag, modified=False)
                return
            if res.status != 200:
                _raise_for_status("list_contacts", res)

            page = decode_feed(res.body)
            page_count += 1
            headers = {}
            url = page.next_link
            if not url:
                self.status = QueryStatus(etag=page.etag, updated=page.updated)
                logger.debug(f"Feed traversal done after {page_count} pages")
            yield page

    async def __aiter__(self) -> AsyncIterator[Contact]:
        async for page in self.pages():
            for contact in page.contacts:
                yield contact


class DirectoryClient:
    """
    Client for one domain's shared contacts.

    Holds only the endpoint and default projection; the transport (and its
    credentials) belongs to the caller and may be shared between clients.
    """

    def __init__(
        self,
        transport: Transport,
        domain: str,
        default_projection: str = "",
        base_url: str = CONTACTS_FEED_URL
    ):
        self._transport = transport
        self.domain = domain
        self.endpoint = f"{base_url.rstrip('/')}/{domain}"
        self.projection = default_projection or DEFAULT_PROJECTION

    def _projection(self, projection: str) -> str:
        """Request-scoped projection, falling back to the client default."""
        return projection or self.projection

    def contact_url(self, contact_id: str, projection: str = "") -> str:
        return f"{self.endpoint}/{self._projection(projection)}/{contact_id}"

    def feed_url(self, projection: str = "", *options: QueryOption) -> str:
        url = f"{self.endpoint}/{self._projection(projection)}"
        if not options:
            return url

        params: QueryParams = {}
        with_strict()(params)
        for option in options:
            option(params)
        return f"{url}?{urlencode(sorted(params.items()))}"

    async def _request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[bytes] = None
    ) -> HttpResponse:
        request_headers = {"GData-Version": GDATA_VERSION}
        if method in ("POST", "PUT"):
            request_headers["Content-Type"] = ATOM_CONTENT_TYPE
        request_headers.update(headers or {})

        res = await self._transport.request(method, url, request_headers, body)
        logger.debug(f"{method} {url} -> {res.status}")
        return res

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    async def create_contact(self, contact: Contact) -> Contact:
        """
        Create a contact.

        Returns the contact as saved by the server, with its id, etag and
        links filled in.
        """
        res = await self._request("POST", f"{self.endpoint}/{self.projection}", body=encode_entry(contact))
        if res.status != 201:
            _raise_for_status("create_contact", res)

        created = decode_entry(res.body)
        logger.info(f"✅ Created contact: {created.display_name} (ID: {created.resource_id})")
        return created

    async def get_contact(self, contact_id: str, projection: str = "", etag: str = "") -> GetResult:
        """
        Get a contact.

        With a non-wildcard etag the fetch is conditional: an unmodified
        contact comes back as GetResult.unchanged() instead of a body.
        A missing contact is GetResult.not_found().
        """
        res = await self._request("GET", self.contact_url(contact_id, projection), _conditional(etag))

        if res.status == 304:
            return GetResult.unchanged()
        if res.status == 404:
            return GetResult.not_found()
        if res.status != 200:
            _raise_for_status("get_contact", res)

        return GetResult.changed(decode_entry(res.body))

    def feed(self, projection: str = "", feed_etag: str = "", *options: QueryOption) -> ContactFeed:
        """Lazy listing; see ContactFeed."""
        return ContactFeed(self, self.feed_url(projection, *options), feed_etag)

    async def list_contacts(
        self,
        projection: str = "",
        feed_etag: str = "",
        *options: QueryOption
    ) -> Tuple[List[Contact], QueryStatus]:
        """
        List contacts across all feed pages.

        Entries in a feed are unordered unless with_sort is given. Pages are
        concatenated in order; the returned status is the last page's.
        Paging is not a snapshot: entries changed while the pages are being
        fetched may show up twice or not at all.
        """
        feed = self.feed(projection, feed_etag, *options)
        contacts = [contact async for contact in feed]
        return contacts, feed.status

    async def _fetch_current(self, contact_id: str, projection: str, operation: str) -> Contact:
        result = await self.get_contact(contact_id, projection)
        if result.is_not_found:
            raise ContactNotFoundError(operation, contact_id)

        current = result.contact
        if not current.edit_link:
            raise FormatError(f"{operation} error: contact {contact_id} has no edit link")
        return current

    @staticmethod
    def _check_etag(current: Contact, etag: str, operation: str) -> None:
        if etag != WILDCARD_ETAG and current.etag != etag:
            raise VersionConflictError(
                f"{operation} error: etag not match (have {etag!r}, server has {current.etag!r})"
            )

    async def update_contact(self, contact_id: str, etag: str, contact: Contact) -> Contact:
        """
        Replace a contact.

        Only runs if etag matches the server's current version; "*" forces
        the update over whatever version is current.
        """
        current = await self._fetch_current(contact_id, DEFAULT_PROJECTION, "update_contact")
        self._check_etag(current, etag, "update_contact")

        res = await self._request("PUT", current.edit_link, {"If-Match": etag}, encode_entry(contact))
        if res.status != 200:
            _raise_for_status("update_contact", res)

        updated = decode_entry(res.body)
        logger.info(f"✅ Updated contact: {contact_id}")
        return updated

    async def delete_contact(self, contact_id: str, etag: str) -> None:
        """
        Delete a contact.

        Same etag rules as update_contact. The DELETE response must be 200 or
        204, anything else raises.
        """
        current = await self._fetch_current(contact_id, THIN_PROJECTION, "delete_contact")
        self._check_etag(current, etag, "delete_contact")

        res = await self._request("DELETE", current.edit_link, {"If-Match": etag})
        if res.status not in DELETE_OK_STATUSES:
            _raise_for_status("delete_contact", res)

        logger.info(f"✅ Deleted contact: {contact_id}")
