"""
Contacts client errors.

Every failure of a directory operation is raised as a ContactsError subclass
so callers can tell transport problems, bad payloads, unexpected statuses and
version conflicts apart.
"""

from typing import Optional


class ContactsError(Exception):
    """Base class for all shared contacts errors."""


class TransportError(ContactsError):
    """The HTTP exchange itself failed (network, timeout)."""


class FormatError(ContactsError):
    """A response body could not be decoded as a contact entry or feed."""


class VersionConflictError(ContactsError):
    """The server or the local etag check rejected a stale version."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ResponseError(ContactsError):
    """The server answered with a status the operation does not accept."""

    prefix = ""

    def __init__(self, operation: str, status: int, reason: Optional[str] = None):
        self.operation = operation
        self.status = status
        self.reason = reason or ""
        detail = f"{self.prefix}{status} {self.reason}".strip()
        super().__init__(f"{operation} error: {detail}")


class RequestError(ResponseError):
    """The request was rejected (400, 401, 403 or 404)."""


class ContactNotFoundError(RequestError):
    """The contact an update or delete targets does not exist."""

    def __init__(self, operation: str, contact_id: str):
        self.contact_id = contact_id
        super().__init__(operation, 404, f"contact {contact_id} not found")


class UnknownResponseError(ResponseError):
    """Any status the operation has no specific handling for."""

    prefix = "unknown with "


class CredentialsError(ContactsError):
    """No usable credentials could be loaded."""
