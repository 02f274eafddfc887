"""Shared fixtures: a scripted in-memory transport and Atom payload builders."""

from typing import Dict, List, Optional

import pytest

from shared_contacts.interface import HttpResponse, Transport

ATOM = "http://www.w3.org/2005/Atom"
GD = "http://schemas.google.com/g/2005"
CONTACT_TERM = "http://schemas.google.com/contact/2008#contact"
BASE = "https://www.google.com/m8/feeds/contacts/example.com"


class Call:
    def __init__(self, method: str, url: str, headers: Dict[str, str], body: Optional[bytes]):
        self.method = method
        self.url = url
        self.headers = headers
        self.body = body


class FakeTransport(Transport):
    """Replays queued responses in order and records every request."""

    def __init__(self, responses: Optional[List[HttpResponse]] = None):
        self.responses = list(responses or [])
        self.calls: List[Call] = []
        self.closed = False

    def queue(self, status: int, body: bytes = b"", reason: str = "") -> "FakeTransport":
        self.responses.append(HttpResponse(status=status, body=body, reason=reason))
        return self

    async def request(self, method, url, headers=None, body=None):
        self.calls.append(Call(method, url, dict(headers or {}), body))
        if not self.responses:
            raise AssertionError(f"unexpected request: {method} {url}")
        return self.responses.pop(0)

    async def close(self):
        self.closed = True


def entry_xml(contact_id: str = "c1", etag: str = '"etag-1"', full_name: str = "Elizabeth Bennet",
              extra: str = "", root: bool = True) -> str:
    """A minimal contact entry; root=False drops the namespace declarations for use inside a feed."""
    ns = f" xmlns='{ATOM}' xmlns:gd='{GD}'" if root else ""
    return f"""<entry{ns} gd:etag='{etag}'>
  <category scheme='{GD}#kind' term='{CONTACT_TERM}'/>
  <id>http://www.google.com/m8/feeds/contacts/example.com/base/{contact_id}</id>
  <updated>2023-08-18T09:54:17.202Z</updated>
  <link rel='self' type='application/atom+xml' href='{BASE}/full/{contact_id}'/>
  <link rel='edit' type='application/atom+xml' href='{BASE}/full/{contact_id}/edit'/>
  <gd:name><gd:fullName>{full_name}</gd:fullName></gd:name>
  {extra}
</entry>"""


def entry_bytes(*args, **kwargs) -> bytes:
    return entry_xml(*args, **kwargs).encode()


def feed_bytes(entries: List[str], etag: str = '"feed-1"', next_link: Optional[str] = None,
               updated: str = "2023-08-18T10:00:00.000Z") -> bytes:
    next_tag = ""
    if next_link:
        href = next_link.replace("&", "&amp;")
        next_tag = f"<link rel='next' type='application/atom+xml' href='{href}'/>"
    body = "\n".join(entries)
    return f"""<feed xmlns='{ATOM}' xmlns:gd='{GD}' gd:etag='{etag}'>
  <id>{BASE}/full</id>
  <updated>{updated}</updated>
  <link rel='self' type='application/atom+xml' href='{BASE}/full'/>
  {next_tag}
  {body}
</feed>""".encode()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()
