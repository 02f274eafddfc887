"""
Query options for listing contacts.

Each option returns a function that sets parameters on the query mapping
list_contacts sends. Passing any option also turns on strict parameter
checking on the server.
"""

from datetime import datetime, timezone
from typing import Callable, Dict, Iterable

QueryParams = Dict[str, str]
QueryOption = Callable[[QueryParams], None]

SORT_ORDERS = ("ascending", "descending")


def _rfc3339(t: datetime) -> str:
    # Naive datetimes are taken as UTC
    if t.tzinfo is None:
        t = t.replace(tzinfo=timezone.utc)
    text = t.isoformat(timespec="seconds")
    return text[:-6] + "Z" if text.endswith("+00:00") else text


def _bool(flag: bool) -> str:
    return "true" if flag else "false"


def with_max_results(n: int) -> QueryOption:
    """Override the server's default page size."""
    def apply(params: QueryParams) -> None:
        params["max-results"] = str(n)
    return apply


def with_start_index(n: int) -> QueryOption:
    """
    1-based index of the first result.

    This is not a cursor: start-index=1&max-results=10 followed by
    start-index=11&max-results=10 is not guaranteed to equal
    start-index=1&max-results=20, since entries may be inserted or deleted
    between the two requests.
    """
    def apply(params: QueryParams) -> None:
        params["start-index"] = str(n)
    return apply


def with_updated_min(t: datetime) -> QueryOption:
    """Only entries updated at or after t."""
    def apply(params: QueryParams) -> None:
        params["updated-min"] = _rfc3339(t)
    return apply


def with_updated_max(t: datetime) -> QueryOption:
    """Only entries updated before t."""
    def apply(params: QueryParams) -> None:
        params["updated-max"] = _rfc3339(t)
    return apply


def with_strict() -> QueryOption:
    def apply(params: QueryParams) -> None:
        params["strict"] = "true"
    return apply


def with_show_deleted(flag: bool = True) -> QueryOption:
    """Include deleted entries. Most useful together with with_updated_min."""
    def apply(params: QueryParams) -> None:
        params["showdeleted"] = _bool(flag)
    return apply


def with_sort(order: str) -> QueryOption:
    """Sort by last modified time, "ascending" or "descending"."""
    if order not in SORT_ORDERS:
        raise ValueError(f"Invalid sort order '{order}'. Expected one of: {', '.join(SORT_ORDERS)}")

    def apply(params: QueryParams) -> None:
        params["orderby"] = "lastmodified"
        params["sortorder"] = order
    return apply


def filter_by_author(name: str) -> QueryOption:
    """Entries whose author name or email matches."""
    def apply(params: QueryParams) -> None:
        params["author"] = name
    return apply


def filter_by_category(filters: str) -> QueryOption:
    """
    Filter by category using the raw server syntax.

    "Fritz|Laurie" matches either category, "Fritz,Laurie" matches both.
    """
    def apply(params: QueryParams) -> None:
        params["category"] = filters
    return apply


def build_text_query(terms: Iterable[str]) -> str:
    parts = []
    for term in terms:
        # embedded double quotes cannot be escaped in q
        term = " ".join(term.replace('"', " ").split())
        negated = term.startswith("-")
        if negated:
            term = term[1:].strip()
        if not term:
            continue
        if negated:
            parts.append(f'-"{term}"')
        elif " " in term:
            parts.append(f'"{term}"')
        else:
            parts.append(term)
    return " ".join(parts)


def with_text_query(terms: Iterable[str]) -> QueryOption:
    """
    Full-text, case-insensitive search.

    Terms are ANDed together. Multi-word terms match as a phrase, and a term
    starting with "-" excludes entries that match it:

        with_text_query(["Elizabeth Bennet", "Darcy", "-Austen"])
        # q="Elizabeth Bennet" Darcy -"Austen"
    """
    query = build_text_query(terms)

    def apply(params: QueryParams) -> None:
        params["q"] = query
    return apply
