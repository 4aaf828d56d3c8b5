"""Expansion of a raw search request into independent sub-queries."""

from ..models.search import SubQuery
from ..utils.errors import InvalidRequestError

KEYWORD_SEPARATOR = ","


def compose_query(query: str | None, keywords: str | None) -> str:
    """Join query and keywords with a single space, trimmed on both ends."""
    return f"{(query or '').strip()} {(keywords or '').strip()}".strip()


def is_keyword_request(keywords: str | None) -> bool:
    """A request is a keyword search when its keyword list contains a comma."""
    return bool(keywords) and KEYWORD_SEPARATOR in keywords


def expand_query(query: str | None, keywords: str | None = "") -> list[SubQuery]:
    """Split a request into the sub-queries that will each be paginated.

    Without a comma in ``keywords`` the request is a single unlabeled sub-query.
    With one, every non-empty comma-separated keyword becomes its own labeled
    sub-query, in input order.

    Raises:
        InvalidRequestError: If nothing searchable remains after trimming.
    """
    query = (query or "").strip()
    keywords = keywords or ""

    if not query and not keywords.strip():
        raise InvalidRequestError("Missing query", field="query")

    if not is_keyword_request(keywords):
        return [SubQuery(label="", text=compose_query(query, keywords))]

    labels = [token.strip() for token in keywords.split(KEYWORD_SEPARATOR)]
    sub_queries = [
        SubQuery(label=label, text=compose_query(query, label))
        for label in labels
        if label
    ]
    if not sub_queries:
        raise InvalidRequestError(
            "Keyword list contains no keywords", field="keywords"
        )
    return sub_queries
