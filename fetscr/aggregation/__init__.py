"""Query expansion, pagination and result aggregation."""

from .aggregator import Aggregator, detect_mode
from .expander import compose_query, expand_query, is_keyword_request
from .paginator import PaginationResult, max_pages_for, paginate

__all__ = [
    "Aggregator",
    "PaginationResult",
    "compose_query",
    "detect_mode",
    "expand_query",
    "is_keyword_request",
    "max_pages_for",
    "paginate",
]
