"""Query validator — enforces the ParsedQuery contract on decoded model output.

Malformed keywords are fatal; keywords drive the search. A bad `category` or
`sortBy` is dropped instead, since both are optional refinements.
"""

from typing import Any

from safekids.search.errors import QueryValidationError
from safekids.search.schemas import CATEGORIES, SORT_VALUES, ParsedQuery


def validate_parsed_query(data: Any) -> ParsedQuery:
    """Return a ParsedQuery or raise QueryValidationError with the reason."""
    if not isinstance(data, dict):
        raise QueryValidationError("LLM response is not an object")

    keywords = data.get("keywords")
    if not isinstance(keywords, list) or not keywords:
        raise QueryValidationError("keywords must be a non-empty array")

    if not all(isinstance(kw, str) for kw in keywords):
        raise QueryValidationError("All keywords must be strings")

    category = None
    if data.get("category") is not None:
        candidate = str(data["category"])
        if candidate in CATEGORIES:
            category = candidate

    sort_by = data.get("sortBy")
    if sort_by not in SORT_VALUES:
        sort_by = None

    return ParsedQuery(keywords=list(keywords), category=category, sortBy=sort_by)
