"""
Mapping between SearchParams and the shareable location query string.

Only the search text (``s``) and the tag filter (``t``) are part of the
location. Read state and sort order stay local to the session.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import parse_qs, urlencode

from .datamodels import SearchParams

SEARCH_KEY = "s"
TAG_KEY = "t"

QueryInput = Union[str, Mapping[str, Any], None]


def encode(params: SearchParams) -> Dict[str, str]:
    query = {SEARCH_KEY: params.search_text or ""}
    # No key at all means "no tag filter"; an empty ``t`` is never written.
    if params.tag_id:
        query[TAG_KEY] = params.tag_id
    return query


def decode(query: QueryInput) -> Dict[str, Optional[str]]:
    """Read ``search_text`` and ``tag_id`` from a location.

    Accepts a raw query string or a mapping (as produced by ``parse_qs`` or
    a plain dict). Missing, empty and malformed values all decode to the
    defaults; nothing here raises.
    """
    if query is None:
        values: Mapping[str, Any] = {}
    elif isinstance(query, str):
        values = parse_qs(query.lstrip("?"), keep_blank_values=True)
    else:
        values = query

    search_text = _first(values.get(SEARCH_KEY)) or ""
    tag_id = _first(values.get(TAG_KEY)) or None
    return {"search_text": search_text, "tag_id": tag_id}


def to_query_string(params: SearchParams) -> str:
    return urlencode(encode(params))


def _first(value: Any) -> Optional[str]:
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)
    return value
