"""Encode search filters as URL query parameters.

STAC API item searches over GET take their filter as query parameters:
scalar lists (``bbox``, ``collections``, ``ids``) are comma-joined, structured
values (``intersects``, ``query``, ``filter``, ``sortby`` objects) are compact
JSON, and ``datetime`` is an RFC 3339 instant or a ``start/end`` interval with
``..`` for an open end.

Usage:
    from stacgraph.query import set_query

    link = Link(rel="search", href="https://example.com/search")
    link = set_query(link, {"collections": ["sentinel-2"], "limit": 10})
    # https://example.com/search?collections=sentinel-2&limit=10
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import date, datetime, timezone
from typing import Any
from urllib.parse import urlencode, urlsplit, urlunsplit

from stacgraph.models import Link

_OPEN = ".."


def format_datetime(value: datetime | date | str | None) -> str:
    """Format one end of a datetime filter as RFC 3339.

    Naive datetimes are taken to be UTC. None (an open end) becomes "..".
    Strings are passed through unchanged.
    """
    if value is None:
        return _OPEN
    if isinstance(value, str):
        return value
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        text = value.isoformat()
        return text[:-6] + "Z" if text.endswith("+00:00") else text
    return value.isoformat()


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float, bool))


def _encode_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return format_datetime(value)
    return str(value)


def _encode_value(key: str, value: Any) -> str:
    if key == "datetime" and isinstance(value, (tuple, list)):
        if len(value) != 2:
            raise ValueError(
                f"datetime interval needs exactly two bounds (start, end), got {len(value)}"
            )
        start, end = value
        return f"{format_datetime(start)}/{format_datetime(end)}"
    if isinstance(value, (list, tuple)) and all(_is_scalar(v) for v in value):
        return ",".join(_encode_scalar(v) for v in value)
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, separators=(",", ":"), default=_encode_scalar)
    return _encode_scalar(value)


def encode_query(params: Mapping[str, Any]) -> list[tuple[str, str]]:
    """Flatten a filter mapping into ordered ``(name, value)`` query pairs.

    Args:
        params: Filter fields, e.g. ``{"bbox": [0, 0, 1, 1], "limit": 10}``.
            None values are dropped.

    Returns:
        Pairs in the order of ``params``.

    Raises:
        ValueError: If a ``datetime`` interval does not have exactly two bounds.

    Examples:
        >>> encode_query({"bbox": [-10, 40, 5, 50], "ids": None})
        [('bbox', '-10,40,5,50')]
        >>> encode_query({"datetime": (None, "2024-01-01T00:00:00Z")})
        [('datetime', '../2024-01-01T00:00:00Z')]
    """
    return [(key, _encode_value(key, value)) for key, value in params.items() if value is not None]


def set_query(link: Link, params: Mapping[str, Any]) -> Link:
    """Return a copy of ``link`` whose href query string is ``params``.

    Any existing query string is replaced; the fragment is kept.
    """
    parts = urlsplit(link.href)
    query = urlencode(encode_query(params))
    href = urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))
    return link.with_href(href)
