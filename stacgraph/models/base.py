"""Helpers shared by the STAC document dataclasses.

Every model keeps the fields it does not know about in an ``extra`` dict so
that documents written by other tools, or carrying extension fields, survive a
parse/serialize round trip unchanged. Known fields are written first in a
fixed order, then the extra fields in the order they were read.

Raw JSON values (extra fields, properties, geometry, summaries) are deep-copied
on the way in and on the way out, so a model never shares a container with its
input or its output.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Iterator, Mapping
from typing import TYPE_CHECKING, Any

from stacgraph.constants import REL_PARENT, REL_ROOT, REL_SELF
from stacgraph.errors import MalformedError, MissingRequiredFieldError

if TYPE_CHECKING:
    from stacgraph.models.link import Link


def require(data: Mapping[str, Any], key: str, owner: str) -> Any:
    """Return ``data[key]``, raising MissingRequiredFieldError if the key is absent.

    A present key with a null value is returned as None; only absence is an error.
    """
    if key not in data:
        raise MissingRequiredFieldError(key, owner)
    return data[key]


def require_mapping(value: Any, what: str) -> dict[str, Any]:
    """Check that a decoded JSON value is an object."""
    if not isinstance(value, dict):
        raise MalformedError(f"'{what}' must be an object, got {type(value).__name__}")
    return value


def require_list(value: Any, what: str) -> list[Any]:
    """Check that a decoded JSON value is an array."""
    if not isinstance(value, list):
        raise MalformedError(f"'{what}' must be an array, got {type(value).__name__}")
    return value


def require_id(data: Mapping[str, Any], owner: str) -> str:
    """Return the document id, which must be a non-empty string."""
    value = require(data, "id", owner)
    if not isinstance(value, str) or not value:
        raise MalformedError(f"{owner} 'id' must be a non-empty string")
    return value


def present(data: Mapping[str, Any], keys: Iterable[str]) -> set[str]:
    """Keys from ``keys`` that are in ``data`` with a non-null value.

    Optional known fields set to JSON null are not consumed by the model;
    they stay in the extra bag so the null is written back verbatim.
    """
    return {key for key in keys if data.get(key) is not None}


def collect_extra(data: Mapping[str, Any], consumed: Iterable[str]) -> dict[str, Any]:
    """Entries of ``data`` not consumed by a known field, in source order."""
    consumed = set(consumed)
    return {key: copy.deepcopy(value) for key, value in data.items() if key not in consumed}


def merge_extra(result: dict[str, Any], extra: Mapping[str, Any]) -> dict[str, Any]:
    """Append extra fields after the known ones. Known fields win on conflict."""
    for key, value in extra.items():
        if key not in result:
            result[key] = copy.deepcopy(value)
    return result


def parse_extensions(data: Mapping[str, Any]) -> tuple[tuple[str, ...], bool]:
    """Read ``stac_extensions``.

    Returns:
        Tuple of (extension URIs, consumed). An empty or null list is left
        unconsumed so it round-trips through the extra bag.
    """
    value = data.get("stac_extensions")
    if value is None:
        return (), False
    uris = require_list(value, "stac_extensions")
    for uri in uris:
        if not isinstance(uri, str):
            raise MalformedError("'stac_extensions' entries must be strings")
    return tuple(uris), bool(uris)


class LinkedObject:
    """Link and extension lookups shared by Catalog, Collection and Item.

    Relation hrefs are returned as written; resolving them against a
    location is the job of :mod:`stacgraph.href`.
    """

    links: tuple[Link, ...]
    extensions: tuple[str, ...]

    def iter_links(self, *rels: str) -> Iterator[Link]:
        """Yield links in document order, optionally only those with the given rels."""
        for link in self.links:
            if not rels or link.rel in rels:
                yield link

    def link(self, rel: str) -> Link | None:
        """Return the first link with relation ``rel``, or None."""
        return next(self.iter_links(rel), None)

    def self_href(self) -> str | None:
        """Href of the `self` link, if any."""
        link = self.link(REL_SELF)
        return link.href if link is not None else None

    def root_href(self) -> str | None:
        """Href of the `root` link, if any."""
        link = self.link(REL_ROOT)
        return link.href if link is not None else None

    def parent_href(self) -> str | None:
        """Href of the `parent` link, if any."""
        link = self.link(REL_PARENT)
        return link.href if link is not None else None

    def has_extension(self, prefix: str) -> bool:
        """True if any declared extension URI starts with ``prefix``."""
        return any(uri.startswith(prefix) for uri in self.extensions)
