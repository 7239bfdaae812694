"""Catalog dataclass for STAC Catalog documents.

A Catalog is a container that references child catalogs, collections and
items through its links.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from stacgraph.constants import CATALOG_TYPE, STAC_VERSION
from stacgraph.models.base import (
    LinkedObject,
    collect_extra,
    merge_extra,
    parse_extensions,
    present,
    require,
    require_id,
)
from stacgraph.models.link import Link, parse_links

_OPTIONAL_FIELDS = ("stac_version", "title")


@dataclass(frozen=True)
class Catalog(LinkedObject):
    """STAC Catalog document.

    Attributes:
        id: Unique identifier.
        description: Catalog description (required by STAC).
        links: STAC links, in document order.
        title: Human-readable title (optional).
        extensions: Declared extension schema URIs.
        stac_version: STAC version, None when the source did not declare one.
        extra: Unknown top-level fields.
        type: Always "Catalog".
    """

    id: str
    description: str
    links: tuple[Link, ...] = ()
    title: str | None = None
    extensions: tuple[str, ...] = ()
    stac_version: str | None = STAC_VERSION
    extra: dict[str, Any] = field(default_factory=dict)
    type: str = field(default=CATALOG_TYPE, init=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        result: dict[str, Any] = {"type": self.type}
        if self.stac_version is not None:
            result["stac_version"] = self.stac_version
        if self.extensions:
            result["stac_extensions"] = list(self.extensions)
        result["id"] = self.id
        if self.title is not None:
            result["title"] = self.title
        result["description"] = self.description
        result["links"] = [link.to_dict() for link in self.links]
        return merge_extra(result, self.extra)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Catalog:
        """Create Catalog from dict.

        Raises:
            MissingRequiredFieldError: If id, description or links is absent.
        """
        catalog_id = require_id(data, "Catalog")
        description = require(data, "description", "Catalog")
        links = parse_links(data, "Catalog")
        extensions, extensions_consumed = parse_extensions(data)

        consumed = {"type", "id", "description", "links"} | present(data, _OPTIONAL_FIELDS)
        if extensions_consumed:
            consumed.add("stac_extensions")

        return cls(
            id=catalog_id,
            description=description,
            links=links,
            title=data.get("title"),
            extensions=extensions,
            stac_version=data.get("stac_version"),
            extra=collect_extra(data, consumed),
        )
