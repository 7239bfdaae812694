"""Item and Asset dataclasses for STAC Item documents.

An Item is a GeoJSON Feature describing a single spatiotemporal asset.
The geometry is carried through as an opaque GeoJSON value.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime as _datetime
from typing import Any

from stacgraph.constants import ITEM_TYPE, STAC_VERSION
from stacgraph.errors import MalformedError, MissingRequiredFieldError
from stacgraph.models.base import (
    LinkedObject,
    collect_extra,
    merge_extra,
    parse_extensions,
    present,
    require,
    require_id,
    require_list,
    require_mapping,
)
from stacgraph.models.link import Link, parse_links

_ASSET_OPTIONAL_FIELDS = ("title", "description", "type", "roles")
_ITEM_OPTIONAL_FIELDS = ("stac_version", "bbox", "collection")


@dataclass(frozen=True)
class Asset:
    """A STAC asset (file reference).

    Attributes:
        href: Asset URL or relative path.
        title: Human-readable title.
        description: Longer description.
        type: Media type (e.g., "image/tiff; application=geotiff").
        roles: Asset roles (e.g., ("data",), ("thumbnail",)).
        extra: Extension fields (e.g. "eo:bands").
    """

    href: str
    title: str | None = None
    description: str | None = None
    type: str | None = None
    roles: tuple[str, ...] | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def has_role(self, role: str) -> bool:
        return self.roles is not None and role in self.roles

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        result: dict[str, Any] = {"href": self.href}
        if self.title is not None:
            result["title"] = self.title
        if self.description is not None:
            result["description"] = self.description
        if self.type is not None:
            result["type"] = self.type
        if self.roles is not None:
            result["roles"] = list(self.roles)
        return merge_extra(result, self.extra)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Asset:
        """Create Asset from dict."""
        href = require(data, "href", "Asset")
        if not isinstance(href, str):
            raise MalformedError("asset 'href' must be a string")

        roles = data.get("roles")
        if roles is not None:
            roles = tuple(require_list(roles, "roles"))

        return cls(
            href=href,
            title=data.get("title"),
            description=data.get("description"),
            type=data.get("type"),
            roles=roles,
            extra=collect_extra(data, {"href"} | present(data, _ASSET_OPTIONAL_FIELDS)),
        )


def parse_assets(value: Any) -> dict[str, Asset]:
    """Parse an `assets` object, keeping asset keys in source order."""
    raw = require_mapping(value, "assets")
    return {
        key: Asset.from_dict(require_mapping(asset, f"assets.{key}")) for key, asset in raw.items()
    }


def _parse_datetime(value: str) -> _datetime:
    # fromisoformat() only accepts a trailing "Z" from Python 3.11
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    return _datetime.fromisoformat(value)


@dataclass(frozen=True)
class Item(LinkedObject):
    """STAC Item document.

    Attributes:
        id: Unique item identifier.
        geometry: GeoJSON geometry, or None. The key is required in JSON.
        properties: STAC properties; always contains a `datetime` key
            (whose value may be null when a start/end range is given).
        assets: Asset references keyed by asset name.
        links: STAC links, in document order.
        bbox: Bounding box, required by STAC when geometry is not null.
        collection: Parent collection id (optional).
        extensions: Declared extension schema URIs.
        stac_version: STAC version, None when the source did not declare one.
        extra: Unknown top-level fields (e.g. foreign GeoJSON members).
        type: Always "Feature".
    """

    id: str
    geometry: dict[str, Any] | None = None
    properties: dict[str, Any] = field(default_factory=lambda: {"datetime": None})
    assets: dict[str, Asset] = field(default_factory=dict)
    links: tuple[Link, ...] = ()
    bbox: list[float] | None = None
    collection: str | None = None
    extensions: tuple[str, ...] = ()
    stac_version: str | None = STAC_VERSION
    extra: dict[str, Any] = field(default_factory=dict)
    type: str = field(default=ITEM_TYPE, init=False)

    @property
    def datetime(self) -> _datetime | None:
        """The `datetime` property parsed to a datetime, or None if null."""
        value = self.properties.get("datetime")
        if value is None:
            return None
        return _parse_datetime(value)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        result: dict[str, Any] = {"type": self.type}
        if self.stac_version is not None:
            result["stac_version"] = self.stac_version
        if self.extensions:
            result["stac_extensions"] = list(self.extensions)
        result["id"] = self.id
        result["geometry"] = copy.deepcopy(self.geometry)
        if self.bbox is not None:
            result["bbox"] = copy.deepcopy(self.bbox)
        result["properties"] = copy.deepcopy(self.properties)
        result["links"] = [link.to_dict() for link in self.links]
        result["assets"] = {key: asset.to_dict() for key, asset in self.assets.items()}
        if self.collection is not None:
            result["collection"] = self.collection
        return merge_extra(result, self.extra)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Item:
        """Create Item from dict.

        Raises:
            MissingRequiredFieldError: If id, geometry, properties,
                properties.datetime, links or assets is absent.
            MalformedError: If a field has the wrong JSON container type.
        """
        item_id = require_id(data, "Item")
        geometry = require(data, "geometry", "Item")
        properties = require_mapping(require(data, "properties", "Item"), "properties")
        if "datetime" not in properties:
            raise MissingRequiredFieldError("properties.datetime", "Item")
        links = parse_links(data, "Item")
        assets = parse_assets(require(data, "assets", "Item"))
        extensions, extensions_consumed = parse_extensions(data)

        consumed = {"type", "id", "geometry", "properties", "links", "assets"}
        consumed |= present(data, _ITEM_OPTIONAL_FIELDS)
        if extensions_consumed:
            consumed.add("stac_extensions")

        return cls(
            id=item_id,
            geometry=copy.deepcopy(geometry),
            properties=copy.deepcopy(properties),
            assets=assets,
            links=links,
            bbox=copy.deepcopy(data.get("bbox")),
            collection=data.get("collection"),
            extensions=extensions,
            stac_version=data.get("stac_version"),
            extra=collect_extra(data, consumed),
        )
