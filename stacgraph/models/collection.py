"""Collection dataclass for STAC Collection documents.

A Collection groups related items with shared extent, license and providers.
It shares every Catalog field and adds the ones below.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

from stacgraph.constants import COLLECTION_TYPE, STAC_VERSION
from stacgraph.errors import MalformedError
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
from stacgraph.models.item import Asset, parse_assets
from stacgraph.models.link import Link, parse_links

_PROVIDER_OPTIONAL_FIELDS = ("description", "roles", "url")
_COLLECTION_OPTIONAL_FIELDS = (
    "stac_version",
    "title",
    "keywords",
    "providers",
    "summaries",
    "assets",
)


@dataclass(frozen=True)
class Provider:
    """A data provider.

    Attributes:
        name: Provider name.
        description: Free-form description.
        roles: Provider roles (licensor, producer, processor, host).
        url: Provider URL.
        extra: Unknown fields.
    """

    name: str
    description: str | None = None
    roles: tuple[str, ...] | None = None
    url: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        result: dict[str, Any] = {"name": self.name}
        if self.description is not None:
            result["description"] = self.description
        if self.roles is not None:
            result["roles"] = list(self.roles)
        if self.url is not None:
            result["url"] = self.url
        return merge_extra(result, self.extra)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Provider:
        """Create Provider from dict."""
        roles = data.get("roles")
        if roles is not None:
            roles = tuple(require_list(roles, "providers[].roles"))
        return cls(
            name=require(data, "name", "Provider"),
            description=data.get("description"),
            roles=roles,
            url=data.get("url"),
            extra=collect_extra(data, {"name"} | present(data, _PROVIDER_OPTIONAL_FIELDS)),
        )


@dataclass(frozen=True)
class SpatialExtent:
    """Spatial extent with bounding boxes.

    Attributes:
        bbox: List of bounding boxes. The first one covers all the others.
        extra: Unknown fields.
    """

    bbox: list[list[float]]
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return merge_extra({"bbox": copy.deepcopy(self.bbox)}, self.extra)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SpatialExtent:
        """Create SpatialExtent from dict."""
        bbox = require_list(require(data, "bbox", "SpatialExtent"), "extent.spatial.bbox")
        return cls(bbox=copy.deepcopy(bbox), extra=collect_extra(data, {"bbox"}))


@dataclass(frozen=True)
class TemporalExtent:
    """Temporal extent with intervals.

    Attributes:
        interval: List of [start, end] pairs, ISO 8601 strings or null for open ends.
        extra: Unknown fields.
    """

    interval: list[list[str | None]]
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return merge_extra({"interval": copy.deepcopy(self.interval)}, self.extra)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TemporalExtent:
        """Create TemporalExtent from dict."""
        interval = require_list(
            require(data, "interval", "TemporalExtent"), "extent.temporal.interval"
        )
        return cls(interval=copy.deepcopy(interval), extra=collect_extra(data, {"interval"}))


@dataclass(frozen=True)
class Extent:
    """Spatial and temporal extent of a Collection."""

    spatial: SpatialExtent
    temporal: TemporalExtent
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        result = {
            "spatial": self.spatial.to_dict(),
            "temporal": self.temporal.to_dict(),
        }
        return merge_extra(result, self.extra)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Extent:
        """Create Extent from dict."""
        spatial = require_mapping(require(data, "spatial", "Extent"), "extent.spatial")
        temporal = require_mapping(require(data, "temporal", "Extent"), "extent.temporal")
        return cls(
            spatial=SpatialExtent.from_dict(spatial),
            temporal=TemporalExtent.from_dict(temporal),
            extra=collect_extra(data, {"spatial", "temporal"}),
        )


@dataclass(frozen=True)
class Collection(LinkedObject):
    """STAC Collection document.

    Attributes:
        id: Unique identifier.
        description: Collection description (required by STAC).
        extent: Spatial and temporal extent.
        license: SPDX license identifier, "various" or "proprietary".
        links: STAC links, in document order.
        title: Human-readable title (optional).
        keywords: Search keywords.
        providers: Data providers.
        summaries: Aggregated item property values, kept as raw JSON.
        assets: Collection-level assets.
        extensions: Declared extension schema URIs.
        stac_version: STAC version, None when the source did not declare one.
        extra: Unknown top-level fields.
        type: Always "Collection".
    """

    id: str
    description: str
    extent: Extent
    license: str = "proprietary"
    links: tuple[Link, ...] = ()
    title: str | None = None
    keywords: tuple[str, ...] | None = None
    providers: tuple[Provider, ...] | None = None
    summaries: dict[str, Any] | None = None
    assets: dict[str, Asset] | None = None
    extensions: tuple[str, ...] = ()
    stac_version: str | None = STAC_VERSION
    extra: dict[str, Any] = field(default_factory=dict)
    type: str = field(default=COLLECTION_TYPE, init=False)

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
        if self.keywords is not None:
            result["keywords"] = list(self.keywords)
        result["license"] = self.license
        if self.providers is not None:
            result["providers"] = [provider.to_dict() for provider in self.providers]
        result["extent"] = self.extent.to_dict()
        if self.summaries is not None:
            result["summaries"] = copy.deepcopy(self.summaries)
        result["links"] = [link.to_dict() for link in self.links]
        if self.assets is not None:
            result["assets"] = {key: asset.to_dict() for key, asset in self.assets.items()}
        return merge_extra(result, self.extra)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Collection:
        """Create Collection from dict.

        Raises:
            MissingRequiredFieldError: If id, description, license, extent
                or links is absent.
            MalformedError: If a field has the wrong JSON container type.
        """
        collection_id = require_id(data, "Collection")
        description = require(data, "description", "Collection")
        license = require(data, "license", "Collection")
        extent = Extent.from_dict(require_mapping(require(data, "extent", "Collection"), "extent"))
        links = parse_links(data, "Collection")
        extensions, extensions_consumed = parse_extensions(data)

        keywords = data.get("keywords")
        if keywords is not None:
            keywords = tuple(require_list(keywords, "keywords"))

        providers = data.get("providers")
        if providers is not None:
            providers = tuple(
                Provider.from_dict(require_mapping(p, "providers[]"))
                for p in require_list(providers, "providers")
            )

        summaries = data.get("summaries")
        if summaries is not None and not isinstance(summaries, dict):
            raise MalformedError("'summaries' must be an object")

        assets = data.get("assets")
        if assets is not None:
            assets = parse_assets(assets)

        consumed = {"type", "id", "description", "license", "extent", "links"}
        consumed |= present(data, _COLLECTION_OPTIONAL_FIELDS)
        if extensions_consumed:
            consumed.add("stac_extensions")

        return cls(
            id=collection_id,
            description=description,
            extent=extent,
            license=license,
            links=links,
            title=data.get("title"),
            keywords=keywords,
            providers=providers,
            summaries=copy.deepcopy(summaries),
            assets=assets,
            extensions=extensions,
            stac_version=data.get("stac_version"),
            extra=collect_extra(data, consumed),
        )
