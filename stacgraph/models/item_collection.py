"""ItemCollection dataclass for GeoJSON FeatureCollections of STAC Items.

Item collections are what STAC API search endpoints return. They are not
nodes of a catalog graph, so the walker never yields them.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from stacgraph.constants import ITEM_COLLECTION_TYPE
from stacgraph.models.base import (
    collect_extra,
    merge_extra,
    require,
    require_list,
    require_mapping,
)
from stacgraph.models.item import Item
from stacgraph.models.link import Link


@dataclass(frozen=True)
class ItemCollection:
    """A FeatureCollection of Items.

    Attributes:
        features: The items, in document order.
        links: Links such as "next" pages (optional in GeoJSON, so may be empty).
        extra: Unknown fields (e.g. "context", "numberMatched").
        type: Always "FeatureCollection".
    """

    features: tuple[Item, ...] = ()
    links: tuple[Link, ...] = ()
    extra: dict[str, Any] = field(default_factory=dict)
    type: str = field(default=ITEM_COLLECTION_TYPE, init=False)

    def __iter__(self) -> Iterator[Item]:
        return iter(self.features)

    def __len__(self) -> int:
        return len(self.features)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        result: dict[str, Any] = {
            "type": self.type,
            "features": [item.to_dict() for item in self.features],
        }
        if self.links:
            result["links"] = [link.to_dict() for link in self.links]
        return merge_extra(result, self.extra)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ItemCollection:
        """Create ItemCollection from dict."""
        features = require_list(require(data, "features", "ItemCollection"), "features")
        consumed = {"type", "features"}

        links: tuple[Link, ...] = ()
        raw_links = data.get("links")
        if raw_links:
            links = tuple(
                Link.from_dict(require_mapping(link, "links[]"))
                for link in require_list(raw_links, "links")
            )
            consumed.add("links")

        return cls(
            features=tuple(
                Item.from_dict(require_mapping(feature, "features[]")) for feature in features
            ),
            links=links,
            extra=collect_extra(data, consumed),
        )
