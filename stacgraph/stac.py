"""STAC construction helpers and pystac interop.

Provides helpers for creating catalogs, collections and items with consistent
defaults, for wiring them together with links, and for converting to and from
pystac objects when a caller needs pystac's richer API (extensions, I/O).

Key conventions:
- New documents declare STAC 1.0.0
- WGS84 global bbox and an open temporal interval as default extent
- Item geometry defaults to the polygon of its bbox
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

import pystac

from stacgraph.constants import (
    MEDIA_TYPE_GEOJSON,
    MEDIA_TYPE_JSON,
    REL_CHILD,
    REL_ITEM,
)
from stacgraph.document import parse_value, to_value
from stacgraph.models import (
    Asset,
    Catalog,
    Collection,
    Document,
    Extent,
    Item,
    Link,
    SpatialExtent,
    TemporalExtent,
)

# Default license when not specified
DEFAULT_LICENSE = "proprietary"

GLOBAL_BBOX = [-180.0, -90.0, 180.0, 90.0]


def create_catalog(
    *,
    catalog_id: str,
    description: str,
    title: str | None = None,
) -> Catalog:
    """Create an empty STAC Catalog."""
    return Catalog(id=catalog_id, description=description, title=title)


def create_collection(
    *,
    collection_id: str,
    description: str,
    title: str | None = None,
    license: str = DEFAULT_LICENSE,
    bbox: list[float] | None = None,
    temporal_extent: tuple[datetime | None, datetime | None] | None = None,
) -> Collection:
    """Create a STAC Collection.

    Args:
        collection_id: Unique identifier for the collection.
        description: Human-readable description.
        title: Optional display title (defaults to None).
        license: SPDX license identifier (default: "proprietary").
        bbox: Spatial extent as [min_x, min_y, max_x, max_y] in WGS84.
              Defaults to global extent if not specified.
        temporal_extent: Temporal extent as (start, end) datetimes.
                        Use None for open-ended intervals.

    Returns:
        A Collection with no links.
    """
    if bbox is None:
        bbox = list(GLOBAL_BBOX)

    if temporal_extent is None:
        interval: list[str | None] = [None, None]
    else:
        interval = [_format_instant(value) for value in temporal_extent]

    extent = Extent(
        spatial=SpatialExtent(bbox=[bbox]),
        temporal=TemporalExtent(interval=[interval]),
    )
    return Collection(
        id=collection_id,
        description=description,
        extent=extent,
        license=license,
        title=title,
    )


def create_item(
    *,
    item_id: str,
    bbox: list[float],
    datetime: datetime | None = None,
    properties: dict[str, Any] | None = None,
    assets: dict[str, Asset] | None = None,
    collection: str | None = None,
) -> Item:
    """Create a STAC Item.

    Args:
        item_id: Unique identifier for the item.
        bbox: Bounding box as [min_x, min_y, max_x, max_y] in WGS84.
        datetime: Acquisition/creation datetime. Defaults to current UTC time.
        properties: Additional properties to include.
        assets: Asset dictionary to attach to the item.
        collection: Id of the parent collection.

    Returns:
        An Item whose geometry is the bbox polygon.
    """
    if datetime is None:
        datetime = _now_utc()

    item_properties = dict(properties or {})
    item_properties["datetime"] = _format_instant(datetime)

    return Item(
        id=item_id,
        geometry=_bbox_to_polygon(bbox),
        bbox=list(bbox),
        properties=item_properties,
        assets=dict(assets or {}),
        collection=collection,
    )


def _bbox_to_polygon(bbox: list[float]) -> dict[str, Any]:
    """Convert a bounding box to a GeoJSON Polygon geometry.

    Args:
        bbox: [min_x, min_y, max_x, max_y]

    Returns:
        GeoJSON Polygon dict.
    """
    min_x, min_y, max_x, max_y = bbox
    return {
        "type": "Polygon",
        "coordinates": [
            [
                [min_x, min_y],
                [min_x, max_y],
                [max_x, max_y],
                [max_x, min_y],
                [min_x, min_y],  # Close the ring
            ]
        ],
    }


def _now_utc() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def _format_instant(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat().replace("+00:00", "Z")


# =============================================================================
# Linking
# =============================================================================


def add_child(parent: Catalog | Collection, child: Catalog | Collection, href: str) -> Document:
    """Return ``parent`` with a `child` link to ``child`` at ``href`` appended."""
    link = Link(rel=REL_CHILD, href=href, type=MEDIA_TYPE_JSON, title=child.title)
    return replace(parent, links=(*parent.links, link))


def add_item(parent: Catalog | Collection, item: Item, href: str) -> Document:
    """Return ``parent`` with an `item` link to ``item`` at ``href`` appended."""
    link = Link(rel=REL_ITEM, href=href, type=MEDIA_TYPE_GEOJSON)
    return replace(parent, links=(*parent.links, link))


def update_collection_extent(collection: Collection, item: Item) -> Collection:
    """Grow the collection's overall bbox to include the item's bbox.

    Only the first (overall) bbox is touched. Items without a bbox leave the
    collection unchanged.
    """
    if item.bbox is None:
        return collection

    boxes = collection.extent.spatial.bbox
    current = boxes[0]
    new_bbox = [
        min(current[0], item.bbox[0]),  # min_x
        min(current[1], item.bbox[1]),  # min_y
        max(current[2], item.bbox[2]),  # max_x
        max(current[3], item.bbox[3]),  # max_y
    ]
    spatial = replace(collection.extent.spatial, bbox=[new_bbox, *boxes[1:]])
    return replace(collection, extent=replace(collection.extent, spatial=spatial))


# =============================================================================
# pystac interop
# =============================================================================


def to_pystac(doc: Document, href: str | None = None) -> pystac.STACObject:
    """Convert a document to the matching pystac object.

    Args:
        doc: Catalog, Collection or Item.
        href: Location of the document, used by pystac to resolve relative links.

    Returns:
        pystac.Catalog, pystac.Collection or pystac.Item.
    """
    return pystac.read_dict(to_value(doc), href=href)


def from_pystac(obj: pystac.STACObject) -> Document:
    """Convert a pystac Catalog, Collection or Item to a document.

    Hrefs are taken as stored on the pystac object, without rewriting.

    Raises:
        ParseError: If pystac produced a dict that is not a valid document.
    """
    return parse_value(obj.to_dict(include_self_link=True, transform_hrefs=False))
