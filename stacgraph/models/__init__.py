"""Data models for STAC documents.

This module exports the document dataclasses used throughout stacgraph.
Models are frozen dataclasses with to_dict/from_dict JSON conversion and an
``extra`` bag that preserves unknown fields.
"""

from __future__ import annotations

from stacgraph.models.catalog import Catalog
from stacgraph.models.collection import (
    Collection,
    Extent,
    Provider,
    SpatialExtent,
    TemporalExtent,
)
from stacgraph.models.item import Asset, Item
from stacgraph.models.item_collection import ItemCollection
from stacgraph.models.link import Link

# A node of the catalog graph
Document = Catalog | Collection | Item

__all__ = [
    "Document",
    # Catalog
    "Catalog",
    "Link",
    # Collection
    "Collection",
    "Extent",
    "SpatialExtent",
    "TemporalExtent",
    "Provider",
    # Item
    "Item",
    "Asset",
    "ItemCollection",
]
