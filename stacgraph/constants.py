"""Shared constants for stacgraph.

This module contains constants that are used across multiple modules
to avoid duplication and ensure consistency.
"""

from __future__ import annotations

import pystac

# STAC version we generate and assume when a document declares none
STAC_VERSION: str = "1.0.0"

# JSON `type` discriminants
CATALOG_TYPE: str = "Catalog"
COLLECTION_TYPE: str = "Collection"
ITEM_TYPE: str = "Feature"
ITEM_COLLECTION_TYPE: str = "FeatureCollection"

# Relation roles with traversal semantics
REL_SELF: str = pystac.RelType.SELF.value
REL_ROOT: str = pystac.RelType.ROOT.value
REL_PARENT: str = pystac.RelType.PARENT.value
REL_CHILD: str = pystac.RelType.CHILD.value
REL_ITEM: str = pystac.RelType.ITEM.value
REL_COLLECTION: str = pystac.RelType.COLLECTION.value

# Links the walker follows from a Catalog or Collection
TRAVERSAL_RELS: frozenset[str] = frozenset({REL_CHILD, REL_ITEM})

# Media types for links we write
MEDIA_TYPE_JSON: str = pystac.MediaType.JSON.value
MEDIA_TYPE_GEOJSON: str = pystac.MediaType.GEOJSON.value

# Where the official STAC core JSON Schemas live
DEFAULT_SCHEMA_BASE_URL: str = "https://schemas.stacspec.org"

# Core schema path per document type, relative to {base}/v{version}/
CORE_SCHEMA_PATHS: dict[str, str] = {
    CATALOG_TYPE: "catalog-spec/json-schema/catalog.json",
    COLLECTION_TYPE: "collection-spec/json-schema/collection.json",
    ITEM_TYPE: "item-spec/json-schema/item.json",
}

# Default number of concurrent fetches (1 = strictly sequential)
DEFAULT_MAX_WORKERS: int = 1
