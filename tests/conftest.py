"""Shared pytest fixtures for stacgraph tests.

Catalogs are served from memory through DictFetcher, so no test needs the
network. Schema fixtures are small Draft 7 stand-ins for the official STAC
schemas, published at the same URLs the validator computes.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from stacgraph.fetch import DictFetcher

ROOT_URL = "https://example.com/catalog.json"
SCHEMA_BASE = "https://schemas.stacspec.org/v1.0.0"
CATALOG_SCHEMA = f"{SCHEMA_BASE}/catalog-spec/json-schema/catalog.json"
COLLECTION_SCHEMA = f"{SCHEMA_BASE}/collection-spec/json-schema/collection.json"
ITEM_SCHEMA = f"{SCHEMA_BASE}/item-spec/json-schema/item.json"
EO_SCHEMA = "https://stac-extensions.github.io/eo/v1.0.0/schema.json"

Factory = Callable[..., dict[str, Any]]


# =============================================================================
# Document Factories
# =============================================================================


def _link(rel: str, href: str) -> dict[str, str]:
    return {"rel": rel, "href": href, "type": "application/json"}


@pytest.fixture
def link() -> Callable[[str, str], dict[str, str]]:
    """Factory for link objects: ``link("child", "./sub/catalog.json")``."""
    return _link


@pytest.fixture
def make_catalog() -> Factory:
    """Factory for Catalog JSON objects."""

    def factory(catalog_id: str = "root", links: list[Any] | None = None, **extra: Any) -> dict:
        return {
            "type": "Catalog",
            "stac_version": "1.0.0",
            "id": catalog_id,
            "description": f"The {catalog_id} catalog",
            "links": links or [],
            **extra,
        }

    return factory


@pytest.fixture
def make_collection() -> Factory:
    """Factory for Collection JSON objects."""

    def factory(
        collection_id: str = "col", links: list[Any] | None = None, **extra: Any
    ) -> dict:
        return {
            "type": "Collection",
            "stac_version": "1.0.0",
            "id": collection_id,
            "description": f"The {collection_id} collection",
            "license": "CC-BY-4.0",
            "extent": {
                "spatial": {"bbox": [[-10.0, 40.0, 5.0, 50.0]]},
                "temporal": {"interval": [["2024-01-01T00:00:00Z", None]]},
            },
            "links": links or [],
            **extra,
        }

    return factory


@pytest.fixture
def make_item() -> Factory:
    """Factory for Item (GeoJSON Feature) JSON objects."""

    def factory(
        item_id: str = "item",
        links: list[Any] | None = None,
        properties: dict[str, Any] | None = None,
        **extra: Any,
    ) -> dict:
        return {
            "type": "Feature",
            "stac_version": "1.0.0",
            "id": item_id,
            "geometry": {"type": "Point", "coordinates": [0.0, 45.0]},
            "bbox": [0.0, 45.0, 0.0, 45.0],
            "properties": properties or {"datetime": "2024-06-01T12:00:00Z"},
            "links": links or [],
            "assets": {
                "data": {"href": f"./{item_id}.tif", "type": "image/tiff", "roles": ["data"]}
            },
            **extra,
        }

    return factory


# =============================================================================
# Catalogs
# =============================================================================


@pytest.fixture
def sample_catalog(make_catalog: Factory, make_collection: Factory, make_item: Factory) -> dict:
    """A catalog -> collection -> two items tree, keyed by location.

    Layout:
        catalog.json
        col/collection.json
        col/item-1/item-1.json
        col/item-2/item-2.json
    """
    return {
        ROOT_URL: make_catalog(
            "root",
            [_link("root", "./catalog.json"), _link("child", "./col/collection.json")],
        ),
        "https://example.com/col/collection.json": make_collection(
            "col",
            [
                _link("root", "../catalog.json"),
                _link("parent", "../catalog.json"),
                _link("item", "./item-1/item-1.json"),
                _link("item", "./item-2/item-2.json"),
            ],
        ),
        "https://example.com/col/item-1/item-1.json": make_item(
            "item-1",
            [_link("root", "../../catalog.json"), _link("collection", "../collection.json")],
            collection="col",
        ),
        "https://example.com/col/item-2/item-2.json": make_item(
            "item-2",
            [_link("root", "../../catalog.json"), _link("collection", "../collection.json")],
            collection="col",
        ),
    }


@pytest.fixture
def sample_fetcher(sample_catalog: dict) -> DictFetcher:
    """DictFetcher serving the sample catalog."""
    return DictFetcher(sample_catalog)


@pytest.fixture
def local_catalog(tmp_path: Path, sample_catalog: dict) -> Path:
    """The sample catalog written to disk. Returns the path of catalog.json."""
    root = tmp_path / "source"
    for location, value in sample_catalog.items():
        path = root / location.removeprefix("https://example.com/")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(value))
    return root / "catalog.json"


# =============================================================================
# Schemas
# =============================================================================


@pytest.fixture
def core_schemas() -> dict[str, dict[str, Any]]:
    """Minimal core schemas for Catalog, Collection and Item at their official URLs."""
    draft7 = "http://json-schema.org/draft-07/schema#"
    return {
        CATALOG_SCHEMA: {
            "$schema": draft7,
            "type": "object",
            "required": ["stac_version", "id", "description", "links"],
            "properties": {
                "type": {"const": "Catalog"},
                "id": {"type": "string", "minLength": 1},
                "description": {"type": "string", "minLength": 1},
                "links": {"type": "array"},
            },
        },
        COLLECTION_SCHEMA: {
            "$schema": draft7,
            "type": "object",
            "required": ["stac_version", "id", "description", "license", "extent", "links"],
            "properties": {
                "type": {"const": "Collection"},
                "license": {"type": "string", "pattern": "^[\\w\\-\\.\\+]+$"},
            },
        },
        ITEM_SCHEMA: {
            "$schema": draft7,
            "type": "object",
            "required": ["stac_version", "id", "geometry", "properties", "links", "assets"],
            "properties": {
                "type": {"const": "Feature"},
                "id": {"type": "string", "pattern": "^[a-z0-9-]{3,}$"},
                "properties": {
                    "type": "object",
                    "properties": {"datetime": {"type": ["string", "null"]}},
                },
            },
        },
    }


@pytest.fixture
def eo_schema() -> dict[str, Any]:
    """Stand-in for the EO extension schema: cloud cover is a percentage."""
    return {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "type": "object",
        "properties": {
            "properties": {
                "type": "object",
                "properties": {
                    "eo:cloud_cover": {"type": "number", "minimum": 0, "maximum": 100}
                },
            }
        },
    }
