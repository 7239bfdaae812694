"""stacgraph - Typed STAC documents, href resolution, catalog walking and validation."""

from stacgraph.document import parse, parse_item_collection, parse_value, serialize, to_value
from stacgraph.fetch import DictFetcher, ObstoreFetcher, read
from stacgraph.href import make_relative, normalize, rebase, resolve, with_self_href
from stacgraph.models import (
    Asset,
    Catalog,
    Collection,
    Document,
    Item,
    ItemCollection,
    Link,
)
from stacgraph.validate import ValidationResult, Validator, Violation, validate, validate_walk
from stacgraph.walk import NodeState, walk

__all__ = [
    "Asset",
    "Catalog",
    "Collection",
    "DictFetcher",
    "Document",
    "Item",
    "ItemCollection",
    "Link",
    "NodeState",
    "ObstoreFetcher",
    "ValidationResult",
    "Validator",
    "Violation",
    "make_relative",
    "normalize",
    "parse",
    "parse_item_collection",
    "parse_value",
    "read",
    "rebase",
    "resolve",
    "serialize",
    "to_value",
    "validate",
    "validate_walk",
    "walk",
    "with_self_href",
]
