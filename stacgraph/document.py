"""Parse and serialize STAC documents.

The `type` field selects the model:

    "Catalog"     -> Catalog
    "Collection"  -> Collection
    "Feature"     -> Item

Unknown fields are never an error; they are kept in each model's ``extra``
bag and written back after the known fields, so that for any payload that
parses, ``parse(serialize(doc)) == doc`` and ``to_value(parse_value(v)) == v``.

Usage:
    from stacgraph.document import parse, serialize

    doc = parse(path.read_bytes())
    path.write_bytes(serialize(doc))
"""

from __future__ import annotations

import json
from typing import Any

from stacgraph.constants import (
    CATALOG_TYPE,
    COLLECTION_TYPE,
    ITEM_COLLECTION_TYPE,
    ITEM_TYPE,
)
from stacgraph.errors import MalformedError, UnknownTypeError
from stacgraph.models import Catalog, Collection, Document, Item, ItemCollection

_MODELS: dict[str, type[Catalog] | type[Collection] | type[Item]] = {
    CATALOG_TYPE: Catalog,
    COLLECTION_TYPE: Collection,
    ITEM_TYPE: Item,
}


def _decode(payload: bytes | str) -> dict[str, Any]:
    """Decode a JSON payload that must hold an object."""
    try:
        value = json.loads(payload)
    except (UnicodeDecodeError, json.JSONDecodeError) as err:
        raise MalformedError(f"invalid JSON: {err}") from err

    if not isinstance(value, dict):
        raise MalformedError(f"expected a JSON object, got {type(value).__name__}")
    return value


def parse(payload: bytes | str) -> Document:
    """Parse a JSON payload into a Catalog, Collection or Item.

    Args:
        payload: Raw JSON bytes or text.

    Returns:
        The parsed document.

    Raises:
        MalformedError: If the payload is not a JSON object or is structurally wrong.
        UnknownTypeError: If `type` is missing or not a known document type.
        MissingRequiredFieldError: If a field required by the type is absent.
    """
    return parse_value(_decode(payload))


def parse_value(value: dict[str, Any]) -> Document:
    """Build a document from already-decoded JSON.

    Raises the same errors as :func:`parse`.
    """
    if not isinstance(value, dict):
        raise MalformedError(f"expected a JSON object, got {type(value).__name__}")

    type_value = value.get("type")
    model = _MODELS.get(type_value) if isinstance(type_value, str) else None
    if model is None:
        raise UnknownTypeError(type_value)
    return model.from_dict(value)


def parse_item_collection(payload: bytes | str) -> ItemCollection:
    """Parse a FeatureCollection of Items (e.g. a STAC API search page)."""
    value = _decode(payload)
    type_value = value.get("type")
    if type_value != ITEM_COLLECTION_TYPE:
        raise UnknownTypeError(type_value)
    return ItemCollection.from_dict(value)


def to_value(doc: Document | ItemCollection) -> dict[str, Any]:
    """Convert a document to its JSON object form."""
    return doc.to_dict()


def serialize(doc: Document | ItemCollection, *, indent: int | None = 2) -> bytes:
    """Serialize a document to UTF-8 JSON bytes.

    Args:
        doc: The document to write.
        indent: JSON indentation; None for compact output.
    """
    text = json.dumps(to_value(doc), indent=indent, ensure_ascii=False)
    return text.encode("utf-8")
