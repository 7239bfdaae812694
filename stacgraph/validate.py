"""Validate STAC documents against their JSON Schemas.

A document is checked against exactly one core schema, chosen by its type
and STAC version, followed by every schema URI listed in its
``stac_extensions``. All violations of all schemas are collected; validation
never stops at the first error.

Schemas are fetched through a fetch capability (the same kind of callable
the walker uses) and cached by identifier, together with every schema they
reference through ``$ref``. If any of them cannot be fetched,
SchemaUnavailableError is raised and the document is not validated.

Usage:
    from stacgraph.fetch import ObstoreFetcher
    from stacgraph.validate import Validator, validate_walk

    fetch = ObstoreFetcher()
    results = validate_walk("https://example.com/catalog.json", fetch)
    for location, result in results.items():
        print(location, "valid" if result.valid else result.violations)
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urldefrag

from jsonschema import Draft7Validator
from jsonschema.exceptions import ValidationError as SchemaViolation
from jsonschema.protocols import Validator as SchemaValidator
from jsonschema.validators import validator_for
from referencing import Registry, Resource
from referencing.exceptions import Unresolvable
from referencing.jsonschema import DRAFT7

from stacgraph.constants import (
    CORE_SCHEMA_PATHS,
    DEFAULT_MAX_WORKERS,
    DEFAULT_SCHEMA_BASE_URL,
    STAC_VERSION,
)
from stacgraph.document import to_value
from stacgraph.errors import (
    ResolveError,
    SchemaUnavailableError,
    StacGraphError,
    TraversalError,
)
from stacgraph.fetch import FetchFn
from stacgraph.href import resolve
from stacgraph.models import Document
from stacgraph.walk import walk

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Violation:
    """A single schema constraint the document breaks.

    Attributes:
        schema: Identifier (URI) of the schema that was violated.
        pointer: JSON pointer to the offending value ("" is the document root).
        message: Human-readable description from the schema validator.
    """

    schema: str
    pointer: str
    message: str

    def to_dict(self) -> dict[str, str]:
        """Convert to JSON-serializable dict."""
        return {
            "schema": self.schema,
            "pointer": self.pointer,
            "message": self.message,
        }


@dataclass
class ValidationResult:
    """Outcome of validating one document.

    Attributes:
        violations: Every schema violation, in schema order.
        errors: Failures that prevented validation (traversal failure or
            unavailable schema). Empty when the document was validated.
    """

    violations: list[Violation] = field(default_factory=list)
    errors: list[StacGraphError] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        """True if the document was validated and broke no constraint."""
        return not self.violations and not self.errors

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "valid": self.valid,
            "violations": [v.to_dict() for v in self.violations],
            "errors": [e.to_dict() for e in self.errors],
        }


def json_pointer(path: Any) -> str:
    """Build an RFC 6901 JSON pointer from a sequence of keys and indexes."""
    return "".join("/" + str(part).replace("~", "~0").replace("/", "~1") for part in path)


def _iter_refs(node: Any) -> Iterator[str]:
    """Yield every string ``$ref`` value in a schema, depth first."""
    if isinstance(node, dict):
        for key, value in node.items():
            if key == "$ref" and isinstance(value, str):
                yield value
            else:
                yield from _iter_refs(value)
    elif isinstance(node, list):
        for value in node:
            yield from _iter_refs(value)


class Validator:
    """Schema validator with a schema cache shared across documents.

    Args:
        schema_source: Fetch capability used to obtain schemas by URI.
        schema_base_url: Root of the core STAC schemas (e.g. a local mirror).

    Note:
        The cache is not locked; drive one Validator from a single thread.
    """

    def __init__(
        self,
        schema_source: FetchFn,
        *,
        schema_base_url: str = DEFAULT_SCHEMA_BASE_URL,
    ) -> None:
        self._source = schema_source
        self.schema_base_url = schema_base_url.rstrip("/")
        self._schemas: dict[str, Any] = {}
        self._validators: dict[str, SchemaValidator] = {}

    def core_schema(self, doc: Document) -> str:
        """URI of the core schema for the document's type and STAC version."""
        version = doc.stac_version or STAC_VERSION
        return f"{self.schema_base_url}/v{version}/{CORE_SCHEMA_PATHS[doc.type]}"

    def schema_identifiers(self, doc: Document) -> list[str]:
        """Core schema first, then declared extensions in order, without duplicates."""
        identifiers: list[str] = []
        for identifier in (self.core_schema(doc), *doc.extensions):
            if identifier not in identifiers:
                identifiers.append(identifier)
        return identifiers

    def validate(self, doc: Document) -> ValidationResult:
        """Validate ``doc`` against its core schema and every extension schema.

        Returns:
            ValidationResult holding every violation found.

        Raises:
            SchemaUnavailableError: If any required schema (or a schema it
                references) cannot be fetched or decoded.
        """
        compiled = [
            (identifier, self.compile(identifier)) for identifier in self.schema_identifiers(doc)
        ]
        instance = to_value(doc)

        violations: list[Violation] = []
        for identifier, validator in compiled:
            try:
                errors: list[SchemaViolation] = list(validator.iter_errors(instance))
            except Unresolvable as err:
                ref = getattr(err, "ref", identifier)
                raise SchemaUnavailableError(ref, err) from err
            for error in errors:
                violations.append(
                    Violation(
                        schema=identifier,
                        pointer=json_pointer(error.absolute_path),
                        message=error.message,
                    )
                )

        logger.debug("Validated %s: %d violation(s)", doc.id, len(violations))
        return ValidationResult(violations=violations)

    def compile(self, identifier: str) -> SchemaValidator:
        """Return the validator for a schema URI, fetching and caching it on first use."""
        validator = self._validators.get(identifier)
        if validator is not None:
            return validator

        schema = self._load(identifier)
        self._prefetch_refs(identifier, schema)
        if isinstance(schema, dict) and "$id" not in schema:
            # Relative $refs in an anonymous schema resolve against where it came from
            schema = {"$id": identifier, **schema}

        cls = validator_for(schema, default=Draft7Validator)
        validator = cls(schema, registry=Registry(retrieve=self._retrieve))
        self._validators[identifier] = validator
        return validator

    def _load(self, uri: str) -> Any:
        """Fetch and decode a schema document, once per URI."""
        uri, _ = urldefrag(uri)
        if uri in self._schemas:
            return self._schemas[uri]

        logger.debug("Fetching schema %s", uri)
        try:
            schema = json.loads(self._source(uri))
        except Exception as err:
            raise SchemaUnavailableError(uri, err) from err
        self._schemas[uri] = schema
        return schema

    def _prefetch_refs(self, identifier: str, schema: Any) -> None:
        """Fetch every schema reachable through $ref so failures surface up front."""
        stack = [(identifier, schema)]
        seen = {urldefrag(identifier)[0]}
        while stack:
            uri, node = stack.pop()
            base = node.get("$id", uri) if isinstance(node, dict) else uri
            for ref in _iter_refs(node):
                try:
                    target = urldefrag(resolve(base, ref))[0]
                except ResolveError as err:
                    raise SchemaUnavailableError(ref, err) from err
                if not target or target in seen:
                    continue
                seen.add(target)
                stack.append((target, self._load(target)))

    def _retrieve(self, uri: str) -> Resource:
        return Resource.from_contents(self._load(uri), default_specification=DRAFT7)


def validate(
    doc: Document,
    schema_source: FetchFn,
    *,
    schema_base_url: str = DEFAULT_SCHEMA_BASE_URL,
) -> ValidationResult:
    """Validate a single document with a fresh Validator.

    Use a :class:`Validator` directly to share the schema cache across calls.

    Raises:
        SchemaUnavailableError: If a required schema cannot be obtained.
    """
    return Validator(schema_source, schema_base_url=schema_base_url).validate(doc)


def iter_validate(
    root: str,
    fetch: FetchFn,
    validator: Validator | None = None,
    *,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> Iterator[tuple[str, ValidationResult]]:
    """Walk the catalog at ``root`` and validate every document reached.

    Failures are isolated per node: a document that could not be fetched or
    parsed, or whose schemas are unavailable, gets a result with ``errors``
    set and the walk carries on.

    Args:
        root: Location of the root document.
        fetch: Fetch capability for documents (and schemas, if no validator is given).
        validator: Validator to use; defaults to one fetching schemas with ``fetch``.
        max_workers: Number of concurrent document fetches.
    """
    validator = validator or Validator(fetch)
    for location, outcome in walk(root, fetch, max_workers=max_workers):
        if isinstance(outcome, TraversalError):
            yield location, ValidationResult(errors=[outcome])
            continue

        try:
            result = validator.validate(outcome)
        except SchemaUnavailableError as err:
            logger.warning("Cannot validate %s: %s", location, err)
            result = ValidationResult(errors=[err])
        yield location, result


def validate_walk(
    root: str,
    fetch: FetchFn,
    validator: Validator | None = None,
    *,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> dict[str, ValidationResult]:
    """Validate a whole catalog subtree.

    Returns:
        Location -> ValidationResult, in walk order.
    """
    return dict(iter_validate(root, fetch, validator, max_workers=max_workers))
