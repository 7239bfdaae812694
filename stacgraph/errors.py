"""Structured error codes for stacgraph.

All errors follow the format STG-{category}{number}:
- STG-PRS*: Document parse errors
- STG-RES*: Href resolution errors
- STG-FET*: Fetch errors
- STG-TRV*: Traversal errors (reported per node, never raised by walk())
- STG-VAL*: Schema validation errors
- STG-CFG*: Configuration errors
"""

from __future__ import annotations

from typing import Any


class StacGraphError(Exception):
    """Base class for all stacgraph errors.

    All errors have:
    - code: Structured error code (e.g., STG-PRS001)
    - message: Human-readable error message
    """

    code: str = "STG-000"

    # Reserved attribute names that cannot be overwritten by context
    _RESERVED_ATTRS = frozenset({"code", "message", "context", "args"})

    def __init__(self, message: str, **context: Any) -> None:
        """Initialize a stacgraph error.

        Args:
            message: Human-readable error message.
            **context: Additional context stored as error attributes.
                Reserved keys (code, message, context, args) are ignored.
        """
        self.message = message
        self.context = context
        for key, value in context.items():
            if key not in self._RESERVED_ATTRS:
                setattr(self, key, value)
        super().__init__(f"[{self.code}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert error to JSON-serializable dict."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


def _describe(cause: BaseException) -> dict[str, str]:
    """Serializable summary of an underlying exception."""
    return {
        "cause_type": type(cause).__name__,
        "cause_message": str(cause),
    }


# Parse Errors (STG-PRS*)
class ParseError(StacGraphError):
    """Base class for document parse errors."""

    code = "STG-PRS000"


class MalformedError(ParseError):
    """Raised when a payload is not valid JSON or has the wrong structure.

    Error code: STG-PRS001
    """

    code = "STG-PRS001"

    def __init__(self, reason: str) -> None:
        super().__init__(f"Malformed document: {reason}", reason=reason)


class UnknownTypeError(ParseError):
    """Raised when the `type` discriminant is absent or unrecognized.

    Error code: STG-PRS002
    """

    code = "STG-PRS002"

    def __init__(self, type_value: object) -> None:
        if type_value is None:
            message = "Document has no 'type' field"
        else:
            message = f"Unknown document type: {type_value!r}"
        super().__init__(message, type_value=type_value)


class MissingRequiredFieldError(ParseError):
    """Raised when a field mandated by the document type is absent.

    Error code: STG-PRS003
    """

    code = "STG-PRS003"

    def __init__(self, field: str, type_name: str) -> None:
        super().__init__(
            f"{type_name} is missing required field '{field}'",
            field=field,
            type_name=type_name,
        )


# Resolve Errors (STG-RES*)
class ResolveError(StacGraphError):
    """Base class for href resolution errors."""

    code = "STG-RES000"


class SchemeMismatchError(ResolveError):
    """Raised when joining a filesystem base with a URL-style href or vice versa.

    Error code: STG-RES001
    """

    code = "STG-RES001"

    def __init__(self, base: str, href: str) -> None:
        super().__init__(
            f"Cannot resolve '{href}' against '{base}': mixed URL and filesystem forms or origins",
            base=base,
            href=href,
        )


# Fetch Errors (STG-FET*)
class FetchError(StacGraphError):
    """Raised by a fetch capability when a location cannot be read.

    Error code: STG-FET001
    """

    code = "STG-FET001"

    def __init__(self, location: str, cause: BaseException) -> None:
        super().__init__(
            f"Cannot fetch {location}: {cause}",
            location=location,
            **_describe(cause),
        )
        # Keep original exception for programmatic access (not serialized)
        self.cause = cause


# Traversal Errors (STG-TRV*)
class TraversalError(StacGraphError):
    """Base class for per-node traversal failures.

    These are yielded as values by the walker rather than raised, so one
    broken node does not abort the walk.
    """

    code = "STG-TRV000"

    def __init__(
        self, message: str, location: str, cause: BaseException, **context: Any
    ) -> None:
        super().__init__(message, location=location, **context, **_describe(cause))
        self.cause = cause


class FetchFailedError(TraversalError):
    """A node reached during traversal could not be fetched.

    Error code: STG-TRV001
    """

    code = "STG-TRV001"

    def __init__(self, location: str, cause: BaseException) -> None:
        super().__init__(f"Failed to fetch {location}: {cause}", location, cause)


class ParseFailedError(TraversalError):
    """A node was fetched but its payload is not a valid document.

    Error code: STG-TRV002
    """

    code = "STG-TRV002"

    def __init__(self, location: str, cause: BaseException) -> None:
        super().__init__(f"Failed to parse {location}: {cause}", location, cause)


class ResolveFailedError(TraversalError):
    """A link href could not be resolved against its document's location.

    ``location`` names the link itself, as a JSON Pointer into the document
    that holds it (``<document>#/links/<n>``).

    Error code: STG-TRV003
    """

    code = "STG-TRV003"

    def __init__(self, location: str, href: str, cause: BaseException) -> None:
        super().__init__(
            f"Failed to resolve '{href}' at {location}: {cause}", location, cause, href=href
        )


# Validation Errors (STG-VAL*)
class ValidationError(StacGraphError):
    """Base class for schema validation errors."""

    code = "STG-VAL000"


class SchemaUnavailableError(ValidationError):
    """Raised when a schema required to validate a document cannot be obtained.

    Error code: STG-VAL001
    """

    code = "STG-VAL001"

    def __init__(self, identifier: str, cause: BaseException) -> None:
        super().__init__(
            f"Schema unavailable: {identifier}: {cause}",
            identifier=identifier,
            **_describe(cause),
        )
        self.cause = cause


# Configuration Errors (STG-CFG*)
class ConfigError(StacGraphError):
    """Base class for configuration-related errors."""

    code = "STG-CFG000"


class ConfigParseError(ConfigError):
    """Raised when a configuration file cannot be parsed.

    Error code: STG-CFG001
    """

    code = "STG-CFG001"

    def __init__(self, path: str, parse_error: str) -> None:
        super().__init__(
            f"Failed to parse config file {path}: {parse_error}",
            path=path,
            parse_error=parse_error,
        )


class ConfigInvalidStructureError(ConfigError):
    """Raised when a configuration file has an invalid structure.

    Error code: STG-CFG002
    """

    code = "STG-CFG002"

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(
            f"Invalid config structure in {path}: {detail}",
            path=path,
            detail=detail,
        )
