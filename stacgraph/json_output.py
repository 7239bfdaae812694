"""The ``--format json`` output of the stacgraph CLI.

A command in JSON mode writes one object to stdout and nothing else:

    {
        "success": true|false,
        "command": "walk",
        "data": { ... },
        "errors": [ ... ]  # Only present when success=false
    }

``data`` is filled in even when some nodes failed, so a partial walk still
lists the documents it reached. Every entry in ``errors`` names the document
(or the link, as ``<document>#/links/<n>``) it is about in ``location``, and
carries the ``STG-`` code when stacgraph raised it.

Usage:
    from stacgraph.json_output import ErrorDetail, outcome_envelope

    errors = [ErrorDetail.from_exception(err, location) for location, err in failed]
    print(outcome_envelope("walk", {"documents": [...], "count": 5}, errors).to_json())
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from stacgraph.errors import StacGraphError

if TYPE_CHECKING:
    from stacgraph.validate import Violation

SCHEMA_VIOLATION = "SchemaViolation"


@dataclass
class ErrorDetail:
    """One entry of the ``errors`` array.

    Attributes:
        type: Exception class name, or "SchemaViolation" for a broken constraint.
        message: Human-readable description.
        code: ``STG-`` error code; None for exceptions from outside stacgraph.
        location: Document or link the entry is about.
        pointer: JSON pointer into the document, for schema violations.
    """

    type: str
    message: str
    code: str | None = None
    location: str | None = None
    pointer: str | None = None

    @classmethod
    def from_exception(cls, err: Exception, location: str | None = None) -> ErrorDetail:
        if isinstance(err, StacGraphError):
            return cls(type(err).__name__, err.message, code=err.code, location=location)
        return cls(type(err).__name__, str(err), location=location)

    @classmethod
    def from_violation(cls, violation: Violation, location: str) -> ErrorDetail:
        return cls(
            SCHEMA_VIOLATION, violation.message, location=location, pointer=violation.pointer
        )

    def to_dict(self) -> dict[str, str]:
        """Entry as a dict; unset optional fields are left out."""
        result = {"type": self.type, "message": self.message}
        for key in ("code", "location", "pointer"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result


@dataclass
class OutputEnvelope:
    """Top-level object written by a command in JSON mode.

    Attributes:
        success: False if any document failed or was invalid.
        command: Command name ("walk", "validate", "config_get"...).
        data: Command result; its shape depends on the command.
        errors: Failure entries; None on success, which drops the key.
    """

    success: bool
    command: str
    data: dict[str, Any] | None
    errors: list[ErrorDetail] | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "success": self.success,
            "command": self.command,
            "data": self.data,
        }
        if self.errors is not None:
            result["errors"] = [e.to_dict() for e in self.errors]
        return result

    def to_json(self, *, indent: int | None = 2) -> str:
        """Envelope as JSON text.

        Values json cannot encode (paths, datetimes) are written with ``str()``.

        Args:
            indent: Indentation; None for a single line.
        """
        return json.dumps(self.to_dict(), indent=indent, default=str)


def success_envelope(command: str, data: dict[str, Any]) -> OutputEnvelope:
    """Envelope for a command that completed without failures."""
    return OutputEnvelope(success=True, command=command, data=data)


def error_envelope(
    command: str,
    errors: list[ErrorDetail],
    *,
    data: dict[str, Any] | None = None,
) -> OutputEnvelope:
    """Envelope for a command that failed, outright or for some documents.

    Args:
        command: Command name.
        errors: What went wrong.
        data: Whatever the command still produced (default: empty dict).
    """
    return OutputEnvelope(
        success=False,
        command=command,
        data=data if data is not None else {},
        errors=errors,
    )


def outcome_envelope(
    command: str, data: dict[str, Any], errors: list[ErrorDetail]
) -> OutputEnvelope:
    """Success envelope when ``errors`` is empty, error envelope carrying ``data`` otherwise."""
    if errors:
        return error_envelope(command, errors, data=data)
    return success_envelope(command, data)
