"""Unit tests for stacgraph error classes.

Tests cover:
- Base StacGraphError behavior
- Error codes format (STG-{category}{number})
- Error to_dict serialization
- Specific error types for each category
"""

from __future__ import annotations

import re

import pytest

from stacgraph.errors import (
    ConfigError,
    ConfigInvalidStructureError,
    ConfigParseError,
    FetchError,
    FetchFailedError,
    MalformedError,
    MissingRequiredFieldError,
    ParseError,
    ParseFailedError,
    ResolveError,
    ResolveFailedError,
    SchemaUnavailableError,
    SchemeMismatchError,
    StacGraphError,
    TraversalError,
    UnknownTypeError,
    ValidationError,
)

CODE_PATTERN = re.compile(r"^STG-[A-Z]{3}\d{3}$")


class TestStacGraphError:
    """Tests for base StacGraphError class."""

    @pytest.mark.unit
    def test_message_and_code_in_str(self) -> None:
        error = StacGraphError("Something broke")

        assert error.message == "Something broke"
        assert str(error) == "[STG-000] Something broke"

    @pytest.mark.unit
    def test_context_becomes_attributes(self) -> None:
        error = StacGraphError("msg", location="/a.json")

        assert error.location == "/a.json"  # type: ignore[attr-defined]
        assert error.context == {"location": "/a.json"}

    @pytest.mark.unit
    def test_reserved_context_does_not_overwrite(self) -> None:
        error = StacGraphError("msg", code="HACKED", args=("x",))

        assert error.code == "STG-000"
        assert error.message == "msg"

    @pytest.mark.unit
    def test_to_dict(self) -> None:
        error = MalformedError("expected a JSON object")

        assert error.to_dict() == {
            "code": "STG-PRS001",
            "message": "Malformed document: expected a JSON object",
            "context": {"reason": "expected a JSON object"},
        }


class TestErrorCategories:
    """Tests for the concrete error types."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("error", "base"),
        [
            (MalformedError("x"), ParseError),
            (UnknownTypeError("Thing"), ParseError),
            (MissingRequiredFieldError("id", "Item"), ParseError),
            (SchemeMismatchError("/a/b.json", "https://x/y.json"), ResolveError),
            (FetchFailedError("/a.json", OSError("x")), TraversalError),
            (ParseFailedError("/a.json", ValueError("x")), TraversalError),
            (ResolveFailedError("/a.json#/links/0", "x.json", ValueError("x")), TraversalError),
            (SchemaUnavailableError("https://s.json", OSError("x")), ValidationError),
            (ConfigParseError("config.yaml", "bad"), ConfigError),
            (ConfigInvalidStructureError("config.yaml", "bad"), ConfigError),
        ],
    )
    def test_hierarchy_and_code_format(self, error: StacGraphError, base: type) -> None:
        assert isinstance(error, base)
        assert isinstance(error, StacGraphError)
        assert CODE_PATTERN.match(error.code)

    @pytest.mark.unit
    def test_codes_are_unique(self) -> None:
        classes = [
            MalformedError,
            UnknownTypeError,
            MissingRequiredFieldError,
            SchemeMismatchError,
            FetchError,
            FetchFailedError,
            ParseFailedError,
            ResolveFailedError,
            SchemaUnavailableError,
            ConfigParseError,
            ConfigInvalidStructureError,
        ]

        codes = [cls.code for cls in classes]

        assert len(set(codes)) == len(codes)

    @pytest.mark.unit
    def test_unknown_type_messages(self) -> None:
        assert "no 'type'" in UnknownTypeError(None).message
        assert "'Thing'" in UnknownTypeError("Thing").message

    @pytest.mark.unit
    def test_missing_field_context(self) -> None:
        error = MissingRequiredFieldError("license", "Collection")

        assert error.field == "license"  # type: ignore[attr-defined]
        assert error.type_name == "Collection"  # type: ignore[attr-defined]

    @pytest.mark.unit
    def test_cause_is_kept_but_not_serialized(self) -> None:
        cause = TimeoutError("slow")
        error = FetchFailedError("https://x/a.json", cause)

        assert error.cause is cause
        assert error.to_dict()["context"] == {
            "location": "https://x/a.json",
            "cause_type": "TimeoutError",
            "cause_message": "slow",
        }

    @pytest.mark.unit
    def test_fetch_error_is_not_a_traversal_error(self) -> None:
        assert not isinstance(FetchError("/a.json", OSError("x")), TraversalError)
