"""Tests for stacgraph.output styled messages."""

from __future__ import annotations

import io

import pytest

from stacgraph.output import detail, error, info, success, warn


class TestStyledOutput:
    """Tests for the styled message helpers."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("func", "prefix"),
        [(success, "✓"), (info, "→"), (warn, "⚠"), (error, "✗")],
    )
    def test_prefix(self, func: object, prefix: str) -> None:
        buffer = io.StringIO()

        func("catalog.json: valid", file=buffer)  # type: ignore[operator]

        assert buffer.getvalue() == f"{prefix} catalog.json: valid\n"

    @pytest.mark.unit
    def test_dry_run_prefix(self) -> None:
        buffer = io.StringIO()

        info("Would write catalog.json", file=buffer, dry_run=True)

        assert "[DRY RUN] Would write catalog.json" in buffer.getvalue()

    @pytest.mark.unit
    def test_detail_is_indented(self) -> None:
        buffer = io.StringIO()

        detail("/id: too short", file=buffer, nl=False)

        assert buffer.getvalue() == "  /id: too short"

    @pytest.mark.unit
    def test_warnings_and_errors_default_to_stderr(self, capsys: pytest.CaptureFixture) -> None:
        warn("careful")
        error("broken")
        success("fine")

        captured = capsys.readouterr()
        assert "careful" in captured.err
        assert "broken" in captured.err
        assert "fine" in captured.out
