"""Fixtures for CLI integration tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

SCHEMA_HOST = "https://schemas.stacspec.org/"


@pytest.fixture
def runner() -> CliRunner:
    """Create a Click test runner."""
    return CliRunner()


@pytest.fixture
def schema_dir(tmp_path: Path, core_schemas: dict[str, Any]) -> Path:
    """The core schemas written to disk, for use as --schema-base-url."""
    root = tmp_path / "schemas"
    for url, schema in core_schemas.items():
        path = root / url.removeprefix(SCHEMA_HOST)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(schema))
    return root
