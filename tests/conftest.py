"""Shared pytest fixtures for Sassy tests."""

from pathlib import Path
from typing import Any

import pytest

from sassy.core.ir import ThemeDocument
from sassy.core.source import parse_document


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def main_theme(fixtures_dir: Path) -> Path:
    """Theme with two imports (base.yaml, accents.yaml)."""
    return fixtures_dir / "main.yaml"


def make_document(origin: str = "<memory>", **sections: Any) -> ThemeDocument:
    """Build a ThemeDocument from raw source sections.

    Layer sections (colors, tokenColors, semanticTokenColors) go under
    ``theme``; everything else is passed through at the root.
    """
    data: dict[str, Any] = {}
    theme: dict[str, Any] = {}
    for key, value in sections.items():
        if key in ("colors", "tokenColors", "semanticTokenColors"):
            theme[key] = value
        else:
            data[key] = value
    if theme:
        data["theme"] = theme
    return parse_document(data, origin=origin)


@pytest.fixture
def document_factory():
    """Return the make_document helper."""
    return make_document
