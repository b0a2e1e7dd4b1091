"""Shared pytest fixtures for all tests."""

from pathlib import Path

import pytest

from protograph.config import load_settings


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Clear the load_settings cache before and after each test."""
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()


@pytest.fixture
def write_protos(tmp_path: Path):
    """Write {relative name: content} schema files below tmp_path.

    Returns the directory the files were written to.
    """

    def write(files: dict[str, str]) -> Path:
        for name, content in files.items():
            path = tmp_path / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return tmp_path

    return write


@pytest.fixture
def session_for():
    """Load in-memory schema files into a fresh SchemaSession."""
    from protograph.config import Config
    from protograph.pipeline import SchemaSession, with_overrides
    from protograph.sources import MappingSource

    def load(files: dict[str, str], root: str, **options) -> SchemaSession:
        settings = with_overrides(Config(), **options)
        session = SchemaSession(settings, find_source=MappingSource(files))
        session.load(root)
        return session

    return load
