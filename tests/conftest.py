"""Shared test fixtures."""

from __future__ import annotations

import pytest

from object_annotate.config import ENV_DSN, ENV_TABLE, load_config, reset_config
from object_annotate.registry import AnnotationRegistry, default_registry


@pytest.fixture(autouse=True)
def isolated_db(tmp_path, monkeypatch):
    """Point the default destination at a fresh SQLite file for each test."""
    reset_config()
    monkeypatch.delenv(ENV_DSN, raising=False)
    monkeypatch.delenv(ENV_TABLE, raising=False)

    db_path = tmp_path / "notes.db"
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        f"database:\n  dsn: sqlite:///{db_path}\n  table: annotations\n"
        f"log:\n  dir: {tmp_path / 'logs'}\n"
    )

    monkeypatch.chdir(tmp_path)
    load_config(config_file)
    yield tmp_path

    default_registry.clear()
    reset_config()


@pytest.fixture
def dsn(isolated_db):
    return f"sqlite:///{isolated_db / 'notes.db'}"


@pytest.fixture
def registry():
    reg = AnnotationRegistry()
    yield reg
    reg.clear()
