"""Tests for configuration loading and destination resolution."""

import logging

import pytest

from object_annotate.config import (
    ENV_DSN,
    ENV_TABLE,
    get_config,
    load_config,
    reset_config,
    resolve_settings,
)
from object_annotate.errors import AnnotationConfigError
from object_annotate.logging_config import setup_logging


def test_config_file_loaded(isolated_db):
    cfg = get_config()
    assert cfg.database.dsn == f"sqlite:///{isolated_db / 'notes.db'}"
    assert cfg.database.table == "annotations"
    assert cfg.database.columns is None
    assert cfg.database.set_time is False


def test_defaults_without_file(isolated_db):
    reset_config()
    cfg = load_config(isolated_db / "missing.yaml")
    assert cfg.database.dsn is None
    assert cfg.database.table == "annotations"


def test_environment_fallback(isolated_db, monkeypatch):
    reset_config()
    monkeypatch.setenv(ENV_DSN, "sqlite:///env.db")
    monkeypatch.setenv(ENV_TABLE, "env_notes")
    cfg = load_config(isolated_db / "missing.yaml")
    assert cfg.database.dsn == "sqlite:///env.db"
    assert cfg.database.table == "env_notes"


def test_file_wins_over_environment(isolated_db, monkeypatch):
    reset_config()
    monkeypatch.setenv(ENV_DSN, "sqlite:///env.db")
    cfg = load_config(isolated_db / "config.yaml")
    assert cfg.database.dsn.endswith("notes.db")


def test_local_config_file(isolated_db):
    reset_config()
    (isolated_db / "object_annotate.yaml").write_text(
        "database:\n  dsn: sqlite:///local.db\n  columns: [event, via]\n  set_time: true\n"
    )
    cfg = load_config()
    assert cfg.database.dsn == "sqlite:///local.db"
    assert cfg.database.columns == ["event", "via"]
    assert cfg.database.set_time is True


def test_resolve_settings_overrides(isolated_db):
    settings = resolve_settings(table="audit", sequence="audit_seq", db_user=None)
    assert settings.table == "audit"
    assert settings.sequence == "audit_seq"
    assert settings.dsn == get_config().database.dsn
    # the loaded config is untouched
    assert get_config().database.table == "annotations"


def test_resolve_settings_requires_dsn(isolated_db):
    reset_config()
    load_config(isolated_db / "missing.yaml")
    with pytest.raises(AnnotationConfigError, match=ENV_DSN):
        resolve_settings()


def test_resolve_settings_rejects_unknown(isolated_db):
    with pytest.raises(AnnotationConfigError, match="colour"):
        resolve_settings(colour="red")


def test_setup_logging(isolated_db):
    handler = setup_logging()
    try:
        logger = logging.getLogger("object_annotate.store")
        logger.info("hello from test")
        handler.flush()
        log_file = isolated_db / "logs" / "object_annotate.log"
        assert log_file.exists()
        assert "hello from test" in log_file.read_text()
    finally:
        logging.getLogger("object_annotate").removeHandler(handler)
        handler.close()


def test_resolve_settings_validates_types(isolated_db):
    with pytest.raises(AnnotationConfigError, match="columns"):
        resolve_settings(columns="via")
    assert resolve_settings(set_time="false").set_time is False
    assert resolve_settings(columns=("event", "via")).columns == ["event", "via"]
