from __future__ import annotations

import logging
from pathlib import Path

import pytest
from simpledao.core import logging as logging_module
from simpledao.core.db import engine_options, get_engine, init_db, session_scope
from simpledao.core.settings import Settings, settings
from sqlalchemy import inspect

from backend.tests.entities import User


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "sqlite:///./env.db")
    monkeypatch.setenv("DATABASE_ECHO", "true")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    loaded = Settings()
    assert loaded.database_url == "sqlite:///./env.db"
    assert loaded.database_echo is True
    assert loaded.log_level == "DEBUG"


def test_session_scope_commits_on_success() -> None:
    with session_scope() as session:
        session.add(User(name="Alice"))

    with session_scope() as session:
        assert session.query(User).count() == 1


def test_session_scope_rolls_back_on_error() -> None:
    with pytest.raises(RuntimeError):
        with session_scope() as session:
            session.add(User(name="Alice"))
            session.flush()
            raise RuntimeError("boom")

    with session_scope() as session:
        assert session.query(User).count() == 0


def test_init_db_creates_registered_tables() -> None:
    init_db()
    tables = set(inspect(get_engine()).get_table_names())
    assert {"users", "roles", "user_roles", "preferences"} <= tables
    assert settings.database_url.startswith("sqlite")


def test_engine_options_per_backend() -> None:
    sqlite_options = engine_options("sqlite:///./local.db")
    assert sqlite_options["connect_args"] == {"check_same_thread": False}
    assert sqlite_options["pool_pre_ping"] == settings.database_pool_pre_ping

    postgres_options = engine_options("postgresql+psycopg://user:pw@db/app")
    assert postgres_options["connect_args"] == {"connect_timeout": 1}

    assert engine_options("mysql+pymysql://user:pw@db/app")["connect_args"] == {}


def test_logging_config_without_files() -> None:
    config = logging_module._build_logging_config(None)
    assert list(config["handlers"]) == ["console"]
    assert config["root"]["handlers"] == ["console"]
    assert config["loggers"]["simpledao"]["level"] == settings.log_level


def test_logging_config_routes_sql_echo_through_engine_logger(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(settings, "database_echo", False)
    quiet = logging_module._build_logging_config(None)
    assert quiet["loggers"]["sqlalchemy.engine"]["level"] == "WARNING"

    monkeypatch.setattr(settings, "database_echo", True)
    echoing = logging_module._build_logging_config(None)
    assert echoing["loggers"]["sqlalchemy.engine"]["level"] == "INFO"


def test_logging_config_error_file_only_takes_errors(tmp_path: Path) -> None:
    config = logging_module._build_logging_config(tmp_path)
    handlers = config["handlers"]
    assert handlers["error_file"]["level"] == "ERROR"
    assert handlers["error_file"]["filename"] == str(tmp_path / "errors.log")
    assert handlers["app_file"]["maxBytes"] == settings.log_max_bytes
    assert config["root"]["handlers"] == ["console", "app_file", "error_file"]


def test_setup_logging_writes_rotating_files(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(settings, "log_directory", str(tmp_path / "logs"))
    monkeypatch.setattr(settings, "log_to_file", True)
    root = logging.getLogger()
    previous_handlers = list(root.handlers)
    try:
        logging_module.setup_logging()
        logging_module.get_logger().error("repository failure")
        for handler in root.handlers:
            handler.flush()
        assert "repository failure" in (tmp_path / "logs" / "errors.log").read_text(
            encoding="utf-8"
        )
    finally:
        for handler in list(root.handlers):
            if handler not in previous_handlers:
                root.removeHandler(handler)
                handler.close()
        for handler in previous_handlers:
            if handler not in root.handlers:
                root.addHandler(handler)


def test_get_logger_defaults_to_package_name() -> None:
    assert logging_module.get_logger().name == "simpledao"
    assert logging_module.get_logger("custom").name == "custom"
