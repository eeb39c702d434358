from __future__ import annotations

from pathlib import Path

import pytest

from relnavlib.config import ConfigError, load_config, resolve_config_path
from relnavlib.sql import Dialect


def write_config(tmp_path: Path, body: str) -> Path:
    cfg = tmp_path / "config.yaml"
    cfg.write_text(body.strip())
    return cfg


def test_load_config_connections_and_settings(tmp_path, monkeypatch):
    monkeypatch.setenv("PGPASSWORD", "s3cret")
    cfg_path = write_config(
        tmp_path,
        """
version: 1
default_connection: local
settings:
  default_row_limit: 25
connections:
  local:
    url: sqlite:///demo.db
  warehouse:
    type: postgresql
    host: db.internal
    port: "5432"
    database: app
    username: reader
    password: ${PGPASSWORD}
    schema: public
  legacy:
    type: sqlserver
    host: mssql.internal
    database: crm
        """,
    )

    cfg = load_config(cfg_path)

    assert cfg.default_connection == "local"
    assert cfg.settings.default_row_limit == 25
    assert cfg.settings.max_col_width == 80
    assert cfg.source_path == cfg_path

    warehouse = cfg.connections["warehouse"]
    assert warehouse.password == "s3cret"
    assert warehouse.port == 5432
    assert warehouse.dialect is Dialect.POSTGRESQL
    assert warehouse.sqlalchemy_url().host == "db.internal"

    assert cfg.connections["local"].dialect is Dialect.SQLITE
    assert cfg.connections["legacy"].dialect is Dialect.MSSQL


def test_get_connection_default_and_missing(tmp_path):
    cfg = load_config(write_config(tmp_path, """
default_connection: local
connections:
  local:
    url: sqlite:///demo.db
"""))
    assert cfg.get_connection().name == "local"
    with pytest.raises(ConfigError, match="Connection not found"):
        cfg.get_connection("nope")


def test_get_connection_without_default(tmp_path):
    cfg = load_config(write_config(tmp_path, """
connections:
  local:
    url: sqlite:///demo.db
"""))
    with pytest.raises(ConfigError, match="no default_connection"):
        cfg.get_connection()


def test_unsupported_type_rejected(tmp_path):
    with pytest.raises(ConfigError, match="unsupported type"):
        load_config(write_config(tmp_path, """
connections:
  odd:
    type: cassandra
"""))


def test_connection_needs_url_or_type(tmp_path):
    with pytest.raises(ConfigError, match="needs either"):
        load_config(write_config(tmp_path, """
connections:
  empty: {}
"""))


def test_invalid_settings(tmp_path):
    with pytest.raises(ConfigError, match="Invalid settings"):
        load_config(write_config(tmp_path, """
settings:
  default_row_limit: lots
"""))


def test_resolve_config_path_env_override(tmp_path, monkeypatch):
    cfg_path = write_config(tmp_path, "version: 1")
    monkeypatch.setenv("RELNAV_CONFIG", str(cfg_path))
    assert resolve_config_path() == cfg_path


def test_resolve_config_path_missing_override(tmp_path, monkeypatch):
    monkeypatch.setenv("RELNAV_CONFIG", str(tmp_path / "missing.yaml"))
    with pytest.raises(ConfigError, match="RELNAV_CONFIG path not found"):
        resolve_config_path()


def test_resolve_config_path_xdg(tmp_path, monkeypatch):
    monkeypatch.delenv("RELNAV_CONFIG", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "home"))
    monkeypatch.setenv("XDG_CONFIG_DIRS", str(tmp_path / "etc"))
    target = tmp_path / "etc" / "relnav" / "config.yaml"
    target.parent.mkdir(parents=True)
    target.write_text("version: 1")
    assert resolve_config_path() == target


def test_no_config_anywhere(tmp_path, monkeypatch):
    monkeypatch.delenv("RELNAV_CONFIG", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "home"))
    monkeypatch.setenv("XDG_CONFIG_DIRS", str(tmp_path / "etc"))
    with pytest.raises(ConfigError, match="No config file found"):
        resolve_config_path()
