from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from sqlalchemy.engine import URL, make_url

from .sql import Dialect


class ConfigError(RuntimeError):
    pass


# Driver used when a connection is given by parts rather than a URL
DEFAULT_DRIVERS = {
    "postgresql": "postgresql",
    "postgres": "postgresql",
    "mysql": "mysql+pymysql",
    "sqlite": "sqlite",
    "mssql": "mssql+pyodbc",
    "sqlserver": "mssql+pyodbc",
}


@dataclass
class Settings:
    default_row_limit: int = 100
    max_col_width: int = 80


@dataclass
class Connection:
    name: str
    type: str = ""
    url: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None
    database: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    schema: Optional[str] = None
    options: Dict[str, Any] = field(default_factory=dict)

    def sqlalchemy_url(self) -> URL:
        if self.url:
            return make_url(self.url)
        driver = DEFAULT_DRIVERS.get(self.type.lower())
        if not driver:
            raise ConfigError(f"Connection '{self.name}': unsupported type '{self.type}'")
        return URL.create(
            driver,
            username=self.username,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
        )

    @property
    def dialect(self) -> Dialect:
        return Dialect.from_backend(self.sqlalchemy_url().get_backend_name())


@dataclass
class Config:
    version: int = 1
    default_connection: Optional[str] = None
    settings: Settings = field(default_factory=Settings)
    connections: Dict[str, Connection] = field(default_factory=dict)
    source_path: Optional[Path] = None

    def get_connection(self, name: Optional[str] = None) -> Connection:
        """Return the named connection, or the default one."""
        name = name or self.default_connection
        if not name:
            raise ConfigError("No connection specified and no default_connection set in config")
        conn = self.connections.get(name)
        if not conn:
            raise ConfigError(f"Connection not found: {name}")
        return conn


def _expand_env(value: Any) -> Any:
    if isinstance(value, str):
        # Expand ${VAR} style
        return os.path.expandvars(value)
    if isinstance(value, dict):
        return {k: _expand_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env(v) for v in value]
    return value


def _as_connection(name: str, raw: Dict[str, Any]) -> Connection:
    port = raw.get("port")
    try:
        port = int(port) if port not in (None, "") else None
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Connection '{name}': invalid port {port!r}") from e

    conn = Connection(
        name=name,
        type=str(raw.get("type", "")).strip(),
        url=raw.get("url"),
        host=raw.get("host"),
        port=port,
        database=raw.get("database"),
        username=raw.get("username"),
        password=raw.get("password"),
        schema=raw.get("schema"),
        options=raw.get("options") or {},
    )
    if not conn.url and not conn.type:
        raise ConfigError(f"Connection '{name}' needs either 'url' or 'type'")
    try:
        conn.sqlalchemy_url()
    except ConfigError:
        raise
    except Exception as e:
        raise ConfigError(f"Connection '{name}': invalid url: {e}") from e
    return conn


def _as_settings(raw: Dict[str, Any]) -> Settings:
    defaults = Settings()
    try:
        return Settings(
            default_row_limit=int(raw.get("default_row_limit", defaults.default_row_limit)),
            max_col_width=int(raw.get("max_col_width", defaults.max_col_width)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid settings: {e}") from e


def resolve_config_path() -> Path:
    # Highest priority: explicit override
    override = os.environ.get("RELNAV_CONFIG")
    if override:
        p = Path(override).expanduser()
        if p.is_file():
            return p
        raise ConfigError(f"RELNAV_CONFIG path not found: {p}")

    # XDG base dirs
    xdg_home = Path(os.environ.get("XDG_CONFIG_HOME", "~/.config")).expanduser()
    candidates = [xdg_home / "relnav" / "config.yaml"]

    xdg_dirs = os.environ.get("XDG_CONFIG_DIRS", "/etc/xdg")
    for d in xdg_dirs.split(":"):
        candidates.append(Path(d) / "relnav" / "config.yaml")

    for c in candidates:
        if c.is_file():
            return c

    raise ConfigError(
        "No config file found. Set RELNAV_CONFIG or create ~/.config/relnav/config.yaml"
    )


def load_config(path: Optional[Path] = None) -> Config:
    cfg_path = path or resolve_config_path()
    try:
        data = yaml.safe_load(cfg_path.read_text()) or {}
    except FileNotFoundError as e:
        raise ConfigError(str(e)) from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {cfg_path}: {e}") from e

    data = _expand_env(data)
    connections_raw = data.get("connections") or {}
    connections: Dict[str, Connection] = {
        name: _as_connection(name, raw or {}) for name, raw in connections_raw.items()
    }

    cfg = Config(
        version=int(data.get("version", 1)),
        default_connection=data.get("default_connection"),
        settings=_as_settings(data.get("settings") or {}),
        connections=connections,
        source_path=cfg_path,
    )
    return cfg
