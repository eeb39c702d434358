from __future__ import annotations

import importlib.util
from pathlib import Path

import pytest

SEEDER = Path(__file__).resolve().parent.parent / "infra" / "seeder.py"


def _load_seeder():
    spec = importlib.util.spec_from_file_location("relnav_seeder", SEEDER)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def demo_db(tmp_path) -> Path:
    """A freshly seeded SQLite demo database."""
    path = tmp_path / "demo.db"
    _load_seeder().seed(path)
    return path


@pytest.fixture
def demo_config(tmp_path, demo_db, monkeypatch) -> Path:
    """Config pointing the default connection at the demo database."""
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        f"""
version: 1
default_connection: demo
settings:
  default_row_limit: 50
connections:
  demo:
    url: sqlite:///{demo_db}
        """.strip()
    )
    monkeypatch.setenv("RELNAV_CONFIG", str(cfg))
    return cfg
