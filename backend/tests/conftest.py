from __future__ import annotations

# ruff: noqa: E402
import sys
from pathlib import Path
from typing import Iterator

PROJECT_ROOT = Path(__file__).resolve().parents[2]
BACKEND_DIR = PROJECT_ROOT / "backend"
for path in (PROJECT_ROOT, BACKEND_DIR):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

import pytest
from simpledao.core.db import dispose_engine, init_db
from simpledao.core.settings import settings

# registers the test tables on Base.metadata
from backend.tests import entities  # noqa: F401


@pytest.fixture(autouse=True)
def configure_test_database(tmp_path: Path) -> Iterator[str]:
    """Point settings.database_url to a fresh SQLite file for every test."""

    original_url = settings.database_url
    settings.database_url = f"sqlite:///{tmp_path / 'simpledao_test.db'}"
    dispose_engine()
    init_db()
    yield settings.database_url
    dispose_engine()
    settings.database_url = original_url
