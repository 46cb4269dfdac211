from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pytest

from scoutfox.dependencies import reset_cached_dependencies
from scoutfox.repositories.database import Database


@pytest.fixture(autouse=True)
def _isolated_environment(  # pyright: ignore[reportUnusedFunction]
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> Iterator[None]:
    for name in list(os.environ):
        if name.startswith("SCOUTFOX_"):
            monkeypatch.delenv(name, raising=False)
    # Keeps a developer's .env out of the tests.
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SCOUTFOX_DATA_DIR", str(tmp_path / "runtime-data"))
    reset_cached_dependencies()
    yield
    reset_cached_dependencies()


@pytest.fixture
def database(tmp_path: Path) -> Database:
    db = Database(tmp_path / "cache.db")
    db.initialize()
    return db
