from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
BACKEND = TESTS_DIR.parent / "backend"
for extra in (TESTS_DIR, BACKEND):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from fixtures import FakeCompletion  # noqa: E402

import db  # noqa: E402


@pytest.fixture(autouse=True)
def database() -> Iterator[None]:
    """Fresh in-memory database per test."""
    db.init_db("sqlite://")
    yield
    db.dispose_db()


@pytest.fixture
def fake_client() -> FakeCompletion:
    return FakeCompletion()
