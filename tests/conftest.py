"""Pytest configuration and shared fixtures.

This adds the `src/` directory to `sys.path` so tests can import the
`warcodex` package without requiring an editable install in CI.
"""

import sys
from pathlib import Path

import pytest

SRC_PATH = Path(__file__).resolve().parents[1] / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from warcodex.repository import JsonDocumentStore  # noqa: E402
from warcodex.services.entity_service import EntityService  # noqa: E402


@pytest.fixture
def store(tmp_path) -> JsonDocumentStore:
    return JsonDocumentStore(tmp_path / "data")


@pytest.fixture
def entities(store) -> EntityService:
    return EntityService(store)
