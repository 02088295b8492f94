"""Pytest configuration for path setup and shared fixtures.

The test suite imports the ``apca`` package from ``apca/src`` and the
helpers from ``tests/helpers``.  When pytest is executed as an installed
script, neither the repository root nor ``apca/src`` is automatically on
``sys.path``.  This file ensures that both are available for imports during
test collection, whether or not the package has been installed.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]

# Project root first so ``tests.helpers`` resolves, then the package sources.
for path in (ROOT, ROOT / "apca" / "src"):
    path_str = str(path)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from tests.helpers.fake_transport import FakeTransport  # noqa: E402


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()
