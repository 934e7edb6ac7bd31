from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest


def pytest_configure() -> None:
    root = Path(__file__).resolve().parents[1]
    if (root / "groq_ask").exists():
        sys.path.insert(0, str(root))


@pytest.fixture(autouse=True)
def _restore_root_logging():
    # configure_logging(force=True) swaps root handlers; keep tests isolated.
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
