"""Concurrent fan-out/collect of question batches."""

from __future__ import annotations

from .cancel import CancelToken
from .dispatcher import Dispatcher

__all__ = ["CancelToken", "Dispatcher"]
