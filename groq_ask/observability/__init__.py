from __future__ import annotations

from .context import bind_batch, bind_question
from .logging import configure_logging, get_logger

__all__ = ["bind_batch", "bind_question", "configure_logging", "get_logger"]
