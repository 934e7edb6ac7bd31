from __future__ import annotations

from groq_ask.runtime.lifecycle import main

__all__ = ["main"]
