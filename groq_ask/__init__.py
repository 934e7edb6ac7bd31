"""groq-ask: concurrent question batches against an OpenAI-compatible LLM."""

from __future__ import annotations

from groq_ask.core import __version__

__all__ = ["__version__"]
