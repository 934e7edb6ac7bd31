"""LLM integrations."""

from __future__ import annotations

from groq_ask.llm.client import Completer, CompletionClient, FakeCompletionClient

__all__ = ["Completer", "CompletionClient", "FakeCompletionClient"]
