"""HTTP boundary: POST /api/questions."""

from __future__ import annotations

from groq_ask.api.http import create_app, run_server

__all__ = ["create_app", "run_server"]
