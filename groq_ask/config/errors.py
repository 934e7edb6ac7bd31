from __future__ import annotations

from groq_ask.core.errors import GroqAskError


class ConfigError(GroqAskError):
    """Raised when configuration is invalid or incomplete."""

    def __init__(self, message: str, *, path: str | None = None):
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path
