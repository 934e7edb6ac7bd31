from __future__ import annotations


class GroqAskError(Exception):
    """Base exception for this project."""


class TransportError(GroqAskError):
    """The completion endpoint could not be reached (connection, DNS, timeout)."""


class UpstreamError(GroqAskError):
    """The completion endpoint answered, but not with a usable completion."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(f"{message} (HTTP {status_code})" if status_code else message)
        self.status_code = status_code


class InputError(GroqAskError):
    """A batch submission was rejected before reaching the dispatcher."""


class BatchCancelled(GroqAskError):
    """A question was abandoned because its batch was cancelled."""

    def __init__(self, reason: str):
        super().__init__(f"cancelled: {reason}")
        self.reason = reason
