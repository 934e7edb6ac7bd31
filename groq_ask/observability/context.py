from __future__ import annotations

from contextvars import ContextVar


_batch_id: ContextVar[str | None] = ContextVar("batch_id", default=None)
_question_index: ContextVar[int | None] = ContextVar("question_index", default=None)


def bind_batch(batch_id: str) -> None:
    _batch_id.set(batch_id)
    _question_index.set(None)


def bind_question(index: int) -> None:
    # Each asyncio task runs in a copy of the parent context, so this only
    # affects the task that calls it.
    _question_index.set(index)


def snapshot() -> dict[str, object]:
    """Return the bound identifiers for inclusion in log records."""

    out: dict[str, object] = {}
    if (v := _batch_id.get()) is not None:
        out["batch_id"] = v
    if (v := _question_index.get()) is not None:
        out["question_index"] = v
    return out
