from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Union


@dataclass(frozen=True, slots=True)
class Answer:
    """A completion returned for one question."""

    text: str

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Failure:
    """A captured per-question error. Never aborts sibling questions."""

    message: str

    @property
    def ok(self) -> bool:
        return False


Outcome = Union[Answer, Failure]

QuestionBatch = Sequence[str]
ResultBatch = list[Outcome]


def describe_error(exc: BaseException) -> str:
    """Human-readable message for a Failure slot.

    Falls back to the exception type when the exception carries no message.
    """

    text = str(exc).strip()
    return text or type(exc).__name__
