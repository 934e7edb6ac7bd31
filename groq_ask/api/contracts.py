from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from groq_ask.core.types import Answer, Outcome


# Input of POST /api/questions
class QuestionsIn(BaseModel):
    questions: list[str] = Field(..., description="Questions answered independently, in order")


class OutcomeOut(BaseModel):
    ok: bool
    text: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_outcome(cls, outcome: Outcome) -> "OutcomeOut":
        if isinstance(outcome, Answer):
            return cls(ok=True, text=outcome.text)
        return cls(ok=False, error=outcome.message)


# Output of POST /api/questions; responses[i] belongs to questions[i]
class QuestionsOut(BaseModel):
    responses: list[OutcomeOut]


class ErrorOut(BaseModel):
    error: str
