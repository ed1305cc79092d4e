from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, Field

ANONYMOUS_USER = "anonymous"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnswerRecord(BaseModel):
    question_id: str
    choice_id: str
    correct: bool
    points: int


class QuizSession(BaseModel):
    """One quiz attempt. Serialized as-is into the session store."""

    session_id: str
    user_id: str = ANONYMOUS_USER
    quiz_type: str
    current_question_index: int = 0
    score: int = 0
    answers: List[AnswerRecord] = Field(default_factory=list)
    completed: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    completed_at: datetime | None = None

    @property
    def is_anonymous(self) -> bool:
        return self.user_id == ANONYMOUS_USER

    def record_answer(self, answer: AnswerRecord, total_questions: int, now: datetime | None = None) -> None:
        """Append an answer and advance by exactly one question."""
        self.answers.append(answer)
        self.score += answer.points
        self.current_question_index += 1
        if self.current_question_index >= total_questions:
            self.completed = True
            self.completed_at = now or utcnow()
