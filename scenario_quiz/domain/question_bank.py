"""Loading and validation of the immutable question bank.

The bank is read once at startup, checked, and frozen into
:class:`~scenario_quiz.domain.model.QuestionBank` before it is handed to the
engine. The JSON layout is validated with pydantic models so that a broken
bank file fails loudly at boot instead of mid-quiz.
"""
import json
import logging
from pathlib import Path
from typing import List

from pydantic import BaseModel, Field, ValidationError, field_validator

from .model import Choice, Question, QuestionBank

logger = logging.getLogger(__name__)

DEFAULT_BANK_PATH = Path(__file__).resolve().parent.parent / "data" / "disaster_preparedness.json"


class ChoiceIn(BaseModel):
    id: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1)
    correct: bool = False
    points: int = Field(0, ge=0)
    feedback: str = ""


class QuestionIn(BaseModel):
    id: str = Field(..., min_length=1)
    title: str
    question: str
    choices: List[ChoiceIn] = Field(..., min_length=1)

    @field_validator("choices")
    @classmethod
    def unique_choice_ids(cls, v: List[ChoiceIn]) -> List[ChoiceIn]:
        ids = [c.id for c in v]
        if len(ids) != len(set(ids)):
            raise ValueError("choice ids must be unique within a question")
        return v


class QuestionBankIn(BaseModel):
    quiz_type: str = "disaster-preparedness"
    questions: List[QuestionIn] = Field(..., min_length=1)

    @field_validator("questions")
    @classmethod
    def unique_ids(cls, v: List[QuestionIn]) -> List[QuestionIn]:
        ids = [q.id for q in v]
        if len(ids) != len(set(ids)):
            raise ValueError("question ids must be unique within the bank")
        # a choice id identifies its question
        choice_ids = [c.id for q in v for c in q.choices]
        if len(choice_ids) != len(set(choice_ids)):
            raise ValueError("choice ids must be unique across the bank")
        return v


class QuestionBankError(ValueError):
    pass


def build_bank(data: dict) -> QuestionBank:
    try:
        parsed = QuestionBankIn.model_validate(data)
    except ValidationError as e:
        raise QuestionBankError(f"invalid question bank: {e}") from e

    questions = tuple(
        Question(
            id=q.id,
            title=q.title,
            prompt=q.question,
            choices=tuple(
                Choice(
                    id=c.id,
                    text=c.text,
                    is_correct=c.correct,
                    points=c.points,
                    feedback=c.feedback,
                )
                for c in q.choices
            ),
        )
        for q in parsed.questions
    )
    for q in questions:
        if sum(1 for c in q.choices if c.is_correct) != 1:
            logger.warning({"event": "question_bank_correct_count", "question_id": q.id})
    return QuestionBank(quiz_type=parsed.quiz_type, questions=questions)


def load_bank(path: str | Path | None = None) -> QuestionBank:
    """Load a bank from ``path`` or from the bundled scenarios."""
    bank_path = Path(path) if path else DEFAULT_BANK_PATH
    try:
        raw = bank_path.read_text(encoding="utf-8")
    except OSError as e:
        raise QuestionBankError(f"cannot read question bank {bank_path}: {e}") from e
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise QuestionBankError(f"question bank {bank_path} is not valid JSON: {e}") from e

    bank = build_bank(data)
    logger.info({
        "event": "question_bank_loaded",
        "path": str(bank_path),
        "quiz_type": bank.quiz_type,
        "questions": bank.total_questions,
    })
    return bank
