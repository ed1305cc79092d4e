from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Choice:
    id: str
    text: str
    is_correct: bool
    points: int
    feedback: str = ""

    def public_view(self) -> dict:
        return {"id": self.id, "text": self.text}


@dataclass(frozen=True)
class Question:
    id: str
    title: str
    prompt: str
    choices: Tuple[Choice, ...]

    def find_choice(self, choice_id: str) -> Choice | None:
        for choice in self.choices:
            if choice.id == choice_id:
                return choice
        return None

    def public_view(self) -> dict:
        """Question as shown to a taker: no correctness, points or feedback."""
        return {
            "id": self.id,
            "title": self.title,
            "prompt": self.prompt,
            "choices": [c.public_view() for c in self.choices],
        }


@dataclass(frozen=True)
class QuestionBank:
    quiz_type: str
    questions: Tuple[Question, ...]

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def max_points_per_question(self) -> int:
        # point value of the canonical correct choice, assumed uniform across the bank
        if not self.questions:
            return 0
        first = self.questions[0]
        correct = [c.points for c in first.choices if c.is_correct]
        if correct:
            return max(correct)
        return max((c.points for c in first.choices), default=0)

    @property
    def max_score(self) -> int:
        return self.total_questions * self.max_points_per_question

    def question_at(self, index: int) -> Question | None:
        if 0 <= index < len(self.questions):
            return self.questions[index]
        return None

    def get(self, question_id: str) -> Question | None:
        for q in self.questions:
            if q.id == question_id:
                return q
        return None
