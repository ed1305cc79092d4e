from dataclasses import dataclass

from ..domain.model import QuestionBank
from ..domain.session import QuizSession

CERTIFICATE_THRESHOLD = 70


@dataclass(frozen=True)
class ScoreSummary:
    score: int
    max_score: int
    percentage: int
    certificate_eligible: bool


def score_percentage(score: int, max_score: int) -> int:
    """``100 * score / max_score`` rounded to the nearest integer, ties up."""
    if max_score <= 0:
        return 0
    return (200 * score + max_score) // (2 * max_score)


def is_certificate_eligible(percentage: int, threshold: int = CERTIFICATE_THRESHOLD) -> bool:
    return percentage >= threshold


def evaluate(session: QuizSession, bank: QuestionBank, threshold: int = CERTIFICATE_THRESHOLD) -> ScoreSummary:
    pct = score_percentage(session.score, bank.max_score)
    return ScoreSummary(
        score=session.score,
        max_score=bank.max_score,
        percentage=pct,
        certificate_eligible=is_certificate_eligible(pct, threshold),
    )
