import logging
import uuid
from datetime import datetime
from typing import Callable, Optional

from ..domain.errors import AlreadyCompleted, InvalidChoice, InvalidInput
from ..domain.model import Choice, Question, QuestionBank
from ..domain.session import ANONYMOUS_USER, AnswerRecord, QuizSession, utcnow
from ..repositories.analytics_repository import AnalyticsSink
from ..repositories.session_store import SessionStore
from .leaderboard import build_leaderboard, timeframe_start
from .recommendations import content_recommendations, recommend
from .scoring import CERTIFICATE_THRESHOLD, evaluate
from .typing import to_iso

logger = logging.getLogger(__name__)

MAX_USER_ID_LENGTH = 128
MAX_LEADERBOARD_LIMIT = 100


class QuizEngine:
    """Drives quiz sessions: start, answer one question at a time, report.

    Every change to a session goes through ``SessionStore.update`` so the
    validate-and-append step runs on the latest state under the store's
    per-session exclusion. A rejected answer raises inside the update and
    nothing is written.
    """

    def __init__(
        self,
        bank: QuestionBank,
        store: SessionStore,
        analytics: AnalyticsSink,
        certificate_threshold: int = CERTIFICATE_THRESHOLD,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if not bank.questions:
            raise ValueError("question bank has no questions")
        self.bank = bank
        self.store = store
        self.analytics = analytics
        self.certificate_threshold = certificate_threshold
        self.clock = clock

    # --- session lifecycle ---

    async def start(self, user_id: Optional[str] = None, quiz_type: Optional[str] = None) -> dict:
        user_id = self._normalize_user_id(user_id)
        quiz_type = quiz_type or self.bank.quiz_type
        if quiz_type != self.bank.quiz_type:
            raise InvalidInput(f"unknown quiz type: {quiz_type}")

        session = QuizSession(
            session_id=str(uuid.uuid4()),
            user_id=user_id,
            quiz_type=quiz_type,
            created_at=self.clock(),
        )
        await self.store.create(session)
        logger.info({"event": "quiz_started", "session_id": session.session_id, "user_id": user_id})

        await self._emit("quiz_started", {
            "session_id": session.session_id,
            "quiz_type": quiz_type,
            "user_id": user_id,
        }, user_id)

        return {
            "session_id": session.session_id,
            "quiz_type": quiz_type,
            "total_questions": self.bank.total_questions,
            "current_question": 0,
            "first_question": self.bank.questions[0].public_view(),
        }

    async def current_question(self, session_id: str) -> dict:
        session = await self.store.get(session_id)
        question = self.bank.question_at(session.current_question_index)
        if session.completed or question is None:
            raise AlreadyCompleted(f"quiz session {session_id} is already completed")
        return {
            "session_id": session_id,
            "question_number": session.current_question_index + 1,
            "total_questions": self.bank.total_questions,
            "current_score": session.score,
            "question": question.public_view(),
        }

    async def submit_answer(self, session_id: str, choice_id: Optional[str], question_id: Optional[str] = None) -> dict:
        if not choice_id or not choice_id.strip():
            raise InvalidInput("choiceId is required")

        def apply(session: QuizSession):
            if session.completed:
                raise AlreadyCompleted(f"quiz session {session_id} is already completed")
            question = self.bank.question_at(session.current_question_index)
            if question is None:
                raise AlreadyCompleted(f"quiz session {session_id} has no questions left")
            if question_id is not None and question_id != question.id:
                raise InvalidChoice(f"answer is for {question_id} but the current question is {question.id}")
            choice = question.find_choice(choice_id)
            if choice is None:
                raise InvalidChoice(f"choice {choice_id} is not an option of {question.id}")

            session.record_answer(
                AnswerRecord(
                    question_id=question.id,
                    choice_id=choice.id,
                    correct=choice.is_correct,
                    points=choice.points,
                ),
                self.bank.total_questions,
                now=self.clock(),
            )
            return question, choice, session.model_copy(deep=True)

        question, choice, session = await self.store.update(session_id, apply)
        return await self._answer_result(session, question, choice)

    async def _answer_result(self, session: QuizSession, question: Question, choice: Choice) -> dict:
        logger.info({
            "event": "quiz_answer_submitted",
            "session_id": session.session_id,
            "question_id": question.id,
            "choice_id": choice.id,
            "correct": choice.is_correct,
            "score": session.score,
        })
        await self._emit("quiz_answer_submitted", {
            "session_id": session.session_id,
            "question_id": question.id,
            "choice_id": choice.id,
            "correct": choice.is_correct,
            "user_id": session.user_id,
        }, session.user_id)

        result = {
            "correct": choice.is_correct,
            "feedback": choice.feedback,
            "points_earned": choice.points,
            "total_score": session.score,
            "question_number": session.current_question_index,
            "total_questions": self.bank.total_questions,
        }

        if not session.completed:
            result["next_question"] = self.bank.questions[session.current_question_index].public_view()
            return result

        summary = evaluate(session, self.bank, self.certificate_threshold)
        result["quiz_completed"] = True
        result["final_score_percentage"] = summary.percentage
        result["certificate_eligible"] = summary.certificate_eligible

        logger.info({
            "event": "quiz_completed",
            "session_id": session.session_id,
            "score": session.score,
            "percentage": summary.percentage,
        })
        await self._emit("quiz_completed", {
            "session_id": session.session_id,
            "final_score": session.score,
            "percentage": summary.percentage,
            "user_id": session.user_id,
        }, session.user_id)
        return result

    # --- read models ---

    async def results(self, session_id: str) -> dict:
        session = await self.store.get(session_id)
        summary = evaluate(session, self.bank, self.certificate_threshold)

        detailed = []
        for number, answer in enumerate(session.answers, start=1):
            question = self.bank.get(answer.question_id)
            choice = question.find_choice(answer.choice_id) if question else None
            if question is None or choice is None:
                logger.warning({"event": "results_answer_skipped", "session_id": session_id, "question_id": answer.question_id})
                continue
            detailed.append({
                "question_number": number,
                "question_id": question.id,
                "question_title": question.title,
                "question_text": question.prompt,
                "selected_choice": choice.text,
                "correct": answer.correct,
                "points_earned": answer.points,
                "feedback": choice.feedback,
            })

        return {
            "session_id": session.session_id,
            "user_id": session.user_id,
            "quiz_type": session.quiz_type,
            "completed": session.completed,
            "completed_at": to_iso(session.completed_at) if session.completed_at else None,
            "total_score": session.score,
            "total_possible_score": summary.max_score,
            "percentage": summary.percentage,
            "certificate_eligible": summary.certificate_eligible,
            "detailed_results": detailed,
            "recommendations": recommend(summary.percentage, session.answers),
        }

    async def leaderboard(self, limit: int = 10, timeframe: str = "all") -> dict:
        if limit < 1 or limit > MAX_LEADERBOARD_LIMIT:
            raise InvalidInput(f"limit must be between 1 and {MAX_LEADERBOARD_LIMIT}")
        since = timeframe_start(timeframe, self.clock())
        sessions = await self.store.list_completed(since)
        entries = build_leaderboard(sessions, self.bank.max_score, limit, since)
        return {
            "timeframe": timeframe,
            "leaderboard": [
                {
                    "rank": e.rank,
                    "user_id": e.user_id,
                    "display_name": e.display_name,
                    "is_anonymous": e.is_anonymous,
                    "best_score": e.best_score,
                    "percentage": e.percentage,
                    "attempts": e.attempts,
                    "last_completed_at": to_iso(e.last_completed_at),
                }
                for e in entries
            ],
            "total_participants": len(entries),
        }

    async def user_recommendations(
        self,
        user_id: Optional[str] = None,
        story_type: Optional[str] = None,
        location: Optional[str] = None,
        api_prefix: str = "",
    ) -> dict:
        user_id = self._normalize_user_id(user_id)
        completed = []
        if user_id != ANONYMOUS_USER:
            completed = [s for s in await self.store.list_completed() if s.user_id == user_id]
        return content_recommendations(completed, self.bank.max_score, story_type, location, api_prefix)

    # --- helpers ---

    def _normalize_user_id(self, user_id: Optional[str]) -> str:
        if user_id is None or not user_id.strip():
            return ANONYMOUS_USER
        user_id = user_id.strip()
        if len(user_id) > MAX_USER_ID_LENGTH:
            raise InvalidInput(f"userId must be at most {MAX_USER_ID_LENGTH} characters")
        return user_id

    async def _emit(self, event_type: str, event_data: dict, user_id: Optional[str]) -> None:
        try:
            await self.analytics.track(event_type, event_data, user_id)
        except Exception:
            # sinks swallow their own failures; this guards custom ones that do not
            logger.exception({"event": "analytics_emit_failed", "event_type": event_type})
