from typing import List, Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    # camelCase on the wire, snake_case accepted on input too
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- requests ---

class StartQuizIn(CamelModel):
    user_id: Optional[str] = None
    quiz_type: Optional[str] = None


class AnswerIn(CamelModel):
    # optional here so a missing choice is reported as invalid_input, not a 422
    choice_id: Optional[str] = None
    question_id: Optional[str] = None


# --- responses ---

class ChoiceOut(CamelModel):
    id: str
    text: str


class QuestionOut(CamelModel):
    id: str
    title: str
    prompt: str
    choices: List[ChoiceOut]


class StartQuizOut(CamelModel):
    session_id: str
    quiz_type: str
    total_questions: int
    current_question: int
    first_question: QuestionOut


class CurrentQuestionOut(CamelModel):
    session_id: str
    question_number: int
    total_questions: int
    current_score: int
    question: QuestionOut


class AnswerResultOut(CamelModel):
    correct: bool
    feedback: str
    points_earned: int
    total_score: int
    question_number: int
    total_questions: int
    next_question: Optional[QuestionOut] = None
    quiz_completed: Optional[bool] = None
    final_score_percentage: Optional[int] = None
    certificate_eligible: Optional[bool] = None


class RecommendationOut(CamelModel):
    type: str
    title: str
    description: str
    topics: Optional[List[str]] = None
    difficulty: Optional[str] = None
    estimated_time: Optional[str] = None
    action_url: Optional[str] = None


class DetailedResultOut(CamelModel):
    question_number: int
    question_id: str
    question_title: str
    question_text: str
    selected_choice: str
    correct: bool
    points_earned: int
    feedback: str


class ResultsOut(CamelModel):
    session_id: str
    user_id: str
    quiz_type: str
    completed: bool
    completed_at: Optional[str] = None
    total_score: int
    total_possible_score: int
    percentage: int
    certificate_eligible: bool
    detailed_results: List[DetailedResultOut]
    recommendations: List[RecommendationOut]


class LeaderboardEntryOut(CamelModel):
    rank: int
    user_id: str
    display_name: str
    is_anonymous: bool
    best_score: int
    percentage: int
    attempts: int
    last_completed_at: str


class LeaderboardOut(CamelModel):
    timeframe: str
    leaderboard: List[LeaderboardEntryOut]
    total_participants: int


class UserPerformanceOut(CamelModel):
    avg_score: float
    quiz_count: int


class ContentRecommendationsOut(CamelModel):
    recommendations: List[RecommendationOut]
    user_performance: Optional[UserPerformanceOut] = None


class ErrorOut(BaseModel):
    error: str
    detail: str
