from fastapi import APIRouter, Body, Depends, Request
from typing import Annotated, Optional
from ....schemas.quiz_schemas import (
    AnswerIn,
    AnswerResultOut,
    ContentRecommendationsOut,
    CurrentQuestionOut,
    ErrorOut,
    LeaderboardOut,
    ResultsOut,
    StartQuizIn,
    StartQuizOut,
)
from ....services.quiz_engine import QuizEngine

router = APIRouter(tags=["quiz"])

ERRORS = {
    400: {"model": ErrorOut},
    404: {"model": ErrorOut},
    409: {"model": ErrorOut},
    503: {"model": ErrorOut},
}


# The engine is built once in the app lifespan

def get_engine(request: Request) -> QuizEngine:
    return request.app.state.engine


EngineDep = Annotated[QuizEngine, Depends(get_engine)]


@router.post("/quiz/start", response_model=StartQuizOut, responses=ERRORS)
async def start_quiz(engine: EngineDep, payload: Annotated[Optional[StartQuizIn], Body()] = None):
    payload = payload or StartQuizIn()
    return await engine.start(payload.user_id, payload.quiz_type)


@router.get("/quiz/leaderboard", response_model=LeaderboardOut, responses=ERRORS)
async def leaderboard(engine: EngineDep, limit: int = 10, timeframe: str = "all"):
    return await engine.leaderboard(limit=limit, timeframe=timeframe)


@router.get("/quiz/{session_id}/question", response_model=CurrentQuestionOut, responses=ERRORS)
async def current_question(session_id: str, engine: EngineDep):
    return await engine.current_question(session_id)


@router.post(
    "/quiz/{session_id}/answer",
    response_model=AnswerResultOut,
    response_model_exclude_none=True,
    responses=ERRORS,
)
async def submit_answer(session_id: str, payload: AnswerIn, engine: EngineDep):
    return await engine.submit_answer(session_id, payload.choice_id, payload.question_id)


@router.get("/quiz/{session_id}/results", response_model=ResultsOut, responses=ERRORS)
async def results(session_id: str, engine: EngineDep):
    return await engine.results(session_id)


@router.get("/recommendations", response_model=ContentRecommendationsOut, responses=ERRORS)
async def recommendations(
    request: Request,
    engine: EngineDep,
    userId: Optional[str] = None,
    storyType: Optional[str] = None,
    location: Optional[str] = None,
):
    return await engine.user_recommendations(
        userId,
        story_type=storyType,
        location=location,
        api_prefix=request.app.state.settings.API_V1_PREFIX,
    )
