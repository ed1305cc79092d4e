"""
Shared fixtures: a small fixture bank, an in-memory store, a recording
analytics sink and a controllable clock.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from scenario_quiz.core.config import Settings
from scenario_quiz.domain.question_bank import build_bank
from scenario_quiz.main import create_app
from scenario_quiz.repositories.analytics_repository import AnalyticsSink
from scenario_quiz.repositories.session_store import InMemorySessionStore
from scenario_quiz.services.quiz_engine import QuizEngine


def make_bank_data(n: int = 3) -> dict:
    # choice "q<i>-a" is the right answer to q<i>, "q<i>-b" the wrong one
    return {
        "quiz_type": "disaster-preparedness",
        "questions": [
            {
                "id": f"q{i}",
                "title": f"Scenario {i}",
                "question": f"What do you do in situation {i}?",
                "choices": [
                    {"id": f"q{i}-a", "text": "Evacuate", "correct": True, "points": 10, "feedback": f"Right on q{i}"},
                    {"id": f"q{i}-b", "text": "Wait", "correct": False, "points": 0, "feedback": f"Wrong on q{i}"},
                ],
            }
            for i in range(1, n + 1)
        ],
    }


class RecordingSink(AnalyticsSink):
    def __init__(self) -> None:
        self.events: list[tuple] = []

    async def _write(self, event_type, event_data, user_id) -> None:
        self.events.append((event_type, event_data, user_id))

    def types(self) -> list[str]:
        return [e[0] for e in self.events]


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def bank():
    return build_bank(make_bank_data())


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(bank, store, sink, clock):
    return QuizEngine(bank, store, sink, clock=clock)


@pytest.fixture
def client(engine):
    app = create_app(Settings(), engine=engine)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def bank_data():
    return make_bank_data
