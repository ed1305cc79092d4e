from fastapi.testclient import TestClient

from scenario_quiz.core.config import Settings
from scenario_quiz.main import create_app


def test_health():
    with TestClient(create_app(Settings())) as client:
        resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_bundled_bank_is_served_on_start():
    with TestClient(create_app(Settings())) as client:
        resp = client.post("/api/v1/quiz/start", json={})
    assert resp.status_code == 200
    body = resp.json()
    assert body["quizType"] == "disaster-preparedness"
    assert body["totalQuestions"] == 3
    assert body["firstQuestion"]["id"] == "scenario-1"
