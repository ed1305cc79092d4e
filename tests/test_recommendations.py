import asyncio

from scenario_quiz.domain.session import AnswerRecord
from scenario_quiz.services.recommendations import recommend


def answers(*flags):
    return [
        AnswerRecord(question_id=f"q{i}", choice_id=f"q{i}-a" if ok else f"q{i}-b", correct=ok, points=10 if ok else 0)
        for i, ok in enumerate(flags, start=1)
    ]


def test_low_score_gets_fundamentals_and_focus_areas():
    recs = recommend(33, answers(True, False, False))
    assert [r["type"] for r in recs] == ["study", "targeted_learning"]
    assert recs[1]["topics"] == ["q2", "q3"]


def test_middle_band_only_targets_misses():
    recs = recommend(67, answers(True, True, False))
    assert [r["type"] for r in recs] == ["targeted_learning"]


def test_perfect_score_gets_advanced_only():
    recs = recommend(100, answers(True, True, True))
    assert [r["type"] for r in recs] == ["advanced"]


def test_boundaries():
    assert [r["type"] for r in recommend(50, [])] == []
    assert [r["type"] for r in recommend(49, [])] == ["study"]
    assert [r["type"] for r in recommend(70, [])] == ["advanced"]


def test_is_deterministic():
    a = answers(False, True, False)
    assert recommend(33, a) == recommend(33, a)


def test_content_recommendations_for_strong_user(engine):
    async def go():
        for _ in range(2):
            sid = (await engine.start("alice"))["session_id"]
            for n in range(1, 4):
                await engine.submit_answer(sid, f"q{n}-a")
        return await engine.user_recommendations("alice")

    out = asyncio.run(go())
    assert out["user_performance"] == {"avg_score": 30, "quiz_count": 2}
    assert out["recommendations"][-1]["type"] == "advanced_quiz"


def test_content_recommendations_threshold_is_strict(engine):
    async def go():
        sid = (await engine.start("bob"))["session_id"]
        for choice in ["q1-a", "q2-a", "q3-b"]:
            await engine.submit_answer(sid, choice)
        return await engine.user_recommendations("bob")

    out = asyncio.run(go())
    assert out["user_performance"]["avg_score"] == 20
    assert "advanced_quiz" not in [r["type"] for r in out["recommendations"]]


def test_content_recommendations_anonymous(engine):
    out = asyncio.run(engine.user_recommendations(None, story_type="tsunami"))
    assert out["user_performance"] is None
    assert [r["type"] for r in out["recommendations"]] == ["quiz", "story", "educational"]
    assert out["recommendations"][1]["action_url"] == "/api/stories?type=tsunami&location="


def test_story_link_query_is_encoded(engine):
    out = asyncio.run(engine.user_recommendations(None, story_type="flood&storm", location="Banda Aceh"))
    assert out["recommendations"][1]["action_url"] == "/api/stories?type=flood%26storm&location=Banda+Aceh"
