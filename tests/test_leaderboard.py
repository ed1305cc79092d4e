import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from scenario_quiz.domain.errors import InvalidInput
from scenario_quiz.domain.session import AnswerRecord, QuizSession
from scenario_quiz.services.leaderboard import build_leaderboard, timeframe_start

T0 = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


def completed(session_id, user_id, score, at):
    return QuizSession(
        session_id=session_id,
        user_id=user_id,
        quiz_type="disaster-preparedness",
        current_question_index=3,
        score=score,
        answers=[],
        completed=True,
        completed_at=at,
    )


def play(engine, user_id, choices):
    async def go():
        sid = (await engine.start(user_id))["session_id"]
        for n, c in enumerate(choices, start=1):
            await engine.submit_answer(sid, f"q{n}-{c}")
    asyncio.run(go())


def test_ranks_by_best_score(engine, clock):
    play(engine, "bob", ["a", "a", "b"])
    clock.advance(minutes=1)
    play(engine, "alice", ["a", "a", "a"])

    out = asyncio.run(engine.leaderboard(limit=10))
    rows = out["leaderboard"]
    assert [(r["rank"], r["user_id"], r["best_score"]) for r in rows] == [(1, "alice", 30), (2, "bob", 20)]
    assert rows[0]["percentage"] == 100
    assert rows[1]["percentage"] == 67
    assert out["total_participants"] == 2


def test_same_user_aggregates_attempts(engine, clock):
    play(engine, "alice", ["a", "a", "b"])
    clock.advance(minutes=5)
    play(engine, "alice", ["a", "a", "a"])

    rows = asyncio.run(engine.leaderboard())["leaderboard"]
    assert len(rows) == 1
    assert rows[0]["best_score"] == 30
    assert rows[0]["attempts"] == 2
    assert rows[0]["last_completed_at"] == "2026-10-01T12:05:00+00:00"


def test_in_progress_sessions_are_ignored(engine):
    play(engine, "alice", ["a"])
    assert asyncio.run(engine.leaderboard())["leaderboard"] == []


def test_tie_goes_to_earliest_achiever():
    sessions = [
        completed("s1", "late", 30, T0 + timedelta(hours=1)),
        completed("s2", "early", 30, T0),
    ]
    rows = build_leaderboard(sessions, max_score=30, limit=10)
    assert [r.user_id for r in rows] == ["early", "late"]


def test_limit_truncates():
    sessions = [completed(f"s{i}", f"user{i}", i, T0) for i in range(20)]
    rows = build_leaderboard(sessions, max_score=30, limit=5)
    assert [r.rank for r in rows] == [1, 2, 3, 4, 5]
    assert rows[0].best_score == 19


def test_anonymous_sessions_are_separate_rows():
    sessions = [
        completed("s1", "anonymous", 30, T0),
        completed("s2", "anonymous", 10, T0 + timedelta(minutes=1)),
        completed("s3", "alice", 20, T0),
    ]
    rows = build_leaderboard(sessions, max_score=30, limit=10)
    assert [(r.display_name, r.is_anonymous, r.attempts) for r in rows] == [
        ("Anonymous User", True, 1),
        ("alice", False, 1),
        ("Anonymous User", True, 1),
    ]


def test_unfinished_records_are_skipped():
    broken = completed("s1", "alice", 30, T0).model_copy(update={"completed_at": None})
    ok = completed("s2", "bob", 10, T0)
    rows = build_leaderboard([broken, ok], max_score=30, limit=10)
    assert [r.user_id for r in rows] == ["bob"]


def test_timeframe_filters_old_sessions(engine, clock):
    play(engine, "old", ["a", "a", "a"])
    clock.advance(days=10)
    play(engine, "recent", ["a", "b", "b"])

    week = asyncio.run(engine.leaderboard(timeframe="week"))["leaderboard"]
    month = asyncio.run(engine.leaderboard(timeframe="month"))["leaderboard"]
    assert [r["user_id"] for r in week] == ["recent"]
    assert [r["user_id"] for r in month] == ["old", "recent"]


def test_timeframe_start():
    assert timeframe_start("all", T0) is None
    assert timeframe_start("week", T0) == T0 - timedelta(days=7)
    assert timeframe_start("month", T0) == T0 - timedelta(days=30)
    with pytest.raises(InvalidInput):
        timeframe_start("year", T0)


@pytest.mark.parametrize("limit", [0, -1, 101])
def test_limit_out_of_range(engine, limit):
    with pytest.raises(InvalidInput):
        asyncio.run(engine.leaderboard(limit=limit))


def test_answers_do_not_affect_ranking():
    s = completed("s1", "alice", 10, T0)
    s.answers.append(AnswerRecord(question_id="q1", choice_id="q1-a", correct=True, points=10))
    rows = build_leaderboard([s], max_score=30, limit=10)
    assert rows[0].best_score == 10
