import asyncio
import uuid
from unittest.mock import MagicMock

from scenario_quiz.repositories.analytics_repository import LoggingAnalyticsSink, SupabaseAnalyticsSink


def test_supabase_sink_inserts_event_row():
    client = MagicMock()
    sink = SupabaseAnalyticsSink(client, table="analytics")

    asyncio.run(sink.track("quiz_started", {"session_id": "s1", "quiz_type": "disaster-preparedness"}, "alice"))

    client.table.assert_called_once_with("analytics")
    row = client.table.return_value.insert.call_args.args[0]
    assert set(row) == {"id", "event_type", "event_data", "user_id"}
    assert uuid.UUID(row["id"])
    assert row["event_type"] == "quiz_started"
    assert row["event_data"] == {"session_id": "s1", "quiz_type": "disaster-preparedness"}
    assert row["user_id"] == "alice"
    client.table.return_value.insert.return_value.execute.assert_called_once_with()


def test_supabase_sink_swallows_client_errors(caplog):
    client = MagicMock()
    client.table.return_value.insert.return_value.execute.side_effect = RuntimeError("supabase down")
    sink = SupabaseAnalyticsSink(client)

    with caplog.at_level("ERROR"):
        asyncio.run(sink.track("quiz_completed", {"final_score": 30}, "alice"))

    failures = [r for r in caplog.records if isinstance(r.msg, dict) and r.msg.get("event") == "analytics_track_failed"]
    assert failures and failures[0].msg["event_type"] == "quiz_completed"


def test_logging_sink_records_event(caplog):
    with caplog.at_level("INFO"):
        asyncio.run(LoggingAnalyticsSink().track("quiz_started", {"session_id": "s1"}, None))
    events = [r.msg for r in caplog.records if isinstance(r.msg, dict) and r.msg.get("event") == "analytics"]
    assert events == [{"event": "analytics", "event_type": "quiz_started", "user_id": None, "data": {"session_id": "s1"}}]
