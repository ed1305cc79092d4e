import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from supabase import Client

logger = logging.getLogger(__name__)


class AnalyticsSink(ABC):
    """Fire-and-forget event sink. ``track`` never raises."""

    async def track(self, event_type: str, event_data: Dict[str, Any], user_id: Optional[str] = None) -> None:
        try:
            await self._write(event_type, event_data, user_id)
        except Exception:
            logger.exception({"event": "analytics_track_failed", "event_type": event_type})

    @abstractmethod
    async def _write(self, event_type: str, event_data: Dict[str, Any], user_id: Optional[str]) -> None: ...


class LoggingAnalyticsSink(AnalyticsSink):
    async def _write(self, event_type: str, event_data: Dict[str, Any], user_id: Optional[str]) -> None:
        logger.info({"event": "analytics", "event_type": event_type, "user_id": user_id, "data": event_data})


class SupabaseAnalyticsSink(AnalyticsSink):
    def __init__(self, client: Client, table: str = "analytics") -> None:
        self.client = client
        self.table = table

    def _insert(self, row: dict) -> None:
        self.client.table(self.table).insert(row).execute()

    async def _write(self, event_type: str, event_data: Dict[str, Any], user_id: Optional[str]) -> None:
        row = {
            "id": str(uuid.uuid4()),
            "event_type": event_type,
            "event_data": event_data,
            "user_id": user_id,
        }
        # supabase-py's sync client blocks; keep it off the event loop
        await asyncio.to_thread(self._insert, row)
        logger.debug({"event": "analytics_tracked", "event_type": event_type})
