import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from ..domain.errors import InvalidInput
from ..domain.session import QuizSession
from .scoring import score_percentage

logger = logging.getLogger(__name__)

ANONYMOUS_LABEL = "Anonymous User"

TIMEFRAMES: Dict[str, Optional[timedelta]] = {
    "week": timedelta(days=7),
    "month": timedelta(days=30),
    "all": None,
}


@dataclass
class LeaderboardEntry:
    rank: int
    user_id: str
    display_name: str
    is_anonymous: bool
    best_score: int
    percentage: int
    attempts: int
    last_completed_at: datetime


def timeframe_start(timeframe: str, now: datetime) -> Optional[datetime]:
    if timeframe not in TIMEFRAMES:
        raise InvalidInput(f"timeframe must be one of {', '.join(TIMEFRAMES)}")
    window = TIMEFRAMES[timeframe]
    return now - window if window is not None else None


def build_leaderboard(
    sessions: Iterable[QuizSession],
    max_score: int,
    limit: int,
    since: Optional[datetime] = None,
) -> List[LeaderboardEntry]:
    """Rank takers by their best completed score.

    Identified users are aggregated across their sessions. Anonymous takers
    share a sentinel user id, so each anonymous session is ranked on its own
    rather than merged into one artificial user.
    """
    groups: Dict[str, dict] = {}
    for s in sessions:
        if not s.completed or s.completed_at is None:
            logger.warning({"event": "leaderboard_record_skipped", "session_id": s.session_id})
            continue
        if since is not None and s.completed_at < since:
            continue

        key = f"anonymous:{s.session_id}" if s.is_anonymous else s.user_id
        g = groups.get(key)
        if g is None:
            groups[key] = {
                "user_id": s.user_id,
                "is_anonymous": s.is_anonymous,
                "best_score": s.score,
                "attempts": 1,
                "last_completed_at": s.completed_at,
            }
            continue
        g["best_score"] = max(g["best_score"], s.score)
        g["attempts"] += 1
        g["last_completed_at"] = max(g["last_completed_at"], s.completed_at)

    # earliest achiever wins a tie on best score
    ordered = sorted(
        groups.items(),
        key=lambda kv: (-kv[1]["best_score"], kv[1]["last_completed_at"], kv[0]),
    )

    return [
        LeaderboardEntry(
            rank=rank,
            user_id=g["user_id"],
            display_name=ANONYMOUS_LABEL if g["is_anonymous"] else g["user_id"],
            is_anonymous=g["is_anonymous"],
            best_score=g["best_score"],
            percentage=score_percentage(g["best_score"], max_score),
            attempts=g["attempts"],
            last_completed_at=g["last_completed_at"],
        )
        for rank, (_, g) in enumerate(ordered[:limit], start=1)
    ]
