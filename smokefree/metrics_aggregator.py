"""
Aggregate the metrics every achievement condition is evaluated against.

All reads for an evaluation pass happen here, once. Condition predicates only
ever see the resulting MetricSnapshot.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from smokefree.health_milestones import get_health_stage_rank
from smokefree.leaderboard import get_leaderboard_ranks
from smokefree.savings import calculate_savings
from smokefree.storage import PermissionDeniedError, StorageError, TrackerStorage
from smokefree.streak_calculator import compute_streak, get_quit_mode, streak_anchor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricSnapshot:
    """Everything achievement conditions may look at, read once per pass."""

    streak_days: int = 0
    daily_log_count: int = 0
    ai_message_count: int = 0
    audio_session_count: int = 0
    completed_challenge_count: int = 0
    savings_amount: int = 0
    health_stage_rank: int = 0
    # Metric name ("points", "streak", "saved") -> 1, 2, 3 or None
    leaderboard_ranks: dict = field(default_factory=dict)
    has_profile: bool = False

    def leaderboard_rank(self, metric: str) -> int | None:
        return self.leaderboard_ranks.get(metric)

    def to_dict(self) -> dict:
        return {
            "streak_days": self.streak_days,
            "daily_log_count": self.daily_log_count,
            "ai_message_count": self.ai_message_count,
            "audio_session_count": self.audio_session_count,
            "completed_challenge_count": self.completed_challenge_count,
            "savings_amount": self.savings_amount,
            "health_stage_rank": self.health_stage_rank,
            "leaderboard_ranks": dict(self.leaderboard_ranks),
            "has_profile": self.has_profile,
        }


def _counter(profile: dict, name: str) -> int:
    """Read a usage counter, treating missing or garbled values as 0."""
    try:
        value = int(profile.get(name) or 0)
    except (TypeError, ValueError):
        return 0
    return max(0, value)


def _count_completed_challenges(storage: TrackerStorage, user_id: str) -> int:
    try:
        return storage.count_completed_challenges(user_id)
    except PermissionDeniedError:
        raise
    except StorageError as e:
        logger.warning("Could not count challenges for %s, using 0: %s", user_id, e)
        return 0


def aggregate_metrics(
    storage: TrackerStorage, user_id: str, today: str | None = None
) -> MetricSnapshot:
    """
    Build the metric snapshot for one evaluation pass.

    Args:
        storage: TrackerStorage instance
        user_id: User to aggregate
        today: Override today's date for testing (YYYY-MM-DD format)

    Returns:
        MetricSnapshot for the user
    """
    if today is None:
        today = datetime.now().strftime("%Y-%m-%d")

    profile = storage.get_profile(user_id) or {}

    if get_quit_mode(profile, today)["mode"] == "countdown":
        streak_days = 0
    else:
        streak = compute_streak(storage, user_id, streak_anchor(profile), today)
        streak_days = streak["current_streak_days"]

    return MetricSnapshot(
        streak_days=streak_days,
        daily_log_count=storage.count_daily_logs(user_id),
        ai_message_count=_counter(profile, "ai_messages_count"),
        audio_session_count=_counter(profile, "audio_sessions_count"),
        completed_challenge_count=_count_completed_challenges(storage, user_id),
        savings_amount=calculate_savings(profile, streak_days),
        health_stage_rank=get_health_stage_rank(streak_days),
        leaderboard_ranks=get_leaderboard_ranks(storage, user_id),
        has_profile=bool(profile.get("created_at")),
    )
