"""
Community leaderboard: top-3 ranks and row publishing.
"""

import logging
from datetime import datetime

from smokefree.daily_log import refresh_streak_cache
from smokefree.savings import calculate_life_years_regained, calculate_savings
from smokefree.storage import LEADERBOARD_COLUMNS, TrackerStorage
from smokefree.streak_calculator import cached_streak_days, get_quit_mode

logger = logging.getLogger(__name__)

LEADERBOARD_FIELDS = tuple(LEADERBOARD_COLUMNS)
TOP_RANK_LIMIT = 3


def rank_top3(
    storage: TrackerStorage, field: str, user_id: str, limit: int = TOP_RANK_LIMIT
) -> int | None:
    """
    Get a user's position if they are in the top rows for a metric.

    Only the top `limit` rows are read, never the whole population. Ties keep
    the order the store returns for that read.

    Args:
        storage: TrackerStorage instance
        field: One of "points", "streak", "saved"
        user_id: User to look for
        limit: Window size (3 unless a caller needs more headroom)

    Returns:
        1-based position within the window, or None
    """
    rows = storage.get_top_leaderboard_rows(field, limit)
    for position, row in enumerate(rows, start=1):
        if row["user_id"] == user_id:
            return position if position <= TOP_RANK_LIMIT else None
    return None


def get_leaderboard_ranks(storage: TrackerStorage, user_id: str) -> dict:
    """Get the top-3 rank for every leaderboard metric."""
    return {field: rank_top3(storage, field, user_id) for field in LEADERBOARD_FIELDS}


def get_leaderboard(storage: TrackerStorage, field: str = "points", limit: int = 10) -> list[dict]:
    """
    Get the leaderboard for display.

    Returns:
        List of rows with a 1-based rank added, best first
    """
    rows = storage.get_top_leaderboard_rows(field, limit)
    for position, row in enumerate(rows, start=1):
        row["rank"] = position
    return rows


def _display_name(profile: dict) -> str:
    if profile.get("display_name"):
        return profile["display_name"]
    if profile.get("username"):
        return profile["username"]
    if profile.get("email"):
        return str(profile["email"]).split("@")[0]
    return "User"


def publish_leaderboard_row(
    storage: TrackerStorage, user_id: str, today: str | None = None
) -> dict | None:
    """
    Refresh a user's denormalized leaderboard row from their profile.

    Uses the cached streak on the profile. A slip dated inside the cached
    streak (logged ahead of time, now reached) refreshes the cache first.
    Safe to call after any profile change.

    Returns:
        The published row, or None if the user has no profile
    """
    profile = storage.get_profile(user_id)
    if profile is None:
        return None

    if today is None:
        today = datetime.now().strftime("%Y-%m-%d")

    mode = get_quit_mode(profile, today)
    if mode["mode"] == "since" and mode["since_date"] <= today:
        if storage.find_latest_slip_date(user_id, mode["since_date"], today):
            refresh_streak_cache(storage, user_id, today)
            profile = storage.get_profile(user_id)

    streak_days = cached_streak_days(profile, today)
    row = {
        "name": _display_name(profile),
        "avatar": profile.get("photo_url"),
        "points": int(profile.get("total_points") or 0),
        "streak_days": streak_days,
        "saved_amount": calculate_savings(profile, streak_days),
        "life_years": calculate_life_years_regained(profile, streak_days),
    }
    storage.upsert_leaderboard_row(user_id, row)
    logger.debug("Published leaderboard row for %s: %s", user_id, row)
    return row
