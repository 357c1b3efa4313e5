"""
Daily log submission.

Normalizes log entries so slips are always detectable, and keeps the cached
streak fields on the profile in step with the log history.
"""

import logging
from datetime import datetime

from smokefree.storage import TrackerStorage
from smokefree.streak_calculator import compute_streak, streak_anchor

logger = logging.getLogger(__name__)

RATING_MIN = 1
RATING_MAX = 5


class DailyLogValidationError(ValueError):
    """Raised when a daily log entry has out-of-range values."""


def _non_negative_int(name: str, value, errors: list[str]) -> int:
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        errors.append(f"{name} must be a number")
        return 0
    try:
        number = int(value)
    except (TypeError, ValueError):
        errors.append(f"{name} must be a number, got {value!r}")
        return 0
    if number < 0:
        errors.append(f"{name} must be >= 0, got {number}")
    return number


def _rating(name: str, value, errors: list[str]) -> int | None:
    if value is None or value == "":
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        errors.append(f"{name} must be a number, got {value!r}")
        return None
    if not RATING_MIN <= number <= RATING_MAX:
        errors.append(f"{name} must be between {RATING_MIN} and {RATING_MAX}, got {number}")
    return number


def normalize_daily_log(data: dict) -> dict:
    """
    Validate and normalize a submitted log entry.

    smoke_free is always derived from cigarettes_smoked, so an explicit
    smoke_free=True alongside cigarettes smoked is stored as False.

    Args:
        data: Raw entry fields (cigarettes_smoked, smoke_free, cravings_count,
            mood_rating, stress_level, notes, triggers_faced)

    Returns:
        Normalized entry dictionary

    Raises:
        DailyLogValidationError: If any value is out of range
    """
    errors: list[str] = []

    cigarettes = _non_negative_int("cigarettes_smoked", data.get("cigarettes_smoked"), errors)
    cravings = _non_negative_int("cravings_count", data.get("cravings_count"), errors)
    mood = _rating("mood_rating", data.get("mood_rating"), errors)
    stress = _rating("stress_level", data.get("stress_level"), errors)

    triggers = data.get("triggers_faced") or []
    if not isinstance(triggers, (list, tuple)):
        errors.append("triggers_faced must be a list")
        triggers = []

    if errors:
        raise DailyLogValidationError("; ".join(errors))

    # A submitted smoke_free flag is ignored
    return {
        "cigarettes_smoked": cigarettes,
        "smoke_free": cigarettes == 0,
        "cravings_count": cravings,
        "mood_rating": mood,
        "stress_level": stress,
        "notes": str(data.get("notes") or ""),
        "triggers_faced": [str(t) for t in triggers],
    }


def smoke_free_flipped(previous: dict | None, entry: dict) -> bool:
    """
    Decide whether saving `entry` can change the streak.

    True for a new entry, for a previous entry without a usable smoke_free
    flag, and whenever the flag changes value.
    """
    if previous is None:
        return True
    previous_flag = previous.get("smoke_free")
    if not isinstance(previous_flag, bool):
        return True
    return previous_flag != entry["smoke_free"]


def refresh_streak_cache(storage: TrackerStorage, user_id: str, today: str | None = None) -> dict:
    """
    Recompute the streak from the log history and store it on the profile.

    Returns:
        The streak dictionary from compute_streak()
    """
    profile = storage.get_profile(user_id) or {}
    streak = compute_streak(storage, user_id, streak_anchor(profile), today)
    storage.update_profile(user_id, {
        "current_streak_days": streak["current_streak_days"],
        "streak_start_date": streak["streak_start_date"],
        "last_slip_date": streak["last_slip_date"],
    })
    logger.info(
        "Refreshed streak for %s: %d days since %s",
        user_id,
        streak["current_streak_days"],
        streak["streak_start_date"],
    )
    return streak


def save_daily_log(
    storage: TrackerStorage,
    user_id: str,
    date: str,
    data: dict,
    today: str | None = None,
) -> dict:
    """
    Save a day's log and refresh the cached streak when it could have changed.

    Any date may be saved, including past dates; editing a past day into a
    slip retroactively breaks the streak.

    Args:
        storage: TrackerStorage instance
        user_id: Log owner
        date: Logged day in YYYY-MM-DD format
        data: Raw entry fields, see normalize_daily_log()
        today: Override today's date for testing (YYYY-MM-DD format)

    Returns:
        Dictionary with:
        - entry: The stored entry
        - streak_refreshed: Whether the streak cache was recomputed
        - streak: The new streak, or None when not recomputed

    Raises:
        DailyLogValidationError: If the date or any value is invalid
    """
    try:
        datetime.strptime(date, "%Y-%m-%d")
    except (TypeError, ValueError):
        raise DailyLogValidationError(f"date must be YYYY-MM-DD, got {date!r}")

    entry = normalize_daily_log(data)
    previous = storage.get_daily_log(user_id, date)
    stored = storage.upsert_daily_log(user_id, date, entry)

    streak = None
    refreshed = smoke_free_flipped(previous, entry)
    if refreshed:
        streak = refresh_streak_cache(storage, user_id, today)

    return {
        "entry": stored,
        "streak_refreshed": refreshed,
        "streak": streak,
    }
