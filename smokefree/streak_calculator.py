"""
Calculate smoke-free streaks from the daily log history.

The log history is the source of truth. A streak starts on the quit date, or
on the day after the most recent slip between the quit date and today.
"""

from datetime import datetime, timedelta


def _parse_date(value: str):
    return datetime.strptime(value[:10], "%Y-%m-%d").date()


def to_iso_day(value: str | None) -> str | None:
    """Trim a date or timestamp string to YYYY-MM-DD (None stays None)."""
    if not value:
        return None
    return str(value)[:10]


def streak_from_slip(
    quit_date: str, today: str, last_slip_date: str | None = None
) -> dict:
    """
    Derive the streak from a quit date and the most recent slip.

    Args:
        quit_date: Quit date in YYYY-MM-DD format
        today: Evaluation date in YYYY-MM-DD format
        last_slip_date: Most recent slip in [quit_date, today], if any

    Returns:
        Dictionary with current_streak_days, streak_start_date, last_slip_date
    """
    if last_slip_date is None:
        start = _parse_date(quit_date)
    else:
        start = _parse_date(last_slip_date) + timedelta(days=1)

    days = (_parse_date(today) - start).days

    return {
        "current_streak_days": max(0, days),
        "streak_start_date": start.strftime("%Y-%m-%d"),
        "last_slip_date": last_slip_date,
    }


def streak_anchor(profile: dict | None) -> str | None:
    """The date a streak is counted from: the quit date, else the target quit date."""
    if not profile:
        return None
    return to_iso_day(profile.get("quit_date") or profile.get("target_quit_date"))


def compute_streak(storage, user_id: str, quit_date: str | None, today: str | None = None) -> dict:
    """
    Compute the current smoke-free streak for a user.

    Slips dated after today or before the quit date are ignored. Storage read
    errors propagate; nothing is written.

    Args:
        storage: TrackerStorage instance
        user_id: User to compute the streak for
        quit_date: Quit date (YYYY-MM-DD or ISO timestamp), or None
        today: Override today's date for testing (YYYY-MM-DD format).
            Defaults to current date.

    Returns:
        Dictionary with streak information:
        - current_streak_days: Whole days since the streak started (>= 0)
        - streak_start_date: Quit date or day after the last slip (or None)
        - last_slip_date: Most recent slip since quitting (or None)
    """
    quit_date = to_iso_day(quit_date)
    if not quit_date:
        return {
            "current_streak_days": 0,
            "streak_start_date": None,
            "last_slip_date": None,
        }

    if today is None:
        today = datetime.now().strftime("%Y-%m-%d")

    last_slip_date = storage.find_latest_slip_date(user_id, quit_date, today)
    return streak_from_slip(quit_date, today, last_slip_date)


def get_quit_mode(profile: dict | None, today: str | None = None) -> dict:
    """
    Work out whether a user is counting down to quitting or counting days since.

    Args:
        profile: User profile dictionary (may be None)
        today: Override today's date for testing (YYYY-MM-DD format)

    Returns:
        Dictionary with "mode" of "since", "countdown" or "unknown", plus
        since_date for "since" and target_date/days_until for "countdown"
    """
    if not profile:
        return {"mode": "unknown"}

    if today is None:
        today = datetime.now().strftime("%Y-%m-%d")
    today_date = _parse_date(today)

    quit_date = to_iso_day(profile.get("quit_date"))
    target_date = to_iso_day(profile.get("target_quit_date"))
    streak_start = to_iso_day(profile.get("streak_start_date"))

    def countdown(target: str) -> dict:
        return {
            "mode": "countdown",
            "target_date": target,
            "days_until": (_parse_date(target) - today_date).days,
        }

    # Target mode with a future target date always counts down
    if profile.get("date_mode") == "target" and target_date and target_date > today:
        return countdown(target_date)

    # A slip today puts the cached start date tomorrow; still "since" with 0 days
    anchor = quit_date or target_date
    if streak_start and anchor and anchor <= today:
        return {"mode": "since", "since_date": streak_start}
    if quit_date and quit_date <= today:
        return {"mode": "since", "since_date": quit_date}
    if target_date and target_date <= today:
        return {"mode": "since", "since_date": target_date}
    if target_date:
        return countdown(target_date)
    if quit_date:
        return countdown(quit_date)

    return {"mode": "unknown"}


def cached_streak_days(profile: dict | None, today: str | None = None) -> int:
    """
    Read the streak from a profile's cached fields, advanced to today.

    The cache only changes when a log flips, so the day count is re-derived
    from streak_start_date rather than read from current_streak_days.
    Countdown profiles have no streak yet.
    """
    mode = get_quit_mode(profile, today)
    if mode["mode"] != "since":
        return 0

    if today is None:
        today = datetime.now().strftime("%Y-%m-%d")
    return max(0, (_parse_date(today) - _parse_date(mode["since_date"])).days)
