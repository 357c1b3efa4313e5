"""
Tests for streak calculation.
"""

import sqlite3
import tempfile
from pathlib import Path

import pytest

from smokefree.daily_log import normalize_daily_log
from smokefree.storage import TrackerStorage
from smokefree.streak_calculator import (
    cached_streak_days,
    compute_streak,
    get_quit_mode,
    streak_anchor,
    streak_from_slip,
    to_iso_day,
)

USER = "user-1"


@pytest.fixture
def temp_db():
    """Create a temporary database file for testing."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)
    yield db_path
    if db_path.exists():
        db_path.unlink()


@pytest.fixture
def storage(temp_db):
    """Create a TrackerStorage instance with a temporary database."""
    return TrackerStorage(temp_db)


def _log(storage, date, cigarettes=0, user_id=USER):
    storage.upsert_daily_log(user_id, date, normalize_daily_log({"cigarettes_smoked": cigarettes}))


def _log_clean_days(storage, first_day, last_day, month="2024-01"):
    for day in range(first_day, last_day + 1):
        _log(storage, f"{month}-{day:02d}")


class TestStreakFromSlip:
    """Tests for the pure date arithmetic."""

    def test_no_slip_starts_at_quit_date(self):
        result = streak_from_slip("2024-01-01", "2024-01-10")
        assert result == {
            "current_streak_days": 9,
            "streak_start_date": "2024-01-01",
            "last_slip_date": None,
        }

    def test_slip_starts_day_after(self):
        result = streak_from_slip("2024-01-01", "2024-01-10", "2024-01-05")
        assert result["streak_start_date"] == "2024-01-06"
        assert result["current_streak_days"] == 4

    def test_slip_today_gives_zero_not_negative(self):
        """A slip today puts the start tomorrow; days clamp at 0."""
        result = streak_from_slip("2024-01-01", "2024-01-10", "2024-01-10")
        assert result["current_streak_days"] == 0
        assert result["streak_start_date"] == "2024-01-11"

    def test_future_quit_date_is_zero(self):
        result = streak_from_slip("2024-02-01", "2024-01-10")
        assert result["current_streak_days"] == 0

    def test_crosses_month_and_leap_day(self):
        result = streak_from_slip("2024-02-27", "2024-03-02", "2024-02-28")
        assert result["streak_start_date"] == "2024-02-29"
        assert result["current_streak_days"] == 2


class TestComputeStreak:
    """Tests for compute_streak against stored logs."""

    def test_no_quit_date_returns_empty_streak(self, storage):
        """Without a quit date there is no streak."""
        _log(storage, "2024-01-05", cigarettes=3)

        result = compute_streak(storage, USER, None, "2024-01-10")

        assert result == {
            "current_streak_days": 0,
            "streak_start_date": None,
            "last_slip_date": None,
        }

    def test_clean_history_counts_from_quit_date(self, storage):
        _log_clean_days(storage, 1, 10)

        result = compute_streak(storage, USER, "2024-01-01", "2024-01-10")

        assert result["current_streak_days"] == 9
        assert result["streak_start_date"] == "2024-01-01"
        assert result["last_slip_date"] is None

    def test_retroactive_slip_breaks_streak(self, storage):
        """Editing a past day into a slip moves the streak start."""
        _log_clean_days(storage, 1, 10)
        assert compute_streak(storage, USER, "2024-01-01", "2024-01-10")["current_streak_days"] == 9

        _log(storage, "2024-01-05", cigarettes=2)
        result = compute_streak(storage, USER, "2024-01-01", "2024-01-10")

        assert result["streak_start_date"] == "2024-01-06"
        assert result["last_slip_date"] == "2024-01-05"
        assert result["current_streak_days"] == 4

    def test_undoing_a_slip_restores_streak(self, storage):
        _log_clean_days(storage, 1, 10)
        _log(storage, "2024-01-05", cigarettes=2)
        _log(storage, "2024-01-05", cigarettes=0)

        result = compute_streak(storage, USER, "2024-01-01", "2024-01-10")

        assert result["current_streak_days"] == 9
        assert result["last_slip_date"] is None

    def test_future_slip_is_ignored(self, storage):
        """A slip dated after today doesn't count."""
        _log_clean_days(storage, 1, 10)
        _log(storage, "2024-01-05", cigarettes=2)
        _log(storage, "2024-01-15", cigarettes=5)

        result = compute_streak(storage, USER, "2024-01-01", "2024-01-10")

        assert result["last_slip_date"] == "2024-01-05"
        assert result["current_streak_days"] == 4

    def test_slip_before_quit_date_is_ignored(self, storage):
        _log(storage, "2023-12-31", cigarettes=20)

        result = compute_streak(storage, USER, "2024-01-01", "2024-01-10")

        assert result["last_slip_date"] is None
        assert result["current_streak_days"] == 9

    def test_most_recent_of_several_slips_wins(self, storage):
        _log(storage, "2024-01-03", cigarettes=1)
        _log(storage, "2024-01-07", cigarettes=1)
        _log(storage, "2024-01-04", cigarettes=1)

        result = compute_streak(storage, USER, "2024-01-01", "2024-01-10")

        assert result["last_slip_date"] == "2024-01-07"
        assert result["current_streak_days"] == 2

    def test_other_users_slips_do_not_count(self, storage):
        _log(storage, "2024-01-05", cigarettes=2, user_id="someone-else")

        result = compute_streak(storage, USER, "2024-01-01", "2024-01-10")

        assert result["current_streak_days"] == 9

    def test_consecutive_days_increase_by_one(self, storage):
        """With no new slips, tomorrow's streak is today's plus one."""
        _log(storage, "2024-01-03", cigarettes=1)

        day_one = compute_streak(storage, USER, "2024-01-01", "2024-01-20")
        day_two = compute_streak(storage, USER, "2024-01-01", "2024-01-21")

        assert day_two["current_streak_days"] == day_one["current_streak_days"] + 1

    def test_accepts_timestamp_quit_date(self, storage):
        result = compute_streak(storage, USER, "2024-01-01T08:30:00Z", "2024-01-10")
        assert result["streak_start_date"] == "2024-01-01"

    def test_legacy_row_with_only_cigarettes_set(self, storage, temp_db):
        """A row claiming smoke_free but with cigarettes is still a slip."""
        with sqlite3.connect(temp_db) as conn:
            conn.execute(
                """
                INSERT INTO daily_logs (user_id, date, cigarettes_smoked, smoke_free, created_at, updated_at)
                VALUES (?, '2024-01-06', 3, 1, 'x', 'x')
                """,
                (USER,),
            )

        result = compute_streak(storage, USER, "2024-01-01", "2024-01-10")

        assert result["last_slip_date"] == "2024-01-06"

    def test_legacy_row_with_only_flag_set(self, storage, temp_db):
        """A row flagged not smoke-free with zero cigarettes is still a slip."""
        with sqlite3.connect(temp_db) as conn:
            conn.execute(
                """
                INSERT INTO daily_logs (user_id, date, cigarettes_smoked, smoke_free, created_at, updated_at)
                VALUES (?, '2024-01-08', 0, 0, 'x', 'x')
                """,
                (USER,),
            )

        result = compute_streak(storage, USER, "2024-01-01", "2024-01-10")

        assert result["last_slip_date"] == "2024-01-08"
        assert result["current_streak_days"] == 1


class TestGetQuitMode:
    """Tests for countdown versus since resolution."""

    def test_no_profile_is_unknown(self):
        assert get_quit_mode(None, "2024-01-10") == {"mode": "unknown"}

    def test_profile_without_dates_is_unknown(self):
        assert get_quit_mode({"date_mode": "quit"}, "2024-01-10") == {"mode": "unknown"}

    def test_past_quit_date_is_since(self):
        mode = get_quit_mode({"quit_date": "2024-01-01"}, "2024-01-10")
        assert mode == {"mode": "since", "since_date": "2024-01-01"}

    def test_future_quit_date_is_countdown(self):
        mode = get_quit_mode({"quit_date": "2024-01-15"}, "2024-01-10")
        assert mode["mode"] == "countdown"
        assert mode["days_until"] == 5

    def test_target_mode_with_future_target_counts_down(self):
        profile = {
            "quit_date": "2024-01-01",
            "target_quit_date": "2024-02-01",
            "date_mode": "target",
            "streak_start_date": "2024-01-01",
        }
        mode = get_quit_mode(profile, "2024-01-10")
        assert mode == {"mode": "countdown", "target_date": "2024-02-01", "days_until": 22}

    def test_cached_streak_start_wins_over_quit_date(self):
        profile = {"quit_date": "2024-01-01", "streak_start_date": "2024-01-06"}
        mode = get_quit_mode(profile, "2024-01-10")
        assert mode == {"mode": "since", "since_date": "2024-01-06"}

    def test_past_target_date_without_quit_date(self):
        mode = get_quit_mode({"target_quit_date": "2024-01-02"}, "2024-01-10")
        assert mode == {"mode": "since", "since_date": "2024-01-02"}

    def test_cached_start_for_target_only_profile(self):
        profile = {"target_quit_date": "2024-01-01", "streak_start_date": "2024-01-06"}
        mode = get_quit_mode(profile, "2024-01-10")
        assert mode == {"mode": "since", "since_date": "2024-01-06"}

    def test_future_target_only_profile_counts_down_despite_cache(self):
        profile = {"target_quit_date": "2024-02-01", "streak_start_date": "2024-02-01"}
        assert get_quit_mode(profile, "2024-01-10")["mode"] == "countdown"


class TestStreakAnchor:
    """Tests for the date a streak counts from."""

    def test_quit_date_first(self):
        profile = {"quit_date": "2024-01-01", "target_quit_date": "2024-02-01"}
        assert streak_anchor(profile) == "2024-01-01"

    def test_falls_back_to_target_date(self):
        assert streak_anchor({"quit_date": None, "target_quit_date": "2024-02-01T00:00:00Z"}) == "2024-02-01"

    def test_no_dates(self):
        assert streak_anchor({}) is None
        assert streak_anchor(None) is None


class TestCachedStreakDays:
    """Tests for reading the cached streak."""

    def test_advances_with_calendar(self):
        profile = {"quit_date": "2024-01-01", "streak_start_date": "2024-01-06", "current_streak_days": 1}
        assert cached_streak_days(profile, "2024-01-10") == 4

    def test_slip_today_is_zero(self):
        profile = {"quit_date": "2024-01-01", "streak_start_date": "2024-01-11"}
        assert cached_streak_days(profile, "2024-01-10") == 0

    def test_countdown_is_zero(self):
        assert cached_streak_days({"quit_date": "2024-02-01"}, "2024-01-10") == 0


def test_to_iso_day():
    assert to_iso_day("2024-01-01T10:00:00") == "2024-01-01"
    assert to_iso_day("") is None
    assert to_iso_day(None) is None
