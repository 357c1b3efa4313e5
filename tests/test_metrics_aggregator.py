"""
Tests for metric snapshot aggregation.
"""

import dataclasses
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from smokefree.daily_log import save_daily_log
from smokefree.health_milestones import stage_rank
from smokefree.metrics_aggregator import MetricSnapshot, aggregate_metrics
from smokefree.storage import PermissionDeniedError, StorageError, TrackerStorage


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


class TestMetricSnapshot:
    """Tests for the MetricSnapshot dataclass."""

    def test_is_immutable(self):
        snapshot = MetricSnapshot(streak_days=3)
        with pytest.raises(dataclasses.FrozenInstanceError):
            snapshot.streak_days = 4

    def test_leaderboard_rank_lookup(self):
        snapshot = MetricSnapshot(leaderboard_ranks={"points": 2, "streak": None})

        assert snapshot.leaderboard_rank("points") == 2
        assert snapshot.leaderboard_rank("streak") is None
        assert snapshot.leaderboard_rank("saved") is None

    def test_to_dict(self):
        data = MetricSnapshot(streak_days=3, has_profile=True).to_dict()
        assert data["streak_days"] == 3
        assert data["has_profile"] is True
        assert data["leaderboard_ranks"] == {}


class TestAggregateMetrics:
    """Tests for aggregate_metrics function."""

    def test_unknown_user_is_all_zero(self, storage):
        snapshot = aggregate_metrics(storage, "ghost", "2024-01-10")

        assert snapshot.streak_days == 0
        assert snapshot.daily_log_count == 0
        assert snapshot.savings_amount == 0
        assert snapshot.has_profile is False
        assert snapshot.leaderboard_ranks == {"points": None, "streak": None, "saved": None}

    def test_full_snapshot(self, storage):
        storage.update_profile("u1", {
            "quit_date": "2024-01-01",
            "cigarettes_per_day_before": 20,
            "cigarettes_per_pack": 20,
            "cost_per_pack": 10,
        })
        for day in range(1, 4):
            save_daily_log(storage, "u1", f"2024-01-{day:02d}", {}, today="2024-01-31")
        storage.increment_profile_counter("u1", "ai_messages_count", 12)
        storage.increment_profile_counter("u1", "audio_sessions_count", 2)
        challenge = storage.add_challenge("u1", "Walk", points=5)
        storage.complete_challenge("u1", challenge["id"])

        snapshot = aggregate_metrics(storage, "u1", "2024-01-31")

        assert snapshot.streak_days == 30
        assert snapshot.daily_log_count == 3
        assert snapshot.ai_message_count == 12
        assert snapshot.audio_session_count == 2
        assert snapshot.completed_challenge_count == 1
        assert snapshot.savings_amount == 300
        assert snapshot.health_stage_rank == stage_rank("mo1")
        assert snapshot.leaderboard_ranks["points"] == 1
        assert snapshot.has_profile is True

    def test_streak_reads_log_history_not_cache(self, storage):
        """A stale cached streak on the profile is ignored."""
        storage.update_profile("u1", {"quit_date": "2024-01-01", "current_streak_days": 500})
        save_daily_log(storage, "u1", "2024-01-05", {"cigarettes_smoked": 1}, today="2024-01-10")

        assert aggregate_metrics(storage, "u1", "2024-01-10").streak_days == 4

    def test_countdown_streak_is_zero(self, storage):
        storage.update_profile("u1", {
            "quit_date": "2024-01-01",
            "target_quit_date": "2024-02-01",
            "date_mode": "target",
        })

        assert aggregate_metrics(storage, "u1", "2024-01-10").streak_days == 0

    def test_target_date_used_when_quit_date_missing(self, storage):
        storage.update_profile("u1", {"target_quit_date": "2024-01-01"})

        assert aggregate_metrics(storage, "u1", "2024-01-10").streak_days == 9

    def test_zero_cigarettes_per_pack_gives_zero_savings(self, storage):
        storage.update_profile("u1", {
            "quit_date": "2024-01-01",
            "cigarettes_per_day_before": 20,
            "cigarettes_per_pack": 0,
            "cost_per_pack": 10,
        })

        assert aggregate_metrics(storage, "u1", "2024-03-01").savings_amount == 0

    def test_challenge_count_failure_degrades_to_zero(self, storage):
        storage.update_profile("u1", {"quit_date": "2024-01-01"})

        with patch.object(storage, "count_completed_challenges", side_effect=StorageError("locked")):
            snapshot = aggregate_metrics(storage, "u1", "2024-01-10")

        assert snapshot.completed_challenge_count == 0
        assert snapshot.streak_days == 9

    def test_challenge_count_permission_denied_propagates(self, storage):
        with patch.object(storage, "count_completed_challenges", side_effect=PermissionDeniedError("readonly")):
            with pytest.raises(PermissionDeniedError):
                aggregate_metrics(storage, "u1", "2024-01-10")

    def test_other_read_failures_propagate(self, storage):
        with patch.object(storage, "count_daily_logs", side_effect=StorageError("disk I/O error")):
            with pytest.raises(StorageError):
                aggregate_metrics(storage, "u1", "2024-01-10")
