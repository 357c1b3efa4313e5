"""
Tests for health recovery stages.
"""

import pytest

from smokefree.health_milestones import (
    HEALTH_STAGES,
    get_health_stage,
    get_health_stage_rank,
    stage_rank,
)


class TestStageRank:
    """Tests for stage ordering."""

    def test_stage_ids_are_unique(self):
        ids = [stage.id for stage in HEALTH_STAGES]
        assert len(ids) == len(set(ids))

    def test_stages_start_in_order(self):
        starts = [stage.start for stage in HEALTH_STAGES]
        assert starts == sorted(starts)

    def test_named_ranks(self):
        assert stage_rank("wk2_to_wk12") < stage_rank("mo1") < stage_rank("mo6")

    def test_unknown_stage(self):
        with pytest.raises(KeyError):
            stage_rank("mo7")


class TestGetHealthStageRank:
    """Tests for get_health_stage_rank function."""

    @pytest.mark.parametrize(
        "days,stage_id",
        [
            (0, "day0_8h"),
            (1, "day1_12_24h"),
            (13, "day3_72h"),
            (14, "wk2_to_wk12"),
            (29, "wk2_to_wk12"),
            (30, "mo1"),
            (179, "mo3"),
            (180, "mo6"),
            (365, "1_to_2_years"),
            (10000, "15years"),
        ],
    )
    def test_latest_reached_stage(self, days, stage_id):
        assert get_health_stage_rank(days) == stage_rank(stage_id)

    def test_never_decreases(self):
        ranks = [get_health_stage_rank(days) for days in range(0, 6000, 7)]
        assert ranks == sorted(ranks)


class TestGetHealthStage:
    """Tests for get_health_stage function."""

    def test_progress_toward_next_stage(self):
        stage = get_health_stage(22)

        assert stage["id"] == "wk2_to_wk12"
        assert stage["percent"] == 11  # 8 of 76 days

    def test_last_stage_is_complete(self):
        assert get_health_stage(6000)["percent"] == 100

    def test_negative_days_count_as_zero(self):
        assert get_health_stage(-5)["id"] == get_health_stage(0)["id"]
