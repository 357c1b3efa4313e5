"""
Physiological recovery milestones after quitting.

Stages are ordered; achievements compare a stage's position in this list
rather than its day threshold, so re-tuning a threshold never re-orders
which badges a user holds.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class HealthStage:
    """A recovery stage reached after `start` smoke-free days."""

    id: str
    start: int  # Smoke-free days needed to reach this stage
    next: int  # Day the following stage is expected
    text: str


HEALTH_STAGES = [
    HealthStage("day0_20min", 0, 1, "Heart rate and blood pressure start to drop within 20 minutes."),
    HealthStage("day0_8h", 0, 1, "Oxygen levels recover; carbon monoxide has fallen by about half."),
    HealthStage(
        "day1_12_24h", 1, 2,
        "Carbon monoxide returns to normal (~12h); nicotine levels drop to zero by 24h.",
    ),
    HealthStage("day2_48h", 2, 3, "Taste and smell begin improving as lungs clear mucus."),
    HealthStage("day3_72h", 3, 14, "Breathing feels easier as airways relax; energy can rise."),
    HealthStage("wk2_to_wk12", 14, 90, "Circulation improves; lung function begins to increase."),
    HealthStage("mo1", 30, 90, "Cilia recover; airways clear mucus better; infection risk drops."),
    HealthStage("mo3", 90, 180, "Coughing and breathlessness keep improving; lung function trending up."),
    HealthStage(
        "mo6", 180, 270,
        "Many people cough less and bring up less phlegm as lungs heal (months 1-9).",
    ),
    HealthStage("mo9", 270, 365, "Lung function may be ~10% higher than at quit; breathlessness eases."),
    HealthStage(
        "1year", 365, 730,
        "Risk of coronary heart disease is about half that of someone who smokes.",
    ),
    HealthStage("1_to_2_years", 365, 1095, "Risk of heart attack drops sharply within 1-2 years after quitting."),
    HealthStage(
        "3_to_6_years", 1095, 2190,
        "Added risk of coronary heart disease drops by about half by 3-6 years.",
    ),
    HealthStage(
        "5_to_10_years", 2190, 3650,
        "Risk of stroke decreases; mouth/throat/larynx cancer risk is cut about in half.",
    ),
    HealthStage("10years", 3650, 5475, "Risk of dying from lung cancer is about half that of a current smoker."),
    HealthStage("15years", 5475, 5475, "Risk of coronary heart disease approaches that of a nonsmoker."),
]

_STAGE_RANKS = {stage.id: rank for rank, stage in enumerate(HEALTH_STAGES)}


def stage_rank(stage_id: str) -> int:
    """
    Get the ordinal position of a named stage.

    Raises:
        KeyError: If the stage id is unknown
    """
    return _STAGE_RANKS[stage_id]


def get_health_stage_rank(days: int) -> int:
    """Ordinal of the latest stage reached after `days` smoke-free days."""
    rank = 0
    for i, stage in enumerate(HEALTH_STAGES):
        if days >= stage.start:
            rank = i
    return rank


def get_health_stage(days: int) -> dict:
    """
    Get the current recovery stage and progress toward the next one.

    Args:
        days: Smoke-free days (negative values count as 0)

    Returns:
        Dictionary with id, text, rank and percent (0-100)
    """
    days = max(0, days)
    rank = get_health_stage_rank(days)
    stage = HEALTH_STAGES[rank]

    end = max(stage.next, stage.start + 1)
    if days >= end:
        percent = 100
    else:
        percent = round((days - stage.start) / (end - stage.start) * 100)

    return {
        "id": stage.id,
        "text": stage.text,
        "rank": rank,
        "percent": max(0, min(100, percent)),
    }
