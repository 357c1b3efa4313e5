"""
Achievement catalog and unlock conditions.

Each achievement carries a pure predicate over a MetricSnapshot. The list
order is the order conditions are evaluated in, which is also the order
notifications go out when several unlock at once.
"""

from dataclasses import dataclass
from typing import Callable

from smokefree.health_milestones import stage_rank
from smokefree.metrics_aggregator import MetricSnapshot

Predicate = Callable[[MetricSnapshot], bool]


@dataclass(frozen=True)
class Achievement:
    """Represents an achievement that can be unlocked."""

    id: str
    name: str
    description: str
    category: str
    image: str
    check: Predicate
    threshold: int | None = None  # The value needed to unlock, for count-based badges

    def is_met(self, snapshot: MetricSnapshot) -> bool:
        return bool(self.check(snapshot))


def _at_least(metric: str, threshold: int) -> Predicate:
    return lambda snapshot: getattr(snapshot, metric) >= threshold


def _ranked(metric: str, position: int) -> Predicate:
    return lambda snapshot: snapshot.leaderboard_rank(metric) == position


def _reached_stage(stage_id: str) -> Predicate:
    rank = stage_rank(stage_id)
    return lambda snapshot: snapshot.health_stage_rank >= rank


def _counted(id, name, description, category, image, metric, threshold) -> Achievement:
    return Achievement(
        id=id,
        name=name,
        description=description,
        category=category,
        image=image,
        check=_at_least(metric, threshold),
        threshold=threshold,
    )


WELCOME_ACHIEVEMENTS = [
    Achievement(
        id="welcome",
        name="Welcome to the Club",
        description="Thanks for joining. Small steps, daily wins. We're with you.",
        category="welcome",
        image="/badges/badgeNoSmoking.png",
        check=lambda snapshot: snapshot.has_profile,
    ),
]

# Streak-based achievements (days smoke-free)
_STREAK_DESCRIPTIONS = {
    1: "Your first full day smoke-free. A small step that changes everything.",
    2: "Momentum is building: two days of consistent progress.",
    3: "Cravings come and go. You stayed steady for three days, nice work.",
    5: "Five days! Your body is already thanking you and your confidence shows.",
    10: "Double digits. You're proving to yourself that this is possible.",
    20: "Three weeks of wins. Fewer triggers, more control.",
    30: "One month smoke-free. Your new normal is taking shape.",
    50: "Fifty days of choosing you over urges. Serious consistency.",
    75: "Seventy-five days! You've built a strong, resilient habit loop.",
    100: "100 days, triple digits! You've come a long way, keep cruising.",
    200: "Two hundred days. Your health, energy, and focus are paying dividends.",
    365: "One year smoke-free. A milestone worth celebrating big.",
    500: "Five hundred days of commitment. You're an inspiration.",
    600: "Six hundred days. Deep roots, steady growth. Remarkable.",
    700: "Seven hundred days. You've rewritten your story.",
    800: "Eight hundred days. Your consistency is elite.",
    900: "Nine hundred days. Nearly a thousand and still going strong.",
    1000: "A thousand days. A legacy milestone and a powerful example.",
}

STREAK_ACHIEVEMENTS = [
    _counted(
        f"streak{days}",
        f"{days}-Day Streak",
        description,
        "streak",
        f"/badges/badge{days}.png",
        "streak_days",
        days,
    )
    for days, description in _STREAK_DESCRIPTIONS.items()
]

LOG_ACHIEVEMENTS = [
    _counted(
        "log", "Make 10 Daily Logs",
        "Ten check-ins completed. Tracking is how progress compounds.",
        "logs", "/badges/badgeLog.png", "daily_log_count", 10,
    ),
    _counted(
        "log2", "Make 30 Daily Logs",
        "Thirty reflections. Clear patterns, better decisions.",
        "logs", "/badges/badgeLog2.png", "daily_log_count", 30,
    ),
    _counted(
        "log3", "Make 100 Daily Logs",
        "One hundred logs. Your data tells a story of growth.",
        "logs", "/badges/badgeLog3.png", "daily_log_count", 100,
    ),
]

AI_ACHIEVEMENTS = [
    _counted(
        "ai1", "10 AI Coach Messages",
        "You've asked for help 10 times. Reaching out is a strength.",
        "ai", "/badges/badgeAI.png", "ai_message_count", 10,
    ),
    _counted(
        "ai2", "30 AI Coach Messages",
        "30 conversations with your coach. Reflective and proactive.",
        "ai", "/badges/badgeAI2.png", "ai_message_count", 30,
    ),
    _counted(
        "ai3", "100 AI Coach Messages",
        "100 coaching messages. Consistent support and learning.",
        "ai", "/badges/badgeAI3.png", "ai_message_count", 100,
    ),
]

HYPNOSIS_ACHIEVEMENTS = [
    _counted(
        "hypnosis1", "Listen to 2 Hypnosis Sessions",
        "Two guided sessions completed. Reset, relax, rewire.",
        "hypnosis", "/badges/badgeHypnosis.png", "audio_session_count", 2,
    ),
    _counted(
        "hypnosis2", "Listen to 6 Hypnosis Sessions",
        "Six listens. Deeper calm, easier cravings, steadier days.",
        "hypnosis", "/badges/badgeHypnosis2.png", "audio_session_count", 6,
    ),
    _counted(
        "hypnosis3", "Listen to 10 Hypnosis Sessions",
        "Ten sessions. You're making calm a practice.",
        "hypnosis", "/badges/badgeHypnosis3.png", "audio_session_count", 10,
    ),
]

SAVINGS_ACHIEVEMENTS = [
    _counted(
        "saving", "€100 Saved",
        "You've already saved €100 by staying smoke-free.",
        "savings", "/badges/badgeMoney.png", "savings_amount", 100,
    ),
    _counted(
        "saving2", "€500 Saved",
        "€500 saved. Your wallet and future self are smiling.",
        "savings", "/badges/badgeMoney2.png", "savings_amount", 500,
    ),
    _counted(
        "saving3", "€1000 Saved",
        "€1000 saved. That's real freedom you've created.",
        "savings", "/badges/badgeMoney3.png", "savings_amount", 1000,
    ),
]

_LEADERBOARD_LABELS = {
    "points": "Points",
    "streak": "Streak",
    "saved": "Saved",
}
_LEADERBOARD_IMAGES = {
    1: "/badges/badgeLeaderboard.png",
    2: "/badges/badgeLeaderboard2.png",
    3: "/badges/badgeLeaderboard3.png",
}

LEADERBOARD_ACHIEVEMENTS = [
    Achievement(
        id=f"leader_{metric}_{position}",
        name=f"Leaderboard #{position} ({label})",
        description=(
            f"Ranked #1 on the community leaderboard ({label} filter)."
            if position == 1
            else f"Top-{position} on the community leaderboard ({label} filter)."
        ),
        category="leaderboard",
        image=_LEADERBOARD_IMAGES[position],
        check=_ranked(metric, position),
    )
    for metric, label in _LEADERBOARD_LABELS.items()
    for position in (1, 2, 3)
]

CHALLENGE_ACHIEVEMENTS = [
    _counted(
        "challenge30", "Complete 30 Challenges",
        "Thirty challenges completed. You show up, even on tough days.",
        "challenges", "/badges/badgeChallenge.png", "completed_challenge_count", 30,
    ),
    _counted(
        "challenge60", "Complete 60 Challenges",
        "Sixty challenges done. Structure and effort are paying off.",
        "challenges", "/badges/badgeChallenge2.png", "completed_challenge_count", 60,
    ),
    _counted(
        "challenge90", "Complete 90 Challenges",
        "Ninety challenges. Discipline, consistency, and growth.",
        "challenges", "/badges/badgeChallenge3.png", "completed_challenge_count", 90,
    ),
]

HEALTH_ACHIEVEMENTS = [
    Achievement(
        id="health",
        name="Health Milestone: 2-12 Weeks",
        description="Circulation improves; early gains in lung function.",
        category="health",
        image="/badges/badgeHealth.png",
        check=_reached_stage("wk2_to_wk12"),
    ),
    Achievement(
        id="health2",
        name="Health Milestone: 1 Month",
        description="Cilia recover and airways clear mucus better.",
        category="health",
        image="/badges/badgeHealth2.png",
        check=_reached_stage("mo1"),
    ),
    Achievement(
        id="health3",
        name="Health Milestone: 6 Months",
        description="Cough and phlegm often decrease as lungs heal.",
        category="health",
        image="/badges/badgeHealth3.png",
        check=_reached_stage("mo6"),
    ),
]

# Combined list of all achievements, in evaluation order
ACHIEVEMENTS = (
    WELCOME_ACHIEVEMENTS
    + STREAK_ACHIEVEMENTS
    + LOG_ACHIEVEMENTS
    + AI_ACHIEVEMENTS
    + HYPNOSIS_ACHIEVEMENTS
    + SAVINGS_ACHIEVEMENTS
    + LEADERBOARD_ACHIEVEMENTS
    + CHALLENGE_ACHIEVEMENTS
    + HEALTH_ACHIEVEMENTS
)

# The condition table: (achievement id, predicate) in evaluation order
CONDITIONS: list[tuple[str, Predicate]] = [(a.id, a.check) for a in ACHIEVEMENTS]

_BY_ID = {a.id: a for a in ACHIEVEMENTS}


def get_achievement(achievement_id: str) -> Achievement | None:
    """Look up an achievement by id."""
    return _BY_ID.get(achievement_id)


def check_achievements(
    snapshot: MetricSnapshot,
    unlocked_ids: set[str],
) -> list[Achievement]:
    """
    Check for newly met achievements.

    Args:
        snapshot: Metrics for the user
        unlocked_ids: Set of already unlocked achievement IDs

    Returns:
        List of met, still-locked Achievement objects in evaluation order
    """
    return [
        achievement
        for achievement in ACHIEVEMENTS
        if achievement.id not in unlocked_ids and achievement.is_met(snapshot)
    ]


def get_all_achievements_status(
    unlocked_achievements: list[dict],
) -> list[dict]:
    """
    Get all achievements with their unlock status.

    Args:
        unlocked_achievements: List of unlock records from storage
            Each record has: id, unlocked_at, seen

    Returns:
        List of all achievements with unlock status, in catalog order
    """
    unlocked_lookup = {a["id"]: a for a in unlocked_achievements}

    result = []
    for achievement in ACHIEVEMENTS:
        unlocked_record = unlocked_lookup.get(achievement.id)
        result.append({
            "id": achievement.id,
            "name": achievement.name,
            "description": achievement.description,
            "category": achievement.category,
            "image": achievement.image,
            "threshold": achievement.threshold,
            "unlocked": unlocked_record is not None,
            "unlocked_at": unlocked_record["unlocked_at"] if unlocked_record else None,
            "seen": bool(unlocked_record.get("seen")) if unlocked_record else False,
        })

    return result
