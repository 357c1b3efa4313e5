"""
smokefree: A gamified smoking-cessation tracker

Console entry point: shows a user's streak and unlocks any achievements
they have earned since the last evaluation.

Usage: python -m smokefree.main USER_ID [YYYY-MM-DD]
"""

import sys

from smokefree.achievements import get_achievement
from smokefree.config import (
    PUSH_API_BASE,
    PUSH_API_TOKEN,
    configure_logging,
    is_push_configured,
)
from smokefree.engine import AchievementEngine
from smokefree.health_milestones import get_health_stage
from smokefree.notifications import PushClient
from smokefree.storage import StorageError, TrackerStorage
from smokefree.streak_calculator import compute_streak, get_quit_mode, streak_anchor


def get_milestone_message(streak_days: int) -> str | None:
    """
    Get milestone message for a given streak length.

    Args:
        streak_days: Current streak in days

    Returns:
        Milestone message string or None if no milestone
    """
    milestones = {
        7: "One week smoke-free!",
        30: "One month smoke-free!",
        100: "100 days - legendary!",
        365: "One year smoke-free!",
    }
    return milestones.get(streak_days)


def display_streak(streak_info: dict, quit_mode: dict) -> None:
    """Print the streak (or the countdown to the quit date)."""
    if quit_mode["mode"] == "countdown":
        days = quit_mode["days_until"]
        print(f"⏳ {days} day{'s' if days != 1 else ''} until your quit date ({quit_mode['target_date']})")
        return
    if quit_mode["mode"] == "unknown":
        print("No quit date set yet.")
        return

    current = streak_info["current_streak_days"]
    print(f"🚭 Smoke-free streak: {current} day{'s' if current != 1 else ''}")
    print(f"   Since: {streak_info['streak_start_date']}")
    if streak_info["last_slip_date"]:
        print(f"   Last slip: {streak_info['last_slip_date']}")

    stage = get_health_stage(current)
    print(f"   Health: {stage['text']} ({stage['percent']}% to next milestone)")

    milestone = get_milestone_message(current)
    if milestone:
        print(f"   🎉 {milestone}")


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if not args:
        print("Usage: python -m smokefree.main USER_ID [YYYY-MM-DD]")
        return 2

    configure_logging()
    user_id = args[0]
    today = args[1] if len(args) > 1 else None

    print("smokefree - Track your smoke-free streak!")
    print("-" * 50)

    push_client = PushClient(PUSH_API_BASE, PUSH_API_TOKEN) if is_push_configured() else None

    try:
        storage = TrackerStorage()
        profile = storage.get_profile(user_id)
        if profile is None:
            print(f"\nNo profile found for {user_id}.")
            return 1

        streak_info = compute_streak(storage, user_id, streak_anchor(profile), today)
        display_streak(streak_info, get_quit_mode(profile, today))

        engine = AchievementEngine(storage, push_client=push_client)
        newly_unlocked = engine.evaluate(user_id, today)
    except StorageError as e:
        print(f"\nError: {e}")
        return 1

    if newly_unlocked:
        print(f"\nUnlocked {len(newly_unlocked)} new achievement(s):")
        for achievement_id in newly_unlocked:
            achievement = get_achievement(achievement_id)
            print(f"  🏅 {achievement.name if achievement else achievement_id}")
    else:
        print("\nNo new achievements this time.")

    return 0


if __name__ == "__main__":
    sys.exit(main())
