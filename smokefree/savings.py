"""
Money and life-expectancy estimates from a user's former smoking habit.
"""

MINUTES_PER_CIGARETTE = 11
MINUTES_PER_YEAR = 60 * 24 * 365


def _positive(value) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if number > 0 else 0.0


def calculate_savings(profile: dict | None, streak_days: int) -> int:
    """
    Estimate money saved over a smoke-free streak, rounded half up to whole units.

    savings = streak_days * (cigarettes_per_day_before / cigarettes_per_pack) * cost_per_pack

    Returns 0 if any of the three profile fields is missing or not positive.
    """
    if not profile or streak_days <= 0:
        return 0

    per_day = _positive(profile.get("cigarettes_per_day_before"))
    per_pack = _positive(profile.get("cigarettes_per_pack"))
    cost = _positive(profile.get("cost_per_pack"))
    if not (per_day and per_pack and cost):
        return 0

    # Halves round up
    return int(streak_days * (per_day / per_pack) * cost + 0.5)


def calculate_cigarettes_avoided(profile: dict | None, streak_days: int) -> int:
    """Cigarettes not smoked over the streak."""
    if not profile or streak_days <= 0:
        return 0
    return int(_positive(profile.get("cigarettes_per_day_before")) * streak_days + 0.5)


def calculate_life_years_regained(profile: dict | None, streak_days: int) -> float:
    """Estimate life regained, at 11 minutes per avoided cigarette, in years."""
    avoided = calculate_cigarettes_avoided(profile, streak_days)
    return avoided * MINUTES_PER_CIGARETTE / MINUTES_PER_YEAR
