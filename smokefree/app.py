"""
FastAPI web application for smokefree.

Provides REST API endpoints for daily logs, profile, streak, metrics,
challenges, achievements and notifications. Every action endpoint re-runs
achievement evaluation afterwards and reports what it unlocked.
"""

import logging
from datetime import datetime
from typing import Literal

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from smokefree.config import PUSH_API_BASE, PUSH_API_TOKEN, is_push_configured
from smokefree.daily_log import DailyLogValidationError, refresh_streak_cache, save_daily_log
from smokefree.engine import AchievementEngine
from smokefree.health_milestones import get_health_stage
from smokefree.leaderboard import get_leaderboard, publish_leaderboard_row
from smokefree.metrics_aggregator import aggregate_metrics
from smokefree.notifications import PushClient
from smokefree.savings import calculate_cigarettes_avoided, calculate_life_years_regained
from smokefree.storage import (
    ChallengeNotFoundError,
    ChallengeOwnershipError,
    StorageError,
    TrackerStorage,
)
from smokefree.streak_calculator import compute_streak, get_quit_mode, streak_anchor

logger = logging.getLogger(__name__)

app = FastAPI(
    title="smokefree",
    description="A gamified smoking-cessation tracker",
    version="0.1.0",
)

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class ProfileUpdate(BaseModel):
    """Request model for updating a profile."""

    display_name: str | None = Field(None, max_length=100)
    username: str | None = Field(None, max_length=24)
    email: str | None = Field(None, max_length=320)
    photo_url: str | None = Field(None, max_length=2000)
    quit_date: str | None = Field(None, pattern=DATE_PATTERN, description="YYYY-MM-DD")
    target_quit_date: str | None = Field(None, pattern=DATE_PATTERN, description="YYYY-MM-DD")
    date_mode: Literal["quit", "target"] | None = None
    cigarettes_per_day_before: float | None = Field(None, ge=0)
    cost_per_pack: float | None = Field(None, ge=0)
    cigarettes_per_pack: float | None = Field(None, ge=0)


class DailyLogCreate(BaseModel):
    """Request model for saving a day's log."""

    cigarettes_smoked: int = Field(0, ge=0, description="Cigarettes smoked that day")
    smoke_free: bool | None = Field(None, description="Ignored; derived from cigarettes_smoked")
    cravings_count: int = Field(0, ge=0)
    mood_rating: int | None = Field(None, ge=1, le=5)
    stress_level: int | None = Field(None, ge=1, le=5)
    notes: str = Field("", max_length=2000)
    triggers_faced: list[str] = Field(default_factory=list)


class CounterIncrement(BaseModel):
    """Request model for bumping a usage counter."""

    delta: int = Field(1, ge=1, le=100)


class ChallengeCreate(BaseModel):
    """Request model for creating a challenge."""

    title: str = Field(..., min_length=1, max_length=500)
    points: int = Field(0, ge=0, le=10000)


class ChallengeComplete(BaseModel):
    """Request model for completing a challenge."""

    points: int | None = Field(None, ge=0, le=10000, description="Used if the challenge has none")


class NotificationsRead(BaseModel):
    """Request model for marking notifications read."""

    notification_id: int | None = Field(None, description="Mark only this one; all if omitted")


def _get_storage() -> TrackerStorage:
    try:
        return TrackerStorage()
    except StorageError as e:
        raise HTTPException(status_code=503, detail=f"Storage unavailable: {e}")


def _get_engine(storage: TrackerStorage) -> AchievementEngine:
    push_client = None
    if is_push_configured():
        push_client = PushClient(PUSH_API_BASE, PUSH_API_TOKEN)
    return AchievementEngine(storage, push_client=push_client)


def _today(today: str | None) -> str:
    return today or datetime.now().strftime("%Y-%m-%d")


def _after_action(storage: TrackerStorage, user_id: str, today: str) -> list[str]:
    """
    Refresh the leaderboard row and evaluate achievements.

    Best-effort: failures are logged and reported as nothing unlocked.
    """
    try:
        publish_leaderboard_row(storage, user_id, today)
        return _get_engine(storage).evaluate(user_id, today)
    except StorageError as e:
        logger.warning("Post-action refresh for %s failed: %s", user_id, e)
        return []


@app.exception_handler(StorageError)
def storage_error_handler(request: Request, exc: StorageError):
    """Report database failures as 503 so clients can retry."""
    logger.error("Storage error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": f"Storage error: {exc}"})


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/api/users/{user_id}/profile")
def get_profile(user_id: str, today: str | None = Query(None, pattern=DATE_PATTERN)):
    """Get a profile with its quit mode."""
    storage = _get_storage()
    profile = storage.get_profile(user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail=f"No profile for {user_id}")
    return {"profile": profile, "quit_mode": get_quit_mode(profile, _today(today))}


@app.put("/api/users/{user_id}/profile")
def update_profile(
    user_id: str,
    update: ProfileUpdate,
    today: str | None = Query(None, pattern=DATE_PATTERN),
):
    """
    Update profile fields.

    Changing the quit date recomputes the cached streak.
    """
    today = _today(today)
    storage = _get_storage()
    data = update.model_dump(exclude_unset=True)

    profile = storage.update_profile(user_id, data)
    if "quit_date" in data or "target_quit_date" in data:
        refresh_streak_cache(storage, user_id, today)
        profile = storage.get_profile(user_id)

    return {"profile": profile, "newly_unlocked": _after_action(storage, user_id, today)}


@app.put("/api/users/{user_id}/logs/{date}")
def save_log(
    user_id: str,
    date: str,
    log: DailyLogCreate,
    today: str | None = Query(None, pattern=DATE_PATTERN),
):
    """Save the log for a day (any past day may be edited)."""
    today = _today(today)
    storage = _get_storage()
    try:
        result = save_daily_log(storage, user_id, date, log.model_dump(), today)
    except DailyLogValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    result["newly_unlocked"] = _after_action(storage, user_id, today)
    return result


@app.get("/api/users/{user_id}/logs")
def list_logs(
    user_id: str,
    from_date: str | None = Query(None, alias="from", pattern=DATE_PATTERN),
    to_date: str | None = Query(None, alias="to", pattern=DATE_PATTERN),
):
    """List logs in a date range, oldest first."""
    storage = _get_storage()
    return {"logs": storage.list_daily_logs(user_id, from_date, to_date)}


@app.get("/api/users/{user_id}/streak")
def get_streak(user_id: str, today: str | None = Query(None, pattern=DATE_PATTERN)):
    """Compute the streak from the log history."""
    today = _today(today)
    storage = _get_storage()
    profile = storage.get_profile(user_id) or {}
    streak = compute_streak(storage, user_id, streak_anchor(profile), today)
    return {
        **streak,
        "quit_mode": get_quit_mode(profile, today),
        "health_stage": get_health_stage(streak["current_streak_days"]),
    }


@app.get("/api/users/{user_id}/metrics")
def get_metrics(user_id: str, today: str | None = Query(None, pattern=DATE_PATTERN)):
    """Get the metric snapshot achievements are evaluated against."""
    storage = _get_storage()
    snapshot = aggregate_metrics(storage, user_id, _today(today))
    profile = storage.get_profile(user_id) or {}
    return {
        **snapshot.to_dict(),
        "cigarettes_avoided": calculate_cigarettes_avoided(profile, snapshot.streak_days),
        "life_years_regained": calculate_life_years_regained(profile, snapshot.streak_days),
    }


@app.post("/api/users/{user_id}/ai-messages")
def record_ai_message(
    user_id: str,
    increment: CounterIncrement | None = None,
    today: str | None = Query(None, pattern=DATE_PATTERN),
):
    """Count a message sent to the AI coach."""
    storage = _get_storage()
    delta = increment.delta if increment else 1
    count = storage.increment_profile_counter(user_id, "ai_messages_count", delta)
    return {"ai_messages_count": count, "newly_unlocked": _after_action(storage, user_id, _today(today))}


@app.post("/api/users/{user_id}/audio-sessions")
def record_audio_session(
    user_id: str,
    increment: CounterIncrement | None = None,
    today: str | None = Query(None, pattern=DATE_PATTERN),
):
    """Count a hypnosis audio session played."""
    storage = _get_storage()
    delta = increment.delta if increment else 1
    count = storage.increment_profile_counter(user_id, "audio_sessions_count", delta)
    return {"audio_sessions_count": count, "newly_unlocked": _after_action(storage, user_id, _today(today))}


@app.post("/api/users/{user_id}/challenges", status_code=201)
def create_challenge(user_id: str, challenge: ChallengeCreate):
    """Create a challenge for a user."""
    storage = _get_storage()
    return storage.add_challenge(user_id, challenge.title, challenge.points)


@app.post("/api/users/{user_id}/challenges/{challenge_id}/complete")
def complete_challenge(
    user_id: str,
    challenge_id: int,
    body: ChallengeComplete | None = None,
    today: str | None = Query(None, pattern=DATE_PATTERN),
):
    """Complete a challenge; points are awarded only the first time."""
    storage = _get_storage()
    try:
        total = storage.complete_challenge(user_id, challenge_id, body.points if body else None)
    except ChallengeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ChallengeOwnershipError as e:
        raise HTTPException(status_code=403, detail=str(e))

    return {"total_points": total, "newly_unlocked": _after_action(storage, user_id, _today(today))}


@app.get("/api/users/{user_id}/achievements")
def get_achievements(user_id: str):
    """Get all achievements with unlock status."""
    storage = _get_storage()
    achievements = _get_engine(storage).get_achievements_status(user_id)
    return {
        "achievements": achievements,
        "unlocked_count": sum(1 for a in achievements if a["unlocked"]),
        "total_count": len(achievements),
    }


@app.post("/api/users/{user_id}/achievements/evaluate")
def evaluate_achievements(user_id: str, today: str | None = Query(None, pattern=DATE_PATTERN)):
    """Run achievement evaluation on demand (e.g. at app start)."""
    storage = _get_storage()
    return {"newly_unlocked": _after_action(storage, user_id, _today(today))}


@app.post("/api/users/{user_id}/achievements/{achievement_id}/seen")
def mark_achievement_seen(user_id: str, achievement_id: str):
    """Mark an unlocked achievement as seen."""
    storage = _get_storage()
    if not _get_engine(storage).mark_seen(user_id, achievement_id):
        raise HTTPException(
            status_code=404,
            detail=f"Achievement {achievement_id} is not unlocked for {user_id}",
        )
    return {"id": achievement_id, "seen": True}


@app.get("/api/users/{user_id}/notifications")
def get_notifications(user_id: str, limit: int = Query(100, ge=1, le=500)):
    """List notifications with the unread count."""
    storage = _get_storage()
    return {
        "notifications": storage.list_notifications(user_id, limit),
        "unread_count": storage.count_unread_notifications(user_id),
    }


@app.post("/api/users/{user_id}/notifications/read")
def read_notifications(user_id: str, body: NotificationsRead | None = None):
    """Mark one notification, or all of them, as read."""
    storage = _get_storage()
    if body and body.notification_id is not None:
        if not storage.mark_notification_read(user_id, body.notification_id):
            raise HTTPException(
                status_code=404,
                detail=f"Notification {body.notification_id} not found",
            )
        return {"marked": 1}
    return {"marked": storage.mark_all_notifications_read(user_id)}


@app.get("/api/leaderboard")
def leaderboard(
    field: Literal["points", "streak", "saved"] = "points",
    limit: int = Query(10, ge=1, le=100),
):
    """Get the top leaderboard rows for a metric."""
    storage = _get_storage()
    return {"field": field, "rows": get_leaderboard(storage, field, limit)}
