"""
Achievement evaluation.

Call AchievementEngine.evaluate() after any meaningful user action (saving a
log, sending a coach message, finishing a challenge, playing audio). It is
safe to call repeatedly and concurrently: nothing is written before the
unlock step, and unlocking is idempotent.
"""

import logging

from smokefree.achievements import CONDITIONS, get_all_achievements_status
from smokefree.metrics_aggregator import aggregate_metrics
from smokefree.notifications import PushClient
from smokefree.storage import PermissionDeniedError, StorageError, TrackerStorage
from smokefree.unlock_manager import UnlockManager

logger = logging.getLogger(__name__)


class AchievementEngine:
    """Evaluates the condition table for a user and unlocks what is newly met."""

    def __init__(
        self,
        storage: TrackerStorage | None = None,
        unlock_manager: UnlockManager | None = None,
        push_client: PushClient | None = None,
    ):
        """
        Initialize the engine.

        Args:
            storage: TrackerStorage instance. Creates default if not provided.
            unlock_manager: UnlockManager to use. Built from storage and
                push_client if not provided.
            push_client: Optional push service client for unlock notifications
        """
        self.storage = storage or TrackerStorage()
        self.unlock_manager = unlock_manager or UnlockManager(self.storage, push_client)

    def evaluate(self, user_id: str, today: str | None = None) -> list[str]:
        """
        Unlock every achievement whose condition is newly met.

        Metrics are read once into a snapshot shared by all conditions. If the
        user loses access part-way through, the pass stops quietly.

        Args:
            user_id: User to evaluate
            today: Override today's date for testing (YYYY-MM-DD format)

        Returns:
            IDs unlocked by this call, in condition order

        Raises:
            StorageError: If reading the metrics fails
        """
        if not user_id:
            return []

        try:
            snapshot = aggregate_metrics(self.storage, user_id, today)
            unlocked_ids = {r["id"] for r in self.storage.get_unlocked_achievements(user_id)}
        except PermissionDeniedError as e:
            logger.debug("Stopping evaluation for %s, access revoked: %s", user_id, e)
            return []

        newly_unlocked = []
        for achievement_id, predicate in CONDITIONS:
            if achievement_id in unlocked_ids or not predicate(snapshot):
                continue

            try:
                result = self.unlock_manager.unlock(user_id, achievement_id)
            except PermissionDeniedError as e:
                logger.debug("Stopping evaluation for %s, access revoked: %s", user_id, e)
                return newly_unlocked
            except StorageError as e:
                logger.warning("Unlocking %s for %s failed: %s", achievement_id, user_id, e)
                continue

            if result["unlocked"]:
                newly_unlocked.append(achievement_id)

        return newly_unlocked

    def is_unlocked(self, user_id: str, achievement_id: str) -> bool:
        """Check whether an achievement is unlocked for a user."""
        return self.storage.get_unlock(user_id, achievement_id) is not None

    def mark_seen(self, user_id: str, achievement_id: str) -> bool:
        """
        Mark an unlocked achievement as seen.

        Returns:
            False if the achievement isn't unlocked (nothing is created)
        """
        return self.storage.mark_unlock_seen(user_id, achievement_id)

    def get_unlocked_achievements(self, user_id: str, limit: int | None = None) -> list[dict]:
        """Unlock records for a user, most recent first."""
        return self.storage.get_unlocked_achievements(user_id, limit)

    def get_achievements_status(self, user_id: str) -> list[dict]:
        """The full catalog with each achievement's unlock status."""
        return get_all_achievements_status(self.storage.get_unlocked_achievements(user_id))
