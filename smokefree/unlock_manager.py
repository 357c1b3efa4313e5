"""
Exactly-once achievement unlocks.

An achievement moves from locked to unlocked through
TrackerStorage.insert_unlock_if_absent() and nothing else. The in-flight set
below only saves a round-trip when the same process races itself; the
database transaction is what guarantees a single unlock record.
"""

import logging
import threading

from smokefree.achievements import get_achievement
from smokefree.notifications import (
    ACHIEVEMENT_NOTIFICATION_TITLE,
    ACHIEVEMENT_NOTIFICATION_TYPE,
    NotificationError,
    PushClient,
    achievement_notification_body,
    create_and_push_notification,
)
from smokefree.storage import StorageError, TrackerStorage

logger = logging.getLogger(__name__)


class UnlockManager:
    """Unlocks achievements idempotently and notifies the user once per unlock."""

    def __init__(self, storage: TrackerStorage, push_client: PushClient | None = None):
        """
        Initialize the unlock manager.

        Args:
            storage: TrackerStorage instance
            push_client: Push service client. Without one, only local
                notification cards are stored.
        """
        self.storage = storage
        self.push_client = push_client
        self._in_flight: set[tuple[str, str]] = set()
        self._in_flight_lock = threading.Lock()

    def unlock(self, user_id: str, achievement_id: str) -> dict:
        """
        Unlock an achievement unless it is already unlocked.

        Notification failures are logged and never undo the unlock.

        Args:
            user_id: Achievement owner
            achievement_id: Achievement to unlock

        Returns:
            Dictionary with:
            - unlocked: True if this call created the unlock
            - deduped: True if it was already unlocked or being unlocked

        Raises:
            StorageError: If the unlock transaction itself fails
        """
        if not user_id or not achievement_id:
            return {"unlocked": False, "deduped": False}

        key = (user_id, achievement_id)
        with self._in_flight_lock:
            if key in self._in_flight:
                return {"unlocked": False, "deduped": True}
            self._in_flight.add(key)

        try:
            if not self.storage.insert_unlock_if_absent(user_id, achievement_id):
                logger.debug("Achievement %s already unlocked for %s", achievement_id, user_id)
                return {"unlocked": False, "deduped": True}

            logger.info("Unlocked achievement %s for %s", achievement_id, user_id)
            self._notify(user_id, achievement_id)
            return {"unlocked": True, "deduped": False}
        finally:
            with self._in_flight_lock:
                self._in_flight.discard(key)

    def _notify(self, user_id: str, achievement_id: str) -> bool:
        """
        Tell the user about an unlock, falling back to a local card once.

        Returns:
            True if either path delivered
        """
        achievement = get_achievement(achievement_id)
        name = achievement.name if achievement else ""

        if self.push_client is not None:
            try:
                self.push_client.notify_achievement_unlocked(user_id, achievement_id, name)
                return True
            except NotificationError as e:
                logger.warning(
                    "Push service notification for %s failed, storing it locally: %s",
                    achievement_id,
                    e,
                )

        try:
            create_and_push_notification(
                self.storage,
                user_id,
                ACHIEVEMENT_NOTIFICATION_TITLE,
                achievement_notification_body(name),
                type=ACHIEVEMENT_NOTIFICATION_TYPE,
                data={"badgeId": achievement_id, "badgeName": name},
                send_push=False,
            )
        except StorageError as e:
            logger.warning("Local notification for %s failed: %s", achievement_id, e)
            return False
        return True
