"""
Notification dispatch: in-app notification records and the push service client.

The push service stores the notification card server-side and fans the push
out to the user's registered devices. When it can't be reached, a card is
stored locally instead.
"""

import logging

import requests

from smokefree.storage import TrackerStorage

logger = logging.getLogger(__name__)

ACHIEVEMENT_NOTIFICATION_TYPE = "badge_unlocked"
ACHIEVEMENT_NOTIFICATION_TITLE = "New badge unlocked!"


class NotificationError(Exception):
    """Raised when the push service rejects or fails a request."""

    pass


def achievement_notification_body(achievement_name: str | None) -> str:
    """User-facing text for an unlocked achievement."""
    if achievement_name:
        return f"You unlocked: {achievement_name}"
    return "You unlocked a badge 🎉"


class PushClient:
    """Client for the push notification service."""

    def __init__(self, base_url: str, token: str, timeout: float = 10.0):
        """
        Initialize the push client.

        Args:
            base_url: Push API base URL, e.g. https://example.org/api
            token: Bearer token the service accepts
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            }
        )

    def _post(self, path: str, payload: dict) -> dict:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.post(url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise NotificationError(f"Push service unreachable: {e}") from e

        if response.status_code == 401:
            raise NotificationError(
                "Authentication failed. Check your PUSH_API_TOKEN is valid."
            )
        elif not response.ok:
            raise NotificationError(
                f"Push service error: {response.status_code} - {response.text}"
            )

        try:
            return response.json()
        except ValueError:
            return {}

    def notify_achievement_unlocked(
        self, user_id: str, achievement_id: str, title: str
    ) -> dict:
        """
        Ask the push service to store and push an achievement notification.

        Raises:
            NotificationError: If the request fails
        """
        return self._post(
            "/push/badge-unlocked",
            {
                "userId": str(user_id),
                "badgeId": str(achievement_id or ""),
                "badgeName": str(title or ""),
            },
        )

    def send_push(
        self, user_id: str, title: str, body: str = "", data: dict | None = None
    ) -> dict:
        """
        Push a message to every device registered for the user.

        Raises:
            NotificationError: If the request fails
        """
        return self._post(
            "/push/send",
            {
                "userId": str(user_id),
                "title": title,
                "body": body,
                "data": {k: str(v) for k, v in (data or {}).items()},
            },
        )

    def register_device(self, user_id: str, token: str, platform: str = "android") -> dict:
        """
        Register a device push token for the user.

        Raises:
            NotificationError: If the request fails
        """
        return self._post(
            "/push/register",
            {"userId": str(user_id), "token": token, "platform": platform},
        )


def create_and_push_notification(
    storage: TrackerStorage,
    user_id: str,
    title: str,
    body: str = "",
    type: str = "generic",
    data: dict | None = None,
    push_client: PushClient | None = None,
    send_push: bool = True,
) -> int:
    """
    Store an in-app notification and best-effort push it.

    A failed push is logged; the stored card stays.

    Returns:
        The stored notification id
    """
    data = data or {}
    notification_id = storage.create_notification(user_id, title, body, type, data)

    if send_push and push_client is not None:
        try:
            push_client.send_push(
                user_id,
                title,
                body,
                {"type": type, **data, "notificationId": notification_id},
            )
        except NotificationError as e:
            logger.warning("Push for notification %s failed: %s", notification_id, e)

    return notification_id
