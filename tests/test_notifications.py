"""
Tests for the push client and notification dispatch.
"""

import tempfile
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import requests

from smokefree.notifications import (
    NotificationError,
    PushClient,
    achievement_notification_body,
    create_and_push_notification,
)
from smokefree.storage import TrackerStorage


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


@pytest.fixture
def client():
    """Create a PushClient instance for testing."""
    return PushClient("https://push.example.org/api/", "test_token")


def _response(status_code=200, json_data=None):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.text = "error body"
    response.json.return_value = json_data or {}
    return response


class TestPushClientInit:
    """Tests for PushClient initialization."""

    def test_sets_auth_header(self, client):
        assert client.session.headers["Authorization"] == "Bearer test_token"
        assert client.session.headers["Content-Type"] == "application/json"

    def test_strips_trailing_slash(self, client):
        assert client.base_url == "https://push.example.org/api"


class TestNotifyAchievementUnlocked:
    """Tests for notify_achievement_unlocked method."""

    @patch("requests.Session.post")
    def test_posts_badge_payload(self, mock_post, client):
        mock_post.return_value = _response(json_data={"ok": True})

        result = client.notify_achievement_unlocked("u1", "streak30", "30-Day Streak")

        assert result == {"ok": True}
        mock_post.assert_called_once_with(
            "https://push.example.org/api/push/badge-unlocked",
            json={"userId": "u1", "badgeId": "streak30", "badgeName": "30-Day Streak"},
            timeout=10.0,
        )

    @patch("requests.Session.post")
    def test_auth_error(self, mock_post, client):
        mock_post.return_value = _response(401)

        with pytest.raises(NotificationError, match="Authentication failed"):
            client.notify_achievement_unlocked("u1", "streak30", "30-Day Streak")

    @patch("requests.Session.post")
    def test_server_error(self, mock_post, client):
        mock_post.return_value = _response(500)

        with pytest.raises(NotificationError, match="500"):
            client.notify_achievement_unlocked("u1", "streak30", "30-Day Streak")

    @patch("requests.Session.post")
    def test_unreachable(self, mock_post, client):
        mock_post.side_effect = requests.ConnectionError("connection refused")

        with pytest.raises(NotificationError, match="unreachable"):
            client.notify_achievement_unlocked("u1", "streak30", "30-Day Streak")

    @patch("requests.Session.post")
    def test_empty_body_is_ok(self, mock_post, client):
        response = _response(204)
        response.json.side_effect = ValueError("no body")
        mock_post.return_value = response

        assert client.notify_achievement_unlocked("u1", "streak30", "") == {}


class TestSendPush:
    """Tests for send_push and register_device."""

    @patch("requests.Session.post")
    def test_stringifies_data(self, mock_post, client):
        mock_post.return_value = _response()

        client.send_push("u1", "Title", "Body", {"notificationId": 7})

        payload = mock_post.call_args.kwargs["json"]
        assert payload["data"] == {"notificationId": "7"}
        assert mock_post.call_args.args[0] == "https://push.example.org/api/push/send"

    @patch("requests.Session.post")
    def test_register_device(self, mock_post, client):
        mock_post.return_value = _response()

        client.register_device("u1", "device-token", "ios")

        assert mock_post.call_args.kwargs["json"] == {
            "userId": "u1",
            "token": "device-token",
            "platform": "ios",
        }


class TestCreateAndPushNotification:
    """Tests for create_and_push_notification function."""

    def test_stores_without_client(self, storage):
        notification_id = create_and_push_notification(storage, "u1", "Hello", "World")

        assert storage.list_notifications("u1")[0]["id"] == notification_id

    def test_pushes_with_notification_id(self, storage):
        push_client = MagicMock(spec=PushClient)

        notification_id = create_and_push_notification(
            storage, "u1", "Hello", "World", type="tip", data={"k": "v"}, push_client=push_client
        )

        push_client.send_push.assert_called_once_with(
            "u1", "Hello", "World", {"type": "tip", "k": "v", "notificationId": notification_id}
        )

    def test_push_failure_keeps_card(self, storage):
        push_client = MagicMock(spec=PushClient)
        push_client.send_push.side_effect = NotificationError("unreachable")

        create_and_push_notification(storage, "u1", "Hello", push_client=push_client)

        assert storage.count_unread_notifications("u1") == 1

    def test_send_push_false(self, storage):
        push_client = MagicMock(spec=PushClient)

        create_and_push_notification(storage, "u1", "Hello", push_client=push_client, send_push=False)

        push_client.send_push.assert_not_called()


def test_achievement_notification_body():
    assert achievement_notification_body("30-Day Streak") == "You unlocked: 30-Day Streak"
    assert achievement_notification_body("") == "You unlocked a badge 🎉"
    assert achievement_notification_body(None) == "You unlocked a badge 🎉"
