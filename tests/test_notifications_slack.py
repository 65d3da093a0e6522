from unittest.mock import MagicMock, patch

import httpx

from src.notifications.slack import SlackSender


def _mock_client(response=None, error=None):
    mock_client = MagicMock()
    mock_client.__enter__ = MagicMock(return_value=mock_client)
    mock_client.__exit__ = MagicMock(return_value=False)
    if error is not None:
        mock_client.request.side_effect = error
    else:
        mock_client.request.return_value = response
    return mock_client


def _ok_response(payload):
    mock_response = MagicMock()
    mock_response.status_code = 200
    mock_response.raise_for_status = MagicMock()
    mock_response.json.return_value = payload
    return mock_response


class TestSlackSender:
    @patch("src.notifications.slack.get_settings")
    def test_is_configured_true(self, mock_settings):
        mock_settings.return_value = MagicMock(slack_bot_token="xoxb-123")
        assert SlackSender.is_configured() is True

    @patch("src.notifications.slack.get_settings")
    def test_is_configured_false(self, mock_settings):
        mock_settings.return_value = MagicMock(slack_bot_token="")
        assert SlackSender.is_configured() is False

    @patch("src.notifications.slack.get_settings")
    def test_token_from_settings(self, mock_settings):
        mock_settings.return_value = MagicMock(slack_bot_token="xoxb-123")
        assert SlackSender().bot_token == "xoxb-123"

    def test_send_success(self):
        sender = SlackSender(bot_token="xoxb-123")
        mock_client = _mock_client(_ok_response({"ok": True, "ts": "1.0"}))

        with patch("httpx.Client", return_value=mock_client):
            result = sender.send("C1", "hello")

        assert result is True
        call_args = mock_client.request.call_args
        assert call_args.args == ("POST", "https://slack.com/api/chat.postMessage")
        assert call_args.kwargs["json"] == {"channel": "C1", "text": "hello"}
        assert call_args.kwargs["headers"]["Authorization"] == "Bearer xoxb-123"

    def test_send_api_error(self):
        sender = SlackSender(bot_token="xoxb-123")
        mock_client = _mock_client(_ok_response({"ok": False, "error": "channel_not_found"}))

        with patch("httpx.Client", return_value=mock_client):
            assert sender.send("C404", "hello") is False

    def test_send_http_error(self):
        sender = SlackSender(bot_token="xoxb-123")
        mock_response = MagicMock()
        mock_response.status_code = 500
        mock_response.text = "Internal Server Error"
        mock_response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "Server Error", request=MagicMock(), response=mock_response
        )
        mock_client = _mock_client(mock_response)

        with patch("httpx.Client", return_value=mock_client):
            assert sender.send("C1", "hello") is False

    def test_send_network_error(self):
        sender = SlackSender(bot_token="xoxb-123")
        mock_client = _mock_client(error=httpx.ConnectError("Connection refused"))

        with patch("httpx.Client", return_value=mock_client):
            assert sender.send("C1", "hello") is False


class TestGetUserInfo:
    def test_returns_user(self):
        sender = SlackSender(bot_token="xoxb-123")
        user = {"id": "U1", "name": "alice", "profile": {"real_name": "Alice"}}
        mock_client = _mock_client(_ok_response({"ok": True, "user": user}))

        with patch("httpx.Client", return_value=mock_client):
            assert sender.get_user_info("U1") == user

        call_args = mock_client.request.call_args
        assert call_args.args == ("GET", "https://slack.com/api/users.info")
        assert call_args.kwargs["params"] == {"user": "U1"}

    def test_unknown_user(self):
        sender = SlackSender(bot_token="xoxb-123")
        mock_client = _mock_client(_ok_response({"ok": False, "error": "user_not_found"}))

        with patch("httpx.Client", return_value=mock_client):
            assert sender.get_user_info("U404") is None

    def test_network_error(self):
        sender = SlackSender(bot_token="xoxb-123")
        mock_client = _mock_client(error=httpx.ReadTimeout("timed out"))

        with patch("httpx.Client", return_value=mock_client):
            assert sender.get_user_info("U1") is None
