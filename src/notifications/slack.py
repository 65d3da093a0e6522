from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
from loguru import logger

from src.config import get_settings

SLACK_API_BASE = "https://slack.com/api"
SEND_MESSAGE_TIMEOUT = 10  # seconds


class SlackAPIError(Exception):
    """Slack answered HTTP 200 with ``"ok": false``."""


class SlackSender:
    """Send messages and look up users via the Slack Web API."""

    def __init__(self, bot_token: Optional[str] = None):
        self.bot_token = bot_token if bot_token is not None else get_settings().slack_bot_token

    @classmethod
    def is_configured(cls) -> bool:
        """Check if the Slack bot token is set."""
        return bool(get_settings().slack_bot_token)

    def _call(self, method: str, http_method: str = "POST", **kwargs) -> Dict[str, Any]:
        url = f"{SLACK_API_BASE}/{method}"
        headers = {"Authorization": f"Bearer {self.bot_token}"}
        with httpx.Client(timeout=SEND_MESSAGE_TIMEOUT) as client:
            response = client.request(http_method, url, headers=headers, **kwargs)
            response.raise_for_status()
        data = response.json()
        if not data.get("ok"):
            raise SlackAPIError(data.get("error", "unknown_error"))
        return data

    def send(self, channel: str, text: str) -> bool:
        """Post a message to a Slack channel.

        Args:
            channel: Slack channel id.
            text: Message text in Slack mrkdwn.

        Returns:
            True if sent successfully, False otherwise.
        """
        try:
            self._call("chat.postMessage", json={"channel": channel, "text": text})
            logger.info(f"Slack message sent to channel {channel}")
            return True
        except httpx.HTTPStatusError as e:
            logger.error(f"Slack API error: {e.response.status_code} - {e.response.text}")
            return False
        except httpx.RequestError as e:
            logger.error(f"Slack request failed: {e}")
            return False
        except SlackAPIError as e:
            logger.error(f"Slack rejected message to {channel}: {e}")
            return False

    def get_user_info(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Return the Slack user object, or None if it cannot be fetched."""
        try:
            data = self._call("users.info", http_method="GET", params={"user": user_id})
            return data.get("user")
        except (httpx.HTTPError, SlackAPIError) as e:
            logger.error(f"Failed to get Slack user info for {user_id}: {e}")
            return None
