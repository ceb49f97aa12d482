"""Slack user lookup and message delivery."""

import logging
from typing import Optional

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError, SlackClientError

from .config import get_settings
from .renderer import RenderedNotification
from .slack_blocks import SlackUser

logger = logging.getLogger(__name__)


class DeliveryError(Exception):
    """A notification could not be posted to Slack."""


class SlackNotifier:
    """Send notifications via Slack."""

    def __init__(self):
        settings = get_settings()
        self.token = settings.slack_api_token
        self.channel = settings.slack_channel
        self.client = WebClient(token=self.token or None)

    def lookup_user(self, email: str) -> Optional[SlackUser]:
        """Find the Slack account registered with ``email``.

        Returns:
            The Slack user, or None if there is none or the lookup failed
        """
        if not self.token:
            logger.warning("SLACK_API_TOKEN is not set, skipping user lookup")
            return None

        try:
            response = self.client.users_lookupByEmail(email=email)
        except SlackApiError as e:
            logger.warning(
                f"Slack lookup for {email} failed: {e.response.get('error')}"
            )
            return None
        except (SlackClientError, OSError) as e:
            logger.warning(f"Slack lookup for {email} failed: {e}")
            return None

        user = response["user"]
        return SlackUser(id=user["id"])

    def lookup_users(self, emails: list[str]) -> list[SlackUser]:
        """Map emails to Slack users in order, dropping the ones not found."""
        users = []
        for email in emails:
            user = self.lookup_user(email)
            if user is not None:
                users.append(user)
        return users

    def post(
        self, notification: RenderedNotification, thread_ts: Optional[str] = None
    ) -> str:
        """Post a notification to the configured channel.

        Args:
            notification: Rendered blocks to send
            thread_ts: Optional thread timestamp to reply in a thread

        Returns:
            Timestamp of the posted message, usable as a later ``thread_ts``

        Raises:
            DeliveryError: Missing configuration or Slack rejected the message
        """
        if not self.token:
            raise DeliveryError("SLACK_API_TOKEN is not set")
        if not self.channel:
            raise DeliveryError("SLACK_CHANNEL is not set")

        kwargs = {
            "channel": self.channel,
            "text": notification.text,
            "blocks": notification.to_slack_blocks(),
        }
        if thread_ts:
            kwargs["thread_ts"] = thread_ts

        try:
            response = self.client.chat_postMessage(**kwargs)
        except SlackApiError as e:
            raise DeliveryError(
                f"Failed to send Slack message: {e.response.get('error')}"
            ) from e
        except (SlackClientError, OSError) as e:
            raise DeliveryError(f"Failed to send Slack message: {e}") from e

        ts = response["ts"]
        logger.info(
            f"Sent notification to {self.channel} (ts={ts}, thread_ts={thread_ts})"
        )
        return ts
