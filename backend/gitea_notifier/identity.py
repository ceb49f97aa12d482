"""Gitea user directory lookups.

Webhook payloads usually carry anonymized email addresses. The real address is
fetched from Gitea's user API. Every lookup here is best effort: a failed
lookup keeps whatever email the payload had.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import quote, urlsplit, urlunsplit

import httpx
from pydantic import ValidationError

from .config import get_settings
from .events import Comment, Event, ReviewRequested, User

logger = logging.getLogger(__name__)

USER_API_PATH = "/api/v1/users/"


class LookupFailure(Exception):
    """A directory lookup could not produce an answer."""


@dataclass
class ResolvedIdentities:
    """Real email addresses found for the usernames of one event.

    Attributes:
        emails: username -> resolved email
    """

    emails: dict[str, str] = field(default_factory=dict)

    def email_for(self, user: User) -> str:
        """Return the resolved email for ``user``, or the one from the payload."""
        return self.emails.get(user.username, user.email)


def user_api_url(pull_request_url: str, username: str) -> str:
    """Build the user lookup URL on the same host as the pull request."""
    parts = urlsplit(str(pull_request_url))
    path = USER_API_PATH + quote(username, safe="")
    return urlunsplit((parts.scheme, parts.netloc, path, "", ""))


def scan_mentions(body: str) -> list[str]:
    """Return usernames @-mentioned in a comment body.

    Quoted lines (starting with ``>``) are reply context and are skipped.
    Order follows first occurrence; duplicates are kept.
    """
    usernames = []
    for line in body.split("\n"):
        line = line.removesuffix("\r")
        if line.lstrip().startswith(">"):
            continue
        for token in line.split():
            if token.startswith("@"):
                username = token.lstrip("@")
                if username:
                    usernames.append(username)
    return usernames


class GiteaDirectory:
    """Looks up real email addresses through the Gitea API."""

    def __init__(self):
        settings = get_settings()
        self.token = settings.gitea_api_token
        self.timeout = settings.http_timeout_seconds
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={
                    "Authorization": f"token {self.token}",
                    "Accept": "application/json",
                },
                timeout=self.timeout,
            )
        return self._client

    async def aclose(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch_user_email(self, pull_request_url: str, username: str) -> str:
        """Fetch the email of a Gitea user.

        Args:
            pull_request_url: Any URL on the Gitea instance; only scheme and
                host are kept
            username: Gitea username

        Returns:
            The user's email address

        Raises:
            LookupFailure: No API token is configured
            httpx.HTTPStatusError: Gitea answered with a non-2xx status
            httpx.RequestError: The request could not be sent
            pydantic.ValidationError: The response is not a Gitea user
        """
        if not self.token:
            raise LookupFailure("GITEA_API_TOKEN is not set")

        client = await self._get_client()
        response = await client.get(user_api_url(pull_request_url, username))
        response.raise_for_status()
        return User.model_validate_json(response.content).email

    async def resolve_email(
        self, pull_request_url: str, username: str, default: Optional[str] = None
    ) -> Optional[str]:
        """Fetch a user's email, returning ``default`` on any failure."""
        try:
            return await self.fetch_user_email(pull_request_url, username)
        except LookupFailure as e:
            logger.warning(f"Cannot look up Gitea user {username}: {e}")
        except httpx.HTTPStatusError as e:
            logger.warning(
                f"Gitea lookup for {username} failed: {e.response.status_code}"
            )
        except httpx.RequestError as e:
            logger.warning(f"Gitea lookup for {username} failed: {e}")
        except ValidationError as e:
            logger.warning(f"Unexpected Gitea user payload for {username}: {e}")
        return default

    async def resolve_identities(self, event: Event) -> ResolvedIdentities:
        """Deanonymize the sender, the PR author and any requested reviewer."""
        users = [event.sender, event.pull_request.user]
        if isinstance(event.action, ReviewRequested):
            users.append(event.action.requested_reviewer)

        identities = ResolvedIdentities()
        attempted = set()
        for user in users:
            if user.username in attempted:
                continue
            attempted.add(user.username)

            email = await self.resolve_email(event.pull_request.url, user.username)
            if email is not None:
                identities.emails[user.username] = email

        return identities

    async def resolve_mentions(
        self, pull_request_url: str, comment: Comment
    ) -> list[str]:
        """Return emails of users mentioned in ``comment``.

        Mentions whose lookup fails are dropped.
        """
        emails = []
        for username in scan_mentions(comment.body):
            email = await self.resolve_email(pull_request_url, username)
            if email is not None:
                emails.append(email)
        return emails
