"""Turn a Gitea event into a Slack notification.

Rendering is pure: the same event and recipients always give the same blocks.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional

from .events import Created, Event, Opened, PullRequest, Reviewed, ReviewRequested
from .slack_blocks import SlackUser, header, link, quote, section


class MalformedRepositoryName(ValueError):
    """Repository full name is not in ``owner/name`` form."""


@dataclass(frozen=True)
class Block:
    """One display block of a notification."""

    kind: Literal["header", "section"]
    text: str

    def to_slack(self) -> dict:
        if self.kind == "header":
            return header(self.text)
        return section(self.text)


@dataclass(frozen=True)
class RenderedNotification:
    """Ordered blocks making up one message."""

    blocks: tuple[Block, ...]

    @property
    def text(self) -> str:
        """Plain fallback text for clients that cannot show blocks."""
        return "\n".join(block.text for block in self.blocks)

    def to_slack_blocks(self) -> list[dict]:
        return [block.to_slack() for block in self.blocks]


class RenderStatus(Enum):
    """How a notification came out of rendering."""

    RENDERED = "rendered"
    FALLBACK = "fallback"  # no Slack user found, raw username shown instead
    SUPPRESSED = "suppressed"  # nothing worth sending


@dataclass(frozen=True)
class RenderOutcome:
    status: RenderStatus
    notification: Optional[RenderedNotification] = None

    @property
    def suppressed(self) -> bool:
        return self.status == RenderStatus.SUPPRESSED


def format_pull_request_link(pull_request: PullRequest) -> str:
    return link(str(pull_request.url), pull_request.title)


def split_repository_name(full_name: str) -> tuple[str, str]:
    """Split ``owner/name`` at the first separator.

    Raises:
        MalformedRepositoryName: If there is no ``/`` in ``full_name``
    """
    owner, sep, name = full_name.partition("/")
    if not sep:
        raise MalformedRepositoryName(f"Invalid repository full name: {full_name!r}")
    return owner, name


def _outcome(*blocks: Block, fallback: bool = False) -> RenderOutcome:
    status = RenderStatus.FALLBACK if fallback else RenderStatus.RENDERED
    return RenderOutcome(status, RenderedNotification(tuple(blocks)))


def render_opened(event: Event) -> RenderOutcome:
    owner, name = split_repository_name(event.repository.full_name)
    blocks = [
        Block("header", f"{owner} | {name}"),
        Block(
            "section",
            f"Pull request {format_pull_request_link(event.pull_request)} "
            f"opened by {event.sender.username}",
        ),
    ]
    # Slack rejects sections with empty text
    if event.pull_request.body.strip():
        blocks.append(Block("section", quote(event.pull_request.body)))
    return _outcome(*blocks)


def render_reviewed(
    event: Event, review_verb: str, recipients: list[SlackUser]
) -> RenderOutcome:
    if recipients:
        author = recipients[0].mention
    else:
        author = event.pull_request.user.username
    return _outcome(
        Block(
            "section",
            f"{author}, {event.sender.username} has {review_verb} your PR",
        ),
        fallback=not recipients,
    )


def render_review_requested(
    event: Event, reviewer_username: str, recipients: list[SlackUser]
) -> RenderOutcome:
    reviewer = recipients[0].mention if recipients else reviewer_username
    return _outcome(
        Block(
            "section",
            f"{reviewer}, {event.sender.username} has requested you to review "
            f"{format_pull_request_link(event.pull_request)}",
        ),
        fallback=not recipients,
    )


def render_comment(recipients: list[SlackUser]) -> RenderOutcome:
    if not recipients:
        return RenderOutcome(RenderStatus.SUPPRESSED)
    mentions = " ".join(user.mention for user in recipients)
    return _outcome(Block("section", f"{mentions}, you were mentioned in a comment"))


def render_basic_action(event: Event) -> RenderOutcome:
    return _outcome(
        Block(
            "section",
            f"{format_pull_request_link(event.pull_request)} was {event.action.name}",
        )
    )


def render(event: Event, recipients: list[SlackUser]) -> RenderOutcome:
    """Render the notification for ``event``.

    Args:
        event: The parsed webhook
        recipients: Slack users to address, in resolution order

    Returns:
        RenderOutcome; suppressed for a comment that mentions nobody on Slack

    Raises:
        MalformedRepositoryName: For an opened PR in a repository whose name
            cannot be split into owner and name
    """
    action = event.action
    if isinstance(action, Opened):
        return render_opened(event)
    if isinstance(action, Reviewed):
        return render_reviewed(event, action.review.verb, recipients)
    if isinstance(action, ReviewRequested):
        return render_review_requested(
            event, action.requested_reviewer.username, recipients
        )
    if isinstance(action, Created):
        return render_comment(recipients)
    return render_basic_action(event)
