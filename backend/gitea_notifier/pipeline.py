"""Event to Slack notification pipeline."""

import logging
from typing import Optional

from .events import Created, Event, Reviewed, ReviewRequested
from .identity import GiteaDirectory, ResolvedIdentities
from .notifier import SlackNotifier
from .renderer import render

logger = logging.getLogger(__name__)


async def recipient_emails(
    event: Event, identities: ResolvedIdentities, directory: GiteaDirectory
) -> list[str]:
    """Emails of the people a notification for ``event`` is addressed to."""
    action = event.action
    if isinstance(action, ReviewRequested):
        return [identities.email_for(action.requested_reviewer)]
    if isinstance(action, Reviewed):
        return [identities.email_for(event.pull_request.user)]
    if isinstance(action, Created):
        return await directory.resolve_mentions(event.pull_request.url, action.comment)
    return []


async def post_notification(
    event: Event,
    parent_ts: Optional[str] = None,
    *,
    directory: GiteaDirectory,
    notifier: SlackNotifier,
) -> Optional[str]:
    """Notify Slack about ``event``.

    Args:
        event: The parsed webhook
        parent_ts: Timestamp of an earlier message to reply under
        directory: Gitea user directory for deanonymization
        notifier: Slack client for user lookup and delivery

    Returns:
        Timestamp of the posted message, or None if there was nothing to send

    Raises:
        MalformedRepositoryName: The repository name cannot be rendered
        DeliveryError: Slack did not accept the message
    """
    identities = await directory.resolve_identities(event)
    emails = await recipient_emails(event, identities, directory)
    recipients = notifier.lookup_users(emails)

    outcome = render(event, recipients)
    if outcome.suppressed:
        logger.info(
            f"Nothing to send for {event.action.name} on PR {event.pull_request.id}"
        )
        return None

    return notifier.post(outcome.notification, thread_ts=parent_ts)
