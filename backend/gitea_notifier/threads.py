"""Thread handle bookkeeping for follow-up notifications."""

from typing import Optional

from sqlalchemy.orm import Session

from .events import Event
from .models import PullRequestThread


def _find_thread(db: Session, event: Event) -> Optional[PullRequestThread]:
    # Comment events carry the issue id, so match on the PR page URL instead
    return (
        db.query(PullRequestThread)
        .filter(
            PullRequestThread.repository == event.repository.full_name,
            PullRequestThread.pull_request_url == str(event.pull_request.url),
        )
        .first()
    )


def get_thread_ts(db: Session, event: Event) -> Optional[str]:
    """Return the thread timestamp stored for the event's pull request, if any."""
    thread = _find_thread(db, event)
    return thread.thread_ts if thread else None


def remember_thread(db: Session, event: Event, thread_ts: str) -> None:
    """Store ``thread_ts`` as the thread for the event's pull request.

    An existing thread is kept.
    """
    if _find_thread(db, event) is not None:
        return
    db.add(
        PullRequestThread(
            repository=event.repository.full_name,
            pull_request_url=str(event.pull_request.url),
            pull_request_id=event.pull_request.id,
            thread_ts=thread_ts,
        )
    )
    db.commit()
