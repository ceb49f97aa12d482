"""Pytest configuration and fixtures."""

import copy

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from gitea_notifier.events import parse_event
from gitea_notifier.models import Base

PR_URL = "https://git.example/acme/widgets/pulls/1"


BASE_PAYLOAD = {
    "pull_request": {
        "id": 17,
        "title": "Fix bug",
        "body": "line1\nline2",
        "comments": 0,
        "html_url": PR_URL,
        "state": "open",
        "user": {"email": "carol@noreply.git.example", "username": "carol"},
    },
    "sender": {"email": "alice@noreply.git.example", "username": "alice"},
    "repository": {"full_name": "acme/widgets", "private": True},
}


def make_payload(action: str, **extra) -> dict:
    """Build a webhook payload for ``action`` with extra top-level fields."""
    payload = copy.deepcopy(BASE_PAYLOAD)
    payload["action"] = action
    payload.update(extra)
    return payload


@pytest.fixture
def opened_payload():
    return make_payload("opened")


@pytest.fixture
def opened_event(opened_payload):
    return parse_event(opened_payload)


@pytest.fixture
def review_requested_event():
    return parse_event(
        make_payload(
            "review_requested",
            requested_reviewer={"email": "bob@noreply.git.example", "username": "bob"},
        )
    )


@pytest.fixture
def reviewed_event():
    return parse_event(
        make_payload(
            "reviewed",
            review={"type": "pull_request_review_approved", "content": "LGTM"},
        )
    )


@pytest.fixture
def comment_event():
    return parse_event(
        make_payload(
            "created", comment={"body": "> @alice said\n@bob @dave please look"}
        )
    )


@pytest.fixture
def db_session():
    """Create an in-memory database session for testing."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)
    session = Session()
    yield session
    session.close()
