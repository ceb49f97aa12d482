"""Tests for webhook event parsing."""

import pytest
from pydantic import ValidationError

from gitea_notifier.events import (
    ACTION_NAMES,
    ApprovedReview,
    Closed,
    CommentReview,
    Created,
    Event,
    Opened,
    PullRequestState,
    RejectedReview,
    Reviewed,
    ReviewRequested,
    parse_event,
)

from conftest import PR_URL, make_payload

EXTRA_FIELDS = {
    "created": {"comment": {"body": "hi"}},
    "reviewed": {"review": {"type": "pull_request_review_comment", "content": "ok"}},
    "review_requested": {
        "requested_reviewer": {"email": "bob@example.com", "username": "bob"}
    },
}


def test_action_names_cover_every_variant():
    assert ACTION_NAMES == (
        "opened",
        "closed",
        "reopened",
        "merged",
        "created",
        "reviewed",
        "review_requested",
    )


class TestParseEvent:
    """Test parsing of flat Gitea payloads."""

    @pytest.mark.parametrize("action", ACTION_NAMES)
    def test_action_tag_is_preserved(self, action):
        """Every known tag parses to an action with the same name."""
        event = parse_event(make_payload(action, **EXTRA_FIELDS.get(action, {})))
        assert event.action.name == action

    def test_opened_fields(self, opened_event):
        """Nested entities are parsed from the payload."""
        assert isinstance(opened_event.action, Opened)
        assert opened_event.pull_request.id == 17
        assert opened_event.pull_request.title == "Fix bug"
        assert str(opened_event.pull_request.url) == PR_URL
        assert opened_event.pull_request.state == PullRequestState.OPEN
        assert opened_event.pull_request.user.username == "carol"
        assert opened_event.sender.username == "alice"
        assert opened_event.repository.full_name == "acme/widgets"

    def test_issue_alias(self):
        """The pull request may be sent under the 'issue' key."""
        payload = make_payload("closed")
        payload["issue"] = payload.pop("pull_request")
        payload["issue"]["state"] = "closed"

        event = parse_event(payload)

        assert isinstance(event.action, Closed)
        assert event.pull_request.state == PullRequestState.CLOSED

    def test_created_comment(self):
        event = parse_event(make_payload("created", comment={"body": "@bob hi"}))
        assert isinstance(event.action, Created)
        assert event.action.comment.body == "@bob hi"

    @pytest.mark.parametrize(
        "review_type,model,verb",
        [
            ("pull_request_review_approved", ApprovedReview, "approved"),
            ("pull_request_review_rejected", RejectedReview, "rejected"),
            ("pull_request_review_comment", CommentReview, "commented on"),
        ],
    )
    def test_review_type(self, review_type, model, verb):
        """The inner review tag selects the review variant and its verb."""
        event = parse_event(
            make_payload("reviewed", review={"type": review_type, "content": "x"})
        )
        assert isinstance(event.action, Reviewed)
        assert isinstance(event.action.review, model)
        assert event.action.review.verb == verb
        assert event.action.review.content == "x"

    def test_review_requested(self, review_requested_event):
        action = review_requested_event.action
        assert isinstance(action, ReviewRequested)
        assert action.requested_reviewer.username == "bob"

    def test_unknown_fields_ignored(self):
        event = parse_event(make_payload("merged", number=3, commit_id="abc"))
        assert event.action.name == "merged"


class TestParseErrors:
    """Malformed payloads are rejected."""

    def test_unknown_action(self):
        with pytest.raises(ValidationError):
            parse_event(make_payload("edited"))

    def test_missing_action(self):
        payload = make_payload("opened")
        del payload["action"]
        with pytest.raises(ValidationError):
            parse_event(payload)

    def test_missing_pull_request(self):
        payload = make_payload("opened")
        del payload["pull_request"]
        with pytest.raises(ValidationError):
            parse_event(payload)

    def test_wrong_type(self):
        payload = make_payload("opened")
        payload["pull_request"]["comments"] = "many"
        with pytest.raises(ValidationError):
            parse_event(payload)

    def test_created_without_comment(self):
        with pytest.raises(ValidationError):
            parse_event(make_payload("created"))

    def test_unknown_review_type(self):
        with pytest.raises(ValidationError):
            parse_event(
                make_payload("reviewed", review={"type": "dismissed", "content": ""})
            )

    def test_invalid_state(self):
        payload = make_payload("opened")
        payload["pull_request"]["state"] = "draft"
        with pytest.raises(ValidationError):
            parse_event(payload)


def test_event_is_frozen(opened_event):
    """Events cannot be modified after parsing."""
    with pytest.raises(ValidationError):
        opened_event.sender = opened_event.pull_request.user


def test_event_from_models(opened_event):
    """Events can be built from already-parsed parts."""
    event = Event(
        action=Opened(),
        pull_request=opened_event.pull_request,
        sender=opened_event.sender,
        repository=opened_event.repository,
    )
    assert event == opened_event
