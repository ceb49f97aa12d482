"""Pydantic models for inbound Gitea pull-request webhooks.

The webhook carries its action tag at the top level, next to the pull request,
sender and repository. ``Event`` nests the whole payload under ``action`` before
validation so the tag can select one of the ``Action`` variants, each of which
picks its own extra field (``comment``, ``review``, ``requested_reviewer``) out
of the same flat payload.
"""

from enum import Enum
from typing import Annotated, Any, ClassVar, Literal, Union, get_args

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    model_validator,
)


class User(BaseModel):
    """A Gitea account as it appears in a webhook.

    ``email`` is often an anonymized placeholder; see ``identity``.
    """

    model_config = ConfigDict(frozen=True)

    email: str
    username: str


class PullRequestState(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class Repository(BaseModel):
    model_config = ConfigDict(frozen=True)

    full_name: str


class Comment(BaseModel):
    model_config = ConfigDict(frozen=True)

    body: str


class PullRequest(BaseModel):
    """Snapshot of the pull request (or issue) the event is about."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    title: str
    body: str
    comments: int
    url: HttpUrl = Field(alias="html_url")
    state: PullRequestState
    user: User


# Reviews


class _ReviewBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    verb: ClassVar[str]

    content: str


class ApprovedReview(_ReviewBase):
    verb: ClassVar[str] = "approved"

    type: Literal["pull_request_review_approved"] = "pull_request_review_approved"


class RejectedReview(_ReviewBase):
    verb: ClassVar[str] = "rejected"

    type: Literal["pull_request_review_rejected"] = "pull_request_review_rejected"


class CommentReview(_ReviewBase):
    verb: ClassVar[str] = "commented on"

    type: Literal["pull_request_review_comment"] = "pull_request_review_comment"


Review = Annotated[
    Union[ApprovedReview, RejectedReview, CommentReview],
    Field(discriminator="type"),
]


# Actions


class _ActionBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    @property
    def name(self) -> str:
        """Snake-case tag of the action, as sent by Gitea."""
        return self.action  # type: ignore[attr-defined]


class Opened(_ActionBase):
    action: Literal["opened"] = "opened"


class Closed(_ActionBase):
    action: Literal["closed"] = "closed"


class Reopened(_ActionBase):
    action: Literal["reopened"] = "reopened"


class Merged(_ActionBase):
    action: Literal["merged"] = "merged"


class Created(_ActionBase):
    """A comment was posted on the pull request."""

    action: Literal["created"] = "created"
    comment: Comment


class Reviewed(_ActionBase):
    action: Literal["reviewed"] = "reviewed"
    review: Review


class ReviewRequested(_ActionBase):
    action: Literal["review_requested"] = "review_requested"
    requested_reviewer: User


Action = Annotated[
    Union[Opened, Closed, Reopened, Merged, Created, Reviewed, ReviewRequested],
    Field(discriminator="action"),
]

# Wire tags of every Action variant
ACTION_NAMES = tuple(
    variant.model_fields["action"].default for variant in get_args(get_args(Action)[0])
)


class Event(BaseModel):
    """A pull-request lifecycle webhook from Gitea."""

    model_config = ConfigDict(frozen=True)

    action: Action
    pull_request: PullRequest = Field(
        validation_alias=AliasChoices("pull_request", "issue")
    )
    sender: User
    repository: Repository

    @model_validator(mode="before")
    @classmethod
    def _nest_action(cls, data: Any) -> Any:
        # The wire format flattens the action next to everything else
        if isinstance(data, dict) and isinstance(data.get("action"), str):
            return {**data, "action": dict(data)}
        return data


def parse_event(payload: dict) -> Event:
    """Parse a decoded webhook body into an ``Event``.

    Raises:
        pydantic.ValidationError: If a required field is missing, has the
            wrong type, or the action tag is not one of ``ACTION_NAMES``.
    """
    return Event.model_validate(payload)
