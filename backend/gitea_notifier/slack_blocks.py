"""Slack Block Kit and mrkdwn formatting utilities."""

import re
from dataclasses import dataclass

# A physical line, ending at "\n" only
LINE_RE = re.compile(r"[^\n]*\n|[^\n]+")


@dataclass(frozen=True)
class SlackUser:
    """A Slack account found for an email address."""

    id: str

    @property
    def mention(self) -> str:
        return mention(self.id)


def section(text: str) -> dict:
    """Create a section block with mrkdwn text."""
    return {
        "type": "section",
        "text": {"type": "mrkdwn", "text": text},
    }


def header(text: str) -> dict:
    """Create a header block."""
    return {
        "type": "header",
        "text": {"type": "plain_text", "text": text, "emoji": True},
    }


def link(url: str, title: str) -> str:
    """Format a mrkdwn hyperlink."""
    return f"<{url}|{title}>"


def mention(user_id: str) -> str:
    """Format a mrkdwn user mention."""
    return f"<@{user_id}>"


def quote(text: str) -> str:
    """Prefix every line of ``text`` with a quote marker, keeping line endings."""
    return "".join(f">{line}" for line in LINE_RE.findall(text))
