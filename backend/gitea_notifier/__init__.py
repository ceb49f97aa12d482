"""Gitea pull-request notifications for Slack."""
