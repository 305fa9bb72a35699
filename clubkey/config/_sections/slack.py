"""Slack configuration models."""

from pydantic import BaseModel


class SlackSettings(BaseModel):
    webhook_url: str = ""  # Incoming webhook; empty disables announcements
    timeout: float = 10.0
