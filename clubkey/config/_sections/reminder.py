"""Reminder and daily check configuration models."""

from pydantic import BaseModel, Field


class ReminderSettings(BaseModel):
    enabled: bool = True
    interval_minutes: int = Field(default=60, ge=1, le=1440)
    daily_check_enabled: bool = True
    check_hour: int = Field(default=20, ge=0, le=23)
    check_minute: int = Field(default=0, ge=0, le=59)
    timezone: str = ""  # IANA zone name; empty uses the host's local time
