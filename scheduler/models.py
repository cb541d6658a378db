"""
Models for the scheduled map version check.

This module defines Pydantic models for:
- Check outcomes and results
- Notification settings
- Scheduler configuration
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from crawler.models import VersionChange


class CheckOutcome(str, Enum):
    """What a completed check concluded."""
    FIRST_CHECK = "first_check"
    UNCHANGED = "unchanged"
    CHANGED = "changed"


class CheckResult(BaseModel):
    """Result of one scheduled map version check."""
    outcome: CheckOutcome = Field(..., description="Comparison outcome")
    checked_date: str = Field(..., description="UTC date the version was stored under")
    latest_version: str = Field(..., description="Version found on the page")
    previous_version: Optional[str] = Field(default=None, description="Last known version, if any")
    change: Optional[VersionChange] = Field(default=None, description="Change record written, if any")
    run_timestamp: datetime = Field(default_factory=datetime.utcnow)


class NotificationConfig(BaseModel):
    """Settings for the transactional email API."""
    api_url: str = Field(default="https://api.resend.com/emails")
    api_key: str = Field(default="", description="Bearer token for the email API")
    sender: str = Field(default="TomTom Map version checker <noreply@akselinurmio.fi>")
    recipient: str = Field(default="", description="Address notified about changes and errors")
    timeout: float = Field(default=10.0, gt=0)


class SchedulerConfig(BaseModel):
    """Configuration for the scheduler system."""
    schedule_hour: int = Field(default=12, ge=0, le=23, description="Hour to run the daily check (24h format)")
    schedule_minute: int = Field(default=0, ge=0, le=59, description="Minute to run the daily check")
    timezone: str = Field(default="UTC", description="Timezone for scheduling")
    test_interval_minutes: int = Field(default=2, ge=1, description="Check interval in test mode")
