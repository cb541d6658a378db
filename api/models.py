"""
API models and schemas for the FastAPI application.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from crawler.models import VersionHistoryEntry


class CurrentVersionResponse(BaseModel):
    """Current map version response."""
    current_map_version: Optional[str] = Field(None, description="Latest observed map version")
    last_checked: Optional[str] = Field(None, description="Date the version was last checked")


class VersionHistoryResponse(BaseModel):
    """Change log listing ordered by date."""
    version_history: List[VersionHistoryEntry] = Field(..., description="Observed version changes")


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
