"""
Pydantic models for map version data stored in the key-value namespaces.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class LatestVersion(BaseModel):
    """Most recently observed map version and the date it was observed."""
    date: str = Field(..., description="UTC date of the check (YYYY-MM-DD)")
    version: str = Field(..., description="Observed map version")


class VersionChange(BaseModel):
    """A transition between two observed map versions."""
    created_at: int = Field(..., description="Epoch milliseconds when the change was recorded")
    from_version: str = Field(..., description="Previously observed version")
    to_version: str = Field(..., description="Newly observed version")


class VersionHistoryEntry(BaseModel):
    """One row of the change log listing."""
    date: str = Field(..., description="Date the change was observed")
    from_version: Optional[str] = Field(None, description="Previous version")
    to_version: Optional[str] = Field(None, description="New version")


class KVEntry(BaseModel):
    """A listed key with its metadata."""
    name: str
    metadata: Optional[Dict[str, Any]] = None
