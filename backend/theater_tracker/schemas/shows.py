"""
Catalog request/response schemas.
"""
from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SubmitShowRequest(BaseModel):
    """Payload for POST /shows."""

    title: str = Field(..., max_length=200)
    photo_url: str = Field(..., min_length=1, max_length=500)
    description: str | None = Field(default=None, max_length=2000)

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str) -> str:
        title = " ".join(value.strip().split())
        if not title:
            raise ValueError("title cannot be empty")
        return title


class ShowResponse(BaseModel):
    """A catalog entry."""

    id: UUID
    title: str
    photo_url: str
    description: str | None = None
    approval_status: Literal["pending", "approved", "rejected"]
    created_by: UUID | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ShowSummary(BaseModel):
    """Minimal show fields embedded in diary and feed items."""

    id: UUID
    title: str
    photo_url: str
    description: str | None = None
