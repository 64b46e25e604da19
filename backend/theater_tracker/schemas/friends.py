"""
Friendship request/response schemas.
"""
from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel


class SendFriendRequest(BaseModel):
    """Payload for POST /friends/requests."""

    user_id: UUID


class FriendshipResponse(BaseModel):
    """A friendship edge, with the other party resolved."""

    id: UUID
    requester_id: UUID
    addressee_id: UUID
    status: Literal["pending", "accepted"]
    user_id: UUID
    username: str
    created_at: datetime


class UserSearchResult(BaseModel):
    id: UUID
    username: str
    friendship_status: Literal["none", "request_sent", "request_received", "friends"] = "none"
    friendship_id: UUID | None = None
