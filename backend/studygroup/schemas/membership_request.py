"""Pydantic schemas for join requests."""
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

from studygroup.models.membership_request import RequestStatus

MESSAGE_MIN_LENGTH = 5
MESSAGE_MAX_LENGTH = 500


class JoinRequestCreate(BaseModel):
    message: str = Field(min_length=MESSAGE_MIN_LENGTH, max_length=MESSAGE_MAX_LENGTH)


class JoinRequestDecision(BaseModel):
    action: Literal["approve", "reject"]
    response_message: Optional[str] = Field(default=None, max_length=MESSAGE_MAX_LENGTH)


class JoinRequestOut(BaseModel):
    request_id: str
    group_id: str
    user_id: str
    message: str
    response_message: Optional[str] = None
    status: RequestStatus
    created_at: datetime
    expires_at: datetime
    responded_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
