"""Pydantic schemas for Groups and Memberships."""
from __future__ import annotations
from datetime import datetime
from typing import Annotated, Optional
from pydantic import BaseModel, Field, StringConstraints

from studygroup.models.group import GroupPurpose, MembershipStatus

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50

# Trimmed before the length bounds apply, so "   " or " a " never pass.
GroupName = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=NAME_MIN_LENGTH, max_length=NAME_MAX_LENGTH)
]


class GroupCreate(BaseModel):
    name: GroupName
    purpose: GroupPurpose
    max_members: int = Field(ge=2, le=10)
    description: Optional[str] = Field(default=None, max_length=1000)


class GroupUpdate(BaseModel):
    name: Optional[GroupName] = None
    purpose: Optional[GroupPurpose] = None
    max_members: Optional[int] = Field(default=None, ge=2, le=10)
    description: Optional[str] = Field(default=None, max_length=1000)


class GroupOut(BaseModel):
    group_id: str
    name: str
    description: Optional[str] = None
    purpose: GroupPurpose
    max_members: int
    leader_id: str
    is_active: bool
    member_count: int
    created_at: datetime


class MemberOut(BaseModel):
    membership_id: str
    user_id: str
    display_name: str
    status: str
    is_leader: bool
    joined_at: datetime


class MembershipOut(BaseModel):
    membership_id: str
    group_id: str
    user_id: str
    status: MembershipStatus
    joined_at: datetime
    ended_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
