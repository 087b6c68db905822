"""Pydantic schemas for Notices."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from studygroup.models.notice import NoticeType


class NoticeCreate(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    content: str = Field(min_length=1, max_length=5000)
    notice_type: NoticeType = NoticeType.GENERAL
    is_pinned: bool = False


class NoticeUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    content: Optional[str] = Field(default=None, min_length=1, max_length=5000)
    notice_type: Optional[NoticeType] = None
    is_pinned: Optional[bool] = None


class NoticePin(BaseModel):
    is_pinned: bool


class NoticeOut(BaseModel):
    notice_id: str
    group_id: str
    author_id: str
    title: str
    content: str
    notice_type: NoticeType
    is_pinned: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
