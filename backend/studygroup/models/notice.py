"""Notice ORM model — the per-group notice board."""
import uuid
import enum
from datetime import datetime, timezone
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.sql import func
from studygroup.database import Base


class NoticeType(str, enum.Enum):
    GENERAL = "GENERAL"
    ANNOUNCEMENT = "ANNOUNCEMENT"
    SCHEDULE = "SCHEDULE"
    RESOURCE = "RESOURCE"


class Notice(Base):
    __tablename__ = "notices"

    notice_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    group_id = Column(String(36), ForeignKey("groups.group_id"), nullable=False, index=True)
    author_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    title = Column(String(100), nullable=False)
    content = Column(Text, nullable=False)
    notice_type = Column(SAEnum(NoticeType), nullable=False, default=NoticeType.GENERAL)
    is_pinned = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
