"""ActivityLog ORM model — append-only record of every committed change."""
import uuid
import enum
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, JSON, ForeignKey, Enum as SAEnum, event
from studygroup.database import Base


class ActivityKind(str, enum.Enum):
    USER_REGISTERED = "USER_REGISTERED"
    GROUP_CREATED = "GROUP_CREATED"
    GROUP_UPDATED = "GROUP_UPDATED"
    GROUP_DISBANDED = "GROUP_DISBANDED"
    JOIN_REQUEST_SENT = "JOIN_REQUEST_SENT"
    JOIN_REQUEST_APPROVED = "JOIN_REQUEST_APPROVED"
    JOIN_REQUEST_REJECTED = "JOIN_REQUEST_REJECTED"
    REQUEST_DECIDED = "REQUEST_DECIDED"
    MEMBER_LEFT = "MEMBER_LEFT"
    MEMBER_REMOVED = "MEMBER_REMOVED"
    NOTICE_CREATED = "NOTICE_CREATED"
    NOTICE_UPDATED = "NOTICE_UPDATED"
    NOTICE_PINNED = "NOTICE_PINNED"
    NOTICE_DELETED = "NOTICE_DELETED"


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    activity_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    actor_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    group_id = Column(String(36), ForeignKey("groups.group_id"), nullable=True, index=True)
    kind = Column(SAEnum(ActivityKind), nullable=False)
    message = Column(String(500), nullable=False)
    details = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))


@event.listens_for(ActivityLog, "before_update")
def _refuse_update(mapper, connection, target):
    raise ValueError("ActivityLog entries are immutable")


@event.listens_for(ActivityLog, "before_delete")
def _refuse_delete(mapper, connection, target):
    raise ValueError("ActivityLog entries cannot be deleted")
