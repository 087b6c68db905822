"""MembershipRequest ORM model — join requests awaiting a leader decision."""
import uuid
import enum
from datetime import datetime, timedelta, timezone
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, Enum as SAEnum, text
from sqlalchemy.orm import relationship
from studygroup.config import settings
from studygroup.database import Base


class RequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _default_expiry() -> datetime:
    return _utcnow() + timedelta(days=settings.JOIN_REQUEST_TTL_DAYS)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class MembershipRequest(Base):
    __tablename__ = "membership_requests"
    __table_args__ = (
        Index(
            "uq_membership_requests_pending", "group_id", "user_id", unique=True,
            sqlite_where=text("status = 'PENDING'"),
            postgresql_where=text("status = 'PENDING'"),
        ),
    )

    request_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    group_id = Column(String(36), ForeignKey("groups.group_id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    message = Column(String(500), nullable=False)
    response_message = Column(String(500), nullable=True)
    status = Column(SAEnum(RequestStatus), nullable=False, default=RequestStatus.PENDING)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    expires_at = Column(DateTime(timezone=True), nullable=False, default=_default_expiry)
    responded_at = Column(DateTime(timezone=True), nullable=True)

    group = relationship("Group")
    user = relationship("User")

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or _utcnow()
        return as_utc(self.expires_at) <= now
