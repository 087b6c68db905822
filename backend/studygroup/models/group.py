"""Group and Membership ORM models."""
import uuid
import enum
from sqlalchemy import Column, String, Text, Integer, Boolean, DateTime, ForeignKey, Index, CheckConstraint, Enum as SAEnum, text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from studygroup.database import Base


class GroupPurpose(str, enum.Enum):
    LEARNING = "LEARNING"
    PROJECT = "PROJECT"
    DISCUSSION = "DISCUSSION"
    NETWORKING = "NETWORKING"
    OTHER = "OTHER"


class MembershipStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    REMOVED = "REMOVED"
    LEFT = "LEFT"


class Group(Base):
    __tablename__ = "groups"
    __table_args__ = (
        # Names only need to be unique among active groups.
        Index(
            "uq_groups_active_name", "name", unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
        CheckConstraint("max_members BETWEEN 2 AND 10", name="ck_groups_max_members"),
    )

    group_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(50), nullable=False)
    description = Column(Text, nullable=True)
    purpose = Column(SAEnum(GroupPurpose), nullable=False, default=GroupPurpose.LEARNING)
    max_members = Column(Integer, nullable=False, default=4)
    leader_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    memberships = relationship("Membership", back_populates="group")


class Membership(Base):
    __tablename__ = "memberships"
    __table_args__ = (
        # One ACTIVE membership per user across all groups.
        Index(
            "uq_memberships_active_user", "user_id", unique=True,
            sqlite_where=text("status = 'ACTIVE'"),
            postgresql_where=text("status = 'ACTIVE'"),
        ),
    )

    membership_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    group_id = Column(String(36), ForeignKey("groups.group_id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    status = Column(SAEnum(MembershipStatus), nullable=False, default=MembershipStatus.ACTIVE)
    joined_at = Column(DateTime(timezone=True), server_default=func.now())
    ended_at = Column(DateTime(timezone=True), nullable=True)

    group = relationship("Group", back_populates="memberships")
    user = relationship("User")
