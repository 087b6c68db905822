"""User and whitelist ORM models."""
import uuid
from sqlalchemy import Column, String, Text, Boolean, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from studygroup.database import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("email", name="uq_users_email"),)

    user_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), nullable=False)
    display_name = Column(String(50), nullable=False)
    password_hash = Column(String(255), nullable=False)
    github_url = Column(String(255), nullable=True)
    blog_url = Column(String(255), nullable=True)
    bio = Column(Text, nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class AllowedEmail(Base):
    """Registration whitelist entry."""

    __tablename__ = "allowed_emails"

    email = Column(String(255), primary_key=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
