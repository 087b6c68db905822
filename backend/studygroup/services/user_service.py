"""Registration, login and profile updates."""
import logging
from typing import Any, Iterable

from sqlalchemy.orm import Session

from studygroup.database import unit_of_work
from studygroup.errors import EmailNotWhitelisted, EmailTaken, InvalidCredential, UserNotFound
from studygroup.models.activity_log import ActivityKind
from studygroup.models.user import AllowedEmail, User
from studygroup.security import create_access_token, hash_password, verify_password
from studygroup.services import activity_service

logger = logging.getLogger(__name__)


def seed_whitelist(db: Session, emails: Iterable[str]) -> int:
    """Insert any whitelist addresses that are not stored yet."""
    added = 0
    with unit_of_work(db):
        for email in emails:
            email = email.strip().lower()
            if email and db.get(AllowedEmail, email) is None:
                db.add(AllowedEmail(email=email))
                added += 1
    if added:
        logger.info("Seeded %d whitelisted email(s)", added)
    return added


def is_whitelisted(db: Session, email: str) -> bool:
    return db.get(AllowedEmail, email.lower()) is not None


def register_user(db: Session, email: str, password: str, display_name: str, **profile: Any) -> User:
    email = email.lower()
    if not is_whitelisted(db, email):
        logger.info("Registration refused for non-whitelisted email %s", email)
        raise EmailNotWhitelisted()
    if db.query(User).filter(User.email == email).first():
        raise EmailTaken()

    with unit_of_work(db, on_conflict={"uq_users_email": EmailTaken()}):
        user = User(
            email=email,
            display_name=display_name,
            password_hash=hash_password(password),
            is_verified=True,  # whitelist membership is the verification
            **profile,
        )
        db.add(user)
        db.flush()
        activity_service.record_activity(
            db, user.user_id, ActivityKind.USER_REGISTERED,
            f"{display_name} joined",
        )
    db.refresh(user)
    logger.info("Registered user %s (%s)", user.user_id, email)
    return user


def authenticate(db: Session, email: str, password: str) -> str:
    """Check credentials and return a signed access token."""
    user = db.query(User).filter(User.email == email.lower()).first()
    if not user or not verify_password(password, user.password_hash):
        logger.info("Failed login for %s", email)
        raise InvalidCredential("Incorrect email or password")
    return create_access_token(user.user_id)


def get_user(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise UserNotFound()
    return user


def update_profile(db: Session, user: User, updates: dict[str, Any]) -> User:
    with unit_of_work(db):
        for field, value in updates.items():
            setattr(user, field, value)
    db.refresh(user)
    logger.info("Updated profile of user %s", user.user_id)
    return user
