"""Password hashing, JWT issuance and the bearer-token dependency.

``get_current_user`` is the authentication gate: it resolves the bearer
token to a verified ``User`` row before any handler logic runs, and raises
``UNAUTHENTICATED`` / ``INVALID_CREDENTIAL`` / ``NOT_VERIFIED`` otherwise.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from studygroup.config import settings
from studygroup.database import get_db
from studygroup.errors import InvalidCredential, NotVerified, Unauthenticated
from studygroup.models.user import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    return pwd_context.verify(plain_password, password_hash)


def create_access_token(user_id: str, expires_minutes: Optional[int] = None) -> str:
    """Sign a token whose subject is the user id."""
    minutes = expires_minutes if expires_minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    now = datetime.now(timezone.utc)
    payload = {"sub": user_id, "iat": now, "exp": now + timedelta(minutes=minutes)}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> str:
    """Return the user id carried by ``token`` or raise INVALID_CREDENTIAL."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise InvalidCredential("Token has expired")
    except jwt.InvalidTokenError:
        raise InvalidCredential("Invalid token")
    user_id = payload.get("sub")
    if not user_id:
        raise InvalidCredential("Invalid token payload")
    return user_id


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise Unauthenticated()

    user_id = decode_access_token(credentials.credentials)
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        logger.info("Token for unknown user %s rejected", user_id)
        raise InvalidCredential("User no longer exists")
    if not user.is_verified:
        raise NotVerified()
    return user
