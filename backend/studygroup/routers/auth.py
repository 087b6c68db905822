"""Registration and login routes."""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from studygroup.database import get_db
from studygroup.schemas.user import TokenOut, UserLogin, UserOut, UserRegister
from studygroup.services import user_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register(payload: UserRegister, db: Session = Depends(get_db)):
    """Register a whitelisted email address."""
    return user_service.register_user(db, **payload.model_dump())


@router.post("/login", response_model=TokenOut)
def login(payload: UserLogin, db: Session = Depends(get_db)):
    """Exchange email + password for a bearer token."""
    token = user_service.authenticate(db, payload.email, payload.password)
    return TokenOut(access_token=token)
