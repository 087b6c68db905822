"""User profile routes."""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from studygroup.database import get_db
from studygroup.models.user import User
from studygroup.schemas.membership_request import JoinRequestOut
from studygroup.schemas.user import UserOut, UserPublic, UserUpdate
from studygroup.security import get_current_user
from studygroup.services import membership_service, user_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/me", response_model=UserOut)
def read_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.patch("/me", response_model=UserOut)
def update_me(
    payload: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Update profile fields (partial update)."""
    updates = payload.model_dump(exclude_unset=True)
    if updates.get("display_name", "") is None:
        del updates["display_name"]
    return user_service.update_profile(db, current_user, updates)


@router.get("/me/requests", response_model=list[JoinRequestOut])
def my_requests(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Join requests sent by the current user, newest first."""
    return membership_service.list_user_requests(db, current_user)


@router.get("/{user_id}", response_model=UserPublic)
def get_user(user_id: str, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return user_service.get_user(db, user_id)
