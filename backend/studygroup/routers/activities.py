"""Activity log read routes."""
import logging
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from studygroup.database import get_db
from studygroup.errors import NotAMember
from studygroup.models.user import User
from studygroup.schemas.activity import ActivityOut
from studygroup.security import get_current_user
from studygroup.services import activity_service, membership_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/activities/me", response_model=list[ActivityOut])
def my_activities(
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return activity_service.list_for_user(db, current_user.user_id, limit=limit)


@router.get("/groups/{group_id}/activities", response_model=list[ActivityOut])
def group_activities(
    group_id: str,
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Group timeline, visible to active members."""
    group = membership_service.get_active_group(db, group_id)
    if membership_service.get_role(db, current_user.user_id, group) == membership_service.GroupRole.none:
        raise NotAMember()
    return activity_service.list_for_group(db, group.group_id, limit=limit)
