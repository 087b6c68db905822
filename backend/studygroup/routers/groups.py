"""Group management routes."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from studygroup.database import get_db
from studygroup.models.group import GroupPurpose
from studygroup.models.user import User
from studygroup.schemas.group import GroupCreate, GroupOut, GroupUpdate, MemberOut, MembershipOut
from studygroup.security import get_current_user
from studygroup.services import membership_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=GroupOut, status_code=status.HTTP_201_CREATED)
def create_group(
    payload: GroupCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Create a group. The creator becomes its leader and first member."""
    group = membership_service.create_group(
        db,
        current_user,
        name=payload.name,
        purpose=payload.purpose,
        max_members=payload.max_members,
        description=payload.description,
    )
    return membership_service.group_summary(db, group)


@router.get("/", response_model=list[GroupOut])
def list_groups(
    purpose: Optional[GroupPurpose] = None,
    q: Optional[str] = None,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    """List active groups, optionally filtered by purpose or name."""
    groups = membership_service.list_groups(db, purpose=purpose, q=q)
    return [membership_service.group_summary(db, g) for g in groups]


@router.get("/{group_id}", response_model=GroupOut)
def get_group(group_id: str, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    group = membership_service.get_active_group(db, group_id)
    return membership_service.group_summary(db, group)


@router.patch("/{group_id}", response_model=GroupOut)
def update_group(
    group_id: str,
    payload: GroupUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Leader-only partial update."""
    group = membership_service.update_group(db, current_user, group_id, payload.model_dump(exclude_unset=True))
    return membership_service.group_summary(db, group)


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
def disband_group(group_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Leader-only: disband the group and release every member."""
    membership_service.disband_group(db, current_user, group_id)


@router.get("/{group_id}/members", response_model=list[MemberOut])
def list_members(group_id: str, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return membership_service.list_members(db, group_id)


@router.post("/{group_id}/leave", response_model=MembershipOut)
def leave_group(group_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return membership_service.leave_group(db, current_user, group_id)


@router.delete("/{group_id}/members/{user_id}", response_model=MembershipOut)
def remove_member(
    group_id: str,
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Leader-only: remove an active member."""
    return membership_service.remove_member(db, current_user, group_id, user_id)
