"""Group notice board routes."""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from studygroup.database import get_db
from studygroup.models.user import User
from studygroup.schemas.notice import NoticeCreate, NoticeOut, NoticePin, NoticeUpdate
from studygroup.security import get_current_user
from studygroup.services import notice_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/{group_id}/notices", response_model=NoticeOut, status_code=status.HTTP_201_CREATED)
def create_notice(
    group_id: str,
    payload: NoticeCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return notice_service.create_notice(db, current_user, group_id, **payload.model_dump())


@router.get("/{group_id}/notices", response_model=list[NoticeOut])
def list_notices(group_id: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Pinned notices first, then newest first."""
    return notice_service.list_notices(db, current_user, group_id)


@router.get("/{group_id}/notices/{notice_id}", response_model=NoticeOut)
def get_notice(
    group_id: str,
    notice_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return notice_service.get_notice(db, current_user, group_id, notice_id)


@router.patch("/{group_id}/notices/{notice_id}", response_model=NoticeOut)
def update_notice(
    group_id: str,
    notice_id: str,
    payload: NoticeUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Author-only edit; changing the pin additionally requires the leader."""
    return notice_service.update_notice(
        db, current_user, group_id, notice_id, payload.model_dump(exclude_unset=True)
    )


@router.put("/{group_id}/notices/{notice_id}/pin", response_model=NoticeOut)
def pin_notice(
    group_id: str,
    notice_id: str,
    payload: NoticePin,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return notice_service.set_pinned(db, current_user, group_id, notice_id, payload.is_pinned)


@router.delete("/{group_id}/notices/{notice_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notice(
    group_id: str,
    notice_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    notice_service.delete_notice(db, current_user, group_id, notice_id)
