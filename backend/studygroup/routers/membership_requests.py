"""Join-request routes — send, list and decide."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from studygroup.database import get_db
from studygroup.models.membership_request import RequestStatus
from studygroup.models.user import User
from studygroup.schemas.membership_request import JoinRequestCreate, JoinRequestDecision, JoinRequestOut
from studygroup.security import get_current_user
from studygroup.services import membership_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/{group_id}/requests", response_model=JoinRequestOut, status_code=status.HTTP_201_CREATED)
def send_join_request(
    group_id: str,
    payload: JoinRequestCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return membership_service.send_join_request(db, current_user, group_id, payload.message)


@router.get("/{group_id}/requests", response_model=list[JoinRequestOut])
def list_join_requests(
    group_id: str,
    status_filter: Optional[RequestStatus] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Leader-only listing; overdue PENDING requests are expired first."""
    return membership_service.list_group_requests(db, current_user, group_id, status=status_filter)


@router.post("/{group_id}/requests/{request_id}/respond", response_model=JoinRequestOut)
def respond_to_request(
    group_id: str,
    request_id: str,
    payload: JoinRequestDecision,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Approve or reject a pending request (leader only)."""
    return membership_service.respond_to_request(
        db,
        current_user,
        group_id,
        request_id,
        action=payload.action,
        response_message=payload.response_message,
    )
