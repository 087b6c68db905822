"""Membership workflow — groups, join requests and member lifecycle.

Rules enforced here:
- capacity: ACTIVE members of a group never exceed ``max_members``
- one active group: a user holds at most one ACTIVE membership anywhere
- leader authority: only the leader decides requests, edits or disbands
- request lifecycle: PENDING -> APPROVED | REJECTED exactly once; an
  overdue PENDING request is never approved

Every check runs inside the same unit of work as the write it guards.
Counts are recomputed from the Membership table each time, and the Group
and User rows involved are locked with ``SELECT ... FOR UPDATE`` so a
concurrent approval or join cannot slip between check and insert.
"""
import enum
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from studygroup.database import unit_of_work
from studygroup.errors import (
    AlreadyLeader,
    AlreadyMember,
    CapacityBelowMembers,
    DuplicatePendingRequest,
    GroupFull,
    GroupNotFound,
    InvalidAction,
    InvalidGroupName,
    InvalidMessage,
    LeaderCannotLeave,
    MembershipNotFound,
    NameTaken,
    NotAMember,
    NotLeader,
    RequestAlreadyProcessed,
    RequestExpired,
    RequestNotFound,
    SelfRequestToOwnGroup,
)
from studygroup.models.activity_log import ActivityKind
from studygroup.models.group import Group, GroupPurpose, Membership, MembershipStatus
from studygroup.models.membership_request import MembershipRequest, RequestStatus
from studygroup.models.user import User
from studygroup.schemas.group import NAME_MAX_LENGTH, NAME_MIN_LENGTH
from studygroup.schemas.membership_request import MESSAGE_MAX_LENGTH, MESSAGE_MIN_LENGTH
from studygroup.services import activity_service

logger = logging.getLogger(__name__)

DISBAND_RESPONSE = "The group was disbanded"
DECISION_ACTIONS = ("approve", "reject")


class GroupRole(str, enum.Enum):
    leader = "leader"
    member = "member"
    none = "none"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Lookups and locks
# ---------------------------------------------------------------------------

def get_role(db: Session, user_id: str, group: Group) -> GroupRole:
    """The caller's standing in ``group``; consulted once per operation."""
    if group.leader_id == user_id:
        return GroupRole.leader
    membership = (
        db.query(Membership)
        .filter(
            Membership.group_id == group.group_id,
            Membership.user_id == user_id,
            Membership.status == MembershipStatus.ACTIVE,
        )
        .first()
    )
    return GroupRole.member if membership else GroupRole.none


def get_active_group(db: Session, group_id: str, lock: bool = False) -> Group:
    query = db.query(Group).filter(Group.group_id == group_id, Group.is_active.is_(True))
    if lock:
        query = query.with_for_update().populate_existing()
    group = query.first()
    if not group:
        raise GroupNotFound()
    return group


def _lock_user(db: Session, user_id: str) -> User:
    return (
        db.query(User)
        .filter(User.user_id == user_id)
        .with_for_update()
        .populate_existing()
        .one()
    )


def active_member_count(db: Session, group_id: str) -> int:
    return (
        db.query(func.count(Membership.membership_id))
        .filter(Membership.group_id == group_id, Membership.status == MembershipStatus.ACTIVE)
        .scalar()
    )


def _active_membership_of(db: Session, user_id: str) -> Optional[Membership]:
    return (
        db.query(Membership)
        .filter(Membership.user_id == user_id, Membership.status == MembershipStatus.ACTIVE)
        .first()
    )


def _led_group_of(db: Session, user_id: str) -> Optional[Group]:
    return (
        db.query(Group)
        .filter(Group.leader_id == user_id, Group.is_active.is_(True))
        .first()
    )


def _name_in_use(db: Session, name: str, exclude_group_id: Optional[str] = None) -> bool:
    query = db.query(Group).filter(Group.name == name, Group.is_active.is_(True))
    if exclude_group_id:
        query = query.filter(Group.group_id != exclude_group_id)
    return query.first() is not None


def group_summary(db: Session, group: Group) -> dict[str, Any]:
    return {
        "group_id": group.group_id,
        "name": group.name,
        "description": group.description,
        "purpose": group.purpose,
        "max_members": group.max_members,
        "leader_id": group.leader_id,
        "is_active": group.is_active,
        "member_count": active_member_count(db, group.group_id),
        "created_at": group.created_at,
    }


def list_groups(db: Session, purpose: Optional[GroupPurpose] = None, q: Optional[str] = None) -> list[Group]:
    query = db.query(Group).filter(Group.is_active.is_(True))
    if purpose:
        query = query.filter(Group.purpose == purpose)
    if q:
        query = query.filter(Group.name.icontains(q, autoescape=True))
    return query.order_by(Group.created_at.desc()).all()


def list_members(db: Session, group_id: str) -> list[dict[str, Any]]:
    group = get_active_group(db, group_id)
    rows = (
        db.query(Membership, User)
        .join(User, User.user_id == Membership.user_id)
        .filter(Membership.group_id == group.group_id, Membership.status == MembershipStatus.ACTIVE)
        .order_by(Membership.joined_at)
        .all()
    )
    return [
        {
            "membership_id": m.membership_id,
            "user_id": u.user_id,
            "display_name": u.display_name,
            "status": m.status.value,
            "is_leader": u.user_id == group.leader_id,
            "joined_at": m.joined_at,
        }
        for m, u in rows
    ]


# ---------------------------------------------------------------------------
# Group lifecycle
# ---------------------------------------------------------------------------

def _check_name(name: str) -> str:
    name = name.strip()
    if not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
        raise InvalidGroupName(
            f"Group name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters"
        )
    return name


def create_group(
    db: Session,
    requester: User,
    name: str,
    purpose: GroupPurpose,
    max_members: int,
    description: Optional[str] = None,
) -> Group:
    """Create a group with the requester as leader and first ACTIVE member."""
    name = _check_name(name)
    with unit_of_work(db, on_conflict={
        "uq_groups_active_name": NameTaken(),
        "uq_memberships_active_user": AlreadyMember(),
    }):
        _lock_user(db, requester.user_id)
        if _led_group_of(db, requester.user_id):
            raise AlreadyLeader()
        if _active_membership_of(db, requester.user_id):
            raise AlreadyMember()
        if _name_in_use(db, name):
            raise NameTaken()

        group = Group(
            name=name,
            description=description,
            purpose=purpose,
            max_members=max_members,
            leader_id=requester.user_id,
            is_active=True,
        )
        db.add(group)
        db.flush()
        db.add(Membership(group_id=group.group_id, user_id=requester.user_id, status=MembershipStatus.ACTIVE))
        activity_service.record_activity(
            db, requester.user_id, ActivityKind.GROUP_CREATED,
            f"{requester.display_name} created group '{name}'",
            group_id=group.group_id,
            details={"purpose": purpose.value, "max_members": max_members},
        )
    db.refresh(group)
    logger.info("Created group '%s' (%s) led by %s", group.name, group.group_id, requester.user_id)
    return group


def update_group(db: Session, requester: User, group_id: str, updates: dict[str, Any]) -> Group:
    with unit_of_work(db, on_conflict={"uq_groups_active_name": NameTaken()}):
        group = get_active_group(db, group_id, lock=True)
        if get_role(db, requester.user_id, group) != GroupRole.leader:
            raise NotLeader()

        if updates.get("name") is not None:
            updates["name"] = _check_name(updates["name"])
            if _name_in_use(db, updates["name"], exclude_group_id=group.group_id):
                raise NameTaken()
        if updates.get("max_members") is not None:
            if updates["max_members"] < active_member_count(db, group.group_id):
                raise CapacityBelowMembers()

        changed = {}
        for field, value in updates.items():
            if value is None and field != "description":
                continue
            setattr(group, field, value)
            changed[field] = value.value if isinstance(value, enum.Enum) else value
        activity_service.record_activity(
            db, requester.user_id, ActivityKind.GROUP_UPDATED,
            f"{requester.display_name} updated group '{group.name}'",
            group_id=group.group_id,
            details=changed,
        )
    db.refresh(group)
    logger.info("Updated group %s: %s", group_id, sorted(changed))
    return group


def disband_group(db: Session, requester: User, group_id: str) -> None:
    """Deactivate the group, end every membership and reject open requests."""
    now = _utcnow()
    with unit_of_work(db):
        group = get_active_group(db, group_id, lock=True)
        if get_role(db, requester.user_id, group) != GroupRole.leader:
            raise NotLeader()

        group.is_active = False
        memberships = (
            db.query(Membership)
            .filter(Membership.group_id == group.group_id, Membership.status == MembershipStatus.ACTIVE)
            .all()
        )
        for membership in memberships:
            membership.status = MembershipStatus.REMOVED
            membership.ended_at = now
        pending = (
            db.query(MembershipRequest)
            .filter(MembershipRequest.group_id == group.group_id, MembershipRequest.status == RequestStatus.PENDING)
            .all()
        )
        for request in pending:
            request.status = RequestStatus.REJECTED
            request.response_message = DISBAND_RESPONSE
            request.responded_at = now
        activity_service.record_activity(
            db, requester.user_id, ActivityKind.GROUP_DISBANDED,
            f"{requester.display_name} disbanded group '{group.name}'",
            group_id=group.group_id,
            details={"members_removed": len(memberships), "requests_rejected": len(pending)},
        )
    logger.info("Disbanded group %s (%d members, %d pending requests)", group_id, len(memberships), len(pending))


def leave_group(db: Session, requester: User, group_id: str) -> Membership:
    with unit_of_work(db):
        group = get_active_group(db, group_id)
        role = get_role(db, requester.user_id, group)
        if role == GroupRole.leader:
            raise LeaderCannotLeave()
        if role == GroupRole.none:
            raise NotAMember()

        membership = _active_membership_of(db, requester.user_id)
        membership.status = MembershipStatus.LEFT
        membership.ended_at = _utcnow()
        activity_service.record_activity(
            db, requester.user_id, ActivityKind.MEMBER_LEFT,
            f"{requester.display_name} left group '{group.name}'",
            group_id=group.group_id,
        )
    db.refresh(membership)
    logger.info("User %s left group %s", requester.user_id, group_id)
    return membership


def remove_member(db: Session, requester: User, group_id: str, user_id: str) -> Membership:
    with unit_of_work(db):
        group = get_active_group(db, group_id, lock=True)
        if get_role(db, requester.user_id, group) != GroupRole.leader:
            raise NotLeader()
        if user_id == group.leader_id:
            raise LeaderCannotLeave("The leader cannot remove themselves")

        membership = (
            db.query(Membership)
            .filter(
                Membership.group_id == group.group_id,
                Membership.user_id == user_id,
                Membership.status == MembershipStatus.ACTIVE,
            )
            .first()
        )
        if not membership:
            raise MembershipNotFound()
        membership.status = MembershipStatus.REMOVED
        membership.ended_at = _utcnow()
        activity_service.record_activity(
            db, user_id, ActivityKind.MEMBER_REMOVED,
            f"Removed from group '{group.name}' by {requester.display_name}",
            group_id=group.group_id,
            details={"removed_by": requester.user_id},
        )
    db.refresh(membership)
    logger.info("Leader %s removed user %s from group %s", requester.user_id, user_id, group_id)
    return membership


# ---------------------------------------------------------------------------
# Join requests
# ---------------------------------------------------------------------------

def _check_message(message: str) -> str:
    text = message.strip()
    if not MESSAGE_MIN_LENGTH <= len(text) <= MESSAGE_MAX_LENGTH:
        raise InvalidMessage(
            f"Message must be between {MESSAGE_MIN_LENGTH} and {MESSAGE_MAX_LENGTH} characters"
        )
    return text


def _pending_request_of(db: Session, group_id: str, user_id: str) -> Optional[MembershipRequest]:
    return (
        db.query(MembershipRequest)
        .filter(
            MembershipRequest.group_id == group_id,
            MembershipRequest.user_id == user_id,
            MembershipRequest.status == RequestStatus.PENDING,
        )
        .first()
    )


def send_join_request(db: Session, requester: User, group_id: str, message: str) -> MembershipRequest:
    """File a PENDING request; pending requests never count as membership."""
    text = _check_message(message)
    with unit_of_work(db, on_conflict={"uq_membership_requests_pending": DuplicatePendingRequest()}):
        group = get_active_group(db, group_id)
        _lock_user(db, requester.user_id)
        if group.leader_id == requester.user_id:
            raise SelfRequestToOwnGroup()
        if _active_membership_of(db, requester.user_id):
            raise AlreadyMember()
        if active_member_count(db, group.group_id) >= group.max_members:
            raise GroupFull()

        existing = _pending_request_of(db, group.group_id, requester.user_id)
        if existing is not None:
            if not existing.is_expired():
                raise DuplicatePendingRequest()
            existing.status = RequestStatus.EXPIRED
            db.flush()

        request = MembershipRequest(group_id=group.group_id, user_id=requester.user_id, message=text)
        db.add(request)
        db.flush()
        activity_service.record_activity(
            db, requester.user_id, ActivityKind.JOIN_REQUEST_SENT,
            f"{requester.display_name} asked to join '{group.name}'",
            group_id=group.group_id,
            details={"request_id": request.request_id},
        )
    db.refresh(request)
    logger.info("User %s sent join request %s to group %s", requester.user_id, request.request_id, group_id)
    return request


def respond_to_request(
    db: Session,
    requester: User,
    group_id: str,
    request_id: str,
    action: str,
    response_message: Optional[str] = None,
) -> MembershipRequest:
    """Approve or reject a PENDING request as the group leader.

    On approval the live ACTIVE count and the applicant's memberships are
    re-read under the group and user row locks, in the same transaction
    that inserts the new Membership.
    """
    if action not in DECISION_ACTIONS:
        raise InvalidAction(f"Unknown action '{action}'; expected approve or reject")
    approve = action == "approve"
    with unit_of_work(db, on_conflict={"uq_memberships_active_user": AlreadyMember()}):
        group = get_active_group(db, group_id, lock=True)
        if get_role(db, requester.user_id, group) != GroupRole.leader:
            raise NotLeader()

        request = (
            db.query(MembershipRequest)
            .filter(MembershipRequest.request_id == request_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if not request or request.group_id != group.group_id:
            raise RequestNotFound()
        if request.status == RequestStatus.EXPIRED or (
            request.status == RequestStatus.PENDING and request.is_expired()
        ):
            raise RequestExpired()
        if request.status != RequestStatus.PENDING:
            raise RequestAlreadyProcessed(f"Membership request is already {request.status.value}")

        applicant = _lock_user(db, request.user_id)
        if approve:
            if active_member_count(db, group.group_id) >= group.max_members:
                raise GroupFull()
            if _active_membership_of(db, applicant.user_id) or _led_group_of(db, applicant.user_id):
                raise AlreadyMember()

        request.status = RequestStatus.APPROVED if approve else RequestStatus.REJECTED
        request.response_message = response_message
        request.responded_at = _utcnow()
        if approve:
            db.add(Membership(group_id=group.group_id, user_id=applicant.user_id, status=MembershipStatus.ACTIVE))

        details = {"request_id": request.request_id, "action": action}
        activity_service.record_activity(
            db, applicant.user_id,
            ActivityKind.JOIN_REQUEST_APPROVED if approve else ActivityKind.JOIN_REQUEST_REJECTED,
            f"Request to join '{group.name}' was {'approved' if approve else 'rejected'}",
            group_id=group.group_id,
            details=details,
        )
        activity_service.record_activity(
            db, requester.user_id, ActivityKind.REQUEST_DECIDED,
            f"{requester.display_name} {'approved' if approve else 'rejected'} {applicant.display_name}'s request",
            group_id=group.group_id,
            details={**details, "user_id": applicant.user_id},
        )
    db.refresh(request)
    logger.info("Leader %s %sd request %s for group %s", requester.user_id, action, request_id, group_id)
    return request


def sweep_expired_requests(db: Session, group_id: Optional[str] = None, user_id: Optional[str] = None) -> int:
    """Mark overdue PENDING requests as EXPIRED; returns how many changed."""
    with unit_of_work(db):
        query = db.query(MembershipRequest).filter(
            MembershipRequest.status == RequestStatus.PENDING,
            MembershipRequest.expires_at <= _utcnow(),
        )
        if group_id:
            query = query.filter(MembershipRequest.group_id == group_id)
        if user_id:
            query = query.filter(MembershipRequest.user_id == user_id)
        expired = query.all()
        for request in expired:
            request.status = RequestStatus.EXPIRED
    if expired:
        logger.info("Expired %d overdue join request(s)", len(expired))
    return len(expired)


def list_group_requests(
    db: Session, requester: User, group_id: str, status: Optional[RequestStatus] = None
) -> list[MembershipRequest]:
    group = get_active_group(db, group_id)
    if get_role(db, requester.user_id, group) != GroupRole.leader:
        raise NotLeader()
    sweep_expired_requests(db, group_id=group.group_id)
    query = db.query(MembershipRequest).filter(MembershipRequest.group_id == group.group_id)
    if status:
        query = query.filter(MembershipRequest.status == status)
    return query.order_by(MembershipRequest.created_at.desc()).all()


def list_user_requests(db: Session, user: User) -> list[MembershipRequest]:
    sweep_expired_requests(db, user_id=user.user_id)
    return (
        db.query(MembershipRequest)
        .filter(MembershipRequest.user_id == user.user_id)
        .order_by(MembershipRequest.created_at.desc())
        .all()
    )
