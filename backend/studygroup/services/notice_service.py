"""Notice board rules.

Any ACTIVE member may post. Only the leader may pin or unpin. Only the
author may edit or delete; the leader gets no override on other members'
notices.
"""
import logging
from typing import Any

from sqlalchemy.orm import Session

from studygroup.database import unit_of_work
from studygroup.errors import NoticeNotFound, NotAMember, NotAuthor, NotLeader
from studygroup.models.activity_log import ActivityKind
from studygroup.models.group import Group
from studygroup.models.notice import Notice, NoticeType
from studygroup.models.user import User
from studygroup.services import activity_service
from studygroup.services.membership_service import GroupRole, get_active_group, get_role

logger = logging.getLogger(__name__)


def _require_member(db: Session, user: User, group: Group) -> GroupRole:
    role = get_role(db, user.user_id, group)
    if role == GroupRole.none:
        raise NotAMember()
    return role


def _get_notice(db: Session, group: Group, notice_id: str) -> Notice:
    notice = (
        db.query(Notice)
        .filter(Notice.notice_id == notice_id, Notice.group_id == group.group_id)
        .first()
    )
    if not notice:
        raise NoticeNotFound()
    return notice


def create_notice(
    db: Session,
    author: User,
    group_id: str,
    title: str,
    content: str,
    notice_type: NoticeType = NoticeType.GENERAL,
    is_pinned: bool = False,
) -> Notice:
    with unit_of_work(db):
        group = get_active_group(db, group_id)
        role = _require_member(db, author, group)
        if is_pinned and role != GroupRole.leader:
            raise NotLeader("Only the group leader may pin notices")

        notice = Notice(
            group_id=group.group_id,
            author_id=author.user_id,
            title=title,
            content=content,
            notice_type=notice_type,
            is_pinned=is_pinned,
        )
        db.add(notice)
        db.flush()
        activity_service.record_activity(
            db, author.user_id, ActivityKind.NOTICE_CREATED,
            f"{author.display_name} posted '{title}'",
            group_id=group.group_id,
            details={"notice_id": notice.notice_id, "notice_type": notice_type.value},
        )
    db.refresh(notice)
    logger.info("User %s posted notice %s in group %s", author.user_id, notice.notice_id, group_id)
    return notice


def list_notices(db: Session, user: User, group_id: str) -> list[Notice]:
    group = get_active_group(db, group_id)
    _require_member(db, user, group)
    return (
        db.query(Notice)
        .filter(Notice.group_id == group.group_id)
        .order_by(Notice.is_pinned.desc(), Notice.created_at.desc())
        .all()
    )


def get_notice(db: Session, user: User, group_id: str, notice_id: str) -> Notice:
    group = get_active_group(db, group_id)
    _require_member(db, user, group)
    return _get_notice(db, group, notice_id)


def update_notice(db: Session, user: User, group_id: str, notice_id: str, updates: dict[str, Any]) -> Notice:
    with unit_of_work(db):
        group = get_active_group(db, group_id)
        role = _require_member(db, user, group)
        notice = _get_notice(db, group, notice_id)
        if notice.author_id != user.user_id:
            raise NotAuthor()
        pinned = updates.get("is_pinned")
        if pinned is not None and pinned != notice.is_pinned and role != GroupRole.leader:
            raise NotLeader("Only the group leader may pin notices")

        for field, value in updates.items():
            if value is not None:
                setattr(notice, field, value)
        activity_service.record_activity(
            db, user.user_id, ActivityKind.NOTICE_UPDATED,
            f"{user.display_name} edited '{notice.title}'",
            group_id=group.group_id,
            details={"notice_id": notice.notice_id, "fields": sorted(updates)},
        )
    db.refresh(notice)
    logger.info("User %s updated notice %s", user.user_id, notice_id)
    return notice


def set_pinned(db: Session, user: User, group_id: str, notice_id: str, is_pinned: bool) -> Notice:
    with unit_of_work(db):
        group = get_active_group(db, group_id)
        if get_role(db, user.user_id, group) != GroupRole.leader:
            raise NotLeader("Only the group leader may pin notices")
        notice = _get_notice(db, group, notice_id)
        notice.is_pinned = is_pinned
        activity_service.record_activity(
            db, user.user_id, ActivityKind.NOTICE_PINNED,
            f"{user.display_name} {'pinned' if is_pinned else 'unpinned'} '{notice.title}'",
            group_id=group.group_id,
            details={"notice_id": notice.notice_id, "is_pinned": is_pinned},
        )
    db.refresh(notice)
    logger.info("Notice %s pinned=%s by leader %s", notice_id, is_pinned, user.user_id)
    return notice


def delete_notice(db: Session, user: User, group_id: str, notice_id: str) -> None:
    with unit_of_work(db):
        group = get_active_group(db, group_id)
        _require_member(db, user, group)
        notice = _get_notice(db, group, notice_id)
        if notice.author_id != user.user_id:
            raise NotAuthor()
        title = notice.title
        db.delete(notice)
        activity_service.record_activity(
            db, user.user_id, ActivityKind.NOTICE_DELETED,
            f"{user.display_name} deleted '{title}'",
            group_id=group.group_id,
            details={"notice_id": notice_id},
        )
    logger.info("User %s deleted notice %s", user.user_id, notice_id)
