"""Activity recorder — append-only log written inside the caller's transaction."""
import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from studygroup.models.activity_log import ActivityLog, ActivityKind

logger = logging.getLogger(__name__)


def record_activity(
    db: Session,
    actor_id: str,
    kind: ActivityKind,
    message: str,
    group_id: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
) -> ActivityLog:
    """Stage a log entry on ``db`` without committing.

    The entry is written by the surrounding unit of work, so it exists
    if and only if the state change it describes commits.
    """
    entry = ActivityLog(
        actor_id=actor_id,
        group_id=group_id,
        kind=kind,
        message=message,
        details=details,
    )
    db.add(entry)
    logger.debug("Staged activity %s for actor %s (group %s)", kind.value, actor_id, group_id)
    return entry


def list_for_user(db: Session, user_id: str, limit: int = 50) -> list[ActivityLog]:
    return (
        db.query(ActivityLog)
        .filter(ActivityLog.actor_id == user_id)
        .order_by(ActivityLog.created_at.desc())
        .limit(limit)
        .all()
    )


def list_for_group(db: Session, group_id: str, limit: int = 50) -> list[ActivityLog]:
    return (
        db.query(ActivityLog)
        .filter(ActivityLog.group_id == group_id)
        .order_by(ActivityLog.created_at.desc())
        .limit(limit)
        .all()
    )
