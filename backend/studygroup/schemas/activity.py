"""Pydantic schemas for the activity log."""
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel

from studygroup.models.activity_log import ActivityKind


class ActivityOut(BaseModel):
    activity_id: str
    actor_id: str
    group_id: Optional[str] = None
    kind: ActivityKind
    message: str
    details: Optional[dict[str, Any]] = None
    created_at: datetime

    model_config = {"from_attributes": True}
