"""
Activity logging
Appends typed entries to the activity log inside the caller's unit of work
"""
from typing import Optional, Union

from sqlalchemy.orm import Session

from gudang.core.clock import utcnow
from gudang.core.logging import get_logger
from gudang.models.activity import ActivityLog
from gudang.schemas.activity import ActivityPayload

logger = get_logger("business")


def log_activity(
    db: Session,
    *,
    entity_table: str,
    record_id: Optional[Union[int, str]],
    payload: ActivityPayload,
    changed_by: str,
) -> ActivityLog:
    """Add an activity entry; the caller commits"""
    entry = ActivityLog(
        created_at=utcnow(),
        entity_table=entity_table,
        record_id=str(record_id) if record_id is not None else None,
        action_type=payload.action.value,
        new_data=payload.to_json(),
        changed_by=changed_by,
    )
    db.add(entry)
    logger.info(f"[{payload.action.value}] {entity_table}#{record_id} by {changed_by}: {payload.message}")
    return entry
