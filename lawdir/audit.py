"""
Audit trail helpers.

Rows are added to the caller's session and committed with the rest of
the unit of work.
"""

from typing import Any, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from .db.models import AuditLog, EntityType
from .errors import ValidationFailed


def record_action(
    db: Session,
    user_id: Optional[str],
    action: str,
    entity_type: EntityType,
    entity_id: str,
    extra_data: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """Append an audit row (e.g. APPROVE_LAWYER_CHANGES) to the session"""
    entry = AuditLog(
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        extra_data=extra_data or {},
    )
    db.add(entry)
    return entry


def list_actions(db: Session, entity_type: Union[EntityType, str], entity_id: str) -> List[AuditLog]:
    """Audit trail of one entity, oldest first"""
    if not isinstance(entity_type, EntityType):
        try:
            entity_type = EntityType((entity_type or "").strip().upper())
        except ValueError:
            raise ValidationFailed("Invalid entity type")
    return (
        db.query(AuditLog)
        .filter(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
        .order_by(AuditLog.created_at.asc())
        .all()
    )
