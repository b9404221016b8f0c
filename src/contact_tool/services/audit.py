"""Audit trail for operator actions such as contact imports"""
import logging
from typing import Optional
from sqlalchemy.orm import Session

from src.contact_tool.models.audit_log import AuditLog
from src.contact_tool.models.user import User

logger = logging.getLogger(__name__)


def log_action(
    db: Session,
    actor: User,
    action: str,
    target_type: str,
    target_id: Optional[int] = None,
    meta: Optional[dict] = None,
    commit: bool = True,
) -> AuditLog:
    """Record an action. With ``commit=False`` the entry joins the caller's transaction."""
    audit_log = AuditLog(
        actor_user_id=actor.id,
        actor_role=actor.role.value,
        action=action,
        target_type=target_type,
        target_id=target_id,
        meta=meta or None,
    )
    db.add(audit_log)
    if commit:
        db.commit()
        db.refresh(audit_log)
    else:
        db.flush()
    logger.debug(f"Audit: {action} on {target_type} by user_id={actor.id}")
    return audit_log
