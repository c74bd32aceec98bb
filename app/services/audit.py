"""Best-effort audit sink"""

from typing import Any, Dict, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit import AuditLog
from app.models.user import User
from app.utils import now_ms

logger = structlog.get_logger()


async def record_audit(
    db: AsyncSession,
    action: str,
    entity_type: str,
    entity_id: str,
    tenant_id: Optional[str],
    actor: Optional[User] = None,
    details: Optional[Dict[str, Any]] = None,
    status: str = "success",
) -> None:
    """Persist an audit entry in its own session.

    Called after the primary change has committed. Failures are logged and
    swallowed so they never fail or roll back the operation being audited.
    """
    entry = AuditLog(
        tenant_id=tenant_id,
        actor_user_id=actor.user_id if actor else None,
        actor_email=actor.email if actor else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        status=status,
        details_json=details or {},
        created_at=now_ms(),
    )

    logger.info(
        "Audit",
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        tenant_id=tenant_id,
        actor_user_id=entry.actor_user_id,
        status=status,
    )

    try:
        async with AsyncSession(bind=db.bind, expire_on_commit=False) as audit_db:
            audit_db.add(entry)
            await audit_db.commit()
    except SQLAlchemyError as e:
        logger.warning("Failed to write audit entry", action=action, entity_id=entity_id, error=str(e))
