"""Audit log model"""

import uuid
from sqlalchemy import Column, String, BigInteger, JSON

from app.database import Base


class AuditLog(Base):
    """Audit trail for important actions"""
    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id = Column(String(64), index=True)

    # Actor information
    actor_user_id = Column(String(64))  # null for anonymous / system
    actor_email = Column(String(255))

    # Action details
    action = Column(String(100), nullable=False)  # order.create, order.status_update, etc.
    entity_type = Column(String(50))  # order, tracking, subscription
    entity_id = Column(String(64))
    status = Column(String(20), default="success")

    details_json = Column(JSON)

    created_at = Column(BigInteger, nullable=False)
