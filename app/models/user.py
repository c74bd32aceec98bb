"""User model for staff and customer authentication"""

import uuid
from sqlalchemy import Column, String, Boolean, BigInteger, ForeignKey, Enum
from sqlalchemy.orm import relationship
import enum

from app.database import Base


class UserRole(str, enum.Enum):
    """User roles for RBAC"""
    PLATFORM_ADMIN = "platform_admin"
    RESTAURANT_OWNER = "restaurant_owner"
    MANAGER = "manager"
    DISPATCH = "dispatch"
    KITCHEN = "kitchen"
    RIDER = "rider"
    CUSTOMER = "customer"


class User(Base):
    """Platform users (staff, riders and registered customers)"""
    __tablename__ = "users"

    user_id = Column(String(64), primary_key=True, default=lambda: f"u-{uuid.uuid4().hex[:12]}")
    tenant_id = Column(String(64), ForeignKey("tenants.tenant_id"))

    # Authentication
    email = Column(String(255), unique=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)

    # Profile
    name = Column(String(255))

    # Role
    role = Column(
        Enum(
            UserRole,
            native_enum=False,
            length=32,
            values_callable=lambda roles: [role.value for role in roles],
        ),
        default=UserRole.CUSTOMER,
    )

    # Status
    is_active = Column(Boolean, default=True)

    # Timestamps (epoch ms)
    last_login = Column(BigInteger)
    created_at = Column(BigInteger)

    # Relationships
    tenant = relationship("Tenant")
