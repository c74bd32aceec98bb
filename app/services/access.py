"""Tenant access policy and per-operation role sets"""

from typing import Optional

from app.config import settings
from app.models.user import User, UserRole
from app.utils import is_non_empty

ORDER_ADMIN_ROLES = frozenset({
    UserRole.PLATFORM_ADMIN,
    UserRole.RESTAURANT_OWNER,
    UserRole.MANAGER,
    UserRole.DISPATCH,
    UserRole.KITCHEN,
})

STATUS_UPDATE_ROLES = frozenset({
    UserRole.PLATFORM_ADMIN,
    UserRole.RESTAURANT_OWNER,
    UserRole.MANAGER,
    UserRole.KITCHEN,
})

DELIVERY_CONFIRM_ROLES = frozenset({
    UserRole.PLATFORM_ADMIN,
    UserRole.RESTAURANT_OWNER,
    UserRole.MANAGER,
    UserRole.DISPATCH,
    UserRole.RIDER,
})

TRACKING_UPDATE_ROLES = frozenset({
    UserRole.PLATFORM_ADMIN,
    UserRole.RESTAURANT_OWNER,
    UserRole.MANAGER,
    UserRole.DISPATCH,
    UserRole.RIDER,
})

NOTIFICATION_ROLES = frozenset({
    UserRole.PLATFORM_ADMIN,
    UserRole.RESTAURANT_OWNER,
    UserRole.MANAGER,
    UserRole.DISPATCH,
})

PLATFORM_ROLES = frozenset({UserRole.PLATFORM_ADMIN})


def is_platform_admin(actor: Optional[User]) -> bool:
    return actor is not None and actor.role == UserRole.PLATFORM_ADMIN


def has_role(actor: Optional[User], allowed_roles) -> bool:
    return actor is not None and actor.role in allowed_roles


def can_access(actor: Optional[User], resource_tenant_id: Optional[str]) -> bool:
    """Whether the actor may see or mutate data owned by the tenant"""
    if actor is None:
        return False
    if is_platform_admin(actor):
        return True
    return actor.tenant_id == (resource_tenant_id or settings.default_tenant_id)


def resolve_tenant_id(actor: Optional[User], requested_tenant_id: Optional[str]) -> str:
    """Effective tenant for order placement.

    Platform admins may place orders for any named tenant; everyone else is
    pinned to their own tenant. Anonymous callers land on the default tenant.
    """
    if actor is not None:
        if is_platform_admin(actor) and is_non_empty(requested_tenant_id):
            return requested_tenant_id.strip()
        if is_non_empty(actor.tenant_id):
            return actor.tenant_id.strip()
    return settings.default_tenant_id


def resolve_public_tenant_id(actor: Optional[User], requested_tenant_id: Optional[str]) -> str:
    """Effective tenant for customer self-service lookups.

    Unlike order placement, anonymous callers may name the storefront tenant.
    """
    if actor is not None:
        if is_platform_admin(actor):
            if is_non_empty(requested_tenant_id):
                return requested_tenant_id.strip()
            return settings.default_tenant_id
        if is_non_empty(actor.tenant_id):
            return actor.tenant_id.strip()
    if is_non_empty(requested_tenant_id):
        return requested_tenant_id.strip()
    return settings.default_tenant_id
