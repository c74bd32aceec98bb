"""Tenant subscription gate and plan management"""

from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import (
    ConflictError,
    ForbiddenError,
    InvalidPayloadError,
    NotFoundError,
    SubscriptionInactiveError,
)
from app.models.tenant import (
    DAY_MS,
    PLAN_CATALOG,
    Subscription,
    Tenant,
    SubscriptionPlan,
    SubscriptionStatus,
)
from app.models.user import User
from app.services.access import can_access
from app.services.audit import record_audit
from app.stores import TenantStore
from app.utils import now_ms

logger = structlog.get_logger()

SUBSCRIPTION_STATUS_VALUES = frozenset(status.value for status in SubscriptionStatus)


async def get_subscription(db: AsyncSession, tenant_id: str) -> Optional[Subscription]:
    return await TenantStore(db).get_subscription(tenant_id)


async def get_tenant_subscription(db: AsyncSession, tenant_id: str, actor: User) -> Subscription:
    """Subscription of a tenant the actor belongs to (or any, for platform admins)"""
    store = TenantStore(db)
    if not await store.exists(tenant_id):
        raise NotFoundError("Tenant not found.")
    if not can_access(actor, tenant_id):
        raise ForbiddenError("Tenant access denied.")

    subscription = await store.get_subscription(tenant_id)
    if subscription is None:
        raise NotFoundError("Subscription not found.")
    return subscription


async def is_operational(db: AsyncSession, tenant_id: str, now: Optional[int] = None) -> bool:
    """True iff a subscription exists, is trial/active and its period has not ended"""
    subscription = await get_subscription(db, tenant_id)
    if subscription is None:
        return False
    return subscription.is_operational(now if now is not None else now_ms())


async def ensure_operational(db: AsyncSession, tenant_id: str) -> None:
    """Raise a 402-style failure carrying the observed subscription state"""
    subscription = await get_subscription(db, tenant_id)
    if subscription is not None and subscription.is_operational(now_ms()):
        return

    logger.info(
        "Tenant subscription not operational",
        tenant_id=tenant_id,
        subscription_status=subscription.status if subscription else "missing",
    )
    raise SubscriptionInactiveError(
        "Tenant subscription is not active for processing orders.",
        details={
            "tenantId": tenant_id,
            "subscriptionStatus": subscription.status if subscription else "missing",
            "currentPeriodEnd": subscription.current_period_end if subscription else None,
        },
    )


def build_subscription(
    tenant_id: str,
    plan: str = SubscriptionPlan.MONTHLY.value,
    status: str = SubscriptionStatus.ACTIVE.value,
    start_at: Optional[int] = None,
) -> Subscription:
    """Subscription record whose period is derived from the plan duration"""
    if plan not in PLAN_CATALOG:
        raise InvalidPayloadError("plan must be monthly, quarterly, or yearly.")
    if status not in SUBSCRIPTION_STATUS_VALUES:
        raise InvalidPayloadError("Invalid subscription status.")

    now = now_ms()
    start = start_at if start_at is not None else now
    selected = PLAN_CATALOG[plan]
    return Subscription(
        tenant_id=tenant_id,
        plan=selected["plan"],
        status=status,
        amount=selected["amount"],
        currency=selected["currency"],
        start_at=start,
        current_period_start=start,
        current_period_end=start + selected["duration_days"] * DAY_MS,
        updated_at=now,
    )


async def set_subscription(
    db: AsyncSession,
    tenant_id: str,
    plan: str,
    status: str,
    start_at: Optional[int] = None,
    actor: Optional[User] = None,
) -> Subscription:
    """Replace the tenant's plan and restart its billing period"""
    store = TenantStore(db)
    if not await store.exists(tenant_id):
        raise NotFoundError("Tenant not found.")

    subscription = await store.upsert_subscription(
        build_subscription(tenant_id, plan=plan, status=status, start_at=start_at)
    )
    await db.commit()

    logger.info("Subscription updated", tenant_id=tenant_id, plan=plan, status=status)
    await record_audit(
        db,
        action="subscription.update",
        entity_type="subscription",
        entity_id=tenant_id,
        tenant_id=tenant_id,
        actor=actor,
        details={"plan": plan, "status": status, "currentPeriodEnd": subscription.current_period_end},
    )
    return subscription


async def set_subscription_status(
    db: AsyncSession,
    tenant_id: str,
    status: str,
    actor: Optional[User] = None,
) -> Subscription:
    if status not in SUBSCRIPTION_STATUS_VALUES:
        raise InvalidPayloadError("Invalid subscription status.")

    subscription = await TenantStore(db).get_subscription(tenant_id, for_update=True)
    if subscription is None:
        raise NotFoundError("Subscription not found.")

    previous_status = subscription.status
    subscription.status = status
    subscription.updated_at = now_ms()
    await db.commit()

    logger.info(
        "Subscription status changed",
        tenant_id=tenant_id,
        from_status=previous_status,
        to_status=status,
    )
    await record_audit(
        db,
        action="subscription.update",
        entity_type="subscription",
        entity_id=tenant_id,
        tenant_id=tenant_id,
        actor=actor,
        details={"status": status},
    )
    return subscription


async def create_tenant(
    db: AsyncSession,
    tenant_id: str,
    name: str,
    plan: str = SubscriptionPlan.MONTHLY.value,
    status: str = SubscriptionStatus.TRIAL.value,
) -> Tenant:
    """Register a tenant together with its first subscription period"""
    store = TenantStore(db)
    if await store.exists(tenant_id):
        raise ConflictError("Tenant already exists.")

    subscription = build_subscription(tenant_id, plan=plan, status=status)
    now = subscription.updated_at
    tenant = Tenant(tenant_id=tenant_id, name=name, created_at=now, updated_at=now)
    tenant.subscription = subscription
    db.add(tenant)
    await db.commit()

    logger.info("Tenant created", tenant_id=tenant_id, plan=plan, status=status)
    return tenant
