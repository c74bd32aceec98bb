"""Tenant and subscription API endpoints"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.tenant import PLAN_CATALOG, Subscription, Tenant
from app.models.user import User
from app.schemas.tenant import (
    PlanResponse,
    SubscriptionResponse,
    SubscriptionStatusUpdate,
    SubscriptionUpdate,
    TenantCreate,
    TenantResponse,
)
from app.api.auth import get_current_user, require_platform_admin
from app.services import subscriptions as subscription_service
from app.stores import TenantStore
from app.utils import now_ms

router = APIRouter()
plans_router = APIRouter()


def _subscription_response(subscription: Subscription, now: int) -> SubscriptionResponse:
    response = SubscriptionResponse.model_validate(subscription)
    response.operational = subscription.is_operational(now)
    return response


def _tenant_response(tenant: Tenant, now: int) -> TenantResponse:
    return TenantResponse(
        tenant_id=tenant.tenant_id,
        name=tenant.name,
        created_at=tenant.created_at,
        updated_at=tenant.updated_at,
        subscription=_subscription_response(tenant.subscription, now) if tenant.subscription else None,
    )


@plans_router.get("/plans", response_model=List[PlanResponse])
async def list_plans():
    """Subscription plan catalog"""
    return list(PLAN_CATALOG.values())


@router.get("", response_model=List[TenantResponse])
async def list_tenants(
    current_user: User = Depends(require_platform_admin),
    db: AsyncSession = Depends(get_db),
):
    """List all tenants with their subscription (platform admin only)"""
    now = now_ms()
    return [_tenant_response(tenant, now) for tenant in await TenantStore(db).list()]


@router.post("", response_model=TenantResponse, status_code=status.HTTP_201_CREATED)
async def create_tenant(
    tenant_data: TenantCreate,
    current_user: User = Depends(require_platform_admin),
    db: AsyncSession = Depends(get_db),
):
    """Create a new tenant and open its first subscription period"""
    tenant = await subscription_service.create_tenant(
        db,
        tenant_data.tenant_id,
        tenant_data.name,
        plan=tenant_data.plan.value,
        status=tenant_data.status.value,
    )
    return _tenant_response(tenant, now_ms())


@router.get("/{tenant_id}/subscription", response_model=SubscriptionResponse)
async def get_subscription(
    tenant_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Read a tenant's subscription and whether it currently allows order processing"""
    subscription = await subscription_service.get_tenant_subscription(db, tenant_id, current_user)
    return _subscription_response(subscription, now_ms())


@router.put("/{tenant_id}/subscription", response_model=SubscriptionResponse)
async def set_subscription(
    tenant_id: str,
    update: SubscriptionUpdate,
    current_user: User = Depends(require_platform_admin),
    db: AsyncSession = Depends(get_db),
):
    """Set plan and status, restarting the billing period (platform admin only)"""
    subscription = await subscription_service.set_subscription(
        db,
        tenant_id,
        plan=update.plan.value,
        status=update.status.value,
        start_at=update.start_at,
        actor=current_user,
    )
    return _subscription_response(subscription, now_ms())


@router.patch("/{tenant_id}/subscription/status", response_model=SubscriptionResponse)
async def set_subscription_status(
    tenant_id: str,
    update: SubscriptionStatusUpdate,
    current_user: User = Depends(require_platform_admin),
    db: AsyncSession = Depends(get_db),
):
    """Change subscription status only (platform admin only)"""
    subscription = await subscription_service.set_subscription_status(
        db, tenant_id, update.status.value, actor=current_user
    )
    return _subscription_response(subscription, now_ms())
