"""Tenant and subscription schemas"""

from typing import Optional

from pydantic import Field

from app.models.tenant import SubscriptionPlan, SubscriptionStatus
from app.schemas.base import CamelModel


class TenantCreate(CamelModel):
    """Create tenant request"""
    tenant_id: str = Field(min_length=1, max_length=64, pattern=r"^[a-z0-9][a-z0-9-]*$")
    name: str = Field(min_length=1, max_length=255)
    plan: SubscriptionPlan = SubscriptionPlan.MONTHLY
    status: SubscriptionStatus = SubscriptionStatus.TRIAL


class SubscriptionResponse(CamelModel):
    tenant_id: str
    plan: str
    status: str
    amount: int
    currency: str
    start_at: int
    current_period_start: int
    current_period_end: int
    updated_at: int
    operational: bool = False


class TenantResponse(CamelModel):
    """Tenant response"""
    tenant_id: str
    name: str
    created_at: int
    updated_at: int
    subscription: Optional[SubscriptionResponse] = None


class SubscriptionUpdate(CamelModel):
    plan: SubscriptionPlan
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    start_at: Optional[int] = None


class SubscriptionStatusUpdate(CamelModel):
    status: SubscriptionStatus


class PlanResponse(CamelModel):
    plan: str
    duration_days: int
    amount: int
    currency: str
