"""Tenant and subscription models"""

import enum
from sqlalchemy import Column, String, BigInteger, Integer, ForeignKey
from sqlalchemy.orm import relationship

from app.database import Base


class SubscriptionPlan(str, enum.Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class SubscriptionStatus(str, enum.Enum):
    TRIAL = "trial"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    SUSPENDED = "suspended"
    CANCELLED = "cancelled"


OPERATIONAL_SUBSCRIPTION_STATUSES = frozenset(
    {SubscriptionStatus.TRIAL.value, SubscriptionStatus.ACTIVE.value}
)

DAY_MS = 24 * 60 * 60 * 1000

# plan -> (duration days, amount, currency)
PLAN_CATALOG = {
    SubscriptionPlan.MONTHLY.value: {"plan": "monthly", "duration_days": 30, "amount": 4999, "currency": "INR"},
    SubscriptionPlan.QUARTERLY.value: {"plan": "quarterly", "duration_days": 90, "amount": 13999, "currency": "INR"},
    SubscriptionPlan.YEARLY.value: {"plan": "yearly", "duration_days": 365, "amount": 49999, "currency": "INR"},
}


class Tenant(Base):
    """Restaurant business using the platform"""
    __tablename__ = "tenants"

    tenant_id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    created_at = Column(BigInteger, nullable=False)
    updated_at = Column(BigInteger, nullable=False)

    # Relationships
    subscription = relationship(
        "Subscription", back_populates="tenant", uselist=False, lazy="selectin"
    )


class Subscription(Base):
    """Per-tenant paid plan gating order processing"""
    __tablename__ = "subscriptions"

    tenant_id = Column(String(64), ForeignKey("tenants.tenant_id"), primary_key=True)
    plan = Column(String(20), nullable=False, default=SubscriptionPlan.MONTHLY.value)
    status = Column(String(20), nullable=False, default=SubscriptionStatus.ACTIVE.value)
    amount = Column(Integer, nullable=False, default=0)
    currency = Column(String(8), nullable=False, default="INR")

    # Epoch milliseconds
    start_at = Column(BigInteger, nullable=False)
    current_period_start = Column(BigInteger, nullable=False)
    current_period_end = Column(BigInteger, nullable=False)
    updated_at = Column(BigInteger, nullable=False)

    # Relationships
    tenant = relationship("Tenant", back_populates="subscription")

    def is_operational(self, now: int) -> bool:
        """True while the plan is trial/active and the period has not lapsed"""
        return (
            self.status in OPERATIONAL_SUBSCRIPTION_STATUSES
            and self.current_period_end is not None
            and self.current_period_end >= now
        )
