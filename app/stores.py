"""Durable record stores over the async session.

Each store wraps an ``AsyncSession`` and exposes get / upsert / list for one
entity type. The database is the single source of truth; ``for_update=True``
issues ``SELECT ... FOR UPDATE`` so concurrent writers of the same key are
serialized by the row lock until the surrounding transaction commits.
Callers that touch both an order and its tracking lock the order first.
"""

from typing import List, Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.tenant import Tenant, Subscription
from app.models.order import Order
from app.models.tracking import Tracking, DeliveryStatus
from app.models.otp import CustomerLookupOtp
from app.models.notification import Notification


class TenantStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def exists(self, tenant_id: str) -> bool:
        result = await self.db.execute(
            select(Tenant.tenant_id).where(Tenant.tenant_id == tenant_id)
        )
        return result.scalar_one_or_none() is not None

    async def get(self, tenant_id: str) -> Optional[Tenant]:
        return await self.db.get(Tenant, tenant_id)

    async def list(self) -> List[Tenant]:
        result = await self.db.execute(select(Tenant).order_by(Tenant.created_at))
        return list(result.scalars().all())

    async def get_subscription(self, tenant_id: str, for_update: bool = False) -> Optional[Subscription]:
        query = select(Subscription).where(Subscription.tenant_id == tenant_id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def upsert(self, tenant: Tenant) -> Tenant:
        return await self.db.merge(tenant)

    async def upsert_subscription(self, subscription: Subscription) -> Subscription:
        return await self.db.merge(subscription)


class OrderStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, order_id: str, for_update: bool = False) -> Optional[Order]:
        query = select(Order).where(Order.order_id == order_id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def exists(self, order_id: str) -> bool:
        result = await self.db.execute(
            select(Order.order_id).where(Order.order_id == order_id)
        )
        return result.scalar_one_or_none() is not None

    def add(self, order: Order) -> Order:
        self.db.add(order)
        return order

    async def list(
        self,
        tenant_id: Optional[str] = None,
        status: Optional[str] = None,
        created_from: Optional[int] = None,
        created_to: Optional[int] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[Order]:
        """Filtered orders, newest first"""
        query = select(Order)

        if tenant_id:
            query = query.where(Order.tenant_id == tenant_id)

        if status:
            query = query.where(Order.status == status)

        if created_from is not None:
            query = query.where(Order.created_at >= created_from)

        if created_to is not None:
            query = query.where(Order.created_at <= created_to)

        query = query.order_by(Order.created_at.desc(), Order.order_id).offset(offset)
        if limit is not None:
            query = query.limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_by_phone(self, tenant_id: str, phone_last10: str) -> List[Order]:
        result = await self.db.execute(
            select(Order)
            .where(
                Order.tenant_id == tenant_id,
                Order.customer_phone_last10 == phone_last10,
            )
            .order_by(Order.created_at.desc())
        )
        return list(result.scalars().all())


class TrackingStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, order_id: str, for_update: bool = False) -> Optional[Tracking]:
        query = select(Tracking).where(Tracking.order_id == order_id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    def add(self, tracking: Tracking) -> Tracking:
        self.db.add(tracking)
        return tracking

    async def list_in_flight_ids(self) -> List[str]:
        """Order ids whose tracking has not reached delivered"""
        result = await self.db.execute(
            select(Tracking.order_id)
            .where(Tracking.status != DeliveryStatus.DELIVERED.value)
            .order_by(Tracking.order_id)
        )
        return list(result.scalars().all())


class LookupOtpStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, request_id: str, for_update: bool = False) -> Optional[CustomerLookupOtp]:
        query = select(CustomerLookupOtp).where(CustomerLookupOtp.request_id == request_id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    def add(self, record: CustomerLookupOtp) -> CustomerLookupOtp:
        self.db.add(record)
        return record

    async def delete(self, record: CustomerLookupOtp) -> None:
        await self.db.delete(record)

    async def prune_expired(self, now: int) -> int:
        """Delete every record at or past its expiry"""
        result = await self.db.execute(
            delete(CustomerLookupOtp)
            .where(CustomerLookupOtp.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0


class NotificationStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    def add(self, notification: Notification) -> Notification:
        self.db.add(notification)
        return notification

    async def list_for_order(self, order_id: str) -> List[Notification]:
        result = await self.db.execute(
            select(Notification)
            .where(Notification.order_id == order_id)
            .order_by(Notification.created_at)
        )
        return list(result.scalars().all())
