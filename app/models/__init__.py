"""Database models"""

from app.models.tenant import Tenant, Subscription
from app.models.user import User, UserRole
from app.models.order import Order
from app.models.tracking import Tracking
from app.models.otp import CustomerLookupOtp
from app.models.notification import Notification
from app.models.audit import AuditLog

__all__ = [
    "Tenant",
    "Subscription",
    "User",
    "UserRole",
    "Order",
    "Tracking",
    "CustomerLookupOtp",
    "Notification",
    "AuditLog",
]
