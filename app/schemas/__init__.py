"""Pydantic schemas for request/response validation"""

from app.schemas.auth import (
    Token,
    LoginRequest,
    UserResponse,
)
from app.schemas.tenant import (
    TenantCreate,
    TenantResponse,
    SubscriptionResponse,
    SubscriptionUpdate,
    SubscriptionStatusUpdate,
    PlanResponse,
)
from app.schemas.order import (
    OrderCreate,
    OrderStatusUpdate,
    OrderResponse,
    OrderListFilters,
    DeliveryConfirmationRequest,
)
from app.schemas.tracking import (
    TrackingResponse,
    TrackingLocationUpdate,
    Ack,
)
from app.schemas.lookup import (
    LookupOtpRequest,
    LookupOtpResponse,
    LookupVerifyRequest,
)

__all__ = [
    "Token",
    "LoginRequest",
    "UserResponse",
    "TenantCreate",
    "TenantResponse",
    "SubscriptionResponse",
    "SubscriptionUpdate",
    "SubscriptionStatusUpdate",
    "PlanResponse",
    "OrderCreate",
    "OrderStatusUpdate",
    "OrderResponse",
    "OrderListFilters",
    "DeliveryConfirmationRequest",
    "TrackingResponse",
    "TrackingLocationUpdate",
    "Ack",
    "LookupOtpRequest",
    "LookupOtpResponse",
    "LookupVerifyRequest",
]
