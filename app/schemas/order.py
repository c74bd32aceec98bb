"""Order schemas"""

from typing import Annotated, Optional, List, Union

from pydantic import AfterValidator, Field, field_validator

from app.models.order import DeliveryFeeMode, PaymentMethod, SettlementStatus
from app.schemas.base import CamelModel
from app.utils import parse_optional_time, to_optional_int


def _required_text(value: str) -> str:
    if not value.strip():
        raise ValueError("must be a non-empty string")
    return value


RequiredText = Annotated[str, AfterValidator(_required_text)]


class Customer(CamelModel):
    name: RequiredText = Field(max_length=255)
    phone: RequiredText = Field(max_length=32)
    email: Optional[str] = Field(None, max_length=255)


class Address(CamelModel):
    line1: RequiredText
    city: RequiredText
    notes: Optional[str] = None


class OrderItem(CamelModel):
    id: str
    name: str
    type: Optional[str] = None
    image: Optional[str] = None
    price: float = Field(ge=0, allow_inf_nan=False)
    calories: Union[str, float, None] = None
    quantity: int = Field(1, ge=1)


class Totals(CamelModel):
    subtotal: float = Field(0, ge=0, allow_inf_nan=False)
    delivery_fee: float = Field(0, ge=0, allow_inf_nan=False)
    tax: float = Field(0, ge=0, allow_inf_nan=False)
    grand_total: float = Field(ge=0, allow_inf_nan=False)
    payable_now: float = Field(0, ge=0, allow_inf_nan=False)
    delivery_fee_due_at_drop: Optional[float] = Field(None, ge=0, allow_inf_nan=False)


class DeliveryConfirmationCreate(CamelModel):
    expected_otp: Optional[str] = None
    otp_verified: bool = False
    proof_note: Optional[str] = None


class OrderCreate(CamelModel):
    """Create order request"""
    order_id: RequiredText = Field(max_length=64)
    tenant_id: Optional[str] = Field(None, max_length=64)
    customer: Customer
    address: Address
    items: List[OrderItem] = Field(min_length=1)
    totals: Totals
    payment_method: PaymentMethod
    payment_reference: RequiredText = Field(max_length=255)
    delivery_fee_mode: Optional[DeliveryFeeMode] = None
    delivery_fee_settlement_status: Optional[SettlementStatus] = None
    delivery_confirmation: Optional[DeliveryConfirmationCreate] = None

    @field_validator("order_id")
    @classmethod
    def strip_order_id(cls, value: str) -> str:
        return value.strip()

    @field_validator("tenant_id")
    @classmethod
    def check_tenant_id(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            raise ValueError("tenantId must be a non-empty string when provided")
        return value


class OrderStatusUpdate(CamelModel):
    """Validated against the status vocabulary by the service"""
    status: Optional[str] = None


class DeliveryConfirmationRequest(CamelModel):
    otp_code: Optional[str] = None
    confirmed_by: Optional[str] = None
    proof_note: Optional[str] = None
    collect_delivery_fee: bool = False
    collection_amount: Optional[float] = None
    collection_method: Optional[str] = None
    collection_notes: Optional[str] = None


class OrderListFilters(CamelModel):
    tenant_id: Optional[str] = None
    status: Optional[str] = None
    created_from: Optional[int] = None
    created_to: Optional[int] = None
    offset: int = Field(0, ge=0)
    limit: Optional[int] = Field(None, ge=0)

    @classmethod
    def from_query(
        cls,
        tenant_id: Optional[str],
        status: Optional[str],
        from_time: Optional[str],
        to_time: Optional[str],
        offset: Optional[str],
        limit: Optional[str],
    ) -> "OrderListFilters":
        """Lenient parsing: bad times are dropped, bad offset/limit fall back"""
        return cls(
            tenant_id=tenant_id,
            status=status,
            created_from=parse_optional_time(from_time),
            created_to=parse_optional_time(to_time),
            offset=to_optional_int(offset, 0),
            limit=to_optional_int(limit, None),
        )


class DeliveryFeeCollection(CamelModel):
    amount_collected: float
    method: str
    collected_at: int
    collected_by: str
    notes: Optional[str] = None


class DeliveryConfirmation(CamelModel):
    expected_otp: str = ""
    otp_verified: bool = False
    received_otp: Optional[str] = None
    proof_note: Optional[str] = None
    delivered_at: Optional[int] = None
    confirmed_by: Optional[str] = None


class OrderResponse(CamelModel):
    """Order response"""
    order_id: str
    tenant_id: str
    status: str
    customer: Customer
    address: Address
    items: List[OrderItem]
    totals: Totals
    payment_method: str
    payment_reference: str
    delivery_fee_mode: str
    delivery_fee_settlement_status: str
    delivery_fee_collection: Optional[DeliveryFeeCollection] = None
    delivery_confirmation: DeliveryConfirmation
    created_at: int
    updated_at: int
