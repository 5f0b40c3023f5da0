# storefront/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from storefront.domain.order_state import OrderStatus


# =====================================================
# REJESTRACJA / WERYFIKACJA
# =====================================================
class RegisterIn(BaseModel):
    """Schema dla rejestracji (tworzy pending verification, nie usera)."""

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=255)
    password_confirmation: str

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.password_confirmation:
            raise ValueError("The password confirmation does not match.")
        return self


class ResendIn(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class PendingVerificationOut(BaseModel):
    email: str
    expires_at: datetime
    status: str = "verification-link-sent"


class UserRead(BaseModel):
    id: int
    name: str
    email: str
    email_verified_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class VerifiedOut(BaseModel):
    user: UserRead
    access_token: str
    token_type: str = "bearer"


class VerificationStatusOut(BaseModel):
    verified: bool
    pending: bool = False
    expired: bool = False
    user_id: int | None = None
    expires_at: datetime | None = None
    message: str | None = None


# =====================================================
# ZAMOWIENIA
# =====================================================
class AddressOut(BaseModel):
    type: str
    first_name: str
    last_name: str
    address_line_1: str
    address_line_2: str | None = None
    city: str
    state: str
    postal_code: str
    country: str
    phone: str | None = None

    model_config = ConfigDict(from_attributes=True)


class OrderItemOut(BaseModel):
    product_id: int | None
    product_name: str
    quantity: int
    price: Decimal
    total: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    """Schema dla zamowienia (response)."""

    id: int
    order_number: str
    user_id: int | None
    guest_email: str | None = None
    status: str
    payment_status: str
    subtotal: Decimal
    tax_amount: Decimal
    shipping_amount: Decimal
    total_amount: Decimal
    currency: str
    confirmation_email_sent: bool
    created_at: datetime
    items: List[OrderItemOut]
    billing_address: AddressOut | None = None
    shipping_address: AddressOut | None = None

    model_config = ConfigDict(from_attributes=True)


class OrderStatusIn(BaseModel):
    status: OrderStatus


# =====================================================
# STRIPE (podzbior payloadu, reszta ignorowana)
# =====================================================
class CustomerAddress(BaseModel):
    line1: Optional[str] = None
    line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None


class CustomerDetails(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None
    name: Optional[str] = None
    address: Optional[CustomerAddress] = None


class TotalDetails(BaseModel):
    amount_tax: int = 0
    amount_shipping: int = 0


class CheckoutSession(BaseModel):
    id: str
    payment_status: Optional[str] = None
    amount_total: int
    currency: str = "usd"
    customer_details: Optional[CustomerDetails] = None
    total_details: Optional[TotalDetails] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    payment_intent: Optional[Any] = None

    @field_validator("metadata", mode="before")
    @classmethod
    def none_metadata(cls, v):
        return v or {}

    def meta(self, key: str) -> str | None:
        """Wartosc z metadata, pusty string traktujemy jak brak."""
        value = self.metadata.get(key)
        if value is None or str(value).strip() == "":
            return None
        return str(value)

    def payment_intent_id(self) -> str | None:
        # payment_intent moze byc rozwiniety (expand) do obiektu
        if isinstance(self.payment_intent, dict):
            return self.payment_intent.get("id")
        return self.payment_intent


class WebhookData(BaseModel):
    object: Dict[str, Any]


class WebhookEvent(BaseModel):
    id: str
    type: str
    data: WebhookData


class WebhookAck(BaseModel):
    received: bool = True
