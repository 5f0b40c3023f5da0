# storefront/data/models/order.py
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    order_number = Column(String(32), nullable=False, unique=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    # zamowienie goscia
    guest_email = Column(String(255), nullable=True)
    guest_phone = Column(String(50), nullable=True)
    guest_session_id = Column(String(255), nullable=True, index=True)

    billing_address_id = Column(Integer, ForeignKey("addresses.id"), nullable=False)
    shipping_address_id = Column(Integer, ForeignKey("addresses.id"), nullable=False)

    status = Column(String(20), nullable=False, default="pending")  # pending, processing, shipped, delivered, cancelled
    subtotal = Column(Numeric(10, 2), nullable=False)
    tax_amount = Column(Numeric(10, 2), nullable=False, default=0)
    shipping_amount = Column(Numeric(10, 2), nullable=False, default=0)
    total_amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    notes = Column(Text, nullable=True)

    payment_status = Column(String(20), nullable=False, default="pending")
    payment_method = Column(String(50), nullable=True)
    # klucz idempotencji dla webhookow, unikalny indeks jest prawdziwa gwarancja
    stripe_checkout_session_id = Column(String(255), nullable=True, unique=True)
    stripe_payment_intent_id = Column(String(255), nullable=True, index=True)

    confirmation_email_sent = Column(Boolean, nullable=False, default=False)
    confirmation_email_sent_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    user = relationship("UserModel")
    billing_address = relationship("AddressModel", foreign_keys=[billing_address_id])
    shipping_address = relationship("AddressModel", foreign_keys=[shipping_address_id])
    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
    )

    def is_guest_order(self) -> bool:
        return self.user_id is None and self.guest_email is not None

    def customer_email(self) -> str | None:
        if self.user_id is not None and self.user is not None:
            return self.user.email
        return self.guest_email

    def customer_name(self) -> str | None:
        if self.user_id is not None and self.user is not None:
            return self.user.name
        if self.billing_address is not None:
            name = f"{self.billing_address.first_name} {self.billing_address.last_name}".strip()
            return name or None
        return None
