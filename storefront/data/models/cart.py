#storefront/data/models/cart.py
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class CartModel(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    session_id = Column(String(255), nullable=True, index=True)  # koszyk goscia
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    items = relationship(
        "CartItemModel",
        back_populates="cart",
        cascade="all, delete-orphan",
    )

    @property
    def subtotal(self) -> Decimal:
        return sum((i.price * i.quantity for i in self.items), Decimal("0.00"))

    @property
    def shipping_cost(self) -> Decimal:
        # koszt wysylki liczony z rozmiaru pozycji, nie z produktu
        return sum(
            (i.size.shipping_cost for i in self.items if i.size is not None),
            Decimal("0.00"),
        )
