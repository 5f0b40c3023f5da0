# storefront/repos/order_repo.py
from datetime import datetime
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.address import AddressModel
from storefront.data.models.order import OrderModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_by_number(self, order_number: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .where(OrderModel.order_number == order_number)
            .options(selectinload(OrderModel.items))
        ).scalar_one_or_none()

    def get_by_checkout_session(self, session_id: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel).where(OrderModel.stripe_checkout_session_id == session_id)
        ).scalar_one_or_none()

    def number_exists(self, order_number: str) -> bool:
        return (
            self.db.execute(
                select(OrderModel.id).where(OrderModel.order_number == order_number)
            ).first()
            is not None
        )

    def add_address(self, address: AddressModel) -> AddressModel:
        self.db.add(address)
        self.db.flush()
        return address

    def add_order(self, order: OrderModel) -> OrderModel:
        #flush zeby dostac id, commit po dodaniu pozycji
        self.db.add(order)
        self.db.flush()
        return order

    def awaiting_confirmation_email(self, since: datetime) -> List[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .where(
                    OrderModel.payment_status == "succeeded",
                    OrderModel.confirmation_email_sent.is_(False),
                    OrderModel.created_at >= since,
                )
                .order_by(OrderModel.created_at)
            ).scalars()
        )

    def save(self, order: OrderModel) -> OrderModel:
        self.db.commit()
        self.db.refresh(order)
        return order

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
