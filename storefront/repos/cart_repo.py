# storefront/repos/cart_repo.py
from sqlalchemy import delete, select
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel


def _with_items():
    return (
        selectinload(CartModel.items).selectinload(CartItemModel.product),
        selectinload(CartModel.items).selectinload(CartItemModel.size),
    )


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart(self, cart_id: int) -> CartModel | None:
        return self.db.execute(
            select(CartModel).where(CartModel.id == cart_id).options(*_with_items())
        ).scalar_one_or_none()

    def get_cart_by_session(self, session_id: str) -> CartModel | None:
        return self.db.execute(
            select(CartModel)
            .where(CartModel.session_id == session_id)
            .options(*_with_items())
            .order_by(CartModel.id.desc())
            .limit(1)
        ).scalar_one_or_none()

    def delete_cart(self, cart_id: int) -> None:
        #najpierw pozycje, potem koszyk
        self.db.execute(delete(CartItemModel).where(CartItemModel.cart_id == cart_id))
        self.db.execute(delete(CartModel).where(CartModel.id == cart_id))

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
