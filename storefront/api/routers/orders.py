# storefront/api/routers/orders.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user, get_email_service, require_admin
from storefront.data.database import get_db
from storefront.data.models.user import UserModel
from storefront.domain.errors import InvalidStatusTransition, OrderNotFound
from storefront.domain.schemas import OrderOut, OrderStatusIn
from storefront.services.email_service import EmailService
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session, email_service: EmailService):
    return OrderService(db, email_service)


@router.get("/{order_number}", response_model=OrderOut)
def get_order(
    order_number: str,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
):
    """
    Pobiera szczegoly zamowienia (wlasciciel albo admin).
    """
    svc = get_service(db, email_service)
    try:
        order = svc.get_order(order_number)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    if order.user_id != user.id and user.role != "admin":
        raise HTTPException(status_code=403, detail="Access to this order is forbidden")
    return order


@router.post("/{order_id}/status", response_model=OrderOut)
def update_status(
    order_id: int,
    payload: OrderStatusIn,
    _: UserModel = Depends(require_admin),
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
):
    svc = get_service(db, email_service)
    try:
        return svc.advance_status(order_id, payload.status)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/{order_id}/cancel", response_model=OrderOut)
def cancel_order(
    order_id: int,
    _: UserModel = Depends(require_admin),
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
):
    svc = get_service(db, email_service)
    try:
        return svc.cancel(order_id)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
