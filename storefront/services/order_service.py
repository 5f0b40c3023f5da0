# storefront/services/order_service.py
import secrets
from dataclasses import dataclass, field
from datetime import timedelta
from typing import List

from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.domain.errors import InvalidStatusTransition, OrderNotFound
from storefront.domain.order_state import (
    OrderStatus,
    PaymentStatus,
    can_cancel,
    can_transition,
    can_transition_payment,
)
from storefront.repos.order_repo import OrderRepo
from storefront.services.email_service import EmailService
from storefront.utils.clock import utcnow
from storefront.utils.logging import get_logger
from storefront.utils.settings import PENDING_ORDER_EMAIL_DAYS

logger = get_logger(__name__)


@dataclass
class PendingEmailReport:
    candidates: List[OrderModel] = field(default_factory=list)
    sent: int = 0
    failed: int = 0


def generate_order_number(repo: OrderRepo) -> str:
    """
    ORD-<rok>-<6 cyfr>. Wolajacy musi wygenerowac numer przed utworzeniem
    zamowienia, unikalny indeks na order_number lapie kolizje.
    """
    year = utcnow().year
    while True:
        number = f"ORD-{year}-{secrets.randbelow(999999) + 1:06d}"
        if not repo.number_exists(number):
            return number


class OrderService:
    """
    Serwis odpowiedzialny za cykl zycia zamowienia.
    Statusy tylko do przodu, anulowanie tylko z pending/processing.
    """

    def __init__(self, db: Session, email_service: EmailService):
        self.db = db
        self.repo = OrderRepo(db)
        self.email_service = email_service

    # =====================================================
    # QUERY
    # =====================================================
    def get_order(self, order_number: str) -> OrderModel:
        order = self.repo.get_by_number(order_number)
        if not order:
            raise OrderNotFound(f"Order {order_number} not found")
        return order

    def _get(self, order_id: int) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found")
        return order

    # =====================================================
    # COMMANDS
    # =====================================================
    def advance_status(self, order_id: int, new_status: OrderStatus) -> OrderModel:
        order = self._get(order_id)
        current = OrderStatus(order.status)

        if new_status == OrderStatus.CANCELLED:
            return self.cancel(order_id)

        if not can_transition(current, new_status):
            raise InvalidStatusTransition(current.value, new_status.value)

        order.status = new_status.value
        self.repo.save(order)

        logger.info(f"Order {order.order_number}: {current.value} -> {new_status.value}")
        return order

    def cancel(self, order_id: int) -> OrderModel:
        order = self._get(order_id)
        current = OrderStatus(order.status)

        if not can_cancel(current):
            raise InvalidStatusTransition(current.value, OrderStatus.CANCELLED.value)

        order.status = OrderStatus.CANCELLED.value
        self.repo.save(order)

        logger.info(f"Order {order.order_number} cancelled")
        return order

    def update_payment_status(
        self,
        order_id: int,
        status: PaymentStatus,
        payment_method: str | None = None,
    ) -> OrderModel:
        order = self._get(order_id)
        current = PaymentStatus(order.payment_status)

        if current != status and not can_transition_payment(current, status):
            raise InvalidStatusTransition(current.value, status.value)

        order.payment_status = status.value
        if payment_method:
            order.payment_method = payment_method
        self.repo.save(order)
        return order

    def send_pending_confirmation_emails(
        self,
        days: int = PENDING_ORDER_EMAIL_DAYS,
        dry_run: bool = False,
    ) -> PendingEmailReport:
        """
        Zamowienia oplacone, bez maila potwierdzenia, z ostatnich `days` dni.
        Starszych nie wysylamy.
        """
        since = utcnow() - timedelta(days=days)
        report = PendingEmailReport(candidates=self.repo.awaiting_confirmation_email(since))

        logger.info(f"Found {len(report.candidates)} orders without confirmation email")

        if dry_run:
            return report

        for order in report.candidates:
            if self.email_service.send_order_confirmation(order):
                report.sent += 1
            else:
                report.failed += 1

        return report
