"""Tests for order lifecycle operations."""

import re
from datetime import timedelta
from decimal import Decimal

import pytest

from storefront.data.models.address import AddressModel
from storefront.data.models.order import OrderModel
from storefront.domain.errors import InvalidStatusTransition, OrderNotFound
from storefront.domain.order_state import OrderStatus, PaymentStatus, can_transition
from storefront.services.email_service import EmailService
from storefront.services.order_service import OrderService, generate_order_number
from storefront.services.setting_service import SettingService
from storefront.utils.clock import utcnow

from .conftest import FakeMailer


@pytest.fixture
def service(db, email_service):
    return OrderService(db, email_service=email_service)


@pytest.fixture
def make_order(db):
    counter = {"n": 0}

    def _make(status="pending", payment_status="succeeded", email_sent=False, created_at=None, guest_email="guest@example.com"):
        counter["n"] += 1
        address = AddressModel(type="billing", first_name="Jane", last_name="Doe", address_line_1="1 Main St", city="Springfield")
        db.add(address)
        db.flush()
        order = OrderModel(
            order_number=f"ORD-2026-{counter['n']:06d}",
            guest_email=guest_email,
            billing_address_id=address.id,
            shipping_address_id=address.id,
            status=status,
            subtotal=Decimal("10.00"),
            tax_amount=Decimal("0.00"),
            shipping_amount=Decimal("0.00"),
            total_amount=Decimal("10.00"),
            payment_status=payment_status,
            confirmation_email_sent=email_sent,
            created_at=created_at or utcnow(),
        )
        db.add(order)
        db.commit()
        return order

    return _make


class TestOrderNumber:
    def test_format(self, service):
        number = generate_order_number(service.repo)
        assert re.fullmatch(rf"ORD-{utcnow().year}-\d{{6}}", number)

    def test_skips_taken_numbers(self, service, monkeypatch):
        taken = iter([True, True, False])
        monkeypatch.setattr(service.repo, "number_exists", lambda number: next(taken))

        assert generate_order_number(service.repo).startswith("ORD-")


class TestStatusTransitions:
    def test_forward_moves(self, service, make_order):
        order = make_order(status="pending")

        service.advance_status(order.id, OrderStatus.PROCESSING)
        service.advance_status(order.id, OrderStatus.SHIPPED)
        updated = service.advance_status(order.id, OrderStatus.DELIVERED)

        assert updated.status == "delivered"

    def test_backward_rejected(self, service, make_order):
        order = make_order(status="shipped")
        with pytest.raises(InvalidStatusTransition):
            service.advance_status(order.id, OrderStatus.PROCESSING)

    def test_delivered_is_terminal(self, service, make_order):
        order = make_order(status="delivered")
        with pytest.raises(InvalidStatusTransition):
            service.advance_status(order.id, OrderStatus.SHIPPED)

    @pytest.mark.parametrize("status", ["pending", "processing"])
    def test_cancel_allowed(self, service, make_order, status):
        order = make_order(status=status)
        assert service.cancel(order.id).status == "cancelled"

    @pytest.mark.parametrize("status", ["shipped", "delivered", "cancelled"])
    def test_cancel_rejected(self, service, make_order, status):
        order = make_order(status=status)
        with pytest.raises(InvalidStatusTransition):
            service.cancel(order.id)

    def test_advance_to_cancelled_uses_cancel_rules(self, service, make_order):
        order = make_order(status="shipped")
        with pytest.raises(InvalidStatusTransition):
            service.advance_status(order.id, OrderStatus.CANCELLED)

    def test_unknown_order(self, service):
        with pytest.raises(OrderNotFound):
            service.cancel(12345)

    def test_state_table(self):
        assert can_transition(OrderStatus.PENDING, OrderStatus.SHIPPED)
        assert not can_transition(OrderStatus.CANCELLED, OrderStatus.PROCESSING)
        assert not can_transition(OrderStatus.PROCESSING, OrderStatus.PROCESSING)


class TestPaymentStatus:
    def test_forward(self, service, make_order):
        order = make_order(payment_status="pending")
        updated = service.update_payment_status(order.id, PaymentStatus.SUCCEEDED, payment_method="stripe")
        assert updated.payment_status == "succeeded"
        assert updated.payment_method == "stripe"

    def test_final_state_locked(self, service, make_order):
        order = make_order(payment_status="succeeded")
        with pytest.raises(InvalidStatusTransition):
            service.update_payment_status(order.id, PaymentStatus.FAILED)


class TestGetOrder:
    def test_by_number(self, service, make_order):
        order = make_order()
        assert service.get_order(order.order_number).id == order.id

    def test_missing(self, service):
        with pytest.raises(OrderNotFound):
            service.get_order("ORD-2026-999999")


class TestPendingConfirmationEmails:
    def test_sends_only_paid_recent_unsent(self, db, service, make_order, mailer):
        due = make_order()
        make_order(email_sent=True)
        make_order(payment_status="pending")
        make_order(created_at=utcnow() - timedelta(days=10))

        report = service.send_pending_confirmation_emails(days=7)

        assert [o.id for o in report.candidates] == [due.id]
        assert report.sent == 1
        assert report.failed == 0
        assert mailer.sent[0][1] == "guest@example.com"
        db.refresh(due)
        assert due.confirmation_email_sent is True

    def test_dry_run_sends_nothing(self, service, make_order, mailer):
        make_order()

        report = service.send_pending_confirmation_emails(dry_run=True)

        assert len(report.candidates) == 1
        assert report.sent == 0
        assert mailer.sent == []

    def test_missing_email_counted_as_failure(self, db, email_service, make_order):
        make_order(guest_email=None)
        report = OrderService(db, email_service=email_service).send_pending_confirmation_emails()
        assert report.failed == 1

    def test_mail_failure_keeps_flag_unset(self, db, make_order):
        order = make_order()
        svc = OrderService(db, email_service=EmailService(db, mailer=FakeMailer(fail=True), settings=SettingService(db, cache={})))

        report = svc.send_pending_confirmation_emails()

        assert report.failed == 1
        db.refresh(order)
        assert order.confirmation_email_sent is False
