"""Tests for the maintenance CLI."""

from datetime import timedelta
from decimal import Decimal

import pytest

from storefront import cli
from storefront.data.models.address import AddressModel
from storefront.data.models.order import OrderModel
from storefront.data.models.pending_verification import PendingVerificationModel
from storefront.services.registration_service import PendingVerificationRegistry
from storefront.utils.clock import utcnow


def run(session_factory, *argv):
    return cli.main(list(argv), session_factory=session_factory)


@pytest.fixture
def seeded(db):
    frozen = utcnow() - timedelta(hours=25)
    PendingVerificationRegistry(db, clock=lambda: frozen).create("Old", "old@example.com", "hash")
    PendingVerificationRegistry(db).create("New", "new@example.com", "hash")


@pytest.fixture
def unsent_order(db):
    address = AddressModel(type="billing", first_name="Jane", last_name="Doe", address_line_1="1 Main St", city="Springfield")
    db.add(address)
    db.flush()
    order = OrderModel(
        order_number="ORD-2026-000777",
        guest_email="guest@example.com",
        billing_address_id=address.id,
        shipping_address_id=address.id,
        status="processing",
        subtotal=Decimal("10.00"),
        total_amount=Decimal("10.00"),
        payment_status="succeeded",
    )
    db.add(order)
    db.commit()
    return order


class TestCleanupPending:
    def test_force(self, db, session_factory, seeded, capsys):
        assert run(session_factory, "cleanup-pending", "--force") == 0

        assert "deleted 1 expired" in capsys.readouterr().out
        assert db.query(PendingVerificationModel).count() == 1

    def test_declined_confirmation(self, db, session_factory, seeded, monkeypatch, capsys):
        monkeypatch.setattr("builtins.input", lambda prompt: "n")

        assert run(session_factory, "cleanup-pending") == 0

        assert "cancelled" in capsys.readouterr().out
        assert db.query(PendingVerificationModel).count() == 2

    def test_accepted_confirmation(self, db, session_factory, seeded, monkeypatch):
        monkeypatch.setattr("builtins.input", lambda prompt: "yes")

        assert run(session_factory, "cleanup-pending") == 0
        assert db.query(PendingVerificationModel).count() == 1

    def test_nothing_expired(self, session_factory, capsys):
        assert run(session_factory, "cleanup-pending") == 0
        assert "No expired pending verifications found." in capsys.readouterr().out


class TestPendingStatus:
    def test_overview(self, session_factory, seeded, capsys):
        assert run(session_factory, "pending-status") == 0

        out = capsys.readouterr().out
        assert "Total pending: 2" in out
        assert "Active: 1" in out
        assert "Expired: 1" in out
        assert "new@example.com" in out

    def test_single_email(self, session_factory, seeded, capsys):
        assert run(session_factory, "pending-status", "--email", "old@example.com") == 0

        out = capsys.readouterr().out
        assert "Pending verification details for: old@example.com" in out
        assert "EXPIRED" in out

    def test_unknown_email(self, session_factory, capsys):
        assert run(session_factory, "pending-status", "--email", "nobody@example.com") == 0
        assert "No pending verification found" in capsys.readouterr().out


class TestSendPendingEmails:
    def test_dry_run(self, db, session_factory, unsent_order, capsys):
        assert run(session_factory, "send-pending-emails", "--dry-run") == 0

        out = capsys.readouterr().out
        assert "ORD-2026-000777" in out
        assert "DRY RUN" in out
        db.refresh(unsent_order)
        assert unsent_order.confirmation_email_sent is False

    def test_send_with_yes(self, db, session_factory, unsent_order, capsys):
        assert run(session_factory, "send-pending-emails", "--yes") == 0

        assert "Successfully sent: 1 emails" in capsys.readouterr().out
        db.refresh(unsent_order)
        assert unsent_order.confirmation_email_sent is True

    def test_nothing_to_send(self, session_factory, capsys):
        assert run(session_factory, "send-pending-emails") == 0
        assert "No orders found" in capsys.readouterr().out


class TestParser:
    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.create_parser().parse_args([])
