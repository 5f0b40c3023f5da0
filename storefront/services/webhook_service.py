# storefront/services/webhook_service.py
from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any, Callable, Dict, Optional

from redis.exceptions import RedisError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.address import AddressModel
from storefront.data.models.cart import CartModel
from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.addresses import build_address
from storefront.domain.money import from_minor_units, money_close, to_money
from storefront.domain.order_state import OrderStatus, PaymentStatus
from storefront.domain.schemas import CheckoutSession, WebhookEvent
from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.services.email_service import EmailService
from storefront.services.lock_service import LockService
from storefront.services.order_service import generate_order_number
from storefront.services.stripe_client import StripeClient
from storefront.utils.logging import get_logger
from storefront.utils.settings import WEBHOOK_LOCK_TTL_SECONDS

logger = get_logger(__name__)


@dataclass
class MaterializationResult:
    action: str  # created, duplicate, ignored, skipped, locked, failed
    order_id: Optional[int] = None


@dataclass
class Totals:
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal


class WebhookOrderMaterializer:
    """
    Zamienia zakonczona sesje checkoutu Stripe w zamowienie, dokladnie raz.

    Webhooki przychodza at-least-once, w dowolnej kolejnosci i z duplikatami.
    Pierwsza linia obrony to odczyt po stripe_checkout_session_id, prawdziwa
    gwarancja to unikalny indeks na tej kolumnie. Lock w Redis tylko oszczedza
    pracy gdy dwa workery dostana ta sama sesje naraz.
    """

    def __init__(
        self,
        db: Session,
        email_service: EmailService,
        stripe_client: StripeClient | None = None,
        lock_service: LockService | None = None,
        lock_ttl: int = WEBHOOK_LOCK_TTL_SECONDS,
    ):
        self.orders = OrderRepo(db)
        self.carts = CartRepo(db)
        self.stripe = stripe_client or StripeClient()
        self.email_service = email_service
        self.lock_service = lock_service
        self.lock_ttl = lock_ttl

        #tabela dispatchu po typie eventu, reszta typow jest ignorowana
        self.handlers: Dict[str, Callable[[WebhookEvent], MaterializationResult]] = {
            "checkout.session.completed": self._handle_checkout_session_completed,
            "payment_intent.succeeded": self._handle_payment_intent_succeeded,
        }

    def handle(self, event: Dict[str, Any]) -> MaterializationResult:
        """Raises pydantic.ValidationError dla zniekształconego payloadu."""
        parsed = WebhookEvent.model_validate(event)
        logger.info(f"Processing Stripe webhook event {parsed.type} ({parsed.id})")

        handler = self.handlers.get(parsed.type)
        if handler is None:
            logger.info(f"Unhandled webhook event type: {parsed.type}")
            return MaterializationResult("ignored")

        return handler(parsed)

    def _handle_checkout_session_completed(self, event: WebhookEvent) -> MaterializationResult:
        session = event.data.object
        session_id = session.get("id")
        logger.info(f"Processing checkout.session.completed for session {session_id}")

        if not session_id:
            logger.warning(f"checkout.session.completed {event.id} without session id")
            return MaterializationResult("skipped")

        #tylko oplacone sesje (async platnosci przyjda pozniej)
        if session.get("payment_status") != "paid":
            logger.info(f"Session {session_id} not paid yet ({session.get('payment_status')}), skipping")
            return MaterializationResult("skipped")

        return self.create_order_from_session(session_id, None, session)

    def _handle_payment_intent_succeeded(self, event: WebhookEvent) -> MaterializationResult:
        intent = event.data.object
        logger.info(f"Processing payment_intent.succeeded for payment intent {intent.get('id')}")

        session_id = (intent.get("metadata") or {}).get("checkout_session_id")
        if not session_id:
            logger.warning(
                f"No checkout session ID found in payment intent metadata ({intent.get('id')})"
            )
            return MaterializationResult("skipped")

        return self.create_order_from_session(session_id, intent)

    # =====================================================
    # MATERIALIZACJA
    # =====================================================
    def create_order_from_session(
        self,
        session_id: str,
        payment_intent: Dict[str, Any] | None = None,
        session: Dict[str, Any] | None = None,
    ) -> MaterializationResult:
        """
        Nigdy nie rzuca: kazdy blad jest logowany z session id,
        a endpoint i tak odpowiada 2xx (Stripe nie ponawia).
        """
        owner = None
        try:
            # 1. idempotencja, zawsze przed jakakolwiek zmiana
            existing = self.orders.get_by_checkout_session(session_id)
            if existing:
                return self._already_materialized(existing)

            if self.lock_service is not None:
                try:
                    owner = self.lock_service.acquire_session_lock(session_id, self.lock_ttl)
                except RedisError as e:
                    #bez redisa zostaje unikalny indeks
                    logger.warning(f"Session lock unavailable for {session_id}: {e}")
                else:
                    if owner is None:
                        logger.info(f"Session {session_id} is being processed by another worker")
                        return MaterializationResult("locked")
                    #zwyciezca mogl zrobic commit miedzy odczytem a naszym lockiem
                    existing = self.orders.get_by_checkout_session(session_id)
                    if existing:
                        return self._already_materialized(existing)

            return self._materialize(session_id, payment_intent, session)

        except Exception as e:
            self.orders.rollback()
            logger.exception(f"Failed to create order from webhook for session {session_id}: {e}")
            return MaterializationResult("failed")

        finally:
            if owner is not None:
                self._release_lock(session_id, owner)

    def _materialize(
        self,
        session_id: str,
        payment_intent: Dict[str, Any] | None,
        session: Dict[str, Any] | None,
    ) -> MaterializationResult:
        # 2. sesja ze Stripe jesli nie przyszla w evencie
        if session is None:
            session = self.stripe.retrieve_checkout_session(session_id)
        checkout = CheckoutSession.model_validate(session)

        # 3. koszyk z metadata
        cart = self._find_cart(checkout)
        if cart is None or not cart.items:
            logger.error(
                f"No cart found for session {session_id} "
                f"(cart_id={checkout.meta('cart_id')}, guest_session_id={checkout.meta('guest_session_id')})"
            )
            return MaterializationResult("skipped")

        # 4. adresy, InvalidAddress przerywa bez zapisu
        billing = build_address(checkout, "billing")
        shipping = build_address(checkout, "shipping")

        # 5. kwoty
        totals = self._totals(cart, checkout)

        # 6. zamowienie + pozycje + adresy w jednej transakcji
        order = self._build_order(session_id, checkout, payment_intent, totals)
        try:
            # flush w add_order moze juz trafic na unikalny indeks
            billing_address = self.orders.add_address(AddressModel(**asdict(billing)))
            shipping_address = self.orders.add_address(AddressModel(**asdict(shipping)))
            order.billing_address_id = billing_address.id
            order.shipping_address_id = shipping_address.id
            self.orders.add_order(order)

            for item in cart.items:
                price = to_money(item.price)
                order.items.append(
                    OrderItemModel(
                        product_id=item.product_id,
                        product_name=item.product.name if item.product else "Unknown Product",
                        quantity=item.quantity,
                        price=price,
                        total=to_money(price * item.quantity),
                    )
                )

            self.orders.commit()
        except IntegrityError:
            self.orders.rollback()
            winner = self.orders.get_by_checkout_session(session_id)
            if winner is None:
                raise
            logger.info(f"Order for session {session_id} created concurrently by another worker")
            return self._already_materialized(winner)

        logger.info(
            f"Order {order.order_number} created from webhook "
            f"(session={session_id}, guest={order.is_guest_order()}, total={order.total_amount})"
        )

        # 7. mail best-effort, zamowienie zostaje nawet jak sie nie uda
        if self.email_service.send_order_confirmation(order):
            logger.info(f"Order confirmation email sent from webhook for order {order.order_number}")
        else:
            logger.warning(f"Failed to send order confirmation email from webhook for order {order.order_number}")

        # 8. koszyk dopiero po zapisaniu zamowienia
        self.carts.delete_cart(cart.id)
        self.carts.commit()

        return MaterializationResult("created", order.id)

    def _already_materialized(self, order: OrderModel) -> MaterializationResult:
        logger.info(
            f"Order already exists for session {order.stripe_checkout_session_id} "
            f"(order {order.order_number})"
        )
        if not order.confirmation_email_sent:
            self.email_service.send_order_confirmation(order)
        return MaterializationResult("duplicate", order.id)

    def _find_cart(self, checkout: CheckoutSession) -> CartModel | None:
        cart_id = checkout.meta("cart_id")
        if cart_id is not None:
            return self.carts.get_cart(int(cart_id))

        guest_session_id = checkout.meta("guest_session_id")
        if guest_session_id is not None:
            return self.carts.get_cart_by_session(guest_session_id)

        return None

    def _totals(self, cart: CartModel, checkout: CheckoutSession) -> Totals:
        details = checkout.total_details

        subtotal = to_money(cart.subtotal)
        cart_shipping = to_money(cart.shipping_cost)
        shipping = cart_shipping if cart_shipping > 0 else from_minor_units(details.amount_shipping if details else 0)
        tax = from_minor_units(details.amount_tax if details else 0)
        # kwota pobrana przez Stripe jest zrodlem prawdy
        total = from_minor_units(checkout.amount_total)

        if not money_close(total, subtotal + tax + shipping):
            logger.warning(
                f"Cart subtotal {subtotal} does not match charged total {total} "
                f"for session {checkout.id}, deriving subtotal from provider total"
            )
            subtotal = to_money(total - tax - shipping)

        return Totals(subtotal=subtotal, tax=tax, shipping=shipping, total=total)

    def _build_order(
        self,
        session_id: str,
        checkout: CheckoutSession,
        payment_intent: Dict[str, Any] | None,
        totals: Totals,
    ) -> OrderModel:
        user_id = checkout.meta("user_id")
        is_guest = user_id is None
        details = checkout.customer_details

        order = OrderModel(
            order_number=generate_order_number(self.orders),
            user_id=None if is_guest else int(user_id),
            status=OrderStatus.PROCESSING.value,
            subtotal=totals.subtotal,
            tax_amount=totals.tax,
            shipping_amount=totals.shipping,
            total_amount=totals.total,
            currency=checkout.currency.upper(),
            notes=checkout.meta("order_notes"),
            stripe_checkout_session_id=session_id,
            stripe_payment_intent_id=(payment_intent or {}).get("id") or checkout.payment_intent_id(),
            payment_status=PaymentStatus.SUCCEEDED.value,
            payment_method="stripe",
            confirmation_email_sent=False,
        )

        if is_guest:
            order.guest_email = (details.email if details else None) or checkout.meta("guest_email")
            order.guest_phone = details.phone if details else None
            order.guest_session_id = checkout.meta("guest_session_id")

        return order

    def _release_lock(self, session_id: str, owner: str) -> None:
        try:
            self.lock_service.release_session_lock(session_id, owner)
        except RedisError as e:
            # lock i tak wygasnie po ttl
            logger.warning(f"Failed to release session lock for {session_id}: {e}")
