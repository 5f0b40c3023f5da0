# storefront/services/email_service.py
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.user import UserModel
from storefront.services.mailer import Mailer
from storefront.services.setting_service import SettingService
from storefront.utils.clock import utcnow
from storefront.utils.logging import get_logger
from storefront.utils.settings import APP_NAME, VERIFICATION_TTL_HOURS

logger = get_logger(__name__)


class EmailService:
    """
    Maile transakcyjne. Wysylka jest best-effort: blad konczy sie False
    i wpisem w logach, nigdy wyjatkiem.
    """

    def __init__(self, db: Session, settings: SettingService, mailer: Mailer | None = None):
        self.db = db
        self.mailer = mailer or Mailer()
        self.settings = settings

    def _app_name(self) -> str:
        return self.settings.get("store_name", APP_NAME)

    def send_order_confirmation(self, order: OrderModel) -> bool:
        recipient = order.customer_email()
        if not recipient:
            logger.warning(f"No email address found for order {order.order_number}")
            return False

        lines = "\n".join(
            f"{i.quantity} x {i.product_name} @ {i.price} = {i.total}" for i in order.items
        )
        sent = self.mailer.send(
            "order_confirmation",
            recipient,
            {
                "app_name": self._app_name(),
                "customer_name": order.customer_name() or "there",
                "order_number": order.order_number,
                "lines": lines,
                "subtotal": order.subtotal,
                "shipping": order.shipping_amount,
                "tax": order.tax_amount,
                "total": order.total_amount,
                "currency": order.currency,
            },
        )
        if not sent:
            logger.error(f"Failed to send order confirmation email for order {order.order_number}")
            return False

        #flaga: mail potwierdzenia tylko raz
        order.confirmation_email_sent = True
        order.confirmation_email_sent_at = utcnow()
        self.db.commit()

        logger.info(f"Order confirmation email sent for order {order.order_number}")
        return True

    def send_welcome_email(self, user: UserModel) -> bool:
        return self.mailer.send(
            "welcome",
            user.email,
            {"app_name": self._app_name(), "name": user.name},
        )

    def send_verification_email(self, email: str, name: str, verification_url: str) -> bool:
        return self.mailer.send(
            "pending_verification",
            email,
            {
                "app_name": self._app_name(),
                "name": name,
                "verification_url": verification_url,
                "ttl_hours": VERIFICATION_TTL_HOURS,
            },
        )
