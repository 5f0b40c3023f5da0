# storefront/services/mailer.py
import smtplib
from email.mime.text import MIMEText
from typing import Any, Dict

from storefront.utils.logging import get_logger
from storefront.utils import settings

logger = get_logger(__name__)


TEMPLATES: Dict[str, Dict[str, str]] = {
    "pending_verification": {
        "subject": "Verify Your Email Address - {app_name}",
        "body": (
            "Hi {name},\n\n"
            "Thanks for signing up at {app_name}. Please confirm your email address "
            "by opening the link below:\n\n"
            "{verification_url}\n\n"
            "The link expires in {ttl_hours} hours. If you did not create an account, "
            "no further action is required.\n"
        ),
    },
    "welcome": {
        "subject": "Welcome to {app_name}!",
        "body": (
            "Hi {name},\n\n"
            "Your email address has been verified and your {app_name} account is ready.\n"
        ),
    },
    "order_confirmation": {
        "subject": "Order Confirmation - {order_number}",
        "body": (
            "Hi {customer_name},\n\n"
            "Thank you for your order {order_number}.\n\n"
            "{lines}\n\n"
            "Subtotal: {subtotal} {currency}\n"
            "Shipping: {shipping} {currency}\n"
            "Tax: {tax} {currency}\n"
            "Total: {total} {currency}\n\n"
            "{app_name}\n"
        ),
    },
}


class Mailer:
    """
    send(template_id, recipient, context) -> bool

    Nigdy nie rzuca wyjatku, blad wysylki jest logowany i zwraca False.
    Bez SMTP_HOST wiadomosc trafia tylko do logow (tryb dev).
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        user: str | None = None,
        password: str | None = None,
        sender: str | None = None,
        timeout: int | None = None,
    ):
        self.host = settings.SMTP_HOST if host is None else host
        self.port = port or settings.SMTP_PORT
        self.user = settings.SMTP_USER if user is None else user
        self.password = settings.SMTP_PASSWORD if password is None else password
        self.sender = sender or settings.MAIL_FROM
        self.timeout = timeout or settings.SMTP_TIMEOUT_SECONDS

    def render(self, template_id: str, context: Dict[str, Any]) -> tuple[str, str]:
        template = TEMPLATES[template_id]
        ctx = {"app_name": settings.APP_NAME, **context}
        return template["subject"].format(**ctx), template["body"].format(**ctx)

    def send(self, template_id: str, recipient: str, context: Dict[str, Any]) -> bool:
        try:
            subject, body = self.render(template_id, context)
        except KeyError as e:
            logger.error(f"Cannot render mail template {template_id} for {recipient}: missing {e}")
            return False

        if not self.host:
            logger.info(f"[MAIL] to={recipient} subject={subject!r}\n{body}")
            return True

        msg = MIMEText(body, "plain", "utf-8")
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = recipient

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as s:
                s.starttls()
                if self.user and self.password:
                    s.login(self.user, self.password)
                s.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Mail {template_id} to {recipient} failed: {e}")
            return False

        logger.info(f"Mail {template_id} sent to {recipient}")
        return True
