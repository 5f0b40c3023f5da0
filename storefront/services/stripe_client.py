# storefront/services/stripe_client.py
import json
from typing import Any, Dict

import stripe

from storefront.utils.logging import get_logger
from storefront.utils.retry import stripe_retry
from storefront.utils.settings import STRIPE_SECRET, STRIPE_TIMEOUT_SECONDS, STRIPE_WEBHOOK_SECRET

logger = get_logger(__name__)


class StripeClient:
    """
    Cienka warstwa nad SDK Stripe.
    Pobranie sesji ma krotki timeout, bledy sieci sa ponawiane (tenacity),
    bledy API leca wyzej bez zadnych zmian w bazie.
    """

    def __init__(
        self,
        api_key: str | None = None,
        webhook_secret: str | None = None,
        timeout: int | None = None,
    ):
        self.api_key = api_key or STRIPE_SECRET
        self.webhook_secret = STRIPE_WEBHOOK_SECRET if webhook_secret is None else webhook_secret
        self.timeout = timeout or STRIPE_TIMEOUT_SECONDS
        self._client = None

    @property
    def client(self) -> stripe.StripeClient:
        #tworzony leniwie, webhook bez klucza API tez musi dzialac
        if self._client is None:
            self._client = stripe.StripeClient(
                self.api_key,
                http_client=stripe.RequestsClient(timeout=self.timeout),
            )
        return self._client

    @stripe_retry()
    def retrieve_checkout_session(self, session_id: str) -> Dict[str, Any]:
        logger.info(f"StripeClient retrieve checkout session {session_id}")
        session = self.client.v1.checkout.sessions.retrieve(session_id)
        return session.to_dict()

    def construct_event(self, payload: bytes, sig_header: str | None) -> Dict[str, Any]:
        """
        Weryfikuje podpis webhooka i zwraca event jako dict.
        Bez STRIPE_WEBHOOK_SECRET (dev) podpis nie jest sprawdzany.

        Raises stripe.SignatureVerificationError, ValueError (zly JSON).
        """
        text = payload.decode("utf-8")
        if self.webhook_secret:
            stripe.WebhookSignature.verify_header(
                text,
                sig_header or "",
                self.webhook_secret,
                tolerance=stripe.Webhook.DEFAULT_TOLERANCE,
            )
        else:
            logger.warning("STRIPE_WEBHOOK_SECRET not set, skipping webhook signature check")
        return json.loads(text)
