# storefront/api/routers/webhooks.py
import stripe
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError
from sqlalchemy.orm import Session

from storefront.api.deps import get_email_service, get_lock_service, get_stripe_client
from storefront.data.database import get_db
from storefront.domain.schemas import WebhookAck
from storefront.services.email_service import EmailService
from storefront.services.lock_service import LockService
from storefront.services.stripe_client import StripeClient
from storefront.services.webhook_service import WebhookOrderMaterializer
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/stripe", tags=["webhooks"])


@router.post("/webhook", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    db: Session = Depends(get_db),
    stripe_client: StripeClient = Depends(get_stripe_client),
    locks: LockService = Depends(get_lock_service),
    email_service: EmailService = Depends(get_email_service),
):
    """
    Zawsze 2xx dla poprawnego eventu, nawet gdy materializacja sie nie uda
    (blad jest w logach). 400 tylko dla zlego podpisu lub payloadu.
    """
    payload = await request.body()
    sig_header = request.headers.get("Stripe-Signature")

    try:
        event = stripe_client.construct_event(payload, sig_header)
    except stripe.SignatureVerificationError as e:
        logger.warning(f"Stripe webhook signature rejected: {e}")
        raise HTTPException(status_code=400, detail="Invalid signature")
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid payload")

    materializer = WebhookOrderMaterializer(
        db, email_service, stripe_client=stripe_client, lock_service=locks
    )
    try:
        #sync SQLAlchemy, nie blokujemy petli zdarzen
        await run_in_threadpool(materializer.handle, event)
    except ValidationError as e:
        logger.warning(f"Malformed Stripe webhook payload: {e}")
        raise HTTPException(status_code=400, detail="Malformed webhook payload")

    return WebhookAck(received=True)
