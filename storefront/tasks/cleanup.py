# storefront/tasks/cleanup.py
from storefront.celery_worker import celery_app, settings_cache
from storefront.data.database import SessionLocal
from storefront.services.email_service import EmailService
from storefront.services.order_service import OrderService
from storefront.services.registration_service import PendingVerificationRegistry
from storefront.services.setting_service import SettingService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="storefront.tasks.cleanup.cleanup_expired_pending_task")
def cleanup_expired_pending_task():
    logger.info("Cleanup expired pending verifications task started")

    db = SessionLocal()
    try:
        #beat nie ma kogo zapytac o potwierdzenie, zawsze force
        deleted = PendingVerificationRegistry(db).cleanup_expired(force=True)
    finally:
        db.close()

    return {"deleted": deleted}


@celery_app.task(name="storefront.tasks.cleanup.send_pending_order_emails_task")
def send_pending_order_emails_task():
    logger.info("Send pending order confirmation emails task started")

    db = SessionLocal()
    try:
        email_service = EmailService(db, SettingService(db, settings_cache))
        report = OrderService(db, email_service).send_pending_confirmation_emails()
    finally:
        db.close()

    if report.failed:
        logger.warning(f"{report.failed} order confirmation email(s) failed")
    return {"sent": report.sent, "failed": report.failed}
