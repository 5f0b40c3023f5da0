# storefront/services/notification_service.py
from kombu.exceptions import OperationalError

from storefront.celery_worker import celery_app, settings_cache
from storefront.data.database import SessionLocal
from storefront.repos.user_repo import UserRepo
from storefront.services.email_service import EmailService
from storefront.services.setting_service import SettingService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Serwis do wysylania maili rejestracji.
    Uzywa Celery do asynchronicznego przetwarzania (fire-and-forget).
    Wolane po commicie, wiec awaria brokera tylko loguje ostrzezenie.
    """

    @staticmethod
    def send_verification_email(email: str, name: str, verification_url: str) -> bool:
        try:
            send_verification_email_task.delay(email, name, verification_url)
        except OperationalError as e:
            logger.warning(f"[NOTIFICATION] Could not queue verification email to {email}: {e}")
            return False
        return True

    @staticmethod
    def send_welcome_email(user_id: int) -> bool:
        try:
            send_welcome_email_task.delay(user_id)
        except OperationalError as e:
            logger.warning(f"[NOTIFICATION] Could not queue welcome email for user {user_id}: {e}")
            return False
        return True


def _email_service(db) -> EmailService:
    return EmailService(db, SettingService(db, settings_cache))


@celery_app.task(name="storefront.services.notification_service.send_verification_email_task")
def send_verification_email_task(email: str, name: str, verification_url: str):
    db = SessionLocal()
    try:
        sent = _email_service(db).send_verification_email(email, name, verification_url)
    finally:
        db.close()

    if not sent:
        logger.warning(f"[NOTIFICATION] Verification email to {email} not sent")
    return {"email": email, "status": "sent" if sent else "failed"}


@celery_app.task(name="storefront.services.notification_service.send_welcome_email_task")
def send_welcome_email_task(user_id: int):
    db = SessionLocal()
    try:
        user = UserRepo(db).get_user(user_id)
        if user is None:
            logger.warning(f"[NOTIFICATION] User {user_id} not found, welcome email skipped")
            return {"user_id": user_id, "status": "skipped"}
        sent = _email_service(db).send_welcome_email(user)
    finally:
        db.close()

    return {"user_id": user_id, "status": "sent" if sent else "failed"}
