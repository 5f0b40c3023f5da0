# storefront/celery_worker.py
from celery import Celery

from storefront.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "storefront",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# WAZNE: Explicite importuj taski, zeby Celery je zarejestrowal
celery_app.conf.imports = (
    "storefront.tasks.cleanup",
    "storefront.services.notification_service",
)

# Konfiguracja beat schedule
celery_app.conf.beat_schedule = {
    "cleanup-expired-pending-every-hour": {
        "task": "storefront.tasks.cleanup.cleanup_expired_pending_task",
        "schedule": 60.0 * 60,  # co godzine
    },
    "send-pending-order-emails-every-15-minutes": {
        "task": "storefront.tasks.cleanup.send_pending_order_emails_task",
        "schedule": 15 * 60.0,
    },
}

celery_app.conf.timezone = "UTC"

#cache ustawien sklepu dla procesu workera
settings_cache: dict = {}
