# storefront/api/deps.py
from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.data.models.user import UserModel
from storefront.repos.user_repo import UserRepo
from storefront.services.email_service import EmailService
from storefront.services.lock_service import LockService
from storefront.services.notification_service import NotificationService
from storefront.services.setting_service import SettingService
from storefront.services.stripe_client import StripeClient
from storefront.services.verification_link import VerificationLinkSigner
from storefront.utils.security import decode_access_token

#cache ustawien sklepu dla procesu API
settings_cache: dict = {}


def get_notifier() -> NotificationService:
    return NotificationService()


def get_link_signer() -> VerificationLinkSigner:
    return VerificationLinkSigner()


def get_lock_service() -> LockService:
    return LockService()


def get_stripe_client() -> StripeClient:
    return StripeClient()


def get_email_service(db: Session = Depends(get_db)) -> EmailService:
    return EmailService(db, SettingService(db, settings_cache))


def get_current_user(
    authorization: str | None = Header(None),
    db: Session = Depends(get_db),
) -> UserModel:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Not authenticated")

    user_id = decode_access_token(authorization.split(" ", 1)[1])
    user = UserRepo(db).get_user(user_id) if user_id is not None else None
    if user is None or not user.is_active:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def require_admin(user: UserModel = Depends(get_current_user)) -> UserModel:
    if user.role != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
