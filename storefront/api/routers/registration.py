# storefront/api/routers/registration.py
from fastapi import APIRouter, Depends, HTTPException, Query
from redis.exceptions import RedisError
from sqlalchemy.orm import Session

from storefront.api.deps import get_link_signer, get_lock_service, get_notifier
from storefront.data.database import get_db
from storefront.domain.errors import (
    EmailAlreadyRegistered,
    InvalidSignature,
    PendingVerificationNotFound,
    VerificationExpired,
)
from storefront.domain.schemas import (
    PendingVerificationOut,
    RegisterIn,
    ResendIn,
    UserRead,
    VerificationStatusOut,
    VerifiedOut,
)
from storefront.services.lock_service import LockService
from storefront.services.notification_service import NotificationService
from storefront.services.registration_service import PendingVerificationRegistry
from storefront.services.verification_link import VerificationLinkSigner
from storefront.utils.clock import as_utc
from storefront.utils.logging import get_logger
from storefront.utils.security import create_access_token, hash_password
from storefront.utils.settings import RESEND_THROTTLE_SECONDS

logger = get_logger(__name__)

router = APIRouter(tags=["registration"])


def get_registry(db: Session):
    return PendingVerificationRegistry(db)


@router.post("/register", response_model=PendingVerificationOut, status_code=202)
def register(
    payload: RegisterIn,
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
    signer: VerificationLinkSigner = Depends(get_link_signer),
):
    """
    Tworzy pending verification (nie usera) i wysyla link weryfikacyjny.
    """
    registry = get_registry(db)
    try:
        pending = registry.create(payload.name, payload.email, hash_password(payload.password))
    except EmailAlreadyRegistered as e:
        raise HTTPException(status_code=422, detail=str(e))

    url = signer.build_url(pending.verification_token, pending.email)
    notifier.send_verification_email(pending.email, pending.name, url)

    return PendingVerificationOut(email=pending.email, expires_at=as_utc(pending.token_expires_at))


@router.get("/verify-email/status", response_model=VerificationStatusOut)
def verification_status(
    email: str | None = Query(None),
    db: Session = Depends(get_db),
):
    """
    Odpytywane przez strone "sprawdz skrzynke", tylko odczyt stanu.
    """
    if not email:
        raise HTTPException(status_code=400, detail="Email parameter required")
    return get_registry(db).status(email)


@router.post("/verify-email/resend", response_model=PendingVerificationOut, status_code=202)
def resend_verification(
    payload: ResendIn,
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
    signer: VerificationLinkSigner = Depends(get_link_signer),
    locks: LockService = Depends(get_lock_service),
):
    if not _allow_resend(locks, payload.email):
        raise HTTPException(status_code=429, detail="Too many verification emails requested. Try again later.")

    registry = get_registry(db)
    try:
        pending = registry.resend(payload.email)
    except PendingVerificationNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    url = signer.build_url(pending.verification_token, pending.email)
    notifier.send_verification_email(pending.email, pending.name, url)

    return PendingVerificationOut(email=pending.email, expires_at=as_utc(pending.token_expires_at))


@router.get("/verify-email/{token}/{email}", response_model=VerifiedOut)
def verify_email(
    token: str,
    email: str,
    signature: str | None = Query(None),
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
    signer: VerificationLinkSigner = Depends(get_link_signer),
):
    """
    Promuje pending verification do usera i loguje go (access token).
    """
    registry = get_registry(db)
    try:
        user = registry.verify(token, email, signer.is_valid(token, email, signature))
    except InvalidSignature as e:
        raise HTTPException(status_code=403, detail=str(e))
    except PendingVerificationNotFound:
        raise HTTPException(status_code=404, detail="Invalid verification link.")
    except VerificationExpired as e:
        raise HTTPException(status_code=410, detail=str(e))
    except EmailAlreadyRegistered as e:
        raise HTTPException(status_code=409, detail=str(e))

    #welcome mail tylko raz, po udanej promocji
    notifier.send_welcome_email(user.id)

    return VerifiedOut(
        user=UserRead.model_validate(user),
        access_token=create_access_token(user.id),
    )


def _allow_resend(locks: LockService, email: str) -> bool:
    try:
        return locks.throttle(f"verification-resend:{email}", RESEND_THROTTLE_SECONDS)
    except RedisError as e:
        logger.warning(f"Resend throttle unavailable for {email}: {e}")
        return True
