# storefront/services/registration_service.py
import secrets
import string
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.pending_verification import PendingVerificationModel
from storefront.data.models.user import UserModel
from storefront.domain.errors import (
    EmailAlreadyRegistered,
    InvalidSignature,
    PendingVerificationNotFound,
    VerificationExpired,
)
from storefront.domain.schemas import VerificationStatusOut
from storefront.repos.pending_verification_repo import PendingVerificationRepo
from storefront.repos.user_repo import UserRepo
from storefront.utils.clock import as_utc, utcnow
from storefront.utils.logging import get_logger
from storefront.utils.settings import VERIFICATION_TTL_HOURS

logger = get_logger(__name__)

TOKEN_LENGTH = 64
_TOKEN_ALPHABET = string.ascii_letters + string.digits


@dataclass
class PendingOverview:
    total: int
    active: int
    expired: int
    recent_active: List[PendingVerificationModel] = field(default_factory=list)


class PendingVerificationRegistry:
    """
    Dwufazowa rejestracja:
    created -> (resent)* -> verified | expired -> cleaned_up

    Rekord pending nie jest userem. User powstaje dopiero w verify(),
    w tej samej transakcji w ktorej pending jest usuwany (compare-and-delete).
    """

    def __init__(
        self,
        db: Session,
        ttl_hours: int | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.repo = PendingVerificationRepo(db)
        self.users = UserRepo(db)
        self.ttl = timedelta(hours=ttl_hours or VERIFICATION_TTL_HOURS)
        self.clock = clock

    @staticmethod
    def generate_token() -> str:
        return "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(TOKEN_LENGTH))

    # =====================================================
    # COMMANDS
    # =====================================================
    def create(self, name: str, email: str, password_hash: str) -> PendingVerificationModel:
        email = email.strip().lower()

        if self.users.get_by_email(email):
            raise EmailAlreadyRegistered(email)

        now = self.clock()
        existing = self.repo.get_by_email(email)
        if existing:
            if not existing.is_expired(now):
                raise EmailAlreadyRegistered(email)
            #wygasly rekord blokowalby unikalny email, zastepujemy go
            logger.info(f"Replacing expired pending verification for {email}")
            self.repo.delete(existing)

        pending = PendingVerificationModel(
            name=name,
            email=email,
            password=password_hash,
            verification_token=self.generate_token(),
            token_expires_at=now + self.ttl,
            created_at=now,
        )

        try:
            created = self.repo.create(pending)
        except IntegrityError:
            #wyscig dwoch rejestracji na ten sam email, wygrywa unikalny indeks
            self.repo.rollback()
            raise EmailAlreadyRegistered(email)

        logger.info(f"Pending verification created for {email}, expires {created.token_expires_at}")
        return created

    def verify(self, token: str, email: str, signature_valid: bool) -> UserModel:
        if not signature_valid:
            raise InvalidSignature()

        email = email.strip().lower()
        pending = self.repo.get_by_email_and_token(email, token)

        if pending is None:
            raise PendingVerificationNotFound(email)

        now = self.clock()
        if pending.is_expired(now):
            #rekord zostaje, mozna poprosic o resend
            raise VerificationExpired(email)

        name, password = pending.name, pending.password

        try:
            # find-and-delete, przegrany wyscig dostaje NotFound
            if self.repo.consume(pending.id, token) != 1:
                self.repo.rollback()
                raise PendingVerificationNotFound(email)

            user = self.users.add_user(
                UserModel(
                    name=name,
                    email=email,
                    password=password,
                    email_verified_at=now,
                    role="customer",
                    is_active=True,
                    created_at=now,
                )
            )
            self.repo.commit()
        except IntegrityError:
            self.repo.rollback()
            raise EmailAlreadyRegistered(email)

        logger.info(f"Pending verification for {email} promoted to user {user.id}")
        return user

    def resend(self, email: str) -> PendingVerificationModel:
        email = email.strip().lower()
        pending = self.repo.get_by_email(email)

        if pending is None:
            raise PendingVerificationNotFound(email)

        now = self.clock()
        if pending.is_expired(now):
            changed = self.repo.replace_token(
                pending.id,
                pending.verification_token,
                self.generate_token(),
                now + self.ttl,
            )
            self.repo.commit()
            if not changed:
                logger.info(f"Token for {email} already regenerated by a concurrent resend")
            self.repo.refresh(pending)
            logger.info(f"Verification token regenerated for {email}")

        return pending

    def cleanup_expired(self, force: bool = False, confirm: Optional[Callable[[int], bool]] = None) -> int:
        """
        Usuwa wygasle rekordy. Bez force wymagane potwierdzenie (confirm(count)).
        Operacja nieodwracalna.
        """
        now = self.clock()
        expired = self.repo.count_expired(now)

        if expired == 0:
            logger.info("No expired pending verifications found")
            return 0

        if not force and (confirm is None or not confirm(expired)):
            logger.info(f"Cleanup of {expired} expired pending verification(s) cancelled")
            return 0

        deleted = self.repo.delete_expired(now)
        self.repo.commit()

        logger.info(f"Deleted {deleted} expired pending verification(s)")
        return deleted

    # =====================================================
    # QUERY
    # =====================================================
    def get_pending(self, email: str) -> PendingVerificationModel | None:
        return self.repo.get_by_email(email.strip().lower())

    def status(self, email: str) -> VerificationStatusOut:
        email = email.strip().lower()

        user = self.users.get_by_email(email)
        if user is not None and user.has_verified_email():
            return VerificationStatusOut(verified=True, user_id=user.id)

        pending = self.repo.get_by_email(email)
        if pending is None:
            return VerificationStatusOut(verified=False, message="No pending verification found")

        if pending.is_expired(self.clock()):
            return VerificationStatusOut(
                verified=False,
                expired=True,
                message="Verification link has expired. Please request a new one.",
            )

        return VerificationStatusOut(
            verified=False,
            pending=True,
            expires_at=as_utc(pending.token_expires_at),
        )

    def overview(self, limit: int = 10) -> PendingOverview:
        now = self.clock()
        total = self.repo.count_all()
        expired = self.repo.count_expired(now)
        return PendingOverview(
            total=total,
            active=total - expired,
            expired=expired,
            recent_active=self.repo.recent_active(now, limit),
        )
