# storefront/data/models/pending_verification.py
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from storefront.data.database import Base
from storefront.utils.clock import as_utc, utcnow


class PendingVerificationModel(Base):
    """
    Rejestracja czekajaca na potwierdzenie emaila.
    Uzytkownik powstaje dopiero po kliknieciu w link.
    """

    __tablename__ = "pending_user_verifications"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)

    verification_token = Column(String(64), nullable=False, unique=True)
    token_expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or utcnow()
        return as_utc(self.token_expires_at) < now
