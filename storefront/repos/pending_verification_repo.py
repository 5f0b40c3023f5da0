# storefront/repos/pending_verification_repo.py
from datetime import datetime
from typing import List

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from storefront.data.models.pending_verification import PendingVerificationModel


class PendingVerificationRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_email(self, email: str) -> PendingVerificationModel | None:
        return self.db.execute(
            select(PendingVerificationModel).where(PendingVerificationModel.email == email)
        ).scalar_one_or_none()

    def get_by_email_and_token(self, email: str, token: str) -> PendingVerificationModel | None:
        return self.db.execute(
            select(PendingVerificationModel).where(
                PendingVerificationModel.email == email,
                PendingVerificationModel.verification_token == token,
            )
        ).scalar_one_or_none()

    def create(self, pending: PendingVerificationModel) -> PendingVerificationModel:
        self.db.add(pending)
        self.db.commit()
        self.db.refresh(pending)
        return pending

    def delete(self, pending: PendingVerificationModel) -> None:
        self.db.delete(pending)
        self.db.flush()

    def consume(self, pending_id: int, token: str) -> int:
        """
        Compare-and-delete: usuwa rekord tylko jesli token sie zgadza.
        Zwraca rowcount, 0 oznacza ze ktos inny juz go zuzyl.
        """
        result = self.db.execute(
            delete(PendingVerificationModel).where(
                PendingVerificationModel.id == pending_id,
                PendingVerificationModel.verification_token == token,
            )
        )
        return result.rowcount

    def replace_token(self, pending_id: int, old_token: str, token: str, expires_at: datetime) -> int:
        #compare-and-set, rownolegly resend nie nadpisze juz wymienionego tokena
        result = self.db.execute(
            update(PendingVerificationModel)
            .where(
                PendingVerificationModel.id == pending_id,
                PendingVerificationModel.verification_token == old_token,
            )
            .values(verification_token=token, token_expires_at=expires_at)
        )
        return result.rowcount

    def refresh(self, pending: PendingVerificationModel) -> PendingVerificationModel:
        self.db.refresh(pending)
        return pending

    def count_all(self) -> int:
        return self.db.execute(select(func.count(PendingVerificationModel.id))).scalar_one()

    def count_expired(self, now: datetime) -> int:
        return self.db.execute(
            select(func.count(PendingVerificationModel.id)).where(
                PendingVerificationModel.token_expires_at < now
            )
        ).scalar_one()

    def delete_expired(self, now: datetime) -> int:
        # SQLite oddaje naiwne daty, wiec bez porownywania z obiektami w sesji
        result = self.db.execute(
            delete(PendingVerificationModel)
            .where(PendingVerificationModel.token_expires_at < now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def recent_active(self, now: datetime, limit: int = 10) -> List[PendingVerificationModel]:
        return list(
            self.db.execute(
                select(PendingVerificationModel)
                .where(PendingVerificationModel.token_expires_at >= now)
                .order_by(PendingVerificationModel.created_at.desc())
                .limit(limit)
            ).scalars()
        )

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
