"""Verification repository - Read-only queries over paid registrations"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Query, Session, joinedload, selectinload

from ...models import Bicycle

SEARCH_RESULT_LIMIT = 50
RECENT_REGISTRATIONS_LIMIT = 6


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class VerificationRepository:
    """Only bicycles whose registration is paid are visible publicly"""

    @staticmethod
    def _paid(db: Session) -> Query:
        return (
            db.query(Bicycle)
            .options(joinedload(Bicycle.owner), selectinload(Bicycle.images))
            .filter(Bicycle.payment_status.is_(True))
        )

    @staticmethod
    def get_by_id(db: Session, bicycle_id: int) -> Optional[Bicycle]:
        return VerificationRepository._paid(db).filter(Bicycle.id == bicycle_id).first()

    @staticmethod
    def get_by_public_id(db: Session, public_id: str) -> Optional[Bicycle]:
        return VerificationRepository._paid(db).filter(Bicycle.public_id == public_id).first()

    @staticmethod
    def search_by_serial(db: Session, serial_number: str) -> list[Bicycle]:
        """Exact, case-insensitive serial number match"""
        return (
            VerificationRepository._paid(db)
            .filter(func.lower(Bicycle.serial_number) == serial_number.lower())
            .limit(SEARCH_RESULT_LIMIT)
            .all()
        )

    @staticmethod
    def search_by_attribute(db: Session, column, term: str) -> list[Bicycle]:
        """Case-insensitive substring match on a text column"""
        pattern = f"%{_escape_like(term)}%"
        return (
            VerificationRepository._paid(db)
            .filter(column.ilike(pattern, escape="\\"))
            .order_by(Bicycle.registration_date.desc(), Bicycle.id.desc())
            .limit(SEARCH_RESULT_LIMIT)
            .all()
        )

    @staticmethod
    def get_recent(db: Session, limit: int = RECENT_REGISTRATIONS_LIMIT) -> list[Bicycle]:
        return (
            VerificationRepository._paid(db)
            .order_by(Bicycle.registration_date.desc(), Bicycle.id.desc())
            .limit(limit)
            .all()
        )
