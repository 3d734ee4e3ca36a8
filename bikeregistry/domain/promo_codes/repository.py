"""Promo code repository - Database operations for promo codes"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import PromoCode


class PromoCodeRepository:
    """Repository for promo code database operations"""

    @staticmethod
    def get_active_by_code(db: Session, code: str) -> Optional[PromoCode]:
        """Get an active promo code by its (uppercase) code"""
        return (
            db.query(PromoCode)
            .filter(PromoCode.code == code.upper(), PromoCode.is_active.is_(True))
            .first()
        )

    @staticmethod
    def get_by_code(db: Session, code: str) -> Optional[PromoCode]:
        return db.query(PromoCode).filter(PromoCode.code == code.upper()).first()

    @staticmethod
    def list_all(db: Session) -> list[PromoCode]:
        return db.query(PromoCode).order_by(PromoCode.created_at.desc(), PromoCode.id.desc()).all()

    @staticmethod
    def create(db: Session, promo_data: dict) -> PromoCode:
        promo = PromoCode(**promo_data)
        db.add(promo)
        db.commit()
        db.refresh(promo)
        return promo

    @staticmethod
    def increment_usage(db: Session, promo: PromoCode) -> PromoCode:
        promo.current_uses = (promo.current_uses or 0) + 1
        db.commit()
        db.refresh(promo)
        return promo
