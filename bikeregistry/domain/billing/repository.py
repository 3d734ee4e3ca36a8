"""Billing repository - Database operations for subscriptions and payments"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import Payment, Subscription, User


class BillingRepository:
    """Repository for billing database operations"""

    @staticmethod
    def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
        """Get user by ID"""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        """Get user by email"""
        return db.query(User).filter(User.email == email.lower()).first()

    @staticmethod
    def get_active_subscription(db: Session, user_id: int) -> Optional[Subscription]:
        """Latest active subscription for a user"""
        return (
            db.query(Subscription)
            .filter(Subscription.user_id == user_id, Subscription.status == "active")
            .order_by(Subscription.created_at.desc(), Subscription.id.desc())
            .first()
        )

    @staticmethod
    def get_by_provider_id(db: Session, subscription_id: str) -> Optional[Subscription]:
        """Get subscription by Dodo subscription ID"""
        return (
            db.query(Subscription).filter(Subscription.subscription_id == subscription_id).first()
        )

    @staticmethod
    def cancel_other_active_subscriptions(
        db: Session, user_id: int, keep_subscription_id: Optional[str]
    ) -> int:
        """Mark every other active subscription of the user as canceled; returns the count"""
        query = db.query(Subscription).filter(
            Subscription.user_id == user_id, Subscription.status == "active"
        )
        if keep_subscription_id:
            query = query.filter(
                or_(
                    Subscription.subscription_id.is_(None),
                    Subscription.subscription_id != keep_subscription_id,
                )
            )
        count = 0
        for subscription in query.all():
            subscription.status = "canceled"
            count += 1
        return count

    @staticmethod
    def list_payments(db: Session, user_id: int) -> list[Payment]:
        return (
            db.query(Payment)
            .filter(Payment.user_id == user_id)
            .order_by(Payment.created_at.desc(), Payment.id.desc())
            .all()
        )

    @staticmethod
    def get_payment_by_provider_id(db: Session, provider_payment_id: str) -> Optional[Payment]:
        return db.query(Payment).filter(Payment.provider_payment_id == provider_payment_id).first()

    @staticmethod
    def get_payment(db: Session, payment_id: int, user_id: int) -> Optional[Payment]:
        return (
            db.query(Payment).filter(Payment.id == payment_id, Payment.user_id == user_id).first()
        )
