"""
Plan catalogue and utilities for subscription-based bicycle limits.
"""

from typing import Optional

from sqlalchemy.orm import Session

from .models import Bicycle, Subscription, User

# Bicycles allowed per plan and monthly price in MXN
PLANS = {
    "basic": {"name": "Básico", "bicycle_limit": 1, "price": 40},
    "standard": {"name": "Estándar", "bicycle_limit": 2, "price": 60},
    "family": {"name": "Familiar", "bicycle_limit": 4, "price": 120},
    "premium": {"name": "Premium", "bicycle_limit": 6, "price": 180},
}

# Lowest to highest; used to tell upgrades from downgrades
PLAN_ORDER = ["basic", "standard", "family", "premium"]


def is_valid_plan(plan: Optional[str]) -> bool:
    return bool(plan) and plan in PLANS


def get_bicycle_limit(plan: Optional[str]) -> int:
    """Bicycles allowed for a plan. 0 for no plan or an unknown plan."""
    if not is_valid_plan(plan):
        return 0
    return PLANS[plan]["bicycle_limit"]


def get_plan_price(plan: str) -> int:
    return PLANS[plan]["price"]


def is_upgrade(current_plan: str, new_plan: str) -> bool:
    return PLAN_ORDER.index(new_plan) > PLAN_ORDER.index(current_plan)


def format_currency(amount_cents: Optional[int], currency: str = "MXN") -> str:
    """Render an amount in the lowest currency unit, e.g. 4000 -> '$40.00 MXN'"""
    amount = (amount_cents or 0) / 100
    return f"${amount:,.2f} {currency}"


def get_active_subscription(user: User, db: Session) -> Optional[Subscription]:
    """Most recent active subscription of a user"""
    return (
        db.query(Subscription)
        .filter(Subscription.user_id == user.id, Subscription.status == "active")
        .order_by(Subscription.created_at.desc(), Subscription.id.desc())
        .first()
    )


def count_registered_bicycles(user: User, db: Session) -> int:
    return db.query(Bicycle).filter(Bicycle.user_id == user.id).count()


def can_register_bicycle(user: User, db: Session) -> tuple:
    """
    Check if user can register another bicycle.
    Returns (can_register, error_message).
    """
    subscription = get_active_subscription(user, db)
    if not subscription:
        return (False, "You need an active subscription to register bicycles.")

    limit = subscription.bicycle_limit or get_bicycle_limit(subscription.plan_type)
    current_count = count_registered_bicycles(user, db)

    if current_count >= limit:
        return (
            False,
            f"You have reached the limit of {limit} bicycles of your {subscription.plan_type} plan. "
            "Upgrade your plan to register more bicycles.",
        )

    return (True, None)
