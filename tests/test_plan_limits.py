from bikeregistry.domain.promo_codes.service import calculate_discounted_price
from bikeregistry.plan_limits import (
    can_register_bicycle,
    format_currency,
    get_active_subscription,
    get_bicycle_limit,
    is_upgrade,
    is_valid_plan,
)


def test_bicycle_limits_per_plan():
    assert get_bicycle_limit("basic") == 1
    assert get_bicycle_limit("standard") == 2
    assert get_bicycle_limit("family") == 4
    assert get_bicycle_limit("premium") == 6
    assert get_bicycle_limit("gold") == 0
    assert get_bicycle_limit(None) == 0


def test_plan_validity():
    assert is_valid_plan("family")
    assert not is_valid_plan("Family")
    assert not is_valid_plan("")


def test_upgrade_order():
    assert is_upgrade("basic", "premium")
    assert is_upgrade("standard", "family")
    assert not is_upgrade("family", "standard")


def test_format_currency():
    assert format_currency(4000) == "$40.00 MXN"
    assert format_currency(1234567, "USD") == "$12,345.67 USD"
    assert format_currency(None) == "$0.00 MXN"


def test_discounted_price():
    assert calculate_discounted_price(120, "percentage", 25) == 90
    assert calculate_discounted_price(40, "fixed", 15) == 25
    assert calculate_discounted_price(40, "fixed", 100) == 0
    assert calculate_discounted_price(60, "percentage", 100) == 0


class TestCanRegisterBicycle:
    def test_requires_active_subscription(self, db, user, make_subscription):
        make_subscription(user, status="canceled")
        allowed, message = can_register_bicycle(user, db)
        assert not allowed
        assert "active subscription" in message

    def test_under_limit(self, db, user, make_subscription, make_bicycle):
        make_subscription(user, plan_type="standard")
        make_bicycle(user)
        assert can_register_bicycle(user, db) == (True, None)

    def test_at_limit(self, db, user, make_subscription, make_bicycle):
        make_subscription(user, plan_type="basic")
        make_bicycle(user)
        allowed, message = can_register_bicycle(user, db)
        assert not allowed
        assert "limit of 1 bicycles" in message

    def test_latest_active_subscription_wins(self, db, user, make_subscription):
        make_subscription(user, plan_type="basic", subscription_id="sub_old")
        newest = make_subscription(user, plan_type="family", subscription_id="sub_new")
        assert get_active_subscription(user, db).id == newest.id
