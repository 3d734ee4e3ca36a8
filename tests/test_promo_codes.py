from datetime import datetime, timedelta

import pytest

from bikeregistry.models import PromoCode


@pytest.fixture
def promo(db):
    def _promo(code="VERANO20", **fields):
        values = {"discount_type": "percentage", "discount_value": 20}
        values.update(fields)
        promo_code = PromoCode(code=code, **values)
        db.add(promo_code)
        db.commit()
        return promo_code

    return _promo


def validate(client, code, plan="standard"):
    return client.post("/promo-codes/validate", json={"code": code, "planType": plan})


class TestValidatePromoCode:
    def test_percentage_discount(self, client, promo):
        promo()
        response = validate(client, " verano20 ", "Standard")

        assert response.status_code == 200
        assert response.json() == {
            "valid": True,
            "code": "VERANO20",
            "discount_type": "percentage",
            "discount_value": 20.0,
            "original_price": 60,
            "discounted_price": 48,
        }

    def test_fixed_discount(self, client, promo):
        promo(code="MENOS50", discount_type="fixed", discount_value=50)
        assert validate(client, "MENOS50", "basic").json()["discounted_price"] == 0
        assert validate(client, "MENOS50", "premium").json()["discounted_price"] == 130

    def test_unknown_code(self, client):
        response = validate(client, "NOEXISTE")
        assert response.status_code == 404
        assert response.json()["detail"] == "Invalid promo code"

    def test_inactive_code(self, client, promo):
        promo(is_active=False)
        assert validate(client, "VERANO20").status_code == 404

    def test_invalid_plan(self, client, promo):
        promo()
        response = validate(client, "VERANO20", "gold")
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid plan"

    def test_not_yet_valid(self, client, promo):
        promo(valid_from=datetime.utcnow() + timedelta(days=3))
        response = validate(client, "VERANO20")
        assert response.json()["detail"] == "This promo code is not yet valid"

    def test_expired(self, client, promo):
        promo(valid_from=datetime.utcnow() - timedelta(days=30), valid_until=datetime.utcnow() - timedelta(days=1))
        response = validate(client, "VERANO20")
        assert response.status_code == 400
        assert response.json()["detail"] == "This promo code has expired"

    def test_usage_limit(self, client, promo):
        promo(max_uses=10, current_uses=10)
        response = validate(client, "VERANO20")
        assert response.json()["detail"] == "This promo code has reached its usage limit"

    def test_plan_restriction(self, client, promo):
        promo(applicable_plans=["family", "premium"])
        assert validate(client, "VERANO20", "standard").json()["detail"] == (
            "This promo code is not valid for this plan"
        )
        assert validate(client, "VERANO20", "family").status_code == 200


class TestAdminPromoCodes:
    def test_create_and_list(self, client, admin_headers):
        response = client.post(
            "/admin/promo-codes",
            headers=admin_headers,
            json={
                "code": "bici-fest",
                "discount_type": "fixed",
                "discount_value": 15,
                "max_uses": 100,
                "applicable_plans": ["Basic", "standard"],
            },
        )

        assert response.status_code == 201
        assert response.json()["code"] == "BICI-FEST"
        assert response.json()["applicable_plans"] == ["basic", "standard"]
        assert response.json()["current_uses"] == 0

        listed = client.get("/admin/promo-codes", headers=admin_headers).json()
        assert [p["code"] for p in listed] == ["BICI-FEST"]

    def test_duplicate_code(self, client, admin_headers, promo):
        promo()
        response = client.post(
            "/admin/promo-codes",
            headers=admin_headers,
            json={"code": "verano20", "discount_type": "percentage", "discount_value": 10},
        )
        assert response.status_code == 409

    def test_percentage_over_100(self, client, admin_headers):
        response = client.post(
            "/admin/promo-codes",
            headers=admin_headers,
            json={"code": "GRATIS", "discount_type": "percentage", "discount_value": 150},
        )
        assert response.status_code == 422

    def test_requires_admin(self, client, auth_headers):
        assert client.get("/admin/promo-codes", headers=auth_headers).status_code == 403
