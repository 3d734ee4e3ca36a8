from sqlalchemy import event

from bikeregistry.database import engine
from bikeregistry.models import Payment


class TestAdmin:
    def test_stats(self, client, admin_headers, user, make_subscription, make_bicycle):
        make_subscription(user)
        make_bicycle(user)
        make_bicycle(user, theft_status="reported_stolen")

        response = client.get("/admin/stats", headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {
            "total_users": 2,
            "total_bicycles": 2,
            "active_subscriptions": 1,
            "stolen_bicycles": 1,
        }

    def test_users_are_paginated(self, client, admin_headers, make_user):
        for _ in range(3):
            make_user()

        body = client.get("/admin/users", params={"page": 2, "limit": 3}, headers=admin_headers).json()

        assert body["total"] == 4
        assert body["page"] == 2
        assert len(body["items"]) == 1

    def test_bicycles_include_owner(self, client, admin_headers, user, make_bicycle):
        make_bicycle(user)
        body = client.get("/admin/bicycles", headers=admin_headers).json()
        assert body["items"][0]["owner_email"] == user.email

    def test_user_bicycle_counts_use_one_query(self, client, admin_headers, make_user, make_bicycle):
        for _ in range(3):
            make_bicycle(make_user())
        statements = []

        def record(conn, cursor, statement, parameters, context, executemany):
            statements.append(statement)

        event.listen(engine, "before_cursor_execute", record)
        try:
            body = client.get("/admin/users", headers=admin_headers).json()
        finally:
            event.remove(engine, "before_cursor_execute", record)

        assert sorted(item["bicycles"] for item in body["items"]) == [0, 1, 1, 1]
        assert sum("FROM bicycles" in statement for statement in statements) == 1

    def test_regular_user_is_forbidden(self, client, auth_headers):
        assert client.get("/admin/stats", headers=auth_headers).status_code == 403

    def test_requires_authentication(self, client):
        assert client.get("/admin/stats").status_code in (401, 403)


class TestUpdatePaymentStatus:
    def test_marks_payment_and_bicycle_paid(self, client, db, user, auth_headers, make_bicycle):
        bicycle = make_bicycle(user, payment_status=False)
        payment = Payment(user_id=user.id, bicycle_id=bicycle.id, amount=4000, payment_type="registration")
        db.add(payment)
        db.commit()

        response = client.post("/payments/update-status", headers=auth_headers, json={"paymentId": payment.id})

        assert response.status_code == 200
        assert response.json()["payment_status"] == "completed"
        db.refresh(bicycle)
        assert bicycle.payment_status is True

    def test_foreign_payment(self, client, db, auth_headers, make_user):
        other = make_user()
        payment = Payment(user_id=other.id, amount=4000)
        db.add(payment)
        db.commit()

        response = client.post("/payments/update-status", headers=auth_headers, json={"paymentId": payment.id})

        assert response.status_code == 404
        assert response.json()["detail"] == "Payment not found"

    def test_only_pending_payment_is_completed(self, client, db, user, auth_headers, make_bicycle):
        bicycle = make_bicycle(user, payment_status=False)
        payment = Payment(
            user_id=user.id, bicycle_id=bicycle.id, amount=4000, payment_status="failed"
        )
        db.add(payment)
        db.commit()

        response = client.post("/payments/update-status", headers=auth_headers, json={"paymentId": payment.id})

        assert response.status_code == 400
        assert response.json()["detail"] == "Payment is not pending"
        db.refresh(payment)
        db.refresh(bicycle)
        assert payment.payment_status == "failed"
        assert bicycle.payment_status is False
