from urllib.parse import parse_qs, urlparse

from bikeregistry.models import User
from bikeregistry.security_utils import verify_password

from .conftest import TEST_PASSWORD

REGISTRATION = {
    "email": "Juan.Perez@Example.com",
    "password": "Pedal#Fuerte99",
    "fullName": "Juan Pérez",
    "birthDate": "1988-11-02",
    "curp": "pegj881102hdfrnn05",
    "address": "Calle Madero 12, Guadalajara",
    "phone": "33 1234 5678",
}


class TestRegister:
    def test_register_creates_user_and_returns_token(self, client, db, emails):
        response = client.post("/auth/register", json=REGISTRATION)

        assert response.status_code == 201
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["access_token"]
        assert body["user"]["email"] == "juan.perez@example.com"
        assert body["user"]["curp"] == "PEGJ881102HDFRNN05"
        assert body["user"]["role"] == "user"

        user = db.query(User).filter(User.email == "juan.perez@example.com").one()
        assert verify_password("Pedal#Fuerte99", user.password_hash)
        emails["welcome"].assert_awaited_once_with("juan.perez@example.com", "Juan Pérez")

    def test_missing_fields(self, client):
        response = client.post("/auth/register", json={"email": "a@example.com"})
        assert response.status_code == 400
        assert "password" in response.json()["detail"]
        assert "curp" in response.json()["detail"]

    def test_invalid_curp(self, client):
        response = client.post("/auth/register", json={**REGISTRATION, "curp": "ABC"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid CURP format"

    def test_weak_password(self, client):
        response = client.post("/auth/register", json={**REGISTRATION, "password": "corta"})
        assert response.status_code == 400
        assert response.json()["detail"]["message"] == "Password is too weak"

    def test_duplicate_email(self, client, user):
        response = client.post("/auth/register", json={**REGISTRATION, "email": user.email})
        assert response.status_code == 409

    def test_welcome_email_failure_does_not_block_registration(self, client, emails):
        emails["welcome"].side_effect = Exception("Resend down")
        response = client.post("/auth/register", json=REGISTRATION)
        assert response.status_code == 201


class TestLogin:
    def test_login(self, client, user):
        response = client.post(
            "/auth/login", json={"email": "MARIA@example.com", "password": TEST_PASSWORD}
        )
        assert response.status_code == 200
        assert response.json()["user"]["id"] == user.id

    def test_wrong_password(self, client, user):
        response = client.post("/auth/login", json={"email": user.email, "password": "Nope#1234"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    def test_unknown_email(self, client):
        response = client.post(
            "/auth/login", json={"email": "nadie@example.com", "password": TEST_PASSWORD}
        )
        assert response.status_code == 401


class TestPasswordReset:
    def _reset_token(self, emails):
        reset_link = emails["password_reset"].await_args.args[2]
        return parse_qs(urlparse(reset_link).query)["token"][0]

    def test_same_response_for_unknown_email(self, client, user, emails):
        known = client.post("/auth/reset-password", json={"email": user.email})
        unknown = client.post("/auth/reset-password", json={"email": "nadie@example.com"})

        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json()
        emails["password_reset"].assert_awaited_once()

    def test_reset_link_points_to_frontend(self, client, user, emails):
        client.post("/auth/reset-password", json={"email": user.email})
        reset_link = emails["password_reset"].await_args.args[2]
        assert reset_link.startswith("http://localhost:3000/auth/reset-password/confirm?token=")

    def test_update_password_with_token(self, client, db, user, emails):
        client.post("/auth/reset-password", json={"email": user.email})
        token = self._reset_token(emails)

        response = client.post(
            "/auth/update-password", json={"token": token, "password": "Nueva$Clave2025"}
        )
        assert response.status_code == 200

        db.refresh(user)
        assert verify_password("Nueva$Clave2025", user.password_hash)

    def test_token_works_only_once(self, client, user, emails):
        client.post("/auth/reset-password", json={"email": user.email})
        token = self._reset_token(emails)

        first = client.post("/auth/update-password", json={"token": token, "password": "Nueva$Clave2025"})
        second = client.post("/auth/update-password", json={"token": token, "password": "Otra$Clave2026"})

        assert first.status_code == 200
        assert second.status_code == 400
        assert second.json()["detail"] == "Invalid or expired reset link"

    def test_invalid_token(self, client):
        response = client.post(
            "/auth/update-password", json={"token": "not-a-token", "password": "Nueva$Clave2025"}
        )
        assert response.status_code == 400


class TestProfile:
    def test_requires_authentication(self, client):
        assert client.get("/users/me").status_code in (401, 403)

    def test_invalid_token(self, client):
        response = client.get("/users/me", headers={"Authorization": "Bearer a.b.c"})
        assert response.status_code == 401

    def test_get_me(self, client, user, auth_headers):
        response = client.get("/users/me", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["email"] == user.email

    def test_update_me(self, client, auth_headers):
        response = client.put(
            "/users/me",
            headers=auth_headers,
            json={"full_name": "<b>María</b> López", "phone": "+52 55 8765 4321"},
        )
        assert response.status_code == 200
        assert response.json()["full_name"] == "María López"
        assert response.json()["phone"] == "+52 55 8765 4321"

    def test_update_me_rejects_invalid_curp(self, client, auth_headers):
        response = client.put("/users/me", headers=auth_headers, json={"curp": "XYZ"})
        assert response.status_code == 400

    def test_update_me_rejects_empty_name(self, client, auth_headers):
        response = client.put("/users/me", headers=auth_headers, json={"full_name": "   "})
        assert response.status_code == 400
