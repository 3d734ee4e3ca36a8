import time

import pytest

from bikeregistry.security_utils import (
    check_password_strength,
    create_access_token,
    create_password_reset_token,
    hash_password,
    password_fingerprint,
    read_password_reset_token,
    sanitize_filename,
    strip_html,
    verify_jwt_token,
    verify_password,
)
from bikeregistry.shared.validators import (
    validate_curp,
    validate_email,
    validate_mx_phone,
    validate_uuid,
)
from bikeregistry.webhook_security import (
    compute_webhook_signature,
    extract_svix_signing_key,
    verify_timestamp,
)


class TestValidators:
    def test_email_is_lowercased(self):
        assert validate_email("  Maria@Example.COM ") == "maria@example.com"

    def test_invalid_email(self):
        with pytest.raises(ValueError):
            validate_email("maria@")

    def test_curp_is_uppercased(self):
        assert validate_curp("lomm900517mdfprr09") == "LOMM900517MDFPRR09"

    @pytest.mark.parametrize("curp", ["LOMM900517", "LOMM900517XDFPRR09", "1OMM900517MDFPRR09"])
    def test_invalid_curp(self, curp):
        with pytest.raises(ValueError):
            validate_curp(curp)

    @pytest.mark.parametrize("phone", ["5512345678", "+52 55 1234 5678", "55-1234-5678"])
    def test_valid_phone(self, phone):
        assert validate_mx_phone(phone) == phone.strip()

    @pytest.mark.parametrize("phone", ["12345", "55123456789012", "telefono"])
    def test_invalid_phone(self, phone):
        with pytest.raises(ValueError):
            validate_mx_phone(phone)

    def test_empty_values_pass_through(self):
        assert validate_email(None) is None
        assert validate_curp("") == ""
        assert validate_mx_phone(None) is None

    def test_uuid(self):
        assert validate_uuid("0b0f6a4e-3d2c-4c43-9a57-2b5d7f1e8c11")
        assert not validate_uuid("not-a-uuid")


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = hash_password("Bici$egura2024")
        assert hashed != "Bici$egura2024"
        assert verify_password("Bici$egura2024", hashed)
        assert not verify_password("otra-cosa", hashed)

    def test_strong_password(self):
        result = check_password_strength("Bici$egura2024")
        assert result["is_valid"]
        assert result["strength"] == "strong"

    def test_short_password_is_invalid(self):
        result = check_password_strength("Ab1!")
        assert not result["is_valid"]
        assert "Password must be at least 8 characters long" in result["feedback"]

    def test_common_password_is_rejected(self):
        result = check_password_strength("bicicleta")
        assert not result["is_valid"]
        assert result["score"] == 0


class TestTokens:
    def test_access_token_round_trip(self):
        payload = verify_jwt_token(create_access_token(42))
        assert payload["sub"] == "42"

    def test_tampered_access_token(self):
        token = create_access_token(42)
        assert verify_jwt_token(token[:-2] + "xx") is None

    def test_reset_token_carries_password_fingerprint(self):
        hashed = hash_password("Bici$egura2024")
        payload = read_password_reset_token(create_password_reset_token(7, hashed))
        assert payload == {"uid": 7, "pfp": password_fingerprint(hashed)}

    def test_invalid_reset_token(self):
        assert read_password_reset_token("garbage") is None


class TestSanitization:
    def test_strip_html(self):
        assert strip_html("<b>Trek</b> Marlin ") == "Trek Marlin"
        assert strip_html("Smith & Co <i>AB&12</i>") == "Smith & Co AB&12"
        assert strip_html(None) is None

    def test_sanitize_filename_drops_directories(self):
        assert sanitize_filename("../../etc/passwd") == "passwd"
        assert sanitize_filename("mi factura.pdf") == "mi-factura.pdf"


class TestWebhookSignature:
    def test_whsec_prefix_is_base64_decoded(self):
        assert extract_svix_signing_key("whsec_c2VjcmV0") == b"secret"

    def test_signature_depends_on_every_part(self):
        base = compute_webhook_signature("whsec_c2VjcmV0", "msg_1", "1700000000", b"{}")
        assert base != compute_webhook_signature("whsec_c2VjcmV0", "msg_2", "1700000000", b"{}")
        assert base != compute_webhook_signature("whsec_c2VjcmV0", "msg_1", "1700000001", b"{}")
        assert base != compute_webhook_signature("whsec_c2VjcmV0", "msg_1", "1700000000", b"[]")

    def test_timestamp_window(self):
        now = int(time.time())
        assert verify_timestamp(str(now))
        assert not verify_timestamp(str(now - 3600))
        assert not verify_timestamp("yesterday")
        assert not verify_timestamp(None)
