from datetime import datetime

from bikeregistry.domain.certificates.service import (
    build_qr_payload,
    certificate_number,
    format_spanish_date,
)
from bikeregistry.models import BicycleInvoice

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def test_format_spanish_date():
    assert format_spanish_date(datetime(2025, 3, 5)) == "5 de marzo de 2025"
    assert format_spanish_date(None) == "No disponible"


def test_certificate_number(user, make_bicycle):
    bicycle = make_bicycle(user)
    bicycle.registration_date = datetime(2025, 7, 1)
    assert certificate_number(bicycle) == f"RNB-2025-{bicycle.id:06d}"


def test_qr_payload(user, make_bicycle):
    bicycle = make_bicycle(user, serial_number="SN-QR-1")
    payload = build_qr_payload(bicycle)

    assert payload["bicycleId"] == bicycle.id
    assert payload["serialNumber"] == "SN-QR-1"
    assert payload["ownerName"] == user.full_name
    assert payload["registrationDate"] == bicycle.registration_date.isoformat()


class TestCertificateDownload:
    def test_pdf_certificate(self, client, user, auth_headers, make_bicycle):
        bicycle = make_bicycle(user, serial_number="WTU 9987", groupset="SRAM SX Eagle")

        response = client.get(f"/bicycles/{bicycle.id}/certificate", headers=auth_headers)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.headers["content-disposition"] == (
            'attachment; filename="certificado-rnb-WTU-9987.pdf"'
        )
        assert response.content.startswith(b"%PDF")

    def test_pdf_with_invoice_and_stolen_status(self, client, db, user, auth_headers, make_bicycle):
        bicycle = make_bicycle(user, theft_status="reported_stolen")
        db.add(
            BicycleInvoice(
                bicycle_id=bicycle.id,
                user_id=user.id,
                file_name="factura.pdf",
                file_url="https://media.test/factura.pdf",
                file_size=2048,
                mime_type="application/pdf",
            )
        )
        db.commit()

        response = client.get(f"/bicycles/{bicycle.id}/certificate", headers=auth_headers)

        assert response.status_code == 200
        assert response.content.startswith(b"%PDF")

    def test_unpaid_bicycle(self, client, user, auth_headers, make_bicycle):
        bicycle = make_bicycle(user, payment_status=False)
        response = client.get(f"/bicycles/{bicycle.id}/certificate", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "Bicycle not found or payment not completed"

    def test_foreign_bicycle(self, client, auth_headers, make_user, make_bicycle):
        bicycle = make_bicycle(make_user())
        response = client.get(f"/bicycles/{bicycle.id}/certificate", headers=auth_headers)
        assert response.status_code == 404


class TestQrCode:
    def test_qr_png(self, client, user, auth_headers, make_bicycle):
        bicycle = make_bicycle(user)

        response = client.get(f"/bicycles/{bicycle.id}/qr", headers=auth_headers)

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.content.startswith(PNG_SIGNATURE)

    def test_qr_data(self, client, user, auth_headers, make_bicycle):
        bicycle = make_bicycle(user, brand="Benotto", model="Cafe Racer")

        response = client.get(f"/bicycles/{bicycle.id}/qr-data", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["bicycleId"] == bicycle.id
        assert body["brand"] == "Benotto"
        assert body["model"] == "Cafe Racer"

    def test_qr_requires_paid_registration(self, client, user, auth_headers, make_bicycle):
        bicycle = make_bicycle(user, payment_status=False)
        assert client.get(f"/bicycles/{bicycle.id}/qr", headers=auth_headers).status_code == 404
