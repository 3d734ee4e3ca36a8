MESSAGE = {
    "name": "Luis Ramírez",
    "email": "Luis@Example.com",
    "subject": "Cambio de propietario",
    "message": "Vendí mi bicicleta, ¿cómo transfiero el registro?",
}


def test_contact_message_is_forwarded(client, emails):
    response = client.post("/contact", json=MESSAGE)

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Message sent successfully"}
    emails["contact"].assert_awaited_once_with(
        name="Luis Ramírez",
        email="luis@example.com",
        subject="Cambio de propietario",
        message="Vendí mi bicicleta, ¿cómo transfiero el registro?",
    )


def test_html_is_stripped(client, emails):
    client.post("/contact", json={**MESSAGE, "message": "<script>alert(1)</script>Hola"})
    assert "<script>" not in emails["contact"].await_args.kwargs["message"]


def test_all_fields_required(client, emails):
    response = client.post("/contact", json={**MESSAGE, "subject": ""})
    assert response.status_code == 400
    assert response.json()["detail"] == "All fields are required"
    emails["contact"].assert_not_awaited()


def test_invalid_email(client):
    response = client.post("/contact", json={**MESSAGE, "email": "luis-at-example"})
    assert response.status_code == 400


def test_send_failure(client, emails):
    emails["contact"].side_effect = Exception("Resend down")
    response = client.post("/contact", json=MESSAGE)
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to send message"
