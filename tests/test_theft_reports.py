from bikeregistry.models import Bicycle, TheftReport

REPORT = {
    "location": "Parque México, Condesa",
    "description": "Robada del estacionamiento público entre 14:00 y 16:00",
    "policeReportNumber": "CI-FCH/123/2025",
}


class TestReportTheft:
    def test_report_marks_bicycle_stolen(self, client, db, user, auth_headers, make_bicycle, emails):
        bicycle = make_bicycle(user)

        response = client.post(f"/bicycles/{bicycle.id}/report-theft", headers=auth_headers, json=REPORT)

        assert response.status_code == 201
        assert response.json()["success"] is True
        report = db.get(TheftReport, response.json()["reportId"])
        assert report.bicycle_id == bicycle.id
        assert report.user_id == user.id
        assert report.status == "reported"
        assert report.police_report_number == "CI-FCH/123/2025"
        db.refresh(bicycle)
        assert bicycle.theft_status == "reported_stolen"

        kwargs = emails["theft_report"].await_args.kwargs
        assert kwargs["to"] == user.email
        assert kwargs["serial_number"] == bicycle.serial_number
        assert kwargs["public_id"] == bicycle.public_id

    def test_report_with_bicycle_id_in_body(self, client, db, user, auth_headers, make_bicycle):
        bicycle = make_bicycle(user)

        response = client.post("/theft-reports", headers=auth_headers, json={**REPORT, "bicycleId": bicycle.id})

        assert response.status_code == 201
        assert db.query(Bicycle).filter(Bicycle.id == bicycle.id).one().theft_status == "reported_stolen"

    def test_already_stolen(self, client, user, auth_headers, make_bicycle):
        bicycle = make_bicycle(user, theft_status="reported_stolen")
        response = client.post(f"/bicycles/{bicycle.id}/report-theft", headers=auth_headers, json=REPORT)
        assert response.status_code == 400
        assert response.json()["detail"] == "This bicycle is already reported as stolen"

    def test_foreign_bicycle(self, client, auth_headers, make_user, make_bicycle):
        bicycle = make_bicycle(make_user())
        response = client.post(f"/bicycles/{bicycle.id}/report-theft", headers=auth_headers, json=REPORT)
        assert response.status_code == 404

    def test_location_and_description_required(self, client, user, auth_headers, make_bicycle):
        bicycle = make_bicycle(user)
        response = client.post(
            f"/bicycles/{bicycle.id}/report-theft", headers=auth_headers, json={"location": "Centro"}
        )
        assert response.status_code == 400

    def test_email_failure_is_not_fatal(self, client, user, auth_headers, make_bicycle, emails):
        emails["theft_report"].side_effect = Exception("Resend down")
        bicycle = make_bicycle(user)
        response = client.post(f"/bicycles/{bicycle.id}/report-theft", headers=auth_headers, json=REPORT)
        assert response.status_code == 201


def test_list_own_reports(client, user, auth_headers, make_user, make_bicycle, headers_for):
    mine = make_bicycle(user)
    other_user = make_user()
    other = make_bicycle(other_user)
    client.post(f"/bicycles/{mine.id}/report-theft", headers=auth_headers, json=REPORT)
    client.post(f"/bicycles/{other.id}/report-theft", headers=headers_for(other_user), json=REPORT)

    response = client.get("/theft-reports", headers=auth_headers)

    assert response.status_code == 200
    assert [r["bicycle_id"] for r in response.json()] == [mine.id]
