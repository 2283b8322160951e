# tests/test_api.py

from conftest import MONDAY, SUNDAY, booking_data, token_for

STAFF = token_for("R1", "receptionist")
MANAGER = token_for("M1", "operational_manager")


def create(client, **overrides):
    r = client.post("/appointments", json=booking_data(**overrides), headers=STAFF)
    assert r.status_code == 201, r.text
    return r.json()["appointment"]


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_availability_is_public(client):
    r = client.get(f"/branches/B1/availability?date={MONDAY}")
    assert r.status_code == 200
    body = r.json()
    assert [s["name"] for s in body] == ["Francis", "Sean"]
    assert body[1]["remaining_workload"] == 5

    r = client.get(f"/branches/B1/availability?date={SUNDAY}")
    assert r.status_code == 200
    assert r.json() == []

    assert client.get(f"/branches/B404/availability?date={MONDAY}").status_code == 404


def test_client_books_by_selection(client):
    payload = {
        "appointment_date": MONDAY,
        "appointment_time": "10:00",
        "selections": [
            {"stylist_name": "Sean", "service_id": "service_haircut"},
            {"stylist_name": "Sean", "service_id": "service_color"},
        ],
        "client_info": {"name": "Maria Santos", "email": "maria@example.com"},
    }
    r = client.post("/branches/B1/bookings", json=payload, headers=token_for("C1", "client"))
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["total"] == 1100
    assert body["appointment"]["client_id"] == "C1"
    assert body["appointment"]["formatted_time"] == "10:00 AM"
    assert [p["service_id"] for p in body["appointment"]["service_stylist_pairs"]] == [
        "service_haircut",
        "service_color",
    ]

    r = client.get(f"/branches/B1/availability?date={MONDAY}")
    assert r.json()[1]["remaining_workload"] == 1


def test_client_booking_errors(client):
    headers = token_for("C1", "client")
    base = {"appointment_date": MONDAY, "appointment_time": "10:00"}

    r = client.post("/branches/B1/bookings", json={**base, "selections": []}, headers=headers)
    assert r.status_code == 422

    over = [
        {"stylist_name": "Francis", "service_id": "service_haircut"},
        {"stylist_name": "Francis", "service_id": "service_treatment"},
    ]
    r = client.post("/branches/B1/bookings", json={**base, "selections": over}, headers=headers)
    assert r.status_code == 409

    r = client.post("/branches/B1/bookings", json={**base, "selections": []}, headers=STAFF)
    assert r.status_code == 403


def test_staff_create_returns_total_and_warnings(client):
    r = client.post(
        "/appointments",
        json=booking_data(appointment_time="21:30", notes="x" * 600),
        headers=STAFF,
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["total"] == 1100
    assert len(body["warnings"]) == 1
    assert "business hours" in body["warnings"][0]
    assert len(body["appointment"]["notes"]) == 500
    assert body["appointment"]["created_by"] == "R1"


def test_create_requires_staff_role(client):
    r = client.post("/appointments", json=booking_data(), headers=token_for("S1", "stylist"))
    assert r.status_code == 403
    r = client.post("/appointments", json=booking_data(), headers=token_for("C1", "client"))
    assert r.status_code == 403
    r = client.post("/appointments", json=booking_data())
    assert r.status_code == 401


def test_create_invalid_returns_errors(client):
    r = client.post("/appointments", json=booking_data(appointment_date="2025/10/20"), headers=STAFF)
    assert r.status_code == 422
    assert "appointment_date must be a valid date in YYYY-MM-DD format" in r.json()["detail"]


def test_validate_endpoint(client):
    r = client.post("/appointments/validate", json=booking_data(client_id=None), headers=STAFF)
    assert r.status_code == 200
    body = r.json()
    assert body["is_valid"] is False
    assert body["errors"] == ["client_id is required for existing clients"]


def test_clients_only_see_their_own(client):
    mine = create(client)
    create(client, client_id="C2", appointment_time="15:00",
           service_stylist_pairs=[{"service_id": "service_haircut", "stylist_id": "S2"}])

    r = client.get("/appointments?client_id=C2", headers=token_for("C1", "client"))
    assert [a["id"] for a in r.json()] == [mine["id"]]

    r = client.get("/appointments", headers=STAFF)
    assert len(r.json()) == 2

    r = client.get("/appointments", headers=token_for("S2", "stylist"))
    assert [a["service_stylist_pairs"][0]["stylist_id"] for a in r.json()] == ["S2"]

    assert client.get(f"/appointments/{mine['id']}", headers=token_for("C2", "client")).status_code == 403
    assert client.get(f"/appointments/{mine['id']}", headers=token_for("C1", "client")).status_code == 200


def test_search_query(client):
    create(client)
    r = client.get("/appointments?q=santos", headers=STAFF)
    assert len(r.json()) == 1
    r = client.get("/appointments?q=nobody", headers=STAFF)
    assert r.json() == []


def test_status_flow_over_http(client):
    appointment = create(client)
    url = f"/appointments/{appointment['id']}/status"

    r = client.post(url, json={"status": "confirmed"}, headers=STAFF)
    assert r.status_code == 200
    assert r.json()["version"] == 2

    r = client.post(url, json={"status": "in_progress"}, headers=token_for("S1", "stylist"))
    assert r.status_code == 200
    r = client.post(url, json={"status": "completed"}, headers=token_for("S1", "stylist"))
    assert r.status_code == 200

    r = client.post(url, json={"status": "confirmed"}, headers=STAFF)
    assert r.status_code == 409
    assert r.json()["detail"] == "This status change is not allowed"


def test_status_permissions(client):
    appointment = create(client)
    url = f"/appointments/{appointment['id']}/status"

    assert client.post(url, json={"status": "confirmed"}, headers=token_for("S1", "stylist")).status_code == 403
    assert client.post(url, json={"status": "confirmed"}, headers=token_for("C1", "client")).status_code == 403
    assert client.post(url, json={"status": "confirmed"}, headers=MANAGER).status_code == 200
    assert client.post(url, json={"status": "cancelled"}, headers=token_for("C1", "client")).status_code == 200


def test_stale_version_conflict(client):
    appointment = create(client)
    url = f"/appointments/{appointment['id']}/status"

    assert client.post(url, json={"status": "confirmed", "expected_version": 1}, headers=STAFF).status_code == 200
    r = client.post(url, json={"status": "cancelled", "expected_version": 1}, headers=STAFF)
    assert r.status_code == 409


def test_unknown_appointment(client):
    r = client.get("/appointments/missing", headers=STAFF)
    assert r.status_code == 404
    assert r.json() == {"detail": "Record not found", "kind": "Appointment"}


def test_update_client_info_and_reschedule(client):
    appointment = create(client)

    r = client.patch(
        f"/appointments/{appointment['id']}/client-info",
        json={"email": "NEW@example.com"},
        headers=STAFF,
    )
    assert r.status_code == 200
    assert r.json()["client_info"]["email"] == "new@example.com"

    r = client.post(
        f"/appointments/{appointment['id']}/reschedule",
        json={"appointment_date": MONDAY, "appointment_time": "14:30"},
        headers=token_for("C1", "client"),
    )
    assert r.status_code == 200
    assert r.json()["formatted_time"] == "2:30 PM"

    r = client.post(
        f"/appointments/{appointment['id']}/reschedule",
        json={"appointment_date": "2025-10-01", "appointment_time": "14:30"},
        headers=STAFF,
    )
    assert r.status_code == 422


def test_reports(client):
    appointment = create(client)
    for status in ("confirmed", "in_progress", "completed"):
        client.post(f"/appointments/{appointment['id']}/status", json={"status": status}, headers=STAFF)

    r = client.get("/reports/revenue?branch_id=B1", headers=MANAGER)
    assert r.status_code == 200
    assert r.json()["total_revenue"] == 1100

    r = client.get("/reports/stats", headers=MANAGER)
    assert r.json()["by_status"]["completed"] == 1

    r = client.get("/reports/stylists?branch_id=B1", headers=MANAGER)
    assert r.json()[0]["name"] == "Sean"

    assert client.get("/reports/stats", headers=STAFF).status_code == 403


def test_bad_token(client):
    r = client.get("/appointments", headers={"Authorization": "Bearer not-a-token"})
    assert r.status_code == 401


def test_operational_manager_has_front_desk_rights(client):
    r = client.post("/appointments", json=booking_data(), headers=MANAGER)
    assert r.status_code == 201, r.text
    appointment = r.json()["appointment"]
    assert appointment["created_by"] == "M1"

    r = client.patch(f"/appointments/{appointment['id']}/client-info", json={"phone": "09181234567"}, headers=MANAGER)
    assert r.status_code == 200

    r = client.post(
        f"/appointments/{appointment['id']}/reschedule",
        json={"appointment_date": MONDAY, "appointment_time": "15:00"},
        headers=MANAGER,
    )
    assert r.status_code == 200
    assert r.json()["formatted_time"] == "3:00 PM"
