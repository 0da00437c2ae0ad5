from datetime import datetime, timezone

from conftest import MONDAY, auth_headers, identity_token, make_doctor, make_patient, slot_state
from telehealth.db.client import USERS

NINE = {"startTime": "09:00", "endTime": "09:30"}


def booking(doctor, **overrides):
    payload = {"doctorId": str(doctor["_id"]), "date": MONDAY, "slot": NINE, "type": "video", "reason": "chest pain"}
    payload.update(overrides)
    return payload


class TestAuthRoutes:

    def test_authenticate_then_verify(self, client):
        response = client.post("/auth/authenticate", json={"credential": identity_token("uid-1", name="Ann")})
        assert response.status_code == 200
        body = response.json()
        assert body["user"]["role"] == "patient"

        verify = client.get("/auth/verify", headers={"Authorization": f"Bearer {body['token']}"})
        assert verify.status_code == 200
        assert verify.json()["user"]["id"] == body["user"]["id"]

    def test_verify_without_token(self, client):
        response = client.get("/auth/verify")
        assert response.status_code == 401
        assert response.json()["error"] == "auth_invalid"

    def test_verify_with_garbage_token(self, client):
        response = client.get("/auth/me", headers={"Authorization": "Bearer abc.def.ghi"})
        assert response.status_code == 401

    def test_bad_credential(self, client):
        response = client.post("/auth/authenticate", json={"credential": "nope"})
        assert response.status_code == 401

    def test_register_doctor_requires_profile(self, client):
        response = client.post("/auth/register", json={"credential": identity_token("d"), "role": "doctor"})
        assert response.status_code == 422

    def test_register_doctor(self, client):
        response = client.post("/auth/register", json={
            "credential": identity_token("d"),
            "role": "doctor",
            "name": "Dr. B",
            "doctor": {"specialization": "Neurology", "licenseNumber": "N-1", "consultationFee": 120},
        })
        assert response.status_code == 201
        assert response.json()["user"]["role"] == "doctor"


class TestDoctorRoutes:

    def test_search(self, db, client):
        make_doctor(db, name="Dr. Heart", specialization="Cardiology", consultationFee=80.0)
        make_doctor(db, name="Dr. Skin", specialization="Dermatology", consultationFee=40.0)

        response = client.get("/doctors/", params={"specialization": "cardiology"})
        assert [d["name"] for d in response.json()] == ["Dr. Heart"]

        response = client.get("/doctors/", params={"maxFee": 50})
        assert [d["name"] for d in response.json()] == ["Dr. Skin"]

    def test_doctor_detail(self, client, doctor):
        response = client.get(f"/doctors/{doctor['_id']}")
        assert response.status_code == 200
        assert response.json()["data"]["specialization"] == "Cardiology"

    def test_doctor_not_found(self, client):
        response = client.get("/doctors/64b7f0c2a1b2c3d4e5f60718")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_slots_need_auth(self, client, doctor):
        assert client.get(f"/doctors/{doctor['_id']}/slots", params={"date": MONDAY}).status_code == 401

    def test_slots(self, client, doctor, patient):
        response = client.get(
            f"/doctors/{doctor['_id']}/slots", params={"date": MONDAY}, headers=auth_headers(patient)
        )
        assert response.status_code == 200
        body = response.json()
        assert body["day"] == "monday"
        assert [s["startTime"] for s in body["slots"]] == ["09:00", "09:30"]

    def test_slots_bad_date(self, client, doctor, patient):
        response = client.get(
            f"/doctors/{doctor['_id']}/slots", params={"date": "19-10-2026"}, headers=auth_headers(patient)
        )
        assert response.status_code == 422
        assert response.json()["error"] == "validation_failed"

    def test_doctor_updates_availability(self, db, client, doctor):
        response = client.put("/doctors/me/availability", headers=auth_headers(doctor), json={"availability": [
            {"day": "friday", "slots": [{"startTime": "10:00", "endTime": "10:30"}]},
            {"day": "tuesday", "slots": [{"startTime": "08:00", "endTime": "08:30"}]},
        ]})
        assert response.status_code == 200
        assert [d["day"] for d in response.json()["availability"]] == ["tuesday", "friday"]

    def test_overlapping_slots_rejected(self, client, doctor):
        response = client.put("/doctors/me/availability", headers=auth_headers(doctor), json={"availability": [
            {"day": "friday", "slots": [
                {"startTime": "10:00", "endTime": "10:30"},
                {"startTime": "10:15", "endTime": "10:45"},
            ]},
        ]})
        assert response.status_code == 422

    def test_patient_cannot_edit_availability(self, client, patient):
        response = client.put("/doctors/me/availability", headers=auth_headers(patient), json={"availability": []})
        assert response.status_code == 403

    def test_toggle_accepting(self, db, client, doctor):
        response = client.patch(
            "/doctors/me/accepting", headers=auth_headers(doctor), json={"isAcceptingAppointments": False}
        )
        assert response.status_code == 200
        available = client.get(f"/doctors/{doctor['_id']}/available-dates").json()
        assert available["isAcceptingAppointments"] is False


class TestAppointmentRoutes:

    def test_book_and_cancel(self, db, client, doctor, patient):
        response = client.post("/appointments/", json=booking(doctor), headers=auth_headers(patient))
        assert response.status_code == 201
        appointment = response.json()["data"]
        assert appointment["status"] == "scheduled"
        assert appointment["canJoinVideo"] is False
        assert slot_state(db, doctor["_id"], "monday", "09:00") is True

        response = client.patch(
            f"/appointments/{appointment['id']}/cancel",
            json={"reason": "schedule conflict"},
            headers=auth_headers(patient),
        )
        assert response.status_code == 200
        assert response.json()["data"]["cancellationReason"] == "schedule conflict"
        assert slot_state(db, doctor["_id"], "monday", "09:00") is False

        again = client.patch(
            f"/appointments/{appointment['id']}/cancel", json={"reason": "x"}, headers=auth_headers(patient)
        )
        assert again.status_code == 409
        assert again.json()["error"] == "already_finalized"

    def test_double_booking_returns_409(self, db, client, doctor, patient):
        other = make_patient(db, name="Other", external_id="ext-other")
        assert client.post("/appointments/", json=booking(doctor), headers=auth_headers(patient)).status_code == 201

        response = client.post("/appointments/", json=booking(doctor), headers=auth_headers(other))
        assert response.status_code == 409
        assert response.json()["error"] == "slot_already_booked"

    def test_doctor_unavailable(self, db, client, patient):
        doctor = make_doctor(db, accepting=False)
        response = client.post("/appointments/", json=booking(doctor), headers=auth_headers(patient))
        assert response.status_code == 409
        assert response.json()["error"] == "doctor_unavailable"

    def test_doctors_cannot_book(self, client, doctor):
        response = client.post("/appointments/", json=booking(doctor), headers=auth_headers(doctor))
        assert response.status_code == 403

    def test_listing_and_join_flag(self, client, clock, doctor, patient):
        client.post("/appointments/", json=booking(doctor), headers=auth_headers(patient))
        clock.set(datetime(2026, 10, 19, 8, 40, tzinfo=timezone.utc))

        response = client.get("/appointments/", headers=auth_headers(patient))
        data = response.json()["data"]
        assert len(data) == 1
        assert data[0]["canJoinVideo"] is True

        response = client.get("/appointments/", params={"status": "cancelled"}, headers=auth_headers(patient))
        assert response.json()["data"] == []

    def test_strangers_see_not_found(self, db, client, doctor, patient):
        created = client.post("/appointments/", json=booking(doctor), headers=auth_headers(patient)).json()["data"]
        stranger = make_patient(db, name="Stranger", external_id="ext-stranger")

        response = client.get(f"/appointments/{created['id']}", headers=auth_headers(stranger))
        assert response.status_code == 404

    def test_doctor_completes(self, client, doctor, patient):
        created = client.post("/appointments/", json=booking(doctor), headers=auth_headers(patient)).json()["data"]

        response = client.patch(
            f"/appointments/{created['id']}/complete", json={"notes": "resolved"}, headers=auth_headers(doctor)
        )
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "completed"

        forbidden = client.patch(f"/appointments/{created['id']}/no-show", headers=auth_headers(patient))
        assert forbidden.status_code == 403

    def test_video_room(self, client, clock, doctor, patient):
        created = client.post("/appointments/", json=booking(doctor), headers=auth_headers(patient)).json()["data"]

        closed = client.get(f"/appointments/{created['id']}/video-room", headers=auth_headers(patient))
        assert closed.status_code == 409
        assert closed.json()["error"] == "video_window_closed"

        clock.set(datetime(2026, 10, 19, 9, 10, tzinfo=timezone.utc))
        for user in (patient, doctor):
            response = client.get(f"/appointments/{created['id']}/video-room", headers=auth_headers(user))
            assert response.status_code == 200
            assert response.json()["roomId"] == f"appointment-{created['id']}"

    def test_cancel_in_the_past(self, client, clock, doctor, patient):
        created = client.post("/appointments/", json=booking(doctor), headers=auth_headers(patient)).json()["data"]
        clock.set(datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc))

        response = client.patch(f"/appointments/{created['id']}/cancel", json={}, headers=auth_headers(patient))
        assert response.status_code == 422
        assert response.json()["error"] == "past_appointment"


class TestRecordRoutes:

    def test_prescriptions(self, db, client, doctor, patient):
        response = client.post("/prescriptions/", headers=auth_headers(doctor), json={
            "patientId": str(patient["_id"]),
            "medications": [{"name": "Ibuprofen", "dosage": "200mg", "frequency": "twice daily"}],
        })
        assert response.status_code == 201
        prescription_id = response.json()["data"]["id"]

        mine = client.get("/prescriptions/", headers=auth_headers(patient)).json()["data"]
        assert [p["id"] for p in mine] == [prescription_id]

        detail = client.get(f"/prescriptions/{prescription_id}", headers=auth_headers(patient))
        assert detail.json()["data"]["medications"][0]["name"] == "Ibuprofen"

        stranger = make_patient(db, name="Stranger", external_id="ext-stranger")
        assert client.get(f"/prescriptions/{prescription_id}", headers=auth_headers(stranger)).status_code == 404
        assert client.get(
            f"/prescriptions/patient/{patient['_id']}", headers=auth_headers(stranger)
        ).status_code == 403

    def test_prescription_for_unknown_patient(self, client, doctor):
        response = client.post("/prescriptions/", headers=auth_headers(doctor), json={
            "patientId": "64b7f0c2a1b2c3d4e5f60718",
            "medications": [{"name": "X", "dosage": "1", "frequency": "daily"}],
        })
        assert response.status_code == 404

    def test_medical_records(self, client, patient):
        response = client.post("/medical-records/", headers=auth_headers(patient), json={
            "title": "Blood panel",
            "recordType": "lab-result",
            "files": [{"url": "https://files.example.com/panel.pdf"}],
        })
        assert response.status_code == 201

        records = client.get("/medical-records/", headers=auth_headers(patient)).json()["data"]
        assert records[0]["title"] == "Blood panel"
        assert records[0]["files"][0]["fileType"] == "application/pdf"

    def test_deactivated_user_token_rejected(self, db, client, patient):
        db[USERS].update_one({"_id": patient["_id"]}, {"$set": {"isActive": False}})
        assert client.get("/medical-records/", headers=auth_headers(patient)).status_code == 401
