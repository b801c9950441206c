from datetime import timedelta

from clinic.core.config import settings
from clinic.models.appointment import AppointmentStatus
from clinic.services.identity_service import IdentityService

# Test data
new_patient_data = {
    "name": "Mary Major",
    "email": "mary@example.com",
    "password": "secret123",
    "phone": "5553334444",
    "address": "1 Main Road"
}


class TestPatientSignup:

    def test_register_patient(self, client):
        response = client.post("/api/v1/patients", json=new_patient_data)
        assert response.status_code == 201

        data = response.json()
        assert data["email"] == new_patient_data["email"]
        assert data["address"] == new_patient_data["address"]
        assert "password" not in data

    def test_register_then_login(self, client):
        client.post("/api/v1/patients", json=new_patient_data)

        response = client.post(
            "/api/v1/auth/patient/login",
            json={"email": new_patient_data["email"], "password": new_patient_data["password"]}
        )
        assert response.status_code == 200

    def test_register_duplicate_email(self, client, patient):
        response = client.post("/api/v1/patients", json=dict(new_patient_data, email=patient.email))
        assert response.status_code == 409

    def test_register_duplicate_phone(self, client, patient):
        response = client.post("/api/v1/patients", json=dict(new_patient_data, phone=patient.phone))
        assert response.status_code == 409

    def test_doctor_email_can_register_as_patient(self, client, doctor):
        """Subjects are only unique within one role."""
        response = client.post("/api/v1/patients", json=dict(new_patient_data, email=doctor.email))
        assert response.status_code == 201

    def test_register_invalid_data(self, client):
        for payload in (
            dict(new_patient_data, phone="555-333"),
            dict(new_patient_data, password="123"),
            dict(new_patient_data, email="nope"),
            dict(new_patient_data, address="x" * 256),
        ):
            response = client.post("/api/v1/patients", json=payload)
            assert response.status_code == 422

    def test_signup_rate_limited(self, client):
        for i in range(settings.RATE_LIMIT_MAX_REQUESTS):
            client.post("/api/v1/patients", json=dict(new_patient_data, email=f"p{i}@example.com", phone=f"555000{i:04d}"))

        response = client.post("/api/v1/patients", json=new_patient_data)
        assert response.status_code == 429


class TestPatientProfile:

    def test_get_me(self, client, patient, auth_headers):
        response = client.get("/api/v1/patients/me", headers=auth_headers(patient))

        assert response.status_code == 200
        assert response.json()["name"] == "John Smith"

    def test_get_me_with_doctor_token(self, client, doctor, auth_headers):
        response = client.get("/api/v1/patients/me", headers=auth_headers(doctor))
        assert response.status_code == 401


class TestPatientAppointments:

    def test_patient_sees_own_appointments(
        self, client, doctor, other_doctor, patient, make_appointment, tomorrow_at, auth_headers
    ):
        make_appointment(other_doctor, patient, tomorrow_at(13))
        make_appointment(doctor, patient, tomorrow_at(9))

        response = client.get(
            f"/api/v1/patients/{patient.id}/appointments/patient",
            headers=auth_headers(patient)
        )
        assert response.status_code == 200
        assert [a["doctor"]["name"] for a in response.json()] == ["Gregory House", "Lisa Cuddy"]

    def test_patient_cannot_see_others(self, client, patient, other_patient, auth_headers):
        response = client.get(
            f"/api/v1/patients/{other_patient.id}/appointments/patient",
            headers=auth_headers(patient)
        )
        assert response.status_code == 403

    def test_doctor_sees_only_own_bookings(
        self, client, doctor, other_doctor, patient, make_appointment, tomorrow_at, auth_headers
    ):
        make_appointment(doctor, patient, tomorrow_at(9))
        make_appointment(other_doctor, patient, tomorrow_at(13))

        response = client.get(
            f"/api/v1/patients/{patient.id}/appointments/doctor",
            headers=auth_headers(doctor)
        )
        assert response.status_code == 200
        assert [a["doctor_id"] for a in response.json()] == [doctor.id]

    def test_admin_role_not_allowed(self, client, admin, patient, auth_headers):
        response = client.get(
            f"/api/v1/patients/{patient.id}/appointments/admin",
            headers=auth_headers(admin)
        )
        assert response.status_code == 403

    def test_doctor_removed_after_token_check(self, client, db, doctor, patient, auth_headers, monkeypatch):
        """A doctor deleted mid-request gets 401, not a server error."""
        headers = auth_headers(doctor)
        db.delete(doctor)
        db.commit()
        monkeypatch.setattr(IdentityService, "exists", lambda self, role, subject: True)

        response = client.get(f"/api/v1/patients/{patient.id}/appointments/doctor", headers=headers)
        assert response.status_code == 401

    def test_unknown_patient(self, client, doctor, auth_headers):
        response = client.get("/api/v1/patients/999/appointments/doctor", headers=auth_headers(doctor))
        assert response.status_code == 404

    def test_filter_by_condition(
        self, client, doctor, other_doctor, patient, make_appointment, tomorrow_at, auth_headers
    ):
        make_appointment(doctor, patient, tomorrow_at(9) - timedelta(days=7), status=AppointmentStatus.COMPLETED)
        make_appointment(doctor, patient, tomorrow_at(10))
        make_appointment(other_doctor, patient, tomorrow_at(13))

        past = client.get(
            "/api/v1/patients/me/appointments/filter",
            params={"condition": "past"},
            headers=auth_headers(patient)
        )
        future = client.get(
            "/api/v1/patients/me/appointments/filter",
            params={"condition": "future", "doctor_name": "cuddy"},
            headers=auth_headers(patient)
        )

        assert [a["status"] for a in past.json()] == [1]
        assert [a["doctor"]["name"] for a in future.json()] == ["Lisa Cuddy"]

    def test_filter_unknown_condition(self, client, patient, auth_headers):
        response = client.get(
            "/api/v1/patients/me/appointments/filter",
            params={"condition": "pending"},
            headers=auth_headers(patient)
        )
        assert response.status_code == 400
