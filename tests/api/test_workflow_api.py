"""
API Tests for the admission workflow
Course -> batch -> enrollment -> attendance, lead conversion, reports
"""
from datetime import date, timedelta

import pytest
from faker import Faker

from backoffice.models.base.enums import UserRole

API = "/api/v1"
fake = Faker()


def phone() -> str:
    return f"9{fake.numerify('#########')}"


@pytest.fixture
def course_id(client, admin_headers) -> str:
    response = client.post(
        f"{API}/courses",
        json={"name": "Data Science", "category": "Analytics", "regularFee": 20000},
        headers=admin_headers,
    )
    assert response.status_code == 201
    return response.json()["data"]["id"]


@pytest.fixture
def batch_id(client, admin_headers, course_id) -> str:
    start = date.today()
    response = client.post(
        f"{API}/courses/{course_id}/batches",
        json={
            "name": "Morning batch",
            "startDate": start.isoformat(),
            "endDate": (start + timedelta(days=60)).isoformat(),
            "maxStudents": 1,
        },
        headers=admin_headers,
    )
    assert response.status_code == 201
    return response.json()["data"]["id"]


def admit(client, headers) -> str:
    response = client.post(
        f"{API}/students", json={"fullName": fake.name(), "phone": phone()}, headers=headers
    )
    return response.json()["data"]["id"]


class TestCourseAndBatch:
    """Test course and batch creation"""

    def test_generated_codes(self, client, admin_headers, course_id, batch_id):
        course = client.get(f"{API}/courses/{course_id}", headers=admin_headers)
        batch = client.get(f"{API}/batches/{batch_id}", headers=admin_headers)

        assert course.status_code == 200
        assert batch.status_code == 200
        assert "DAT-B001" in batch.text

    def test_employee_cannot_create_course(self, client, employee_headers):
        response = client.post(
            f"{API}/courses",
            json={"name": "Design", "category": "Arts"},
            headers=employee_headers,
        )

        assert response.status_code == 403


class TestEnrollmentFlow:
    """Test enrolling students into a batch"""

    def test_enroll_and_mark_attendance(self, client, admin_headers, course_id, batch_id):
        student_id = admit(client, admin_headers)

        enrolled = client.post(
            f"{API}/enrollments",
            json={"studentId": student_id, "courseId": course_id, "batchId": batch_id, "totalFees": 20000},
            headers=admin_headers,
        )
        marked = client.post(
            f"{API}/attendance",
            json={"studentId": student_id, "batchId": batch_id, "date": "2024-02-01", "status": "present"},
            headers=admin_headers,
        )
        again = client.post(
            f"{API}/attendance",
            json={"studentId": student_id, "batchId": batch_id, "date": "2024-02-01", "status": "absent"},
            headers=admin_headers,
        )

        assert enrolled.status_code == 201
        assert enrolled.json()["data"]["enrollmentId"] == "ENR00000001"
        assert marked.status_code == 201
        assert again.status_code == 409

    def test_full_batch(self, client, admin_headers, course_id, batch_id):
        for expected in (201, 400):
            response = client.post(
                f"{API}/enrollments",
                json={"studentId": admit(client, admin_headers), "courseId": course_id, "batchId": batch_id},
                headers=admin_headers,
            )
            assert response.status_code == expected

        assert response.json()["message"] == "Selected batch is full"

    def test_duplicate_enrollment(self, client, admin_headers, course_id):
        payload = {"studentId": admit(client, admin_headers), "courseId": course_id}
        client.post(f"{API}/enrollments", json=payload, headers=admin_headers)

        response = client.post(f"{API}/enrollments", json=payload, headers=admin_headers)

        assert response.status_code == 409


class TestLeadConversion:
    """Test converting leads over HTTP"""

    def test_convert_once(self, client, admin_headers):
        lead = client.post(
            f"{API}/leads", json={"fullName": fake.name(), "phone": phone()}, headers=admin_headers
        )
        lead_id = lead.json()["data"]["id"]

        first = client.post(f"{API}/leads/{lead_id}/convert", headers=admin_headers)
        second = client.post(f"{API}/leads/{lead_id}/convert", headers=admin_headers)

        assert lead.status_code == 201
        assert first.status_code == 201
        assert first.json()["data"]["student"]["admissionType"] == "lead_conversion"
        assert second.status_code == 400
        assert second.json()["message"] == "Lead already converted to student"


class TestReportsAndProfile:
    """Test report guards and the profile endpoint"""

    def test_trainer_cannot_view_revenue(self, client, make_user, auth_headers_for):
        trainer = make_user(UserRole.TRAINER)

        response = client.get(f"{API}/analytics/revenue", headers=auth_headers_for(trainer))

        assert response.status_code == 403

    def test_admin_dashboard(self, client, admin_headers):
        response = client.get(f"{API}/analytics/dashboard?range=week", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["success"] is True

    def test_me_includes_permissions(self, client, employee_headers):
        response = client.get(f"{API}/users/me", headers=employee_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["data"]["role"] == "employee"
        payments = next(row for row in body["permissions"] if row["module"] == "payments")
        assert payments["canCreate"] is True
        assert payments["canDelete"] is False
