"""
API Tests for authentication guards and the student endpoints
"""
from decimal import Decimal

from faker import Faker

from backoffice.models.base.enums import UserStatus

API = "/api/v1"
fake = Faker()


def student_payload(**overrides) -> dict:
    return {
        "fullName": fake.name(),
        "phone": f"9{fake.numerify('#########')}",
        "email": fake.free_email(),
        "totalFees": 5000,
        **overrides,
    }


class TestAuthentication:
    """Test bearer token handling"""

    def test_missing_token(self, client):
        """Requests without a token are rejected"""
        response = client.get(f"{API}/students")

        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_invalid_token(self, client):
        response = client.get(f"{API}/students", headers={"Authorization": "Bearer invalid"})

        assert response.status_code == 401

    def test_inactive_user(self, client, make_user, auth_headers_for):
        user = make_user(status=UserStatus.INACTIVE)

        response = client.get(f"{API}/students", headers=auth_headers_for(user))

        assert response.status_code == 401
        assert response.json()["message"] == "User account is inactive"

    def test_student_role_forbidden(self, client, student_headers):
        """Students cannot list other students"""
        response = client.get(f"{API}/students", headers=student_headers)

        assert response.status_code == 403
        assert response.json()["message"] == "User role student is not authorized to view students"

    def test_response_carries_request_id(self, client, employee_headers):
        response = client.get(f"{API}/students", headers={**employee_headers, "X-Request-ID": "req-1"})

        assert response.headers["X-Request-ID"] == "req-1"
        assert response.headers["X-Content-Type-Options"] == "nosniff"


class TestStudentEndpoints:
    """Test student admission over HTTP"""

    def test_create_student(self, client, employee_headers):
        """Create returns 201 with a camelCase body"""
        response = client.post(f"{API}/students", json=student_payload(), headers=employee_headers)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Student created successfully"
        assert body["data"]["studentId"] == "STU000001"
        assert Decimal(str(body["data"]["pendingAmount"])) == Decimal("5000")
        assert "full_name" not in body["data"]

    def test_duplicate_phone(self, client, employee_headers):
        payload = student_payload()
        client.post(f"{API}/students", json=payload, headers=employee_headers)

        response = client.post(
            f"{API}/students", json=student_payload(phone=payload["phone"]), headers=employee_headers
        )

        assert response.status_code == 409
        assert response.json()["success"] is False

    def test_invalid_phone(self, client, employee_headers):
        response = client.post(
            f"{API}/students", json=student_payload(phone="abc"), headers=employee_headers
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "phone"

    def test_malformed_id(self, client, employee_headers):
        response = client.get(f"{API}/students/not-a-uuid", headers=employee_headers)

        assert response.status_code == 400

    def test_unknown_student(self, client, employee_headers):
        response = client.get(
            f"{API}/students/00000000-0000-0000-0000-000000000000", headers=employee_headers
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Student not found"

    def test_list_envelope(self, client, employee_headers):
        for _ in range(3):
            client.post(f"{API}/students", json=student_payload(), headers=employee_headers)

        response = client.get(f"{API}/students?page=1&limit=2", headers=employee_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 2
        assert body["total"] == 3
        assert body["totalPages"] == 2
        assert body["currentPage"] == 1
        assert len(body["data"]) == 2

    def test_employee_cannot_delete(self, client, employee_headers):
        created = client.post(f"{API}/students", json=student_payload(), headers=employee_headers)

        response = client.delete(
            f"{API}/students/{created.json()['data']['id']}", headers=employee_headers
        )

        assert response.status_code == 403

    def test_payment_from_student_record(self, client, admin_headers):
        """A payment recorded on the student is completed and updates the ledger"""
        created = client.post(f"{API}/students", json=student_payload(totalFees=10000), headers=admin_headers)
        student_id = created.json()["data"]["id"]

        response = client.post(
            f"{API}/students/{student_id}/payment",
            json={"amount": 4000, "paymentMode": "upi"},
            headers=admin_headers,
        )
        summary = client.get(f"{API}/students/{student_id}/fee-summary", headers=admin_headers)

        assert response.status_code == 201
        assert response.json()["data"]["status"] == "completed"
        assert summary.status_code == 200
