"""
Unit Tests for the service layer
Tests for: admissions, enrollments, batches, payments, leads, attendance, content
"""
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from faker import Faker

from backoffice.models import Content
from backoffice.models.base.enums import (
    AccessType,
    AdmissionType,
    AttendanceStatus,
    ContentType,
    EnrollmentStatus,
    LeadStatus,
    PaymentStatus,
    UserRole,
)
from backoffice.schemas.attendance import AttendanceCreate, AttendanceUpdate
from backoffice.schemas.enrollment import EnrollmentCreate, EnrollmentUpdate, ProgressUpdate
from backoffice.schemas.lead import LeadCreate
from backoffice.schemas.payment import PaymentCreate, RefundRequest
from backoffice.schemas.student import StudentCreate
from backoffice.services.analytics import AnalyticsService
from backoffice.services.attendance import AttendanceService
from backoffice.services.base.service_result import ErrorCode
from backoffice.services.batch import BatchService
from backoffice.services.common.errors import CounterUnavailableError
from backoffice.services.common.permissions import Principal
from backoffice.services.content import ContentService
from backoffice.services.core.counter_service import CounterService
from backoffice.services.enrollment import EnrollmentService
from backoffice.services.lead import LeadService
from backoffice.services.payment import PaymentService
from backoffice.services.student import StudentService

fake = Faker()


def fake_phone() -> str:
    return f"9{fake.numerify('#########')}"


def admit(db_session, admin, **overrides):
    values = {"full_name": fake.name(), "phone": fake_phone(), **overrides}
    result = StudentService(db_session).create_student(StudentCreate(**values), admin)
    assert result.is_success, result.message
    return result.data


def enroll(db_session, admin, student, course, batch=None, **overrides):
    data = EnrollmentCreate(
        student_id=student.id,
        course_id=course.id,
        batch_id=batch.id if batch else None,
        total_fees=Decimal("10000"),
        **overrides,
    )
    return EnrollmentService(db_session).create_enrollment(data, admin)


def mark(db_session, actor, student, batch, day, status):
    data = AttendanceCreate(
        student_id=student.id, batch_id=batch.id, date=date(2024, 1, day), status=AttendanceStatus(status)
    )
    result = AttendanceService(db_session).mark_attendance(data, actor)
    assert result.is_success, result.message
    return result.data


class TestCounters:
    """Test identifier formats"""

    def test_sequences_start_at_one(self, db_session):
        counters = CounterService(db_session)

        assert counters.next_student_id() == "STU000001"
        assert counters.next_student_id() == "STU000002"
        assert counters.next_enrollment_id() == "ENR00000001"
        assert counters.next_payment_id() == "PAY00000001"
        assert counters.next_lead_id() == "LEAD000001"
        assert counters.next_employee_id() == "EMP00001"

    def test_code_formats(self, db_session):
        counters = CounterService(db_session)

        assert counters.next_course_code("Python Programming") == "PYT0001"
        assert counters.next_batch_id("PYT0001") == "PYT-B001"
        assert counters.next_session_id(date(2024, 3, 5)) == "SESS-20240305-0001"
        assert counters.next_receipt_number().startswith("RCPT")
        assert CounterService.certificate_id("ENR00000001").startswith("CERT-ENR00000001-")

    def test_unsupported_dialect(self):
        session = MagicMock()
        session.get_bind.return_value.dialect.name = "mysql"

        with pytest.raises(CounterUnavailableError) as exc_info:
            CounterService(session).next_student_id()

        assert exc_info.value.sequence == "studentId"
        session.execute.assert_not_called()


class TestStudentService:
    """Test student admission"""

    def test_create_student_sets_ledger(self, db_session, admin):
        """A new student owes the full fee"""
        student = admit(db_session, admin, total_fees=Decimal("5000"), email=fake.free_email())

        assert student.student_id == "STU000001"
        assert student.paid_amount == Decimal("0")
        assert student.pending_amount == Decimal("5000")

    def test_duplicate_phone_rejected(self, db_session, admin):
        phone = fake_phone()
        admit(db_session, admin, phone=phone)

        result = StudentService(db_session).create_student(
            StudentCreate(full_name=fake.name(), phone=phone), admin
        )

        assert not result.is_success
        assert result.error.code == ErrorCode.ALREADY_EXISTS


class TestPaymentService:
    """Test payments and fee ledgers"""

    def test_completed_payment_updates_ledger(self, db_session, admin, student):
        """Paying 4000 of 10000 leaves 6000 pending"""
        result = PaymentService(db_session).create_payment(
            PaymentCreate(student_id=student.id, amount=Decimal("4000")), admin
        )

        assert result.is_success
        assert result.data.status == PaymentStatus.COMPLETED
        assert result.data.payment_id == "PAY00000001"
        db_session.refresh(student)
        assert student.paid_amount == Decimal("4000")
        assert student.pending_amount == Decimal("6000")

    def test_counselor_payment_stays_pending(self, db_session, counselor, student):
        result = PaymentService(db_session).create_payment(
            PaymentCreate(student_id=student.id, amount=Decimal("1000")), counselor
        )

        assert result.data.status == PaymentStatus.PENDING
        db_session.refresh(student)
        assert student.paid_amount == Decimal("0")

    def test_partial_refund_counts_net_amount(self, db_session, admin, student):
        service = PaymentService(db_session)
        payment = service.create_payment(
            PaymentCreate(student_id=student.id, amount=Decimal("4000")), admin
        ).data

        result = service.refund_payment(
            payment.id, RefundRequest(amount=Decimal("1000"), reason="Course change"), admin
        )

        assert result.is_success
        assert result.data.status == PaymentStatus.REFUNDED
        db_session.refresh(student)
        assert student.paid_amount == Decimal("3000")
        assert student.pending_amount == Decimal("7000")

    def test_refund_requires_completed_payment(self, db_session, admin, counselor, student):
        service = PaymentService(db_session)
        payment = service.create_payment(
            PaymentCreate(student_id=student.id, amount=Decimal("1000")), counselor
        ).data

        result = service.refund_payment(payment.id, RefundRequest(reason="Duplicate"), admin)

        assert not result.is_success
        assert result.error.code == ErrorCode.BUSINESS_RULE_VIOLATION


class TestEnrollmentService:
    """Test enrollment lifecycle and course statistics"""

    def test_duplicate_enrollment_conflicts(self, db_session, admin, student, course):
        assert enroll(db_session, admin, student, course).is_success

        result = enroll(db_session, admin, student, course)

        assert not result.is_success
        assert result.error.code == ErrorCode.CONFLICT

    def test_enrollment_reserves_seat(self, db_session, admin, student, course, make_batch):
        batch = make_batch(max_students=2)

        result = enroll(db_session, admin, student, course, batch)

        assert result.is_success
        db_session.refresh(batch)
        assert batch.current_students == 1

    def test_full_batch_rejects_enrollment(self, db_session, admin, course, make_batch):
        batch = make_batch(max_students=1)
        assert enroll(db_session, admin, admit(db_session, admin), course, batch).is_success

        result = enroll(db_session, admin, admit(db_session, admin), course, batch)

        assert not result.is_success
        assert result.error.code == ErrorCode.BUSINESS_RULE_VIOLATION
        assert result.message == "Selected batch is full"

    def test_course_stats_follow_status(self, db_session, admin, course):
        """Three enrollments, one completed: 3 total, 2 active, 1 completed"""
        enrollments = [enroll(db_session, admin, admit(db_session, admin), course).data for _ in range(3)]

        result = EnrollmentService(db_session).update_enrollment(
            enrollments[0].id, EnrollmentUpdate(status=EnrollmentStatus.COMPLETED), admin
        )

        assert result.is_success
        db_session.refresh(course)
        assert course.enrollment_stats == {
            "totalEnrolled": 3,
            "active": 2,
            "completed": 1,
            "dropout": 0,
        }

    def test_completed_enrollment_cannot_reopen(self, db_session, admin, student, course):
        service = EnrollmentService(db_session)
        enrollment = enroll(db_session, admin, student, course).data
        service.update_enrollment(enrollment.id, EnrollmentUpdate(status=EnrollmentStatus.COMPLETED), admin)

        result = service.update_enrollment(
            enrollment.id, EnrollmentUpdate(status=EnrollmentStatus.ACTIVE), admin
        )

        assert not result.is_success
        assert result.error.code == ErrorCode.BUSINESS_RULE_VIOLATION

    def test_batch_change_moves_seat(self, db_session, admin, student, course, make_batch):
        old, new = make_batch(), make_batch()
        enrollment = enroll(db_session, admin, student, course, old).data

        result = EnrollmentService(db_session).update_enrollment(
            enrollment.id, EnrollmentUpdate(batch_id=new.id), admin
        )

        assert result.is_success
        db_session.refresh(old)
        db_session.refresh(new)
        assert (old.current_students, new.current_students) == (0, 1)
        assert result.data.batch_id == new.id

    def test_batch_change_into_full_batch_rolls_back(self, db_session, admin, student, course, make_batch):
        old, full = make_batch(), make_batch(max_students=1)
        enrollment = enroll(db_session, admin, student, course, old).data
        assert enroll(db_session, admin, admit(db_session, admin), course, full).is_success

        result = EnrollmentService(db_session).update_enrollment(
            enrollment.id, EnrollmentUpdate(batch_id=full.id), admin
        )

        assert result.error.code == ErrorCode.BUSINESS_RULE_VIOLATION
        db_session.refresh(old)
        db_session.refresh(full)
        db_session.refresh(enrollment)
        assert (old.current_students, full.current_students) == (1, 1)
        assert enrollment.batch_id == old.id

    def test_delete_releases_seat_and_stats(self, db_session, admin, student, course, make_batch):
        batch = make_batch()
        enrollment = enroll(db_session, admin, student, course, batch).data

        result = EnrollmentService(db_session).delete_enrollment(enrollment.id)

        assert result.is_success
        db_session.refresh(batch)
        db_session.refresh(course)
        assert batch.current_students == 0
        assert course.enrollment_stats["totalEnrolled"] == 0
        assert course.enrollment_stats["active"] == 0

    def test_progress_marking_is_idempotent(self, db_session, admin, student, course):
        course.curriculum = [{"moduleId": f"m{n}", "title": f"Module {n}"} for n in (1, 2, 3)]
        db_session.commit()
        enrollment = enroll(db_session, admin, student, course).data
        service = EnrollmentService(db_session)

        first = service.update_progress(enrollment.id, ProgressUpdate(module_id="m1"), admin)
        again = service.update_progress(enrollment.id, ProgressUpdate(module_id="m1", score=80), admin)

        assert first.data == {"progress": 33, "completedModules": 1}
        assert again.data == {"progress": 33, "completedModules": 1}
        db_session.refresh(enrollment)
        assert enrollment.completed_modules[0]["score"] == 80

        second = service.update_progress(enrollment.id, ProgressUpdate(module_id="m2"), admin)
        assert second.data == {"progress": 67, "completedModules": 2}


class TestBatchService:
    """Test roster management"""

    def test_full_batch_rejects_student(self, db_session, admin, make_batch):
        batch = make_batch(max_students=1)
        service = BatchService(db_session)
        assert service.add_student(batch.id, admit(db_session, admin).id, admin).is_success

        result = service.add_student(batch.id, admit(db_session, admin).id, admin)

        assert not result.is_success
        assert result.message == "Batch is full"
        db_session.refresh(batch)
        assert batch.current_students == 1

    def test_student_added_twice(self, db_session, admin, student, make_batch):
        batch = make_batch()
        service = BatchService(db_session)
        service.add_student(batch.id, student.id, admin)

        result = service.add_student(batch.id, student.id, admin)

        assert result.error.code == ErrorCode.VALIDATION_ERROR
        assert result.message == "Student already enrolled in this batch"


class TestLeadService:
    """Test lead capture and conversion"""

    def test_convert_lead_once(self, db_session, counselor):
        service = LeadService(db_session)
        lead = service.create_lead(LeadCreate(full_name=fake.name(), phone=fake_phone()), counselor).data

        first = service.convert_to_student(lead.id, counselor)
        second = service.convert_to_student(lead.id, counselor)

        assert first.is_success
        student = first.data["student"]
        assert student.admission_type == AdmissionType.LEAD_CONVERSION
        assert student.phone == lead.phone
        assert first.data["lead"].status == LeadStatus.CONVERTED
        assert first.data["lead"].converted_student_id == student.id

        assert not second.is_success
        assert second.message == "Lead already converted to student"

    def test_duplicate_lead_phone(self, db_session, counselor):
        service = LeadService(db_session)
        phone = fake_phone()
        service.create_lead(LeadCreate(full_name=fake.name(), phone=phone), counselor)

        result = service.create_lead(LeadCreate(full_name=fake.name(), phone=phone), counselor)

        assert result.error.code == ErrorCode.ALREADY_EXISTS
        assert result.message == "Lead with this phone number already exists"


class TestAttendanceService:
    """Test attendance marking and mirrors"""

    def test_mark_updates_enrollment_mirror(self, db_session, admin, student, course, make_batch):
        batch = make_batch()
        enrollment = enroll(db_session, admin, student, course, batch).data
        service = AttendanceService(db_session)

        for day, status in ((1, "present"), (2, "present"), (3, "absent"), (4, "late")):
            result = service.mark_attendance(
                AttendanceCreate(
                    student_id=student.id,
                    batch_id=batch.id,
                    date=date(2024, 1, day),
                    status=AttendanceStatus(status),
                ),
                admin,
            )
            assert result.is_success

        db_session.refresh(enrollment)
        assert enrollment.attendance_percentage == 75
        assert len(enrollment.attendance) == 4

    def test_duplicate_mark_conflicts(self, db_session, admin, student, course, make_batch):
        batch = make_batch()
        enroll(db_session, admin, student, course, batch)
        service = AttendanceService(db_session)
        data = AttendanceCreate(
            student_id=student.id, batch_id=batch.id, date=date(2024, 1, 1), status=AttendanceStatus.PRESENT
        )
        service.mark_attendance(data, admin)

        result = service.mark_attendance(data, admin)

        assert result.error.code == ErrorCode.CONFLICT

    def test_student_outside_batch(self, db_session, admin, student, make_batch):
        batch = make_batch()

        result = AttendanceService(db_session).mark_attendance(
            AttendanceCreate(
                student_id=student.id, batch_id=batch.id, date=date(2024, 1, 1), status=AttendanceStatus.PRESENT
            ),
            admin,
        )

        assert result.error.code == ErrorCode.VALIDATION_ERROR

    def test_approved_record_locked_for_trainer(self, db_session, admin, student, course, make_batch):
        batch = make_batch()
        enroll(db_session, admin, student, course, batch)
        record = mark(db_session, admin, student, batch, 1, "present")
        service = AttendanceService(db_session)
        assert service.approve_attendance(record.id, admin).is_success
        trainer = Principal(user_id=admin.user_id, role=UserRole.TRAINER)

        updated = service.update_attendance(record.id, AttendanceUpdate(status=AttendanceStatus.ABSENT), trainer)
        deleted = service.delete_attendance(record.id, trainer)

        assert updated.error.code == ErrorCode.INSUFFICIENT_PERMISSIONS
        assert updated.message == "Cannot update approved attendance record"
        assert deleted.error.code == ErrorCode.INSUFFICIENT_PERMISSIONS
        assert service.get_attendance(record.id).data.status == AttendanceStatus.PRESENT
        assert service.update_attendance(
            record.id, AttendanceUpdate(status=AttendanceStatus.ABSENT), admin
        ).is_success

    def test_delete_recomputes_percentage(self, db_session, admin, student, course, make_batch):
        batch = make_batch()
        enrollment = enroll(db_session, admin, student, course, batch).data
        records = [
            mark(db_session, admin, student, batch, day, status)
            for day, status in ((1, "present"), (2, "present"), (3, "absent"), (4, "late"))
        ]
        db_session.refresh(enrollment)
        assert enrollment.attendance_percentage == 75

        result = AttendanceService(db_session).delete_attendance(records[2].id, admin)

        assert result.is_success
        db_session.refresh(enrollment)
        assert enrollment.attendance_percentage == 100
        assert len(enrollment.attendance) == 3


class TestContentService:
    """Test content visibility"""

    @staticmethod
    def make_content(course, access_type, **allowed):
        return Content(
            title="Week 1 notes",
            type=ContentType.DOCUMENT,
            course_id=course.id,
            access_type=access_type,
            allowed_users=allowed.get("users", []),
            allowed_students=allowed.get("students", []),
            allowed_batches=allowed.get("batches", []),
        )

    def test_public_open_to_everyone(self, db_session, counselor, course):
        content = self.make_content(course, AccessType.PUBLIC)

        assert ContentService(db_session).can_access(content, counselor)

    @pytest.mark.parametrize("role", [UserRole.ADMIN, UserRole.TRAINER])
    def test_staff_see_everything(self, db_session, admin, course, role):
        content = self.make_content(course, AccessType.PRIVATE)

        assert ContentService(db_session).can_access(content, Principal(user_id=admin.user_id, role=role))

    def test_private_needs_allow_list(self, db_session, counselor, student, course):
        service = ContentService(db_session)
        content = self.make_content(course, AccessType.PRIVATE, students=[str(student.id)])
        learner = Principal(
            user_id=counselor.user_id, role=UserRole.STUDENT, metadata={"student_id": str(student.id)}
        )

        assert service.can_access(content, learner)
        assert not service.can_access(content, counselor)

        content.allowed_users = [str(counselor.user_id)]
        assert service.can_access(content, counselor)

    def test_private_ignores_batch_members(self, db_session, admin, student, course, make_batch):
        batch = make_batch()
        enroll(db_session, admin, student, course, batch)
        content = self.make_content(course, AccessType.PRIVATE, batches=[str(batch.id)])

        assert not ContentService(db_session).can_access(
            content, Principal(user_id=admin.user_id, role=UserRole.STUDENT), student_ids=[str(student.id)]
        )

    def test_restricted_admits_active_batch_members(self, db_session, admin, student, course, make_batch):
        batch, other = make_batch(), make_batch()
        enroll(db_session, admin, student, course, batch)
        service = ContentService(db_session)
        learner = Principal(user_id=admin.user_id, role=UserRole.STUDENT)

        allowed = self.make_content(course, AccessType.RESTRICTED, batches=[str(batch.id)])
        elsewhere = self.make_content(course, AccessType.RESTRICTED, batches=[str(other.id)])

        assert service.can_access(allowed, learner, student_ids=[str(student.id)])
        assert not service.can_access(elsewhere, learner, student_ids=[str(student.id)])


class TestAnalyticsService:
    """Test report access rules"""

    @pytest.mark.parametrize("role", [UserRole.TRAINER, UserRole.COUNSELOR, UserRole.STUDENT])
    def test_revenue_limited_to_finance_roles(self, db_session, admin, role):
        principal = Principal(user_id=admin.user_id, role=role)

        result = AnalyticsService(db_session).revenue_report(principal)

        assert result.error.code == ErrorCode.INSUFFICIENT_PERMISSIONS

    def test_dashboard_unknown_range_defaults(self, db_session, admin, student):
        result = AnalyticsService(db_session).dashboard("decade")

        assert result.is_success

    def test_attendance_report_rates(self, db_session, admin, student, course, make_batch):
        batch = make_batch()
        enroll(db_session, admin, student, course, batch)
        for day, status in ((1, "present"), (2, "absent"), (3, "late"), (4, "absent")):
            mark(db_session, admin, student, batch, day, status)

        result = AnalyticsService(db_session).attendance_report(admin)

        assert result.is_success
        report = result.data
        assert report["summary"]["overallAttendanceRate"] == 50
        assert report["summary"]["presentCount"] == 2
        assert report["byBatch"][0]["attendanceRate"] == 50
        assert report["byBatch"][0]["absent"] == 2
        assert [day["attendanceRate"] for day in report["dailyTrend"]] == [100, 0, 100, 0]
        assert report["studentPerformance"][0]["late"] == 1
