"""
Attendance service: marks, approvals and attendance reporting.

Handles:
- Marking attendance for enrolled students, one record per student, batch and date
- Approval, with approved records locked to administrators
- Bulk marking for a batch session
- Enrollment mirror and roster percentage upkeep on every change
- Student, batch and overall attendance views and reports
"""

from datetime import date
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from backoffice.models.attendance.attendance import Attendance
from backoffice.models.base.enums import AttendanceStatus, EnrollmentStatus, SessionStatus
from backoffice.models.student.student import Student
from backoffice.repositories.attendance.attendance_repository import AttendanceRepository
from backoffice.repositories.base.base_repository import Page
from backoffice.repositories.batch.batch_repository import BatchRepository
from backoffice.repositories.enrollment.enrollment_repository import EnrollmentRepository
from backoffice.repositories.student.student_repository import StudentRepository
from backoffice.schemas.attendance import (
    AttendanceCreate,
    AttendanceReportRequest,
    AttendanceUpdate,
)
from backoffice.schemas.batch import SessionAttendance
from backoffice.schemas.common.pagination import ListParams
from backoffice.services.base import BaseService, ServiceResult
from backoffice.services.common.bookkeeping import Bookkeeper
from backoffice.services.common.errors import ConflictError, NotFoundError, ValidationError
from backoffice.services.common.metrics import ATTENDED_STATUSES, attendance_percentage, percentage
from backoffice.services.common.permissions import PermissionDenied, Principal
from backoffice.utils.datetime_utils import utcnow

DAILY_TREND_LIMIT = 30
RECENT_RECORDS_LIMIT = 50


def _status_summary(records: Iterable[Attendance], percentage_key: str = "attendancePercentage") -> Dict[str, int]:
    """Counts per status plus the attended share."""
    summary = {"total": 0, **{status.value: 0 for status in AttendanceStatus}}
    statuses = []
    for record in records:
        summary["total"] += 1
        summary[record.status.value] += 1
        statuses.append(record.status.value)
    summary[percentage_key] = attendance_percentage(statuses)
    return summary


def _student_ref(student: Student) -> Dict[str, str]:
    return {"id": str(student.id), "studentId": student.student_id, "name": student.full_name}


def _average(values: List[int]) -> int:
    return percentage(sum(values), len(values) * 100) if values else 0


class AttendanceService(BaseService[Attendance, AttendanceRepository]):
    """Attendance records."""

    resource_name = "Attendance record"

    def __init__(self, db_session: Session):
        super().__init__(AttendanceRepository(db_session), db_session)
        self.students = StudentRepository(db_session)
        self.batches = BatchRepository(db_session)
        self.enrollments = EnrollmentRepository(db_session)
        self.bookkeeper = Bookkeeper(db_session)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_attendance(
        self,
        params: ListParams,
        student_id: Optional[UUID] = None,
        batch_id: Optional[UUID] = None,
        session_id: Optional[UUID] = None,
        status: Optional[AttendanceStatus] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> ServiceResult[Page[Attendance]]:
        try:
            page = self.repository.find_filtered(
                filters={
                    "student_id": student_id,
                    "batch_id": batch_id,
                    "session_id": session_id,
                    "status": status,
                },
                start_date=start_date,
                end_date=end_date,
                search=params.search,
                **params.paging(),
            )
            return ServiceResult.success(page)
        except Exception as e:
            return self._handle_exception(e, "list attendance")

    def get_attendance(self, attendance_id: UUID) -> ServiceResult[Attendance]:
        try:
            return ServiceResult.success(self._get_or_raise(attendance_id))
        except Exception as e:
            return self._handle_exception(e, "get attendance", attendance_id)

    def student_attendance(
        self,
        student_id: UUID,
        batch_id: Optional[UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> ServiceResult[Dict[str, Any]]:
        """A student's records with overall and per-batch summaries."""
        try:
            student = self._get_or_raise(student_id, self.students, "Student")
            records = self.repository.find_all(
                {"student_id": student_id, "batch_id": batch_id}, start_date, end_date
            )
            records.reverse()

            by_batch: Dict[UUID, Dict[str, Any]] = {}
            for record in records:
                group = by_batch.setdefault(
                    record.batch_id,
                    {
                        "batch": {
                            "id": str(record.batch_id),
                            "batchId": record.batch.batch_id,
                            "name": record.batch.name,
                        },
                        "records": [],
                    },
                )
                group["records"].append(record)
            for group in by_batch.values():
                group["summary"] = _status_summary(group["records"], "presentPercentage")

            attended = sum(1 for record in records if record.status.value in ATTENDED_STATUSES)
            return ServiceResult.success(
                {
                    "student": _student_ref(student),
                    "summary": {
                        "totalSessions": len(records),
                        "presentSessions": attended,
                        "absentSessions": len(records) - attended,
                        "attendancePercentage": attendance_percentage(r.status for r in records),
                    },
                    "attendanceByBatch": list(by_batch.values()),
                    "allRecords": records,
                }
            )
        except Exception as e:
            return self._handle_exception(e, "get student attendance", student_id)

    def batch_attendance(
        self,
        batch_id: UUID,
        on: Optional[date] = None,
        session_id: Optional[UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> ServiceResult[Dict[str, Any]]:
        """A batch's records grouped by date, with student-wise figures."""
        try:
            batch = self._get_or_raise(batch_id, self.batches, "Batch")
            if on is not None:
                start_date = end_date = on
            records = self.repository.find_all(
                {"batch_id": batch_id, "session_id": session_id}, start_date, end_date
            )
            records.reverse()

            by_date: Dict[date, Dict[str, Any]] = {}
            for record in records:
                group = by_date.setdefault(
                    record.date,
                    {
                        "date": record.date.isoformat(),
                        "session": str(record.session_id) if record.session_id else None,
                        "records": [],
                    },
                )
                group["records"].append(record)
            for group in by_date.values():
                group["summary"] = _status_summary(group["records"])

            student_rows: Dict[UUID, Dict[str, Any]] = {}
            for enrollment in self.enrollments.for_batch(batch_id, [EnrollmentStatus.ACTIVE]):
                student_rows[enrollment.student_id] = {
                    "student": _student_ref(enrollment.student),
                    "statuses": [],
                }
            for record in records:
                if record.student_id in student_rows:
                    student_rows[record.student_id]["statuses"].append(record.status.value)

            student_attendance = []
            for row in student_rows.values():
                statuses = row.pop("statuses")
                student_attendance.append(
                    {
                        **row,
                        "totalSessions": len(statuses),
                        "presentSessions": sum(1 for s in statuses if s in ATTENDED_STATUSES),
                        "attendancePercentage": attendance_percentage(statuses),
                    }
                )

            daily = [group["summary"]["attendancePercentage"] for group in by_date.values()]
            return ServiceResult.success(
                {
                    "batch": {
                        "id": str(batch.id),
                        "batchId": batch.batch_id,
                        "name": batch.name,
                        "course": {"id": str(batch.course_id), "name": batch.course.name},
                        "totalStudents": batch.current_students,
                    },
                    "attendanceByDate": list(by_date.values()),
                    "studentAttendance": student_attendance,
                    "summary": {
                        "totalRecords": len(records),
                        "uniqueDates": len(by_date),
                        "averageAttendance": _average(daily),
                    },
                }
            )
        except Exception as e:
            return self._handle_exception(e, "get batch attendance", batch_id)

    def get_stats(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        batch_id: Optional[UUID] = None,
    ) -> ServiceResult[Dict[str, Any]]:
        """Overall rate, status split, daily trend (30 days max) and batch ranking."""
        try:
            records = self.repository.find_all({"batch_id": batch_id}, start_date, end_date)
            total = len(records)
            summary = _status_summary(records, "overallAttendanceRate")

            daily: Dict[date, List[str]] = {}
            batches: Dict[UUID, Dict[str, Any]] = {}
            for record in records:
                daily.setdefault(record.date, []).append(record.status.value)
                row = batches.setdefault(
                    record.batch_id, {"batch": record.batch.name, "statuses": []}
                )
                row["statuses"].append(record.status.value)

            batch_stats = []
            for row in batches.values():
                statuses = row.pop("statuses")
                batch_stats.append(
                    {
                        **row,
                        "total": len(statuses),
                        "present": sum(1 for s in statuses if s in ATTENDED_STATUSES),
                        "late": statuses.count(AttendanceStatus.LATE.value),
                        "attendanceRate": attendance_percentage(statuses),
                    }
                )
            batch_stats.sort(key=lambda row: row["attendanceRate"], reverse=True)

            return ServiceResult.success(
                {
                    "summary": {
                        "totalRecords": total,
                        "presentCount": summary[AttendanceStatus.PRESENT.value]
                        + summary[AttendanceStatus.LATE.value],
                        "overallAttendanceRate": summary["overallAttendanceRate"],
                        "lateCount": summary[AttendanceStatus.LATE.value],
                        "absentCount": summary[AttendanceStatus.ABSENT.value],
                    },
                    "byStatus": {
                        status.value: {
                            "count": summary[status.value],
                            "percentage": percentage(summary[status.value], total),
                        }
                        for status in AttendanceStatus
                        if summary[status.value]
                    },
                    "dailyTrend": [
                        {
                            "date": day.isoformat(),
                            "total": len(statuses),
                            "present": sum(1 for s in statuses if s in ATTENDED_STATUSES),
                            "attendanceRate": attendance_percentage(statuses),
                        }
                        for day, statuses in sorted(daily.items())
                    ][:DAILY_TREND_LIMIT],
                    "batchStats": batch_stats,
                }
            )
        except Exception as e:
            return self._handle_exception(e, "get attendance stats")

    def report(self, data: AttendanceReportRequest) -> ServiceResult[Dict[str, Any]]:
        """
        Attendance report.

        A batch without a student gives per-student rows for that batch; a
        student gives that student's records; otherwise an overall summary
        with the most recent records.
        """
        try:
            records = self.repository.find_all(
                {"batch_id": data.batch_id, "student_id": data.student_id},
                data.start_date,
                data.end_date,
            )
            records.reverse()
            report: Dict[str, Any] = {
                "period": {
                    "start": data.start_date.isoformat() if data.start_date else None,
                    "end": data.end_date.isoformat() if data.end_date else None,
                },
                "generatedAt": utcnow().isoformat(),
            }

            if data.batch_id and not data.student_id:
                batch = self._get_or_raise(data.batch_id, self.batches, "Batch")
                per_student: Dict[UUID, Dict[str, Any]] = {}
                for record in records:
                    row = per_student.setdefault(
                        record.student_id, {"student": _student_ref(record.student), "records": []}
                    )
                    row["records"].append(record)
                for row in per_student.values():
                    row["summary"] = _status_summary(row["records"])

                report.update(
                    {
                        "type": "batch_report",
                        "batch": {"id": str(batch.id), "batchId": batch.batch_id, "name": batch.name},
                        "studentAttendance": list(per_student.values()),
                        "summary": {
                            "totalStudents": len(per_student),
                            "totalSessions": len(records),
                            "averageAttendance": _average(
                                [row["summary"]["attendancePercentage"] for row in per_student.values()]
                            ),
                        },
                    }
                )
            elif data.student_id:
                student = self._get_or_raise(data.student_id, self.students, "Student")
                report.update(
                    {
                        "type": "student_report",
                        "student": _student_ref(student),
                        "attendanceRecords": records,
                        "summary": {
                            "totalSessions": len(records),
                            "presentSessions": sum(
                                1 for r in records if r.status.value in ATTENDED_STATUSES
                            ),
                            "attendancePercentage": attendance_percentage(r.status for r in records),
                        },
                    }
                )
            else:
                summary = _status_summary(records, "attendanceRate")
                report.update(
                    {
                        "type": "overall_report",
                        "summary": {
                            "totalRecords": len(records),
                            "presentCount": summary[AttendanceStatus.PRESENT.value]
                            + summary[AttendanceStatus.LATE.value],
                            "attendanceRate": summary["attendanceRate"],
                            "byStatus": {
                                status.value: {
                                    "count": summary[status.value],
                                    "percentage": percentage(summary[status.value], len(records)),
                                }
                                for status in AttendanceStatus
                                if summary[status.value]
                            },
                        },
                        "recentRecords": records[:RECENT_RECORDS_LIMIT],
                    }
                )

            return ServiceResult.success(report, message="Attendance report generated successfully")
        except Exception as e:
            return self._handle_exception(e, "generate attendance report")

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def mark_attendance(self, data: AttendanceCreate, actor: Principal) -> ServiceResult[Attendance]:
        """
        Mark attendance for an actively enrolled student.

        The enrollment mirror and roster percentage are refreshed in the
        same transaction.
        """
        try:
            with self.transaction():
                record = self._mark(data, actor)

            self._log_operation(
                "mark attendance",
                record.id,
                {"student_id": str(data.student_id), "batch_id": str(data.batch_id)},
            )
            return ServiceResult.success(record, message="Attendance marked successfully")
        except Exception as e:
            return self._handle_exception(e, "mark attendance", data.student_id)

    def update_attendance(
        self, attendance_id: UUID, data: AttendanceUpdate, actor: Principal
    ) -> ServiceResult[Attendance]:
        try:
            with self.transaction():
                record = self._get_or_raise(attendance_id)
                self._ensure_editable(record, actor, "Cannot update approved attendance record")

                self.repository.update(record, data.changes())
                record.compute_duration()
                self.bookkeeper.record_attendance_change(record)

            return ServiceResult.success(record, message="Attendance updated successfully")
        except Exception as e:
            return self._handle_exception(e, "update attendance", attendance_id)

    def delete_attendance(self, attendance_id: UUID, actor: Principal) -> ServiceResult[bool]:
        try:
            with self.transaction():
                record = self._get_or_raise(attendance_id)
                self._ensure_editable(record, actor, "Cannot delete approved attendance record")

                self.repository.delete(record)
                self.bookkeeper.record_attendance_change(record, removed=True)

            self._log_operation("delete attendance", attendance_id)
            return ServiceResult.success(True, message="Attendance record deleted successfully")
        except Exception as e:
            return self._handle_exception(e, "delete attendance", attendance_id)

    def approve_attendance(self, attendance_id: UUID, actor: Principal) -> ServiceResult[Attendance]:
        try:
            with self.transaction():
                record = self._get_or_raise(attendance_id)
                if record.is_approved:
                    raise ValidationError("Attendance already approved", field="isApproved")
                record.is_approved = True
                record.approved_by_id = actor.user_id
                record.approved_at = utcnow()

            self._log_operation("approve attendance", attendance_id)
            return ServiceResult.success(record, message="Attendance approved successfully")
        except Exception as e:
            return self._handle_exception(e, "approve attendance", attendance_id)

    def mark_session_attendance(
        self,
        batch_id: UUID,
        session_id: UUID,
        data: SessionAttendance,
        actor: Principal,
    ) -> ServiceResult[Dict[str, Any]]:
        """
        Mark attendance for a whole session.

        Every mark goes through the single-record rules; any rejected mark
        rolls back the whole batch of marks.
        """
        try:
            with self.transaction():
                self._get_or_raise(batch_id, self.batches, "Batch")
                session = self.batches.get_session(batch_id, session_id)
                if session is None:
                    raise NotFoundError("Session", session_id)

                records = [
                    self._mark(
                        AttendanceCreate(
                            student_id=mark.student_id,
                            batch_id=batch_id,
                            session_id=session.id,
                            date=session.date,
                            status=mark.status,
                            remarks=mark.remarks,
                        ),
                        actor,
                    )
                    for mark in data.attendance
                ]

                session.attendance_taken = True
                session.status = SessionStatus.COMPLETED
                session.attendance_summary = _status_summary(records)
                self.db.flush()

            self._log_operation(
                "mark session attendance", session_id, {"records": len(records)}
            )
            return ServiceResult.success(
                {"session": session, "records": records},
                message="Session attendance marked successfully",
            )
        except Exception as e:
            return self._handle_exception(e, "mark session attendance", session_id)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _mark(self, data: AttendanceCreate, actor: Principal) -> Attendance:
        student = self._get_or_raise(data.student_id, self.students, "Student")
        batch = self._get_or_raise(data.batch_id, self.batches, "Batch")
        if data.session_id is not None and self.batches.get_session(batch.id, data.session_id) is None:
            raise NotFoundError("Session", data.session_id)

        if self.enrollments.active_in_batch(student.id, batch.id) is None:
            raise ValidationError("Student is not enrolled in this batch", field="studentId")
        if self.repository.find_mark(student.id, batch.id, data.date) is not None:
            raise ConflictError("Attendance already marked for this date", conflicting_field="date")

        record = Attendance(**data.column_values())
        record.marked_by_id = actor.user_id
        record.compute_duration()
        self.repository.create(record)
        self.bookkeeper.record_attendance_change(record)
        return record

    @staticmethod
    def _ensure_editable(record: Attendance, actor: Principal, message: str) -> None:
        if record.is_approved and not actor.is_admin:
            raise PermissionDenied(message, user_id=actor.user_id, role=actor.role)
