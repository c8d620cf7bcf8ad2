"""
Analytics service: read-only dashboard and report aggregations.

Every view groups and sums rows already held by the other services; no
view writes anything. Month buckets are keyed YYYY-MM and returned in
chronological order.

Role rules:
- revenue and payments: admin or employee
- leads: admin or counselor
- attendance and performance: admin or trainer
"""

from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from statistics import median
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from backoffice.models.base.enums import (
    AttendanceStatus,
    BatchStatus,
    CourseStatus,
    EnrollmentStatus,
    LeadStatus,
    PaymentStatus,
    StudentStatus,
    UserRole,
    UserStatus,
)
from backoffice.models.payment.payment import Payment
from backoffice.repositories.attendance.attendance_repository import AttendanceRepository
from backoffice.repositories.batch.batch_repository import BatchRepository
from backoffice.repositories.course.course_repository import CourseRepository
from backoffice.repositories.enrollment.enrollment_repository import EnrollmentRepository
from backoffice.repositories.lead.lead_repository import LeadRepository
from backoffice.repositories.payment.payment_repository import PaymentRepository
from backoffice.repositories.student.student_repository import StudentRepository
from backoffice.repositories.user.user_repository import UserRepository
from backoffice.services.base import BaseService, ServiceResult
from backoffice.services.common.metrics import (
    ATTENDED_STATUSES,
    attendance_percentage,
    mean,
    percentage,
    round_half_up,
)
from backoffice.services.common.permissions import Principal, require_role
from backoffice.utils.datetime_utils import AgeCalculator, DateTimeHelper, utcnow

REVENUE_ROLES = (UserRole.ADMIN, UserRole.EMPLOYEE)
LEAD_ROLES = (UserRole.ADMIN, UserRole.COUNSELOR)
ACADEMIC_ROLES = (UserRole.ADMIN, UserRole.TRAINER)

STAFF_ROLES = [UserRole.ADMIN, UserRole.EMPLOYEE, UserRole.COUNSELOR, UserRole.TRAINER]
CONTACTED_LEAD_STATUSES = {LeadStatus.CONTACTED, LeadStatus.FOLLOW_UP, LeadStatus.QUALIFIED}
OPEN_LEAD_STATUSES = {LeadStatus.NEW, *CONTACTED_LEAD_STATUSES}
COMPLETION_STATUSES = {EnrollmentStatus.COMPLETED, EnrollmentStatus.DROPPED, EnrollmentStatus.ACTIVE}

# Attendance-rate buckets for the score correlation (lower bound inclusive)
ATTENDANCE_BUCKETS: Tuple[Tuple[int, int, str], ...] = (
    (0, 50, "0-49"),
    (50, 60, "50-59"),
    (60, 70, "60-69"),
    (70, 80, "70-79"),
    (80, 90, "80-89"),
    (90, 101, "90-100"),
)


def _value(member: Any) -> Any:
    return getattr(member, "value", member)


def _money(value: Any) -> float:
    return float(Decimal(value or 0))


def _count_by(items: Iterable[Any], key: Callable[[Any], Any]) -> Dict[str, int]:
    counts: Dict[str, int] = defaultdict(int)
    for item in items:
        label = key(item)
        if label is not None:
            counts[_value(label)] += 1
    return dict(counts)


def _month_trend(stamps: Iterable[Optional[datetime]], cap: Optional[int] = None) -> List[Dict[str, Any]]:
    counts: Dict[str, int] = defaultdict(int)
    for stamp in stamps:
        if stamp is not None:
            counts[DateTimeHelper.month_key(stamp)] += 1
    trend = [{"month": month, "count": counts[month]} for month in sorted(counts)]
    return trend[:cap] if cap else trend


def _range_filters(start: Optional[datetime], end: Optional[datetime]) -> Dict[str, Optional[str]]:
    return {
        "startDate": start.isoformat() if start else None,
        "endDate": end.isoformat() if end else None,
    }


class AnalyticsService(BaseService[Payment, PaymentRepository]):
    """Dashboard and report aggregations."""

    resource_name = "Analytics"

    def __init__(self, db_session: Session):
        super().__init__(PaymentRepository(db_session), db_session)
        self.students = StudentRepository(db_session)
        self.courses = CourseRepository(db_session)
        self.batches = BatchRepository(db_session)
        self.enrollments = EnrollmentRepository(db_session)
        self.leads = LeadRepository(db_session)
        self.attendance = AttendanceRepository(db_session)
        self.users = UserRepository(db_session)

    # -------------------------------------------------------------------------
    # Dashboard
    # -------------------------------------------------------------------------

    def dashboard(self, range_name: str = "month") -> ServiceResult[Dict[str, Any]]:
        """
        Headline counts, charts and recent activity for a reporting window.

        Args:
            range_name: week, month, quarter or year (anything else is month)
        """
        try:
            end = utcnow()
            start = DateTimeHelper.range_start(range_name, end)

            total_leads = self.leads.count()
            converted_leads = self.leads.count({"converted_to_student": True})

            revenue = self.repository.find_between(
                "payment_date", start, end, {"status": PaymentStatus.COMPLETED}
            )
            revenue_months: Dict[str, Dict[str, Any]] = {}
            for payment in revenue:
                bucket = revenue_months.setdefault(
                    DateTimeHelper.month_key(payment.payment_date),
                    {"revenue": 0.0, "transactions": 0},
                )
                bucket["revenue"] += _money(payment.amount)
                bucket["transactions"] += 1

            enrollments = self.enrollments.find_between("enrollment_date", start, end)
            courses = sorted(
                self.courses.get_multi(limit=0),
                key=lambda course: course.total_enrolled or 0,
                reverse=True,
            )[:5]

            recent_payments = self.repository.get_multi(
                limit=5,
                filters={"status": PaymentStatus.COMPLETED},
                order_by=[Payment.payment_date.desc()],
            )

            return ServiceResult.success(
                {
                    "stats": {
                        "totalStudents": self.students.count(),
                        "activeStudents": self.students.count({"status": StudentStatus.ACTIVE}),
                        "totalCourses": self.courses.count(),
                        "activeCourses": self.courses.count({"status": CourseStatus.ACTIVE}),
                        "totalBatches": self.batches.count(),
                        "ongoingBatches": self.batches.count({"status": BatchStatus.ONGOING}),
                        "totalLeads": total_leads,
                        "convertedLeads": converted_leads,
                        "conversionRate": percentage(converted_leads, total_leads, 2),
                        "totalEmployees": self.users.count({"role": STAFF_ROLES}),
                        "activeEmployees": self.users.count(
                            {"role": STAFF_ROLES, "status": UserStatus.ACTIVE}
                        ),
                        "totalRevenue": sum(_money(payment.amount) for payment in revenue),
                    },
                    "charts": {
                        "revenueChart": [
                            {"month": month, **revenue_months[month]}
                            for month in sorted(revenue_months)
                        ],
                        "enrollmentChart": [
                            {"month": item["month"], "enrollments": item["count"]}
                            for item in _month_trend(e.enrollment_date for e in enrollments)
                        ],
                        "courseChart": [
                            {
                                "course": course.name,
                                "students": course.total_enrolled or 0,
                                "active": course.active_enrollments or 0,
                                "completed": course.completed_enrollments or 0,
                            }
                            for course in courses
                        ],
                    },
                    "recentActivities": {
                        "payments": [
                            {
                                "id": payment.payment_id,
                                "student": payment.student.full_name,
                                "amount": _money(payment.amount),
                                "date": payment.payment_date.isoformat(),
                                "status": payment.status.value,
                            }
                            for payment in recent_payments
                        ],
                        "enrollments": [
                            {
                                "id": enrollment.enrollment_id,
                                "student": enrollment.student.full_name,
                                "course": enrollment.course.name,
                                "date": enrollment.enrollment_date.isoformat(),
                                "status": enrollment.status.value,
                            }
                            for enrollment in self.enrollments.recent(5)
                        ],
                    },
                    "timeRange": {
                        "start": start.isoformat(),
                        "end": end.isoformat(),
                        "label": range_name,
                    },
                }
            )
        except Exception as e:
            return self._handle_exception(e, "dashboard analytics")

    # -------------------------------------------------------------------------
    # Revenue and payments
    # -------------------------------------------------------------------------

    def revenue_report(
        self,
        actor: Principal,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        group_by: str = "month",
    ) -> ServiceResult[Dict[str, Any]]:
        """Completed revenue by period, payment mode and course."""
        try:
            require_role(actor, REVENUE_ROLES)
            payments = self.repository.find_between(
                "payment_date", start, end, {"status": PaymentStatus.COMPLETED}
            )

            periods: Dict[str, List[float]] = defaultdict(list)
            modes: Dict[str, List[float]] = defaultdict(list)
            for payment in payments:
                periods[DateTimeHelper.period_key(payment.payment_date, group_by)].append(_money(payment.amount))
                modes[payment.payment_mode.value].append(_money(payment.amount))

            by_period = [
                {
                    "period": key,
                    "revenue": sum(amounts),
                    "transactions": len(amounts),
                    "average": round_half_up(mean(amounts), 2),
                }
                for key, amounts in sorted(periods.items())
            ]
            by_mode = sorted(
                (
                    {"mode": mode, "revenue": sum(amounts), "transactions": len(amounts)}
                    for mode, amounts in modes.items()
                ),
                key=lambda item: item["revenue"],
                reverse=True,
            )

            by_course: Dict[str, Dict[str, Any]] = {}
            for enrollment in self.enrollments.get_multi(limit=0):
                if _money(enrollment.fee_paid) <= 0:
                    continue
                bucket = by_course.setdefault(enrollment.course.name, {"revenue": 0.0, "students": 0})
                bucket["revenue"] += _money(enrollment.fee_paid)
                bucket["students"] += 1

            return ServiceResult.success(
                {
                    "summary": {
                        "totalPeriods": len(by_period),
                        "totalRevenue": sum(item["revenue"] for item in by_period),
                        "totalTransactions": sum(item["transactions"] for item in by_period),
                    },
                    "byPeriod": by_period,
                    "byMode": by_mode,
                    "byCourse": sorted(
                        ({"course": name, **values} for name, values in by_course.items()),
                        key=lambda item: item["revenue"],
                        reverse=True,
                    )[:10],
                    "filters": {**_range_filters(start, end), "groupBy": group_by},
                }
            )
        except Exception as e:
            return self._handle_exception(e, "revenue analytics")

    def payments_report(
        self,
        actor: Principal,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> ServiceResult[Dict[str, Any]]:
        """Payment status and mode mix, monthly revenue, pending dues and collection efficiency."""
        try:
            require_role(actor, REVENUE_ROLES)
            payments = self.repository.find_between("payment_date", start, end)
            completed = [p for p in payments if p.status == PaymentStatus.COMPLETED]
            total_revenue = sum(_money(p.amount) for p in completed)

            by_status: Dict[str, Dict[str, Any]] = {}
            for payment in payments:
                bucket = by_status.setdefault(payment.status.value, {"count": 0, "amount": 0.0})
                bucket["count"] += 1
                bucket["amount"] += _money(payment.amount)

            by_mode: Dict[str, Dict[str, Any]] = {}
            monthly: Dict[str, Dict[str, Any]] = {}
            for payment in completed:
                mode = by_mode.setdefault(payment.payment_mode.value, {"count": 0, "amount": 0.0})
                mode["count"] += 1
                mode["amount"] += _money(payment.amount)
                month = monthly.setdefault(
                    DateTimeHelper.month_key(payment.payment_date), {"count": 0, "amount": 0.0}
                )
                month["count"] += 1
                month["amount"] += _money(payment.amount)
            for mode in by_mode.values():
                mode["percentage"] = percentage(mode["amount"], total_revenue)

            pending: Dict[str, Dict[str, Any]] = {}
            for payment in payments:
                if payment.status != PaymentStatus.PENDING:
                    continue
                bucket = pending.setdefault(payment.student.full_name, {"count": 0, "amount": 0.0})
                bucket["count"] += 1
                bucket["amount"] += _money(payment.amount)

            enrollments = self.enrollments.get_multi(limit=0)
            total_fees = sum(_money(e.fee_total) for e in enrollments)
            total_paid = sum(_money(e.fee_paid) for e in enrollments)
            collection = None
            if enrollments:
                collection = {
                    "totalFees": total_fees,
                    "totalPaid": total_paid,
                    "totalPending": sum(_money(e.fee_pending) for e in enrollments),
                    "collectionRate": percentage(total_paid, total_fees),
                    "averageFeePerStudent": round_half_up(total_fees / len(enrollments), 2),
                }

            return ServiceResult.success(
                {
                    "summary": {
                        "totalPayments": len(payments),
                        "completedPayments": len(completed),
                        "pendingPayments": len(payments) - len(completed),
                        "totalRevenue": total_revenue,
                        "completionRate": percentage(len(completed), len(payments)),
                    },
                    "byStatus": by_status,
                    "byMode": dict(sorted(by_mode.items(), key=lambda kv: kv[1]["amount"], reverse=True)),
                    "monthlyRevenue": [
                        {
                            "month": key,
                            **monthly[key],
                            "average": round_half_up(monthly[key]["amount"] / monthly[key]["count"], 2),
                        }
                        for key in sorted(monthly)
                    ][:12],
                    "pendingAnalysis": sorted(
                        ({"student": name, **values} for name, values in pending.items()),
                        key=lambda item: item["amount"],
                        reverse=True,
                    )[:10],
                    "collectionEfficiency": collection,
                    "filters": _range_filters(start, end),
                }
            )
        except Exception as e:
            return self._handle_exception(e, "payment analytics")

    # -------------------------------------------------------------------------
    # Students, courses and enrollments
    # -------------------------------------------------------------------------

    def students_report(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> ServiceResult[Dict[str, Any]]:
        try:
            students = self.students.find_between("admission_date", start, end)
            active = sum(1 for s in students if s.status == StudentStatus.ACTIVE)
            today = date.today()

            return ServiceResult.success(
                {
                    "summary": {
                        "totalStudents": len(students),
                        "activeStudents": active,
                        "inactiveStudents": len(students) - active,
                        "activePercentage": percentage(active, len(students)),
                    },
                    "byStatus": _count_by(students, lambda s: s.status),
                    "byAdmissionType": _count_by(students, lambda s: s.admission_type),
                    "monthlyTrend": _month_trend((s.admission_date for s in students), cap=12),
                    "demographics": {
                        "ageDistribution": _count_by(
                            (s for s in students if s.date_of_birth),
                            lambda s: AgeCalculator.age_bucket(s.date_of_birth, today),
                        ),
                        "genderDistribution": _count_by(students, lambda s: s.gender),
                    },
                    "filters": _range_filters(start, end),
                }
            )
        except Exception as e:
            return self._handle_exception(e, "student analytics")

    def courses_report(self) -> ServiceResult[Dict[str, Any]]:
        try:
            courses = list(self.courses.get_multi(limit=0))
            popularity = sorted(
                (
                    {
                        "name": course.name,
                        "courseCode": course.course_code,
                        "category": course.category,
                        "regularFee": _money(course.regular_fee),
                        "totalEnrolled": course.total_enrolled or 0,
                        "activeStudents": course.active_enrollments or 0,
                        "completionRate": percentage(course.completed_enrollments or 0, course.total_enrolled or 0),
                        "rating": _money(course.rating_average),
                    }
                    for course in courses
                ),
                key=lambda item: item["totalEnrolled"],
                reverse=True,
            )

            categories: Dict[str, Dict[str, Any]] = {}
            for course in courses:
                bucket = categories.setdefault(course.category, {"count": 0, "totalEnrolled": 0, "ratings": []})
                bucket["count"] += 1
                bucket["totalEnrolled"] += course.total_enrolled or 0
                bucket["ratings"].append(_money(course.rating_average))
            by_category = sorted(
                (
                    {
                        "category": name,
                        "count": values["count"],
                        "totalEnrolled": values["totalEnrolled"],
                        "averageRating": round_half_up(mean(values["ratings"]), 2),
                    }
                    for name, values in categories.items()
                ),
                key=lambda item: item["totalEnrolled"],
                reverse=True,
            )

            completion: Dict[str, Dict[str, int]] = {}
            revenue: Dict[str, Dict[str, Any]] = {}
            for enrollment in self.enrollments.get_multi(limit=0):
                name = enrollment.course.name
                if enrollment.status in COMPLETION_STATUSES:
                    bucket = completion.setdefault(name, {"total": 0, "completed": 0, "dropped": 0, "active": 0})
                    bucket["total"] += 1
                    bucket[enrollment.status.value] += 1
                if _money(enrollment.fee_paid) > 0:
                    paid = revenue.setdefault(name, {"totalRevenue": 0.0, "totalFees": 0.0, "studentCount": 0})
                    paid["totalRevenue"] += _money(enrollment.fee_paid)
                    paid["totalFees"] += _money(enrollment.fee_total)
                    paid["studentCount"] += 1

            completion_stats = sorted(
                (
                    {
                        "name": name,
                        **values,
                        "completionRate": percentage(values["completed"], values["total"]),
                        "dropoutRate": percentage(values["dropped"], values["total"]),
                    }
                    for name, values in completion.items()
                ),
                key=lambda item: item["total"],
                reverse=True,
            )[:10]
            revenue_by_course = sorted(
                (
                    {
                        "name": name,
                        **values,
                        "collectionRate": percentage(values["totalRevenue"], values["totalFees"]),
                    }
                    for name, values in revenue.items()
                ),
                key=lambda item: item["totalRevenue"],
                reverse=True,
            )[:10]

            batch_stats: Dict[str, Dict[str, Any]] = {}
            for batch in self.batches.get_multi(limit=0):
                bucket = batch_stats.setdefault(batch.status.value, {"count": 0, "students": 0, "capacity": 0})
                bucket["count"] += 1
                bucket["students"] += batch.current_students or 0
                bucket["capacity"] += batch.max_students or 0
            for bucket in batch_stats.values():
                bucket["utilization"] = percentage(bucket["students"], bucket["capacity"])

            return ServiceResult.success(
                {
                    "coursePopularity": popularity[:10],
                    "byCategory": by_category,
                    "completionStats": completion_stats,
                    "revenueByCourse": revenue_by_course,
                    "batchStats": batch_stats,
                    "summary": {
                        "totalCourses": len(courses),
                        "activeCourses": sum(1 for c in courses if c.status == CourseStatus.ACTIVE),
                        "totalBatches": self.batches.count(),
                        "ongoingBatches": self.batches.count({"status": BatchStatus.ONGOING}),
                    },
                }
            )
        except Exception as e:
            return self._handle_exception(e, "course analytics")

    def enrollments_report(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> ServiceResult[Dict[str, Any]]:
        try:
            enrollments = self.enrollments.find_between("enrollment_date", start, end)
            leads = self.leads.find_between("created_at", start, end)

            total_leads = len(leads)
            contacted = sum(1 for lead in leads if lead.status in CONTACTED_LEAD_STATUSES)
            converted = sum(1 for lead in leads if lead.converted_to_student)

            by_course = _count_by(enrollments, lambda e: e.course.name)

            return ServiceResult.success(
                {
                    "summary": {
                        "totalEnrollments": len(enrollments),
                        "activeEnrollments": sum(1 for e in enrollments if e.status == EnrollmentStatus.ACTIVE),
                        "completedEnrollments": sum(
                            1 for e in enrollments if e.status == EnrollmentStatus.COMPLETED
                        ),
                    },
                    "monthlyTrend": _month_trend((e.enrollment_date for e in enrollments), cap=12),
                    "byStatus": _count_by(enrollments, lambda e: e.status),
                    "byCourse": sorted(
                        ({"course": name, "count": count} for name, count in by_course.items()),
                        key=lambda item: item["count"],
                        reverse=True,
                    )[:10],
                    "byType": _count_by(enrollments, lambda e: e.enrollment_type),
                    "conversionFunnel": {
                        "totalLeads": total_leads,
                        "contactedLeads": contacted,
                        "convertedLeads": converted,
                        "totalEnrollments": len(enrollments),
                        "rates": {
                            "leadToContact": percentage(contacted, total_leads),
                            "contactToConversion": percentage(converted, contacted),
                            "leadToEnrollment": percentage(len(enrollments), total_leads),
                        },
                    },
                    "filters": _range_filters(start, end),
                }
            )
        except Exception as e:
            return self._handle_exception(e, "enrollment analytics")

    # -------------------------------------------------------------------------
    # Leads
    # -------------------------------------------------------------------------

    def leads_report(
        self,
        actor: Principal,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> ServiceResult[Dict[str, Any]]:
        """Pipeline breakdowns, counselor performance and time to conversion."""
        try:
            require_role(actor, LEAD_ROLES)
            leads = self.leads.find_between("created_at", start, end)
            converted = [lead for lead in leads if lead.converted_to_student]

            monthly: Dict[str, Dict[str, int]] = {}
            for lead in leads:
                bucket = monthly.setdefault(DateTimeHelper.month_key(lead.created_at), {"count": 0, "converted": 0})
                bucket["count"] += 1
                bucket["converted"] += 1 if lead.converted_to_student else 0

            counselors: Dict[UUID, Dict[str, int]] = {}
            for lead in leads:
                if lead.assigned_to_id is None:
                    continue
                bucket = counselors.setdefault(lead.assigned_to_id, {"count": 0, "converted": 0})
                bucket["count"] += 1
                bucket["converted"] += 1 if lead.converted_to_student else 0
            by_counselor = []
            for user_id, values in counselors.items():
                user = self.users.get(user_id)
                if user is None:
                    continue
                by_counselor.append(
                    {
                        "counselor": user.username,
                        **values,
                        "conversionRate": percentage(values["converted"], values["count"]),
                    }
                )

            days = [
                (DateTimeHelper.ensure_aware(lead.converted_date) - DateTimeHelper.ensure_aware(lead.created_at)).total_seconds()
                / 86400
                for lead in converted
                if lead.converted_date and lead.created_at
            ]
            conversion_time = None
            if days:
                conversion_time = {
                    "averageDays": round_half_up(mean(days), 2),
                    "minDays": round_half_up(min(days), 2),
                    "maxDays": round_half_up(max(days), 2),
                    "medianDays": round_half_up(median(days), 2),
                }

            return ServiceResult.success(
                {
                    "summary": {
                        "totalLeads": len(leads),
                        "convertedLeads": len(converted),
                        "activeLeads": sum(1 for lead in leads if lead.status in OPEN_LEAD_STATUSES),
                        "conversionRate": percentage(len(converted), len(leads)),
                    },
                    "byStatus": _count_by(leads, lambda lead: lead.status),
                    "bySource": _count_by(leads, lambda lead: lead.source),
                    "monthlyTrend": [
                        {
                            "month": key,
                            **monthly[key],
                            "conversionRate": percentage(monthly[key]["converted"], monthly[key]["count"]),
                        }
                        for key in sorted(monthly)
                    ][:12],
                    "byCounselor": sorted(by_counselor, key=lambda item: item["count"], reverse=True),
                    "conversionTime": conversion_time,
                    "filters": _range_filters(start, end),
                }
            )
        except Exception as e:
            return self._handle_exception(e, "lead analytics")

    # -------------------------------------------------------------------------
    # Attendance and performance
    # -------------------------------------------------------------------------

    def attendance_report(
        self,
        actor: Principal,
        start: Optional[date] = None,
        end: Optional[date] = None,
        batch_id: Optional[UUID] = None,
    ) -> ServiceResult[Dict[str, Any]]:
        try:
            require_role(actor, ACADEMIC_ROLES)
            records = self.attendance.find_all({"batch_id": batch_id}, start, end)
            total = len(records)
            by_status = _count_by(records, lambda r: r.status)
            statuses = [record.status.value for record in records]
            present = sum(1 for status in statuses if status in ATTENDED_STATUSES)

            def rate_rows(key: Callable[[Any], str], label: str) -> List[Dict[str, Any]]:
                groups: Dict[str, List[str]] = defaultdict(list)
                for record in records:
                    groups[key(record)].append(record.status.value)
                rows = [
                    {
                        label: name,
                        "total": len(group),
                        "present": sum(1 for status in group if status in ATTENDED_STATUSES),
                        "absent": group.count(AttendanceStatus.ABSENT.value),
                        "late": group.count(AttendanceStatus.LATE.value),
                        "attendanceRate": attendance_percentage(group),
                    }
                    for name, group in groups.items()
                ]
                return sorted(rows, key=lambda item: item["attendanceRate"], reverse=True)

            by_batch = [
                {key: row[key] for key in ("batch", "total", "present", "absent", "attendanceRate")}
                for row in rate_rows(lambda r: r.batch.name, "batch")
            ]
            performance = [
                {key: row[key] for key in ("student", "total", "present", "late", "attendanceRate")}
                for row in rate_rows(lambda r: r.student.full_name, "student")
            ][:20]

            return ServiceResult.success(
                {
                    "summary": {
                        "totalRecords": total,
                        "presentCount": present,
                        "overallAttendanceRate": attendance_percentage(statuses),
                        "lateCount": by_status.get(AttendanceStatus.LATE.value, 0),
                        "absentCount": by_status.get(AttendanceStatus.ABSENT.value, 0),
                    },
                    "byStatus": {
                        status: {"count": count, "percentage": percentage(count, total)}
                        for status, count in by_status.items()
                    },
                    "byBatch": by_batch,
                    "dailyTrend": sorted(
                        rate_rows(lambda r: r.date.isoformat(), "date"),
                        key=lambda item: item["date"],
                    )[:30],
                    "studentPerformance": performance,
                    "filters": {
                        "startDate": start.isoformat() if start else None,
                        "endDate": end.isoformat() if end else None,
                        "batch": str(batch_id) if batch_id else None,
                    },
                }
            )
        except Exception as e:
            return self._handle_exception(e, "attendance analytics")

    def performance_report(
        self,
        actor: Principal,
        course_id: Optional[UUID] = None,
        batch_id: Optional[UUID] = None,
    ) -> ServiceResult[Dict[str, Any]]:
        """Scores by course, grade distribution, assignment completion and attendance correlation."""
        try:
            require_role(actor, ACADEMIC_ROLES)
            enrollments = self.enrollments.get_multi(
                limit=0, filters={"course_id": course_id, "batch_id": batch_id}
            )
            graded = [e for e in enrollments if _money((e.grades or {}).get("total")) > 0]

            by_course: Dict[str, List[Any]] = defaultdict(list)
            for enrollment in graded:
                by_course[enrollment.course.name].append(enrollment)
            performance_by_course = []
            for name, items in by_course.items():
                scores = [_money(e.grades["total"]) for e in items]
                ranked = sorted(items, key=lambda e: _money(e.grades["total"]), reverse=True)
                performance_by_course.append(
                    {
                        "course": name,
                        "studentCount": len(items),
                        "averageScore": round_half_up(mean(scores), 2),
                        "maxScore": max(scores),
                        "minScore": min(scores),
                        "scoreRange": max(scores) - min(scores),
                        "topPerformers": [
                            {
                                "name": e.student.full_name,
                                "score": _money(e.grades["total"]),
                                "grade": e.grades.get("grade"),
                            }
                            for e in ranked[:5]
                        ],
                    }
                )
            performance_by_course.sort(key=lambda item: item["averageScore"], reverse=True)

            grade_counts = _count_by(enrollments, lambda e: (e.grades or {}).get("grade"))

            total_assignments = sum(len(e.assignments or []) for e in enrollments)
            completed_assignments = sum(
                1 for e in enrollments for item in e.assignments or [] if item.get("status") == "graded"
            )
            assignment_stats = None
            if enrollments:
                assignment_stats = {
                    "totalAssignments": total_assignments,
                    "completedAssignments": completed_assignments,
                    "completionRate": percentage(completed_assignments, total_assignments),
                    "averageAssignmentsPerStudent": round_half_up(total_assignments / len(enrollments), 2),
                }

            correlation = []
            rated = [
                (attendance_percentage(item.get("status") for item in e.attendance), _money(e.grades["total"]))
                for e in graded
                if e.attendance
            ]
            for low, high, label in ATTENDANCE_BUCKETS:
                scores = [score for rate, score in rated if low <= rate < high]
                if not scores:
                    continue
                correlation.append(
                    {
                        "range": label,
                        "count": len(scores),
                        "averageScore": round_half_up(mean(scores), 2),
                        "minScore": min(scores),
                        "maxScore": max(scores),
                    }
                )

            return ServiceResult.success(
                {
                    "performanceByCourse": performance_by_course,
                    "gradeDistribution": dict(sorted(grade_counts.items())),
                    "assignmentStats": assignment_stats,
                    "attendancePerformanceCorrelation": correlation,
                    "summary": {
                        "totalStudentsWithGrades": len(graded),
                        "averageOverallScore": round_half_up(
                            mean(_money(e.grades["total"]) for e in graded), 2
                        ),
                    },
                    "filters": {
                        "course": str(course_id) if course_id else None,
                        "batch": str(batch_id) if batch_id else None,
                    },
                }
            )
        except Exception as e:
            return self._handle_exception(e, "performance analytics")
