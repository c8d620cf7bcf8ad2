"""
Analytics API

Read-only dashboards and reports. Revenue and payment views are limited
to admins and employees, lead views to admins and counselors, attendance
and performance views to admins and trainers.
"""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from backoffice.api import deps
from backoffice.api.responses import success
from backoffice.models.base.enums import UserRole
from backoffice.services.analytics import AnalyticsService
from backoffice.services.common.permissions import Principal

router = APIRouter(prefix="/analytics", tags=["Analytics"])

REVENUE_VIEWERS = (UserRole.ADMIN, UserRole.EMPLOYEE)
LEAD_VIEWERS = (UserRole.ADMIN, UserRole.COUNSELOR)
ACADEMIC_VIEWERS = (UserRole.ADMIN, UserRole.TRAINER)


@router.get("/dashboard")
def dashboard(
    range_name: str = Query("month", alias="range"),
    principal: Principal = Depends(deps.get_current_principal),
    service: AnalyticsService = Depends(deps.get_analytics_service),
):
    return success(service.dashboard(range_name))


@router.get("/revenue")
def revenue(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    group_by: str = Query("month", alias="groupBy"),
    principal: Principal = Depends(deps.require_roles(*REVENUE_VIEWERS)),
    service: AnalyticsService = Depends(deps.get_analytics_service),
):
    return success(service.revenue_report(principal, start_date, end_date, group_by))


@router.get("/students")
def students(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    principal: Principal = Depends(deps.get_current_principal),
    service: AnalyticsService = Depends(deps.get_analytics_service),
):
    return success(service.students_report(start_date, end_date))


@router.get("/courses")
def courses(
    principal: Principal = Depends(deps.get_current_principal),
    service: AnalyticsService = Depends(deps.get_analytics_service),
):
    return success(service.courses_report())


@router.get("/enrollments")
def enrollments(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    principal: Principal = Depends(deps.get_current_principal),
    service: AnalyticsService = Depends(deps.get_analytics_service),
):
    return success(service.enrollments_report(start_date, end_date))


@router.get("/leads")
def leads(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    principal: Principal = Depends(deps.require_roles(*LEAD_VIEWERS)),
    service: AnalyticsService = Depends(deps.get_analytics_service),
):
    return success(service.leads_report(principal, start_date, end_date))


@router.get("/payments")
def payments(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    principal: Principal = Depends(deps.require_roles(*REVENUE_VIEWERS)),
    service: AnalyticsService = Depends(deps.get_analytics_service),
):
    return success(service.payments_report(principal, start_date, end_date))


@router.get("/attendance")
def attendance(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    batch_id: Optional[UUID] = Query(None, alias="batch"),
    principal: Principal = Depends(deps.require_roles(*ACADEMIC_VIEWERS)),
    service: AnalyticsService = Depends(deps.get_analytics_service),
):
    return success(service.attendance_report(principal, start_date, end_date, batch_id))


@router.get("/performance")
def performance(
    course_id: Optional[UUID] = Query(None, alias="course"),
    batch_id: Optional[UUID] = Query(None, alias="batch"),
    principal: Principal = Depends(deps.require_roles(*ACADEMIC_VIEWERS)),
    service: AnalyticsService = Depends(deps.get_analytics_service),
):
    return success(service.performance_report(principal, course_id, batch_id))
