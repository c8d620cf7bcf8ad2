from .attendance import (
    AttendanceCreate,
    AttendanceReportRequest,
    AttendanceResponse,
    AttendanceUpdate,
    StudentAttendanceMark,
)

__all__ = [
    "AttendanceCreate",
    "AttendanceReportRequest",
    "AttendanceResponse",
    "AttendanceUpdate",
    "StudentAttendanceMark",
]
