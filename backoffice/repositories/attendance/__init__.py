from backoffice.repositories.attendance.attendance_repository import AttendanceRepository

__all__ = ["AttendanceRepository"]
