from backoffice.models.attendance.attendance import Attendance

__all__ = ["Attendance"]
