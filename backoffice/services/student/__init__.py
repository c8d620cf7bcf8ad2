from .student_service import StudentService

__all__ = ["StudentService"]
