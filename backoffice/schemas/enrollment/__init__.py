from .enrollment import (
    EnrollmentAttendanceMark,
    EnrollmentCreate,
    EnrollmentResponse,
    EnrollmentUpdate,
    Grades,
    ProgressUpdate,
    StudentEnrollmentCreate,
)

__all__ = [
    "EnrollmentAttendanceMark",
    "EnrollmentCreate",
    "EnrollmentResponse",
    "EnrollmentUpdate",
    "Grades",
    "ProgressUpdate",
    "StudentEnrollmentCreate",
]
