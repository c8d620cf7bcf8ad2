from .student import (
    AcademicRecord,
    Address,
    DocumentCreate,
    EmergencyContact,
    GuardianDetails,
    Installment,
    StudentCreate,
    StudentResponse,
    StudentUpdate,
)

__all__ = [
    "AcademicRecord",
    "Address",
    "DocumentCreate",
    "EmergencyContact",
    "GuardianDetails",
    "Installment",
    "StudentCreate",
    "StudentResponse",
    "StudentUpdate",
]
