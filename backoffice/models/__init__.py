"""
Database models for the institute back-office.

Importing this package registers every table on Base.metadata.
"""

from backoffice.models.base import Base, BaseModel
from backoffice.models.core import Counter
from backoffice.models.user import User
from backoffice.models.student import Student
from backoffice.models.course import Course
from backoffice.models.batch import Batch, BatchSession, BatchStudent
from backoffice.models.enrollment import Enrollment
from backoffice.models.payment import Payment
from backoffice.models.attendance import Attendance
from backoffice.models.lead import Lead
from backoffice.models.content import Content

__all__ = [
    "Base",
    "BaseModel",
    "Counter",
    "User",
    "Student",
    "Course",
    "Batch",
    "BatchSession",
    "BatchStudent",
    "Enrollment",
    "Payment",
    "Attendance",
    "Lead",
    "Content",
]
