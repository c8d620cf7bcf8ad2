"""
Database enums shared by models and schemas.

Values are stored as their lowercase string form.
"""

import enum
from typing import Type

from sqlalchemy import Enum as SQLEnum


def enum_type(enum_cls: Type[enum.Enum]) -> SQLEnum:
    """Portable non-native enum column storing member values."""
    return SQLEnum(
        enum_cls,
        native_enum=False,
        length=50,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )


class UserRole(str, enum.Enum):
    """User role enumeration."""
    ADMIN = "admin"
    EMPLOYEE = "employee"
    COUNSELOR = "counselor"
    TRAINER = "trainer"
    STUDENT = "student"


class UserStatus(str, enum.Enum):
    """User account status."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class Gender(str, enum.Enum):
    """Gender enumeration."""
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class StudentStatus(str, enum.Enum):
    """Student lifecycle status."""
    ACTIVE = "active"
    ALUMNI = "alumni"
    DROPPED = "dropped"
    SUSPENDED = "suspended"
    TRANSFERRED = "transferred"
    PROBATION = "probation"


class AdmissionType(str, enum.Enum):
    """How the student was admitted."""
    DIRECT = "direct"
    LEAD_CONVERSION = "lead_conversion"
    ONLINE = "online"
    REFERENCE = "reference"
    CORPORATE = "corporate"


class InstallmentStatus(str, enum.Enum):
    """Fee installment status."""
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    WAIVED = "waived"
    PARTIAL = "partial"


class DurationUnit(str, enum.Enum):
    """Course duration unit."""
    HOURS = "hours"
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"


class CourseStatus(str, enum.Enum):
    """Course availability status."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    UPCOMING = "upcoming"
    DISCONTINUED = "discontinued"


class BatchStatus(str, enum.Enum):
    """Batch scheduling status."""
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RosterStatus(str, enum.Enum):
    """Status of a student on a batch roster."""
    ACTIVE = "active"
    COMPLETED = "completed"
    DROPPED = "dropped"
    TRANSFERRED = "transferred"


class SessionStatus(str, enum.Enum):
    """Batch session status."""
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class EnrollmentType(str, enum.Enum):
    """Enrollment track."""
    REGULAR = "regular"
    FAST_TRACK = "fast_track"
    WEEKEND = "weekend"
    ONLINE = "online"
    CORPORATE = "corporate"


class EnrollmentStatus(str, enum.Enum):
    """Enrollment lifecycle status."""
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    DROPPED = "dropped"
    SUSPENDED = "suspended"
    TRANSFERRED = "transferred"


class PaymentMode(str, enum.Enum):
    """Payment instrument."""
    CASH = "cash"
    CHEQUE = "cheque"
    ONLINE = "online"
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    UPI = "upi"
    OTHER = "other"


class PaymentStatus(str, enum.Enum):
    """Payment lifecycle status."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"


class PaymentFor(str, enum.Enum):
    """What the payment covers."""
    TUITION = "tuition"
    REGISTRATION = "registration"
    EXAM = "exam"
    CERTIFICATE = "certificate"
    LIBRARY = "library"
    OTHER = "other"


class AttendanceStatus(str, enum.Enum):
    """Attendance mark."""
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    LEAVE = "leave"


class LeadSource(str, enum.Enum):
    """Lead acquisition channel."""
    WEBSITE = "website"
    REFERRAL = "referral"
    WALK_IN = "walk_in"
    SOCIAL_MEDIA = "social_media"
    CAMPAIGN = "campaign"
    OTHER = "other"


class LeadStatus(str, enum.Enum):
    """Lead pipeline status."""
    NEW = "new"
    CONTACTED = "contacted"
    FOLLOW_UP = "follow_up"
    QUALIFIED = "qualified"
    CONVERTED = "converted"
    LOST = "lost"
    NOT_INTERESTED = "not_interested"


class CommunicationType(str, enum.Enum):
    """Lead communication channel."""
    CALL = "call"
    EMAIL = "email"
    MEETING = "meeting"
    MESSAGE = "message"
    WHATSAPP = "whatsapp"


class ContentType(str, enum.Enum):
    """Learning content kind."""
    DOCUMENT = "document"
    VIDEO = "video"
    LINK = "link"
    ASSIGNMENT = "assignment"
    QUIZ = "quiz"
    RESOURCE = "resource"


class AccessType(str, enum.Enum):
    """Content visibility."""
    PUBLIC = "public"
    PRIVATE = "private"
    RESTRICTED = "restricted"


class ContentStatus(str, enum.Enum):
    """Content publication status."""
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class SubmissionStatus(str, enum.Enum):
    """Assignment submission status."""
    SUBMITTED = "submitted"
    GRADED = "graded"
    LATE = "late"
    REJECTED = "rejected"
