from backoffice.repositories.enrollment.enrollment_repository import EnrollmentRepository

__all__ = ["EnrollmentRepository"]
