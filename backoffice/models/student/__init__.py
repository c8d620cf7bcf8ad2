from backoffice.models.student.student import Student

__all__ = ["Student"]
