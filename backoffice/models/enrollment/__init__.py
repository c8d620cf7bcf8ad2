from backoffice.models.enrollment.enrollment import Enrollment

__all__ = ["Enrollment"]
