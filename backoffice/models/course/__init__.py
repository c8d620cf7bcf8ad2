from backoffice.models.course.course import Course

__all__ = ["Course"]
