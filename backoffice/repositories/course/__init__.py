from backoffice.repositories.course.course_repository import CourseRepository

__all__ = ["CourseRepository"]
