from .course import (
    CourseCreate,
    CourseResponse,
    CourseUpdate,
    CurriculumModule,
    ReviewCreate,
)

__all__ = [
    "CourseCreate",
    "CourseResponse",
    "CourseUpdate",
    "CurriculumModule",
    "ReviewCreate",
]
