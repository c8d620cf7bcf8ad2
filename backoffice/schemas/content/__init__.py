from .content import (
    AssignmentDetails,
    AssignmentSubmission,
    ContentCreate,
    ContentModule,
    ContentResponse,
    ContentShare,
    ContentUpdate,
    SubmissionGrade,
)

__all__ = [
    "AssignmentDetails",
    "AssignmentSubmission",
    "ContentCreate",
    "ContentModule",
    "ContentResponse",
    "ContentShare",
    "ContentUpdate",
    "SubmissionGrade",
]
