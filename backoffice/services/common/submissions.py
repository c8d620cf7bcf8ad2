"""
Assignment submission bookkeeping on content items.

Submissions are stored on the content row, one per student. Both the
content and enrollment services go through these helpers.
"""

from typing import Any, Dict, Optional
from uuid import UUID

from backoffice.models.base.enums import ContentType, SubmissionStatus
from backoffice.models.content.content import Content
from backoffice.services.common.errors import NotFoundError, ValidationError
from backoffice.services.common.metrics import mean, round_half_up
from backoffice.utils.datetime_utils import DateTimeHelper, utcnow


def find_submission(content: Content, student_id: UUID) -> Optional[Dict[str, Any]]:
    for submission in content.submissions or []:
        if submission.get("student") == str(student_id):
            return submission
    return None


def submit_assignment(content: Content, student_id: UUID, values: Dict[str, Any]) -> Dict[str, Any]:
    """
    Record (or replace) a student's submission.

    The status is `late` when submitted after the due date. The
    submission counter only moves for a student's first submission.

    Raises:
        ValidationError: content is not an assignment
    """
    if content.type != ContentType.ASSIGNMENT:
        raise ValidationError("Only assignments can be submitted", field="type")

    submitted_at = utcnow()
    due = DateTimeHelper.parse_datetime((content.assignment_details or {}).get("dueDate"))
    status = SubmissionStatus.LATE if due and submitted_at > due else SubmissionStatus.SUBMITTED

    submission = {
        "student": str(student_id),
        "submittedAt": submitted_at.isoformat(),
        "file": values.get("file"),
        "textSubmission": values.get("textSubmission"),
        "marks": None,
        "feedback": None,
        "gradedBy": None,
        "gradedAt": None,
        "status": status.value,
    }

    existing = find_submission(content, student_id)
    others = [dict(item) for item in content.submissions or [] if item.get("student") != str(student_id)]
    content.submissions = [*others, submission]
    if existing is None:
        content.submissions_count = (content.submissions_count or 0) + 1
    return submission


def grade_submission(
    content: Content,
    student_id: UUID,
    marks: float,
    feedback: Optional[str],
    graded_by: UUID,
) -> Dict[str, Any]:
    """
    Grade a student's submission and refresh the average score.

    Raises:
        NotFoundError: the student has not submitted
    """
    existing = find_submission(content, student_id)
    if existing is None:
        raise NotFoundError("Submission", student_id)

    graded = {
        **existing,
        "marks": marks,
        "feedback": feedback,
        "gradedBy": str(graded_by),
        "gradedAt": utcnow().isoformat(),
        "status": SubmissionStatus.GRADED.value,
    }
    content.submissions = [
        graded if item.get("student") == str(student_id) else dict(item)
        for item in content.submissions or []
    ]

    scores = [
        item.get("marks") or 0
        for item in content.submissions
        if item.get("status") == SubmissionStatus.GRADED.value
    ]
    content.avg_score = round_half_up(mean(scores)) if scores else 0
    return graded
