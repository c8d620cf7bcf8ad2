"""
Unit Tests for helper modules
Tests for: assignment submissions, email notifications, progress, date helpers
"""
from datetime import date, timedelta
from uuid import uuid4

import pytest

from backoffice.models.base.enums import ContentType, SubmissionStatus
from backoffice.models.content.content import Content
from backoffice.services.common.bookkeeping import Bookkeeper
from backoffice.services.common.errors import NotFoundError, ValidationError
from backoffice.services.common.submissions import grade_submission, submit_assignment
from backoffice.utils.datetime_utils import AgeCalculator, DateTimeHelper, utcnow
from backoffice.utils.email import render_email, send_email


def assignment(due_in: timedelta = timedelta(days=7)) -> Content:
    return Content(
        title="Loops worksheet",
        type=ContentType.ASSIGNMENT,
        course_id=uuid4(),
        assignment_details={"dueDate": (utcnow() + due_in).isoformat(), "maxMarks": 100},
        submissions=[],
        submissions_count=0,
    )


class TestSubmissions:
    """Test assignment submissions stored on content"""

    def test_submit_before_due_date(self):
        content = assignment()
        student_id = uuid4()

        submission = submit_assignment(content, student_id, {"textSubmission": "done"})

        assert submission["status"] == SubmissionStatus.SUBMITTED.value
        assert submission["student"] == str(student_id)
        assert content.submissions_count == 1

    def test_late_submission(self):
        content = assignment(due_in=timedelta(days=-1))

        submission = submit_assignment(content, uuid4(), {})

        assert submission["status"] == SubmissionStatus.LATE.value

    def test_resubmission_replaces_entry(self):
        content = assignment()
        student_id = uuid4()
        submit_assignment(content, student_id, {"textSubmission": "draft"})

        submit_assignment(content, student_id, {"textSubmission": "final"})

        assert len(content.submissions) == 1
        assert content.submissions[0]["textSubmission"] == "final"
        assert content.submissions_count == 1

    def test_only_assignments_accept_submissions(self):
        content = assignment()
        content.type = ContentType.DOCUMENT

        with pytest.raises(ValidationError):
            submit_assignment(content, uuid4(), {})

    def test_grading_refreshes_average(self):
        content = assignment()
        first, second = uuid4(), uuid4()
        submit_assignment(content, first, {})
        submit_assignment(content, second, {})

        grade_submission(content, first, 70, "Good", uuid4())
        graded = grade_submission(content, second, 81, None, uuid4())

        assert graded["status"] == SubmissionStatus.GRADED.value
        assert content.avg_score == 76

    def test_grading_without_submission(self):
        with pytest.raises(NotFoundError):
            grade_submission(assignment(), uuid4(), 50, None, uuid4())


class TestEmail:
    """Test notification emails"""

    def test_not_sent_when_unconfigured(self):
        result = send_email("student@gmail.com", "student-admission", {"name": "Asha"})

        assert result == {"success": False, "message": "Email is not configured"}

    def test_skipped_without_recipient(self):
        assert send_email(None, "student-admission", {})["success"] is False

    def test_render_fills_known_fields(self):
        rendered = render_email("student-admission", {"name": "Asha", "studentId": "STU000001"})

        assert "STU000001" in rendered["body"]


class TestProgress:
    """Test module progress percentage"""

    def test_progress_rounds_half_up(self):
        assert Bookkeeper.progress_percentage(1, 8) == 13

    def test_progress_is_not_capped(self):
        assert Bookkeeper.progress_percentage(5, 4) == 125

    def test_progress_without_curriculum(self):
        assert Bookkeeper.progress_percentage(3, 0) == 0


class TestDateHelpers:
    """Test report bucketing"""

    @pytest.mark.parametrize(
        "birth_date,bucket",
        [
            (None, "unknown"),
            (date(2010, 6, 1), "under18"),
            (date(2000, 6, 2), "18-25"),
            (date(1990, 1, 1), "26-35"),
            (date(1970, 1, 1), "36+"),
        ],
    )
    def test_age_bucket(self, birth_date, bucket):
        assert AgeCalculator.age_bucket(birth_date, date(2024, 6, 1)) == bucket

    def test_birthday_not_yet_reached(self):
        assert AgeCalculator.calculate_age(date(2000, 6, 2), date(2024, 6, 1)) == 23

    @pytest.mark.parametrize(
        "group_by,key",
        [("day", "2024-03-05"), ("week", "2024-W10"), ("month", "2024-03"), ("year", "2024"), ("quarter", "2024-03")],
    )
    def test_period_key(self, group_by, key):
        assert DateTimeHelper.period_key(date(2024, 3, 5), group_by) == key
