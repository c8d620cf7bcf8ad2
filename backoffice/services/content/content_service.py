"""
Content service: course material distribution.

Handles:
- Content CRUD and file uploads
- Access checks for public, private and restricted content
- Sharing with students and batches
- Course and student content views
"""

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set
from uuid import UUID

from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile

from backoffice.models.base.enums import (
    AccessType,
    ContentStatus,
    ContentType,
    EnrollmentStatus,
    UserRole,
)
from backoffice.models.content.content import Content
from backoffice.repositories.base.base_repository import Page
from backoffice.repositories.content.content_repository import ContentRepository
from backoffice.repositories.course.course_repository import CourseRepository
from backoffice.repositories.enrollment.enrollment_repository import EnrollmentRepository
from backoffice.repositories.student.student_repository import StudentRepository
from backoffice.schemas.common.pagination import ListParams
from backoffice.schemas.content import ContentCreate, ContentShare, ContentUpdate
from backoffice.services.base import BaseService, ServiceResult
from backoffice.services.common.errors import NotFoundError, ValidationError
from backoffice.services.common.permissions import PermissionDenied, Principal
from backoffice.utils import file_handler

# These roles see every content item
FULL_ACCESS_ROLES = (UserRole.ADMIN, UserRole.TRAINER)

# Grouping keys for course content, in display order
TYPE_GROUPS = {
    ContentType.DOCUMENT: "documents",
    ContentType.VIDEO: "videos",
    ContentType.ASSIGNMENT: "assignments",
    ContentType.QUIZ: "quizzes",
    ContentType.RESOURCE: "resources",
    ContentType.LINK: "links",
}


def _merge(existing: Iterable[str], added: Iterable[UUID]) -> List[str]:
    merged = list(existing or [])
    for item in added:
        if str(item) not in merged:
            merged.append(str(item))
    return merged


class ContentService(BaseService[Content, ContentRepository]):
    """Course content and its access rules."""

    resource_name = "Content"

    def __init__(self, db_session: Session):
        super().__init__(ContentRepository(db_session), db_session)
        self.courses = CourseRepository(db_session)
        self.students = StudentRepository(db_session)
        self.enrollments = EnrollmentRepository(db_session)

    # -------------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------------

    @staticmethod
    def student_ids_for(actor: Principal) -> List[str]:
        """Student records linked to the principal (student accounts only)."""
        student_id = (actor.metadata or {}).get("student_id")
        return [str(student_id)] if student_id else []

    def can_access(
        self,
        content: Content,
        actor: Principal,
        student_ids: Optional[Iterable[str]] = None,
    ) -> bool:
        """
        Decide whether the principal may see a content item.

        public is open to everyone; private needs the user or one of the
        given students on the allow lists; restricted also admits students
        actively enrolled in an allowed batch.
        """
        if actor.has_any_role(FULL_ACCESS_ROLES):
            return True
        if content.access_type == AccessType.PUBLIC:
            return True

        if student_ids is None:
            student_ids = self.student_ids_for(actor)
        students: Set[str] = {str(student) for student in student_ids}
        if str(actor.user_id) in (content.allowed_users or []):
            return True
        return self._students_allowed(content, students)

    def _students_allowed(self, content: Content, students: Set[str]) -> bool:
        if content.access_type == AccessType.PUBLIC:
            return True
        if students & set(content.allowed_students or []):
            return True
        if content.access_type != AccessType.RESTRICTED:
            return False
        return any(
            self.enrollments.active_in_batch(UUID(student), UUID(batch)) is not None
            for student in students
            for batch in content.allowed_batches or []
        )

    def _ensure_access(self, content: Content, actor: Principal, action: str) -> None:
        if not self.can_access(content, actor):
            raise PermissionDenied(
                f"You do not have permission to {action} this content",
                user_id=actor.user_id,
                role=actor.role,
            )

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_content(
        self,
        params: ListParams,
        actor: Principal,
        content_type: Optional[ContentType] = None,
        course_id: Optional[UUID] = None,
        status: Optional[ContentStatus] = None,
    ) -> ServiceResult[Page[Content]]:
        """
        List content. Users outside the full-access roles only get the
        items they can access.
        """
        filters = {"type": content_type, "course_id": course_id, "status": status}
        try:
            if actor.has_any_role(FULL_ACCESS_ROLES):
                page = self.repository.list_page(filters=filters, search=params.search, **params.paging())
                return ServiceResult.success(page)

            student_ids = self.student_ids_for(actor)
            visible = [
                item
                for item in self.repository.filtered(filters, params.search)
                if self.can_access(item, actor, student_ids)
            ]
            start = (params.page - 1) * params.limit
            page = Page(
                items=visible[start:start + params.limit],
                total=len(visible),
                page=params.page,
                limit=params.limit,
            )
            return ServiceResult.success(page)
        except Exception as e:
            return self._handle_exception(e, "list content")

    def get_content(self, content_id: UUID, actor: Principal) -> ServiceResult[Content]:
        """Fetch an item the principal can access and count the view."""
        try:
            with self.transaction():
                content = self._get_or_raise(content_id)
                self._ensure_access(content, actor, "access")
                content.views = (content.views or 0) + 1
            return ServiceResult.success(content)
        except Exception as e:
            return self._handle_exception(e, "get content", content_id)

    def course_content(self, course_id: UUID, actor: Principal) -> ServiceResult[Dict[str, Any]]:
        """Published content of a course grouped by type."""
        try:
            course = self._get_or_raise(course_id, self.courses, "Course")
            student_ids = self.student_ids_for(actor)
            items = [
                item
                for item in self.repository.published_for_courses([course_id])
                if self.can_access(item, actor, student_ids)
            ]

            grouped: Dict[str, List[Content]] = {key: [] for key in TYPE_GROUPS.values()}
            for item in items:
                grouped[TYPE_GROUPS[item.type]].append(item)

            return ServiceResult.success(
                {
                    "course": {"id": course.course_code, "name": course.name},
                    "content": grouped,
                    "stats": {
                        "total": len(items),
                        "byType": {key: len(values) for key, values in grouped.items()},
                    },
                }
            )
        except Exception as e:
            return self._handle_exception(e, "get course content", course_id)

    def student_content(self, student_id: UUID) -> ServiceResult[Dict[str, Any]]:
        """Published content from the student's active courses, grouped by course name."""
        try:
            student = self._get_or_raise(student_id, self.students, "Student")
            enrollments = self.enrollments.for_student(student_id, [EnrollmentStatus.ACTIVE])
            courses = {enrollment.course_id: enrollment.course for enrollment in enrollments}

            by_course: Dict[str, List[Content]] = {}
            for item in self.repository.published_for_courses(list(courses)):
                if not self._students_allowed(item, {str(student_id)}):
                    continue
                by_course.setdefault(courses[item.course_id].name, []).append(item)

            return ServiceResult.success(
                {
                    "student": {"id": student.student_id, "name": student.full_name},
                    "enrolledCourses": [
                        {"id": course.course_code, "name": course.name} for course in courses.values()
                    ],
                    "contentByCourse": by_course,
                    "stats": {
                        "totalContent": sum(len(items) for items in by_course.values()),
                        "coursesWithContent": len(by_course),
                    },
                }
            )
        except Exception as e:
            return self._handle_exception(e, "get student content", student_id)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def create_content(self, data: ContentCreate, actor: Principal) -> ServiceResult[Content]:
        self._logger.info(f"Creating content {data.title}", extra={"type": data.type.value})
        try:
            with self.transaction():
                self._get_or_raise(data.course_id, self.courses, "Course")
                content = Content(**data.column_values())
                content.stamp(actor.user_id, created=True)
                self.repository.create(content)

            self._log_operation("create content", content.id, {"course_id": str(data.course_id)})
            return ServiceResult.success(content, message="Content created successfully")
        except Exception as e:
            return self._handle_exception(e, "create content", data.title)

    def update_content(self, content_id: UUID, data: ContentUpdate, actor: Principal) -> ServiceResult[Content]:
        try:
            with self.transaction():
                content = self._get_or_raise(content_id)
                changes = data.changes()
                if changes.get("type", content.type) == ContentType.LINK and not changes.get("url", content.url):
                    raise ValidationError("URL is required for link content", field="url")
                self.repository.update(content, changes)
                content.stamp(actor.user_id)

            return ServiceResult.success(content, message="Content updated successfully")
        except Exception as e:
            return self._handle_exception(e, "update content", content_id)

    def delete_content(self, content_id: UUID) -> ServiceResult[bool]:
        """Delete a content item and its stored file."""
        try:
            with self.transaction():
                content = self._get_or_raise(content_id)
                stored = (content.file or {}).get("path")
                self.repository.delete(content)

            if stored:
                try:
                    file_handler.delete_file(stored)
                except file_handler.FileHandlerError as e:
                    self._logger.warning(f"Content file not removed: {e}", extra={"path": stored})

            self._log_operation("delete content", content_id)
            return ServiceResult.success(True, message="Content deleted successfully")
        except Exception as e:
            return self._handle_exception(e, "delete content", content_id)

    def upload_file(self, file: Optional[UploadFile]) -> ServiceResult[Dict[str, Any]]:
        try:
            try:
                stored = file_handler.upload(file)
            except file_handler.FileHandlerError as e:
                raise ValidationError(str(e), field="file") from e
            self._log_operation("upload content file", stored["filename"], {"size": stored["size"]})
            return ServiceResult.success(stored, message="File uploaded successfully")
        except Exception as e:
            return self._handle_exception(e, "upload content file")

    def share_content(self, content_id: UUID, data: ContentShare, actor: Principal) -> ServiceResult[Dict[str, int]]:
        """Restrict the item and add students and batches to its allow lists."""
        try:
            with self.transaction():
                content = self._get_or_raise(content_id)
                content.access_type = AccessType.RESTRICTED
                content.allowed_students = _merge(content.allowed_students, data.allowed_students)
                content.allowed_batches = _merge(content.allowed_batches, data.allowed_batches)
                content.stamp(actor.user_id)

            return ServiceResult.success(
                {
                    "allowedStudents": len(content.allowed_students),
                    "allowedBatches": len(content.allowed_batches),
                },
                message="Content shared successfully",
            )
        except Exception as e:
            return self._handle_exception(e, "share content", content_id)

    def download(self, content_id: UUID, actor: Principal) -> ServiceResult[Dict[str, Any]]:
        """
        Resolve the stored file of an accessible item and count the download.

        Returns:
            ServiceResult with `path`, `filename` and `mimetype`
        """
        try:
            with self.transaction():
                content = self._get_or_raise(content_id)
                self._ensure_access(content, actor, "download")

                stored = (content.file or {}).get("path")
                if not stored:
                    raise NotFoundError("File", content_id, message="File not found for this content")
                try:
                    path = file_handler.resolve_path(stored)
                except file_handler.FileHandlerError as e:
                    raise NotFoundError("File", content_id, message="File not found on server") from e
                if not Path(path).is_file():
                    raise NotFoundError("File", content_id, message="File not found on server")

                content.downloads = (content.downloads or 0) + 1

            return ServiceResult.success(
                {
                    "path": str(path),
                    "filename": content.file.get("originalName") or path.name,
                    "mimetype": content.file.get("mimetype"),
                }
            )
        except Exception as e:
            return self._handle_exception(e, "download content", content_id)
