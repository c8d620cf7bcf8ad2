"""
Content API

Course material records, file upload and download, and sharing with
students and batches. Reads are filtered by the caller's access.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from fastapi.responses import FileResponse

from backoffice.api import deps
from backoffice.api.responses import message_only, paginated, success, unwrap
from backoffice.models.base.enums import ContentStatus, ContentType, UserRole
from backoffice.schemas.common.pagination import ListParams
from backoffice.schemas.content import ContentCreate, ContentShare, ContentUpdate
from backoffice.services.common.permissions import Principal
from backoffice.services.content import ContentService

router = APIRouter(prefix="/content", tags=["Content"])

MANAGERS = (UserRole.ADMIN, UserRole.TRAINER)


@router.post("/upload", status_code=status.HTTP_201_CREATED)
def upload_file(
    file: Optional[UploadFile] = File(None),
    principal: Principal = Depends(deps.require_permission("content", "create", *MANAGERS)),
    service: ContentService = Depends(deps.get_content_service),
):
    return success(service.upload_file(file))


@router.get("/course/{course_id}")
def course_content(
    course_id: UUID,
    principal: Principal = Depends(deps.require_permission("content", "view")),
    service: ContentService = Depends(deps.get_content_service),
):
    return success(service.course_content(course_id, principal))


@router.get("/student/{student_id}")
def student_content(
    student_id: UUID,
    principal: Principal = Depends(deps.require_permission("content", "view")),
    service: ContentService = Depends(deps.get_content_service),
):
    return success(service.student_content(student_id))


@router.get("")
def list_content(
    params: ListParams = Depends(deps.get_list_params),
    content_type: Optional[ContentType] = Query(None, alias="type"),
    course_id: Optional[UUID] = Query(None, alias="course"),
    content_status: Optional[ContentStatus] = Query(None, alias="status"),
    principal: Principal = Depends(deps.require_permission("content", "view")),
    service: ContentService = Depends(deps.get_content_service),
):
    return paginated(
        service.list_content(params, principal, content_type, course_id, content_status)
    )


@router.post("", status_code=status.HTTP_201_CREATED)
def create_content(
    data: ContentCreate,
    principal: Principal = Depends(deps.require_permission("content", "create", *MANAGERS)),
    service: ContentService = Depends(deps.get_content_service),
):
    return success(service.create_content(data, principal))


@router.get("/{content_id}")
def get_content(
    content_id: UUID,
    principal: Principal = Depends(deps.require_permission("content", "view")),
    service: ContentService = Depends(deps.get_content_service),
):
    return success(service.get_content(content_id, principal))


@router.put("/{content_id}")
def update_content(
    content_id: UUID,
    data: ContentUpdate,
    principal: Principal = Depends(deps.require_permission("content", "edit", *MANAGERS)),
    service: ContentService = Depends(deps.get_content_service),
):
    return success(service.update_content(content_id, data, principal))


@router.delete("/{content_id}")
def delete_content(
    content_id: UUID,
    principal: Principal = Depends(deps.require_permission("content", "delete", *MANAGERS)),
    service: ContentService = Depends(deps.get_content_service),
):
    return message_only(service.delete_content(content_id))


@router.get("/{content_id}/download")
def download_content(
    content_id: UUID,
    principal: Principal = Depends(deps.require_permission("content", "view")),
    service: ContentService = Depends(deps.get_content_service),
):
    stored = unwrap(service.download(content_id, principal))
    return FileResponse(
        stored["path"],
        filename=stored["filename"],
        media_type=stored["mimetype"] or "application/octet-stream",
    )


@router.post("/{content_id}/share")
def share_content(
    content_id: UUID,
    data: ContentShare,
    principal: Principal = Depends(deps.require_permission("content", "edit", *MANAGERS)),
    service: ContentService = Depends(deps.get_content_service),
):
    return success(service.share_content(content_id, data, principal))
