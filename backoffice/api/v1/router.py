"""
API v1 Router

Aggregates the v1 endpoint routers of the institute back-office.
"""
from fastapi import APIRouter

from backoffice.api.v1.endpoints import (
    analytics,
    attendance,
    batches,
    content,
    courses,
    enrollments,
    leads,
    payments,
    students,
    users,
)

router = APIRouter(
    responses={
        400: {"description": "Bad Request"},
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        404: {"description": "Not Found"},
        409: {"description": "Conflict"},
        500: {"description": "Internal Server Error"},
    }
)

for module in (
    students,
    courses,
    batches,
    enrollments,
    payments,
    attendance,
    leads,
    content,
    users,
    analytics,
):
    router.include_router(module.router)
