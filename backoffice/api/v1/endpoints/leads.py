"""
Lead API
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, status

from backoffice.api import deps
from backoffice.api.responses import message_only, paginated, success
from backoffice.models.base.enums import LeadSource, LeadStatus
from backoffice.schemas.common.pagination import ListParams
from backoffice.schemas.lead import CommunicationCreate, LeadConversion, LeadCreate, LeadUpdate
from backoffice.services.common.permissions import Principal
from backoffice.services.lead import LeadService

router = APIRouter(prefix="/leads", tags=["Leads"])


@router.get("")
def list_leads(
    params: ListParams = Depends(deps.get_list_params),
    lead_status: Optional[LeadStatus] = Query(None, alias="status"),
    source: Optional[LeadSource] = None,
    assigned_to_id: Optional[UUID] = Query(None, alias="assignedTo"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    principal: Principal = Depends(deps.require_permission("leads", "view")),
    service: LeadService = Depends(deps.get_lead_service),
):
    return paginated(
        service.list_leads(params, lead_status, source, assigned_to_id, start_date, end_date)
    )


@router.post("", status_code=status.HTTP_201_CREATED)
def create_lead(
    data: LeadCreate,
    principal: Principal = Depends(deps.require_permission("leads", "create")),
    service: LeadService = Depends(deps.get_lead_service),
):
    return success(service.create_lead(data, principal))


@router.get("/stats")
def lead_stats(
    principal: Principal = Depends(deps.require_permission("leads", "view")),
    service: LeadService = Depends(deps.get_lead_service),
):
    return success(service.get_stats(principal))


@router.get("/{lead_id}")
def get_lead(
    lead_id: UUID,
    principal: Principal = Depends(deps.require_permission("leads", "view")),
    service: LeadService = Depends(deps.get_lead_service),
):
    return success(service.get_lead(lead_id))


@router.put("/{lead_id}")
def update_lead(
    lead_id: UUID,
    data: LeadUpdate,
    principal: Principal = Depends(deps.require_permission("leads", "edit")),
    service: LeadService = Depends(deps.get_lead_service),
):
    return success(service.update_lead(lead_id, data, principal))


@router.delete("/{lead_id}")
def delete_lead(
    lead_id: UUID,
    principal: Principal = Depends(deps.require_permission("leads", "delete")),
    service: LeadService = Depends(deps.get_lead_service),
):
    return message_only(service.delete_lead(lead_id))


@router.post("/{lead_id}/communications", status_code=status.HTTP_201_CREATED)
def add_communication(
    lead_id: UUID,
    data: CommunicationCreate,
    principal: Principal = Depends(deps.require_permission("leads", "edit")),
    service: LeadService = Depends(deps.get_lead_service),
):
    return success(service.add_communication(lead_id, data, principal))


@router.post("/{lead_id}/convert", status_code=status.HTTP_201_CREATED)
def convert_lead(
    lead_id: UUID,
    data: Optional[LeadConversion] = Body(None),
    principal: Principal = Depends(deps.require_permission("leads", "edit")),
    service: LeadService = Depends(deps.get_lead_service),
):
    return success(service.convert_to_student(lead_id, principal, data))
