"""
Lead service: enquiry pipeline and conversion into students.

Handles:
- Lead CRUD with unique phone numbers
- Follow-up communications
- One-time conversion of a lead into a student record
- Pipeline statistics
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from backoffice.models.base.enums import AdmissionType, LeadSource, LeadStatus
from backoffice.models.lead.lead import Lead
from backoffice.repositories.base.base_repository import Page
from backoffice.repositories.lead.lead_repository import LeadRepository
from backoffice.schemas.common.pagination import ListParams
from backoffice.schemas.lead import CommunicationCreate, LeadConversion, LeadCreate, LeadUpdate
from backoffice.services.base import BaseService, ServiceResult
from backoffice.services.common.errors import (
    AlreadyExistsError,
    BusinessRuleViolation,
    ValidationError,
)
from backoffice.services.common.metrics import percentage
from backoffice.services.common.permissions import Principal
from backoffice.services.core.counter_service import CounterService
from backoffice.services.student.student_service import StudentService
from backoffice.utils.datetime_utils import DateTimeHelper, utcnow

DUPLICATE_PHONE_MESSAGE = "Lead with this phone number already exists"


class LeadService(BaseService[Lead, LeadRepository]):
    """Leads and their conversion."""

    resource_name = "Lead"

    def __init__(self, db_session: Session):
        super().__init__(LeadRepository(db_session), db_session)
        self.counters = CounterService(db_session)
        self.student_service = StudentService(db_session)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_leads(
        self,
        params: ListParams,
        status: Optional[LeadStatus] = None,
        source: Optional[LeadSource] = None,
        assigned_to_id: Optional[UUID] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> ServiceResult[Page[Lead]]:
        try:
            page = self.repository.find_filtered(
                filters={"status": status, "source": source, "assigned_to_id": assigned_to_id},
                start_date=start_date,
                end_date=end_date,
                search=params.search,
                **params.paging(),
            )
            return ServiceResult.success(page)
        except Exception as e:
            return self._handle_exception(e, "list leads")

    def get_lead(self, lead_id: UUID) -> ServiceResult[Lead]:
        try:
            return ServiceResult.success(self._get_or_raise(lead_id))
        except Exception as e:
            return self._handle_exception(e, "get lead", lead_id)

    def get_stats(self, actor: Principal) -> ServiceResult[Dict[str, Any]]:
        """Pipeline totals, breakdowns, six-month trend and the actor's own figures."""
        try:
            leads = self.repository.all()
            converted = [lead for lead in leads if lead.converted_to_student]
            mine = [lead for lead in leads if lead.assigned_to_id == actor.user_id]
            my_converted = sum(1 for lead in mine if lead.converted_to_student)

            since = DateTimeHelper.months_back(6)
            monthly: Dict[str, int] = {}
            for lead in leads:
                created = DateTimeHelper.ensure_aware(lead.created_at)
                if created is not None and created >= since:
                    key = DateTimeHelper.month_key(created)
                    monthly[key] = monthly.get(key, 0) + 1

            return ServiceResult.success(
                {
                    "total": len(leads),
                    "converted": len(converted),
                    "conversionRate": percentage(len(converted), len(leads)),
                    "byStatus": self.repository.count_by("status"),
                    "bySource": self.repository.count_by("source"),
                    "monthlyTrend": [
                        {"month": month, "count": monthly[month]} for month in sorted(monthly)
                    ][:6],
                    "myStats": {
                        "total": len(mine),
                        "converted": my_converted,
                        "conversionRate": percentage(my_converted, len(mine)),
                    },
                }
            )
        except Exception as e:
            return self._handle_exception(e, "get lead stats")

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def create_lead(self, data: LeadCreate, actor: Principal) -> ServiceResult[Lead]:
        self._logger.info(f"Creating lead {data.full_name}")
        try:
            with self.transaction():
                if self.repository.phone_taken(data.phone):
                    raise AlreadyExistsError("Lead", "phone", data.phone, DUPLICATE_PHONE_MESSAGE)
                if data.status == LeadStatus.CONVERTED:
                    raise ValidationError("New leads cannot start as converted", field="status")

                lead = Lead(**data.column_values())
                lead.lead_id = self.counters.next_lead_id()
                lead.stamp(actor.user_id, created=True)
                self.repository.create(lead)

            self._log_operation("create lead", lead.id, {"lead_code": lead.lead_id})
            return ServiceResult.success(lead, message="Lead created successfully")
        except Exception as e:
            return self._handle_exception(e, "create lead", data.phone)

    def update_lead(self, lead_id: UUID, data: LeadUpdate, actor: Principal) -> ServiceResult[Lead]:
        try:
            with self.transaction():
                lead = self._get_or_raise(lead_id)
                changes = data.changes()

                if "phone" in changes and self.repository.phone_taken(changes["phone"], lead_id):
                    raise AlreadyExistsError("Lead", "phone", changes["phone"], DUPLICATE_PHONE_MESSAGE)
                if (
                    changes.get("status") == LeadStatus.CONVERTED
                    and not lead.converted_to_student
                ):
                    raise ValidationError("Use lead conversion to mark a lead converted", field="status")

                self.repository.update(lead, changes)
                lead.stamp(actor.user_id)

            return ServiceResult.success(lead, message="Lead updated successfully")
        except Exception as e:
            return self._handle_exception(e, "update lead", lead_id)

    def delete_lead(self, lead_id: UUID) -> ServiceResult[bool]:
        return self.delete(lead_id)

    def _validate_delete(self, lead: Lead) -> None:
        if lead.converted_to_student:
            raise BusinessRuleViolation("converted_lead", "Cannot delete converted lead")

    def add_communication(
        self, lead_id: UUID, data: CommunicationCreate, actor: Principal
    ) -> ServiceResult[List[Dict[str, Any]]]:
        try:
            with self.transaction():
                lead = self._get_or_raise(lead_id)
                communication = {
                    **data.to_wire(),
                    "createdBy": str(actor.user_id),
                    "createdAt": utcnow().isoformat(),
                }
                lead.communications = [*(lead.communications or []), communication]
                if lead.status == LeadStatus.NEW:
                    lead.status = LeadStatus.CONTACTED
                lead.stamp(actor.user_id)

            return ServiceResult.success(
                list(lead.communications), message="Communication added successfully"
            )
        except Exception as e:
            return self._handle_exception(e, "add lead communication", lead_id)

    def convert_to_student(
        self,
        lead_id: UUID,
        actor: Principal,
        data: Optional[LeadConversion] = None,
    ) -> ServiceResult[Dict[str, Any]]:
        """
        Convert a lead into a student.

        The student is admitted as a lead conversion with the acting user
        as counselor. The student and the lead's conversion flags are
        written in one transaction, and a lead converts only once.

        Returns:
            ServiceResult with `lead` and `student`
        """
        data = data or LeadConversion()
        try:
            with self.transaction():
                lead = self._get_or_raise(lead_id)
                if lead.converted_to_student:
                    raise BusinessRuleViolation(
                        "lead_converted", "Lead already converted to student"
                    )

                student = self.student_service.create_from_values(
                    self._student_values(lead, data, actor), actor
                )

                lead.converted_to_student = True
                lead.converted_date = utcnow()
                lead.converted_student_id = student.id
                lead.status = LeadStatus.CONVERTED
                lead.stamp(actor.user_id)

            self._log_operation(
                "convert lead", lead_id, {"student_code": student.student_id}
            )
            return ServiceResult.success(
                {"lead": lead, "student": student},
                message="Lead converted to student successfully",
            )
        except Exception as e:
            return self._handle_exception(e, "convert lead", lead_id)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _student_values(lead: Lead, data: LeadConversion, actor: Principal) -> Dict[str, Any]:
        education = lead.education or {}
        academic = []
        if education.get("qualification"):
            academic.append(
                {
                    "qualification": education["qualification"],
                    "institution": education.get("institution"),
                    "yearOfPassing": education.get("yearOfPassing"),
                    "percentage": education.get("percentage"),
                }
            )

        return {
            "full_name": lead.full_name,
            "phone": lead.phone,
            "alternate_phone": lead.alternate_phone,
            "email": lead.email,
            "gender": data.gender,
            "date_of_birth": data.date_of_birth,
            "admission_date": utcnow(),
            "admission_type": AdmissionType.LEAD_CONVERSION,
            "admission_counselor_id": actor.user_id,
            "lead_source_id": lead.id,
            "branch": data.branch,
            "remarks": data.remarks,
            "academic_background": academic,
            "total_fees": data.total_fees,
        }
