from .lead_service import LeadService

__all__ = ["LeadService"]
