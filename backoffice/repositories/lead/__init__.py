from backoffice.repositories.lead.lead_repository import LeadRepository

__all__ = ["LeadRepository"]
