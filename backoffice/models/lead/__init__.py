from backoffice.models.lead.lead import Lead

__all__ = ["Lead"]
