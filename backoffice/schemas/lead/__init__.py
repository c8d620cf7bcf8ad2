from .lead import (
    CommunicationCreate,
    LeadConversion,
    LeadCreate,
    LeadEducation,
    LeadResponse,
    LeadUpdate,
)

__all__ = [
    "CommunicationCreate",
    "LeadConversion",
    "LeadCreate",
    "LeadEducation",
    "LeadResponse",
    "LeadUpdate",
]
