"""ERP integration -- read-only client and record schemas for the Frappe ERP.

Provides:
- ERPClient: Fetches full snapshots of one doctype per request
- ERPFetchError: Single error kind for every fetch failure
- EntityKind and the ERP record models (buildings, acquisitions,
  building proposals, letters of intent)
"""

from src.app.erp.client import ERPClient, ERPFetchError
from src.app.erp.schemas import (
    ERP_RECORD_TYPES,
    EntityKind,
    ERPAcquisition,
    ERPBuilding,
    ERPBuildingProposal,
    ERPLetterOfIntent,
    ERPRecord,
    ERPWorkflowRecord,
    parse_erp_time,
)

__all__ = [
    "ERPClient",
    "ERPFetchError",
    "EntityKind",
    "ERPRecord",
    "ERPWorkflowRecord",
    "ERPBuilding",
    "ERPAcquisition",
    "ERPBuildingProposal",
    "ERPLetterOfIntent",
    "ERP_RECORD_TYPES",
    "parse_erp_time",
]
