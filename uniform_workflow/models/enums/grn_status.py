from enum import Enum


class GRNStatus(str, Enum):
    DRAFT = "DRAFT"
    RAISED = "RAISED"
    SUBMITTED = "RAISED"  # alias used by the vendor-facing submit action
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    INVOICED = "INVOICED"
    CLOSED = "CLOSED"


class LegacyGRNStatus(str, Enum):
    CREATED = "CREATED"
    ACKNOWLEDGED = "ACKNOWLEDGED"
    INVOICED = "INVOICED"
    RECEIVED = "RECEIVED"
    CLOSED = "CLOSED"


class LegacyGRNApprovalStatus(str, Enum):
    RAISED = "RAISED"
    APPROVED = "APPROVED"
