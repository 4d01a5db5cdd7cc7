from enum import Enum


class InvoiceStatus(str, Enum):
    DRAFT = "DRAFT"
    RAISED = "RAISED"
    SUBMITTED = "RAISED"  # alias used by the vendor-facing submit action
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    PAID = "PAID"
    DISPUTED = "DISPUTED"
    CANCELLED = "CANCELLED"


class LegacyInvoiceStatus(str, Enum):
    RAISED = "RAISED"
    APPROVED = "APPROVED"
