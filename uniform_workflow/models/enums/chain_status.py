from enum import Enum


class IndentStatus(str, Enum):
    CREATED = "CREATED"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"


class VendorIndentStatus(str, Enum):
    CREATED = "CREATED"
    GRN_SUBMITTED = "GRN_SUBMITTED"
    PAID = "PAID"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class PaymentCascadeStep(str, Enum):
    """Last cascade step persisted for a payment, in execution order."""

    PAYMENT_COMPLETED = "PAYMENT_COMPLETED"
    INVOICE_PAID = "INVOICE_PAID"
    VENDOR_INDENT_PAID = "VENDOR_INDENT_PAID"
    INDENT_CHECKED = "INDENT_CHECKED"
