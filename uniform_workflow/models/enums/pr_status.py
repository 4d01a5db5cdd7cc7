from enum import Enum


class PRStatus(str, Enum):
    DRAFT = "DRAFT"
    PENDING_SITE_ADMIN_APPROVAL = "PENDING_SITE_ADMIN_APPROVAL"
    SITE_ADMIN_APPROVED = "SITE_ADMIN_APPROVED"
    PENDING_COMPANY_ADMIN_APPROVAL = "PENDING_COMPANY_ADMIN_APPROVAL"
    COMPANY_ADMIN_APPROVED = "COMPANY_ADMIN_APPROVED"
    REJECTED = "REJECTED"
    LINKED_TO_PO = "LINKED_TO_PO"
    IN_SHIPMENT = "IN_SHIPMENT"
    PARTIALLY_DELIVERED = "PARTIALLY_DELIVERED"
    FULLY_DELIVERED = "FULLY_DELIVERED"
    CLOSED = "CLOSED"


class LegacyPRStatus(str, Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    PENDING_SITE_ADMIN_APPROVAL = "PENDING_SITE_ADMIN_APPROVAL"
    SITE_ADMIN_APPROVED = "SITE_ADMIN_APPROVED"
    PENDING_COMPANY_ADMIN_APPROVAL = "PENDING_COMPANY_ADMIN_APPROVAL"
    COMPANY_ADMIN_APPROVED = "COMPANY_ADMIN_APPROVED"
    REJECTED_BY_SITE_ADMIN = "REJECTED_BY_SITE_ADMIN"
    REJECTED_BY_COMPANY_ADMIN = "REJECTED_BY_COMPANY_ADMIN"
    PO_CREATED = "PO_CREATED"
    FULLY_DELIVERED = "FULLY_DELIVERED"
