# uniform_workflow/constants/error_codes.py

from enum import Enum


class ErrorCode(str, Enum):
    # ---------------- GENERIC ----------------
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # ---------------- WORKFLOW ----------------
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    STATUS_CONFLICT = "STATUS_CONFLICT"
    UNKNOWN_ENTITY_TYPE = "UNKNOWN_ENTITY_TYPE"
    CHAIN_INCONSISTENT = "CHAIN_INCONSISTENT"

    # ---------------- APPROVALS ----------------
    APPROVAL_STAGE_MISMATCH = "APPROVAL_STAGE_MISMATCH"
    REASON_CODE_NOT_ALLOWED = "REASON_CODE_NOT_ALLOWED"
    REMARKS_REQUIRED = "REMARKS_REQUIRED"

    # ---------------- ORDERS / PR ----------------
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    ORDER_EMPTY_ITEMS = "ORDER_EMPTY_ITEMS"
    ORDER_NO_VENDOR = "ORDER_NO_VENDOR"
    PR_NUMBER_EXISTS = "PR_NUMBER_EXISTS"
    PO_NUMBER_EXISTS = "PO_NUMBER_EXISTS"
    PURCHASE_ORDER_NOT_FOUND = "PURCHASE_ORDER_NOT_FOUND"

    # ---------------- SUBORDERS ----------------
    SUBORDER_NOT_FOUND = "SUBORDER_NOT_FOUND"
    SHIPMENT_NOT_FOUND = "SHIPMENT_NOT_FOUND"
    SHIPMENT_EXISTS = "SHIPMENT_EXISTS"

    # ---------------- INDENTS ----------------
    INDENT_NOT_FOUND = "INDENT_NOT_FOUND"
    INDENT_NUMBER_EXISTS = "INDENT_NUMBER_EXISTS"
    VENDOR_INDENT_NOT_FOUND = "VENDOR_INDENT_NOT_FOUND"
    VENDOR_MISMATCH = "VENDOR_MISMATCH"

    # ---------------- GRN ----------------
    GRN_NOT_FOUND = "GRN_NOT_FOUND"
    GRN_EMPTY_ITEMS = "GRN_EMPTY_ITEMS"
    GRN_NUMBER_EXISTS = "GRN_NUMBER_EXISTS"
    GRN_NOT_APPROVED = "GRN_NOT_APPROVED"

    # ---------------- INVOICE ----------------
    INVOICE_NOT_FOUND = "INVOICE_NOT_FOUND"
    INVOICE_EXISTS_FOR_GRN = "INVOICE_EXISTS_FOR_GRN"
    INVOICE_NUMBER_EXISTS = "INVOICE_NUMBER_EXISTS"
    INVOICE_NOT_APPROVED = "INVOICE_NOT_APPROVED"

    # ---------------- PAYMENT ----------------
    PAYMENT_NOT_FOUND = "PAYMENT_NOT_FOUND"
    PAYMENT_INVALID_AMOUNT = "PAYMENT_INVALID_AMOUNT"
