# uniform_workflow/constants/activity_codes.py

from enum import Enum


class ActivityCode(str, Enum):
    # ---------------- ORDERS / PR ----------------
    CREATE_ORDER = "CREATE_ORDER"
    SITE_ADMIN_APPROVE_PR = "SITE_ADMIN_APPROVE_PR"
    COMPANY_ADMIN_APPROVE_PR = "COMPANY_ADMIN_APPROVE_PR"
    REJECT_PR = "REJECT_PR"
    CREATE_PURCHASE_ORDER = "CREATE_PURCHASE_ORDER"

    # ---------------- FULFILMENT ----------------
    CREATE_SUBORDER = "CREATE_SUBORDER"
    UPDATE_SUBORDER_SHIPPING = "UPDATE_SUBORDER_SHIPPING"
    UPDATE_MASTER_ORDER_STATUS = "UPDATE_MASTER_ORDER_STATUS"
    CREATE_SHIPMENT = "CREATE_SHIPMENT"

    # ---------------- INDENTS ----------------
    CREATE_INDENT = "CREATE_INDENT"
    CLOSE_INDENT = "CLOSE_INDENT"

    # ---------------- GRN ----------------
    CREATE_GRN = "CREATE_GRN"
    SUBMIT_GRN = "SUBMIT_GRN"
    APPROVE_GRN = "APPROVE_GRN"

    # ---------------- INVOICES ----------------
    CREATE_INVOICE = "CREATE_INVOICE"
    SUBMIT_INVOICE = "SUBMIT_INVOICE"
    APPROVE_INVOICE = "APPROVE_INVOICE"

    # ---------------- PAYMENTS ----------------
    CREATE_PAYMENT = "CREATE_PAYMENT"
    COMPLETE_PAYMENT = "COMPLETE_PAYMENT"

    # ---------------- WORKFLOW ----------------
    CHANGE_STATUS = "CHANGE_STATUS"
    SYNC_UNIFIED_STATUS = "SYNC_UNIFIED_STATUS"
    CONFIGURE_APPROVAL_WORKFLOW = "CONFIGURE_APPROVAL_WORKFLOW"
