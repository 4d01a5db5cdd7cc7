from uniform_workflow.constants.activity_codes import ActivityCode


ACTIVITY_TEMPLATES = {
    # ---------------- ORDERS / PR ----------------
    ActivityCode.CREATE_ORDER:
        "{actor_role} ({actor_name}) submitted order {target_id}",

    ActivityCode.SITE_ADMIN_APPROVE_PR:
        "{actor_role} ({actor_name}) approved PR {pr_number} for order {target_id} at site level",

    ActivityCode.COMPANY_ADMIN_APPROVE_PR:
        "{actor_role} ({actor_name}) approved PR {pr_number} for order {target_id}",

    ActivityCode.REJECT_PR:
        "{actor_role} ({actor_name}) rejected order {target_id}: {reason}",

    ActivityCode.CREATE_PURCHASE_ORDER:
        "{actor_role} ({actor_name}) created PO {po_number} for {order_count} order(s)",

    # ---------------- FULFILMENT ----------------
    ActivityCode.CREATE_SUBORDER:
        "{actor_role} ({actor_name}) created suborder {target_id} for vendor {vendor_id}",

    ActivityCode.UPDATE_SUBORDER_SHIPPING:
        "{actor_role} ({actor_name}) moved suborder {target_id} shipment "
        "from {old_status} → {new_status}",

    ActivityCode.UPDATE_MASTER_ORDER_STATUS:
        "{actor_role} ({actor_name}) recalculated order {target_id} status: "
        "{old_status} → {new_status}",

    ActivityCode.CREATE_SHIPMENT:
        "{actor_role} ({actor_name}) created shipment {target_id} for suborder {suborder_id}",

    # ---------------- INDENTS ----------------
    ActivityCode.CREATE_INDENT:
        "{actor_role} ({actor_name}) created indent {target_name} with {vendor_count} vendor indent(s)",

    ActivityCode.CLOSE_INDENT:
        "{actor_role} ({actor_name}) closed indent {target_name}",

    # ---------------- GRN ----------------
    ActivityCode.CREATE_GRN:
        "{actor_role} ({actor_name}) created GRN {target_name}",

    ActivityCode.SUBMIT_GRN:
        "{actor_role} ({actor_name}) submitted GRN {target_name}",

    ActivityCode.APPROVE_GRN:
        "{actor_role} ({actor_name}) approved GRN {target_name}",

    # ---------------- INVOICES ----------------
    ActivityCode.CREATE_INVOICE:
        "{actor_role} ({actor_name}) created invoice {target_name} for GRN {grn_number}",

    ActivityCode.SUBMIT_INVOICE:
        "{actor_role} ({actor_name}) submitted invoice {target_name}",

    ActivityCode.APPROVE_INVOICE:
        "{actor_role} ({actor_name}) approved invoice {target_name}",

    # ---------------- PAYMENTS ----------------
    ActivityCode.CREATE_PAYMENT:
        "{actor_role} ({actor_name}) recorded payment {target_id} of {amount} for invoice {invoice_number}",

    ActivityCode.COMPLETE_PAYMENT:
        "{actor_role} ({actor_name}) completed payment {target_id}",

    # ---------------- WORKFLOW ----------------
    ActivityCode.CHANGE_STATUS:
        "{actor_role} ({actor_name}) changed {entity_type} {target_id} status "
        "from {old_status} → {new_status}",

    ActivityCode.SYNC_UNIFIED_STATUS:
        "{actor_role} ({actor_name}) backfilled unified status on {count} record(s)",

    ActivityCode.CONFIGURE_APPROVAL_WORKFLOW:
        "{actor_role} ({actor_name}) set {entity_type} approval stages for company {company_id} to version {version}",
}
