# uniform_workflow/constants/id_prefixes.py

ORDER_PREFIX = "ORD"
PURCHASE_ORDER_PREFIX = "PO"
SUBORDER_PREFIX = "SO"
SHIPMENT_PREFIX = "SHP"
INDENT_PREFIX = "IND"
VENDOR_INDENT_PREFIX = "VI"
GRN_PREFIX = "GRN"
INVOICE_PREFIX = "INV"
PAYMENT_PREFIX = "PAY"
AUDIT_PREFIX = "AUD"
WORKFLOW_CONFIG_PREFIX = "WFC"
APPROVAL_AUDIT_PREFIX = "WFA"
REJECTION_PREFIX = "WFR"
