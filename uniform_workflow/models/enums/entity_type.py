from enum import Enum


class EntityType(str, Enum):
    # dual-vocabulary entities (legacy + unified fields)
    ORDER = "order"
    PR = "pr"
    PO = "po"
    SHIPMENT = "shipment"
    GRN = "grn"
    INVOICE = "invoice"

    # single-vocabulary chain entities
    SUBORDER_SHIPMENT = "suborder_shipment"
    VENDOR_INDENT = "vendor_indent"
    INDENT = "indent"
    PAYMENT = "payment"
