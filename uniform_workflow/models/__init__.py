# Orders / PR
from uniform_workflow.models.orders.order_models import Order, OrderItem, PurchaseOrder

# Fulfilment
from uniform_workflow.models.fulfilment.suborder_models import OrderSuborder
from uniform_workflow.models.fulfilment.shipment_models import Shipment

# Indents
from uniform_workflow.models.indents.indent_models import IndentHeader, VendorIndent

# Settlement
from uniform_workflow.models.settlement.grn_models import GoodsReceiptNote, GRNItem
from uniform_workflow.models.settlement.invoice_models import VendorInvoice, VendorInvoiceItem
from uniform_workflow.models.settlement.payment_models import Payment

# Support
from uniform_workflow.models.support.activity_models import UserActivity
from uniform_workflow.models.support.status_audit_models import StatusAuditLog

# Approval workflow
from uniform_workflow.models.workflow.approval_models import (
    WorkflowApprovalAudit,
    WorkflowConfiguration,
    WorkflowRejection,
)
