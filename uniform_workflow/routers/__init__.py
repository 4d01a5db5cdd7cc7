# uniform_workflow/routers/__init__.py

from .workflow.status_router import router as status_router
from .workflow.approval_router import router as approval_router

from .orders.order_router import router as order_router
from .orders.purchase_order_router import router as purchase_order_router

from .indents.indent_router import router as indent_router
from .indents.indent_router import vendor_indent_router

from .fulfilment.suborder_router import router as suborder_router
from .fulfilment.shipment_router import router as shipment_router

from .settlement.grn_router import router as grn_router
from .settlement.invoice_router import router as invoice_router
from .settlement.payment_router import router as payment_router

from .support.activity_router import router as activity_router


__all__ = [
"status_router",
"approval_router",

"order_router",
"purchase_order_router",

"indent_router",
"vendor_indent_router",

"suborder_router",
"shipment_router",

"grn_router",
"invoice_router",
"payment_router",

"activity_router",
]
