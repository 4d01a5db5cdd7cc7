# uniform_workflow/services/workflow/status_taxonomy.py
"""
Status vocabularies for every workflow entity.

Each entity type has an ordered main sequence of unified states, some of
which may be skipped, plus side states (rejection, cancellation, failure)
that end the lifecycle from any non-terminal state. Dual-vocabulary
entities also carry lookup tables between the unified vocabulary and the
legacy labels still written for older readers.

The tables are checked for totality when this module is imported.
"""

from dataclasses import dataclass, field
from enum import Enum

from uniform_workflow.models.enums.entity_type import EntityType
from uniform_workflow.models.enums.order_status import OrderStatus, LegacyOrderStatus
from uniform_workflow.models.enums.pr_status import PRStatus, LegacyPRStatus
from uniform_workflow.models.enums.po_status import POStatus, LegacyPOStatus
from uniform_workflow.models.enums.shipment_status import (
    ShipmentStatus,
    LegacyShipmentStatus,
    SuborderShipmentStatus,
)
from uniform_workflow.models.enums.grn_status import (
    GRNStatus,
    LegacyGRNStatus,
    LegacyGRNApprovalStatus,
)
from uniform_workflow.models.enums.invoice_status import InvoiceStatus, LegacyInvoiceStatus
from uniform_workflow.models.enums.chain_status import (
    IndentStatus,
    VendorIndentStatus,
    PaymentStatus,
)


def status_value(status) -> str | None:
    """Plain string value of a status given as an Enum member or a string."""
    if status is None:
        return None
    if isinstance(status, Enum):
        return status.value
    return str(status)


# =====================================================
# FLOWS
# =====================================================
@dataclass(frozen=True)
class StatusFlow:
    entity_type: EntityType
    sequence: tuple[str, ...]
    optional: frozenset[str] = field(default_factory=frozenset)
    side: frozenset[str] = field(default_factory=frozenset)
    initial: frozenset[str] = field(default_factory=frozenset)

    @property
    def states(self) -> frozenset[str]:
        return frozenset(self.sequence) | self.side

    @property
    def terminal(self) -> frozenset[str]:
        return self.side | {self.sequence[-1]}

    def knows(self, status: str) -> bool:
        return status in self.states

    def index(self, status: str) -> int:
        return self.sequence.index(status)


def _flow(entity_type, sequence, optional=(), side=(), initial=()):
    return StatusFlow(
        entity_type=entity_type,
        sequence=tuple(s.value for s in sequence),
        optional=frozenset(s.value for s in optional),
        side=frozenset(s.value for s in side),
        initial=frozenset(s.value for s in initial),
    )


STATUS_FLOWS: dict[EntityType, StatusFlow] = {
    EntityType.ORDER: _flow(
        EntityType.ORDER,
        sequence=[
            OrderStatus.CREATED,
            OrderStatus.PENDING_APPROVAL,
            OrderStatus.APPROVED,
            OrderStatus.IN_FULFILMENT,
            OrderStatus.DISPATCHED,
            OrderStatus.DELIVERED,
        ],
        optional=[OrderStatus.IN_FULFILMENT],
        side=[OrderStatus.CANCELLED],
        initial=[
            OrderStatus.CREATED,
            OrderStatus.PENDING_APPROVAL,
            OrderStatus.APPROVED,
        ],
    ),
    EntityType.PR: _flow(
        EntityType.PR,
        sequence=[
            PRStatus.DRAFT,
            PRStatus.PENDING_SITE_ADMIN_APPROVAL,
            PRStatus.SITE_ADMIN_APPROVED,
            PRStatus.PENDING_COMPANY_ADMIN_APPROVAL,
            PRStatus.COMPANY_ADMIN_APPROVED,
            PRStatus.LINKED_TO_PO,
            PRStatus.IN_SHIPMENT,
            PRStatus.PARTIALLY_DELIVERED,
            PRStatus.FULLY_DELIVERED,
            PRStatus.CLOSED,
        ],
        optional=[PRStatus.PARTIALLY_DELIVERED],
        side=[PRStatus.REJECTED],
        initial=[PRStatus.DRAFT, PRStatus.PENDING_SITE_ADMIN_APPROVAL],
    ),
    EntityType.PO: _flow(
        EntityType.PO,
        sequence=[
            POStatus.CREATED,
            POStatus.SENT_TO_VENDOR,
            POStatus.ACKNOWLEDGED,
            POStatus.IN_FULFILMENT,
            POStatus.PARTIALLY_SHIPPED,
            POStatus.FULLY_SHIPPED,
            POStatus.PARTIALLY_DELIVERED,
            POStatus.FULLY_DELIVERED,
            POStatus.CLOSED,
        ],
        optional=[POStatus.PARTIALLY_SHIPPED, POStatus.PARTIALLY_DELIVERED],
        side=[POStatus.CANCELLED],
        initial=[POStatus.CREATED],
    ),
    EntityType.SHIPMENT: _flow(
        EntityType.SHIPMENT,
        sequence=[
            ShipmentStatus.CREATED,
            ShipmentStatus.MANIFESTED,
            ShipmentStatus.PICKED_UP,
            ShipmentStatus.IN_TRANSIT,
            ShipmentStatus.OUT_FOR_DELIVERY,
            ShipmentStatus.DELIVERED,
        ],
        optional=[ShipmentStatus.MANIFESTED, ShipmentStatus.OUT_FOR_DELIVERY],
        side=[ShipmentStatus.FAILED, ShipmentStatus.RETURNED, ShipmentStatus.LOST],
        initial=[ShipmentStatus.CREATED],
    ),
    EntityType.GRN: _flow(
        EntityType.GRN,
        sequence=[
            GRNStatus.DRAFT,
            GRNStatus.RAISED,
            GRNStatus.PENDING_APPROVAL,
            GRNStatus.APPROVED,
            GRNStatus.INVOICED,
            GRNStatus.CLOSED,
        ],
        optional=[GRNStatus.PENDING_APPROVAL, GRNStatus.INVOICED],
        initial=[GRNStatus.DRAFT, GRNStatus.RAISED],
    ),
    EntityType.INVOICE: _flow(
        EntityType.INVOICE,
        sequence=[
            InvoiceStatus.DRAFT,
            InvoiceStatus.RAISED,
            InvoiceStatus.PENDING_APPROVAL,
            InvoiceStatus.APPROVED,
            InvoiceStatus.PAID,
        ],
        optional=[InvoiceStatus.PENDING_APPROVAL],
        side=[InvoiceStatus.DISPUTED, InvoiceStatus.CANCELLED],
        initial=[InvoiceStatus.DRAFT, InvoiceStatus.RAISED],
    ),
    EntityType.SUBORDER_SHIPMENT: _flow(
        EntityType.SUBORDER_SHIPMENT,
        sequence=[
            SuborderShipmentStatus.NOT_SHIPPED,
            SuborderShipmentStatus.SHIPPED,
            SuborderShipmentStatus.IN_TRANSIT,
            SuborderShipmentStatus.DELIVERED,
        ],
        optional=[SuborderShipmentStatus.SHIPPED, SuborderShipmentStatus.IN_TRANSIT],
        side=[SuborderShipmentStatus.FAILED, SuborderShipmentStatus.RETURNED],
        initial=[SuborderShipmentStatus.NOT_SHIPPED],
    ),
    EntityType.VENDOR_INDENT: _flow(
        EntityType.VENDOR_INDENT,
        sequence=[
            VendorIndentStatus.CREATED,
            VendorIndentStatus.GRN_SUBMITTED,
            VendorIndentStatus.PAID,
        ],
        initial=[VendorIndentStatus.CREATED],
    ),
    EntityType.INDENT: _flow(
        EntityType.INDENT,
        sequence=[IndentStatus.CREATED, IndentStatus.CLOSED],
        side=[IndentStatus.CANCELLED],
        initial=[IndentStatus.CREATED],
    ),
    EntityType.PAYMENT: _flow(
        EntityType.PAYMENT,
        sequence=[PaymentStatus.PENDING, PaymentStatus.COMPLETED],
        side=[PaymentStatus.FAILED],
        initial=[PaymentStatus.PENDING],
    ),
}

STATUS_ENUMS: dict[EntityType, type[Enum]] = {
    EntityType.ORDER: OrderStatus,
    EntityType.PR: PRStatus,
    EntityType.PO: POStatus,
    EntityType.SHIPMENT: ShipmentStatus,
    EntityType.GRN: GRNStatus,
    EntityType.INVOICE: InvoiceStatus,
    EntityType.SUBORDER_SHIPMENT: SuborderShipmentStatus,
    EntityType.VENDOR_INDENT: VendorIndentStatus,
    EntityType.INDENT: IndentStatus,
    EntityType.PAYMENT: PaymentStatus,
}

DUAL_WRITE_ENTITY_TYPES = (
    EntityType.ORDER,
    EntityType.PR,
    EntityType.PO,
    EntityType.SHIPMENT,
    EntityType.GRN,
    EntityType.INVOICE,
)


def get_flow(entity_type) -> StatusFlow:
    return STATUS_FLOWS[EntityType(entity_type)]


# =====================================================
# UNIFIED -> LEGACY
# =====================================================
UNIFIED_TO_LEGACY: dict[EntityType, dict] = {
    EntityType.ORDER: {
        OrderStatus.CREATED: LegacyOrderStatus.AWAITING_APPROVAL,
        OrderStatus.PENDING_APPROVAL: LegacyOrderStatus.AWAITING_APPROVAL,
        OrderStatus.APPROVED: LegacyOrderStatus.AWAITING_FULFILMENT,
        OrderStatus.IN_FULFILMENT: LegacyOrderStatus.AWAITING_FULFILMENT,
        OrderStatus.DISPATCHED: LegacyOrderStatus.DISPATCHED,
        OrderStatus.DELIVERED: LegacyOrderStatus.DELIVERED,
        # legacy vocabulary has no cancelled label
        OrderStatus.CANCELLED: LegacyOrderStatus.AWAITING_APPROVAL,
    },
    EntityType.PR: {
        PRStatus.DRAFT: LegacyPRStatus.DRAFT,
        PRStatus.PENDING_SITE_ADMIN_APPROVAL: LegacyPRStatus.PENDING_SITE_ADMIN_APPROVAL,
        PRStatus.SITE_ADMIN_APPROVED: LegacyPRStatus.SITE_ADMIN_APPROVED,
        PRStatus.PENDING_COMPANY_ADMIN_APPROVAL: LegacyPRStatus.PENDING_COMPANY_ADMIN_APPROVAL,
        PRStatus.COMPANY_ADMIN_APPROVED: LegacyPRStatus.COMPANY_ADMIN_APPROVED,
        PRStatus.REJECTED: LegacyPRStatus.REJECTED_BY_COMPANY_ADMIN,
        PRStatus.LINKED_TO_PO: LegacyPRStatus.PO_CREATED,
        PRStatus.IN_SHIPMENT: LegacyPRStatus.PO_CREATED,
        PRStatus.PARTIALLY_DELIVERED: LegacyPRStatus.PO_CREATED,
        PRStatus.FULLY_DELIVERED: LegacyPRStatus.FULLY_DELIVERED,
        PRStatus.CLOSED: LegacyPRStatus.FULLY_DELIVERED,
    },
    EntityType.PO: {
        POStatus.CREATED: LegacyPOStatus.CREATED,
        POStatus.SENT_TO_VENDOR: LegacyPOStatus.SENT_TO_VENDOR,
        POStatus.ACKNOWLEDGED: LegacyPOStatus.ACKNOWLEDGED,
        POStatus.IN_FULFILMENT: LegacyPOStatus.IN_FULFILMENT,
        POStatus.PARTIALLY_SHIPPED: LegacyPOStatus.IN_FULFILMENT,
        POStatus.FULLY_SHIPPED: LegacyPOStatus.IN_FULFILMENT,
        POStatus.PARTIALLY_DELIVERED: LegacyPOStatus.IN_FULFILMENT,
        POStatus.FULLY_DELIVERED: LegacyPOStatus.COMPLETED,
        POStatus.CLOSED: LegacyPOStatus.COMPLETED,
        POStatus.CANCELLED: LegacyPOStatus.CANCELLED,
    },
    EntityType.SHIPMENT: {
        ShipmentStatus.CREATED: LegacyShipmentStatus.CREATED,
        ShipmentStatus.MANIFESTED: LegacyShipmentStatus.CREATED,
        ShipmentStatus.PICKED_UP: LegacyShipmentStatus.IN_TRANSIT,
        ShipmentStatus.IN_TRANSIT: LegacyShipmentStatus.IN_TRANSIT,
        ShipmentStatus.OUT_FOR_DELIVERY: LegacyShipmentStatus.IN_TRANSIT,
        ShipmentStatus.DELIVERED: LegacyShipmentStatus.DELIVERED,
        ShipmentStatus.FAILED: LegacyShipmentStatus.FAILED,
        ShipmentStatus.RETURNED: LegacyShipmentStatus.FAILED,
        ShipmentStatus.LOST: LegacyShipmentStatus.FAILED,
    },
    # GRN legacy state is split over two fields: (status, grn_status)
    EntityType.GRN: {
        GRNStatus.DRAFT: (LegacyGRNStatus.CREATED, LegacyGRNApprovalStatus.RAISED),
        GRNStatus.RAISED: (LegacyGRNStatus.CREATED, LegacyGRNApprovalStatus.RAISED),
        GRNStatus.PENDING_APPROVAL: (LegacyGRNStatus.CREATED, LegacyGRNApprovalStatus.RAISED),
        GRNStatus.APPROVED: (LegacyGRNStatus.ACKNOWLEDGED, LegacyGRNApprovalStatus.APPROVED),
        GRNStatus.INVOICED: (LegacyGRNStatus.INVOICED, LegacyGRNApprovalStatus.APPROVED),
        GRNStatus.CLOSED: (LegacyGRNStatus.CLOSED, LegacyGRNApprovalStatus.APPROVED),
    },
    EntityType.INVOICE: {
        InvoiceStatus.DRAFT: LegacyInvoiceStatus.RAISED,
        InvoiceStatus.RAISED: LegacyInvoiceStatus.RAISED,
        InvoiceStatus.PENDING_APPROVAL: LegacyInvoiceStatus.RAISED,
        InvoiceStatus.APPROVED: LegacyInvoiceStatus.APPROVED,
        InvoiceStatus.PAID: LegacyInvoiceStatus.APPROVED,
        InvoiceStatus.DISPUTED: LegacyInvoiceStatus.RAISED,
        InvoiceStatus.CANCELLED: LegacyInvoiceStatus.RAISED,
    },
}

# =====================================================
# LEGACY -> UNIFIED
# =====================================================
LEGACY_TO_UNIFIED: dict[EntityType, dict] = {
    EntityType.ORDER: {
        LegacyOrderStatus.AWAITING_APPROVAL: OrderStatus.PENDING_APPROVAL,
        LegacyOrderStatus.AWAITING_FULFILMENT: OrderStatus.IN_FULFILMENT,
        LegacyOrderStatus.DISPATCHED: OrderStatus.DISPATCHED,
        LegacyOrderStatus.DELIVERED: OrderStatus.DELIVERED,
    },
    EntityType.PR: {
        LegacyPRStatus.DRAFT: PRStatus.DRAFT,
        LegacyPRStatus.SUBMITTED: PRStatus.PENDING_SITE_ADMIN_APPROVAL,
        LegacyPRStatus.PENDING_SITE_ADMIN_APPROVAL: PRStatus.PENDING_SITE_ADMIN_APPROVAL,
        LegacyPRStatus.SITE_ADMIN_APPROVED: PRStatus.SITE_ADMIN_APPROVED,
        LegacyPRStatus.PENDING_COMPANY_ADMIN_APPROVAL: PRStatus.PENDING_COMPANY_ADMIN_APPROVAL,
        LegacyPRStatus.COMPANY_ADMIN_APPROVED: PRStatus.COMPANY_ADMIN_APPROVED,
        LegacyPRStatus.REJECTED_BY_SITE_ADMIN: PRStatus.REJECTED,
        LegacyPRStatus.REJECTED_BY_COMPANY_ADMIN: PRStatus.REJECTED,
        LegacyPRStatus.PO_CREATED: PRStatus.LINKED_TO_PO,
        LegacyPRStatus.FULLY_DELIVERED: PRStatus.FULLY_DELIVERED,
    },
    EntityType.PO: {
        LegacyPOStatus.CREATED: POStatus.CREATED,
        LegacyPOStatus.SENT_TO_VENDOR: POStatus.SENT_TO_VENDOR,
        LegacyPOStatus.ACKNOWLEDGED: POStatus.ACKNOWLEDGED,
        LegacyPOStatus.IN_FULFILMENT: POStatus.IN_FULFILMENT,
        LegacyPOStatus.COMPLETED: POStatus.FULLY_DELIVERED,
        LegacyPOStatus.CANCELLED: POStatus.CANCELLED,
    },
    EntityType.SHIPMENT: {
        LegacyShipmentStatus.CREATED: ShipmentStatus.CREATED,
        LegacyShipmentStatus.IN_TRANSIT: ShipmentStatus.IN_TRANSIT,
        LegacyShipmentStatus.DELIVERED: ShipmentStatus.DELIVERED,
        LegacyShipmentStatus.FAILED: ShipmentStatus.FAILED,
    },
    # keyed on the legacy `status` field; grn_status wins when present
    EntityType.GRN: {
        LegacyGRNStatus.CREATED: GRNStatus.RAISED,
        LegacyGRNStatus.ACKNOWLEDGED: GRNStatus.APPROVED,
        LegacyGRNStatus.INVOICED: GRNStatus.INVOICED,
        LegacyGRNStatus.RECEIVED: GRNStatus.APPROVED,
        LegacyGRNStatus.CLOSED: GRNStatus.CLOSED,
    },
    EntityType.INVOICE: {
        LegacyInvoiceStatus.RAISED: InvoiceStatus.RAISED,
        LegacyInvoiceStatus.APPROVED: InvoiceStatus.APPROVED,
    },
}

GRN_APPROVAL_TO_UNIFIED = {
    LegacyGRNApprovalStatus.RAISED: GRNStatus.RAISED,
    LegacyGRNApprovalStatus.APPROVED: GRNStatus.APPROVED,
}

LEGACY_ENUMS: dict[EntityType, type[Enum]] = {
    EntityType.ORDER: LegacyOrderStatus,
    EntityType.PR: LegacyPRStatus,
    EntityType.PO: LegacyPOStatus,
    EntityType.SHIPMENT: LegacyShipmentStatus,
    EntityType.GRN: LegacyGRNStatus,
    EntityType.INVOICE: LegacyInvoiceStatus,
}


def map_unified_to_legacy(entity_type, unified_status):
    """
    Legacy value for a unified status.

    Returns a string, or a ``(status, grn_status)`` pair for GRNs.
    Raises ValueError for a status outside the entity's vocabulary.
    """
    entity_type = EntityType(entity_type)
    unified = STATUS_ENUMS[entity_type](status_value(unified_status))
    legacy = UNIFIED_TO_LEGACY[entity_type][unified]
    if isinstance(legacy, tuple):
        return tuple(item.value for item in legacy)
    return legacy.value


def map_legacy_to_unified(entity_type, legacy_status, legacy_approval_status=None):
    """Unified status for a legacy label, or None when the label is not recognised."""
    entity_type = EntityType(entity_type)

    if entity_type == EntityType.GRN and legacy_approval_status:
        try:
            approval = LegacyGRNApprovalStatus(status_value(legacy_approval_status))
        except ValueError:
            approval = None
        if approval is not None:
            return GRN_APPROVAL_TO_UNIFIED[approval]

    if legacy_status is None:
        return None

    try:
        legacy = LEGACY_ENUMS[entity_type](status_value(legacy_status))
    except ValueError:
        return None
    return LEGACY_TO_UNIFIED[entity_type][legacy]


def get_effective_status(entity_type, unified_status, legacy_status, legacy_approval_status=None):
    """Unified status when present, otherwise the one implied by the legacy fields."""
    if unified_status:
        return STATUS_ENUMS[EntityType(entity_type)](status_value(unified_status))
    return map_legacy_to_unified(entity_type, legacy_status, legacy_approval_status)


# =====================================================
# EXHAUSTIVENESS
# =====================================================
def check_status_tables():
    problems = []

    for entity_type, flow in STATUS_FLOWS.items():
        declared = {s.value for s in STATUS_ENUMS[entity_type]}
        if flow.states != declared:
            problems.append(
                f"{entity_type.name}: flow states {sorted(flow.states ^ declared)} "
                "do not match the status enum"
            )
        if not flow.initial <= flow.states:
            problems.append(f"{entity_type.name}: initial states outside the flow")
        if not flow.optional <= set(flow.sequence[1:-1]):
            problems.append(f"{entity_type.name}: optional states must be interior")

    for entity_type in DUAL_WRITE_ENTITY_TYPES:
        forward = UNIFIED_TO_LEGACY.get(entity_type, {})
        missing = set(STATUS_ENUMS[entity_type]) - set(forward)
        if missing:
            problems.append(
                f"{entity_type.name}: no legacy label for {sorted(m.value for m in missing)}"
            )

        backward = LEGACY_TO_UNIFIED.get(entity_type, {})
        unmapped = set(LEGACY_ENUMS[entity_type]) - set(backward)
        if unmapped:
            problems.append(
                f"{entity_type.name}: no unified status for legacy "
                f"{sorted(m.value for m in unmapped)}"
            )

    if problems:
        raise RuntimeError("Status mapping tables are incomplete: " + "; ".join(problems))


check_status_tables()
