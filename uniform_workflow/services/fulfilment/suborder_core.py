# uniform_workflow/services/fulfilment/suborder_core.py
"""
Pure fan-in rules: the master order status is always derived from its
suborders and never set independently once suborders exist.
"""

from uniform_workflow.models.enums.order_status import OrderStatus, LegacyOrderStatus
from uniform_workflow.models.enums.shipment_status import (
    ShipmentStatus,
    SuborderShipmentStatus,
    SuborderStatus,
)

AWAITING_STATUSES = {
    SuborderShipmentStatus.NOT_SHIPPED.value,
    SuborderStatus.CREATED.value,
}
SHIPPED_STATUSES = {
    SuborderShipmentStatus.SHIPPED.value,
    SuborderShipmentStatus.IN_TRANSIT.value,
    SuborderShipmentStatus.DELIVERED.value,
}
PROBLEM_STATUSES = {
    SuborderShipmentStatus.FAILED.value,
    SuborderShipmentStatus.RETURNED.value,
}

# shipment_status -> suborder_status
SUBORDER_STATUS_FOR_SHIPMENT = {
    SuborderShipmentStatus.NOT_SHIPPED: SuborderStatus.CREATED,
    SuborderShipmentStatus.SHIPPED: SuborderStatus.SHIPPED,
    SuborderShipmentStatus.IN_TRANSIT: SuborderStatus.SHIPPED,
    SuborderShipmentStatus.DELIVERED: SuborderStatus.DELIVERED,
    SuborderShipmentStatus.FAILED: SuborderStatus.FAILED,
    SuborderShipmentStatus.RETURNED: SuborderStatus.RETURNED,
}

# carrier-level shipment status -> suborder shipment progress
SUBORDER_SHIPMENT_FOR_SHIPMENT = {
    ShipmentStatus.CREATED: SuborderShipmentStatus.NOT_SHIPPED,
    ShipmentStatus.MANIFESTED: SuborderShipmentStatus.NOT_SHIPPED,
    ShipmentStatus.PICKED_UP: SuborderShipmentStatus.SHIPPED,
    ShipmentStatus.IN_TRANSIT: SuborderShipmentStatus.IN_TRANSIT,
    ShipmentStatus.OUT_FOR_DELIVERY: SuborderShipmentStatus.IN_TRANSIT,
    ShipmentStatus.DELIVERED: SuborderShipmentStatus.DELIVERED,
    ShipmentStatus.FAILED: SuborderShipmentStatus.FAILED,
    ShipmentStatus.RETURNED: SuborderShipmentStatus.RETURNED,
    ShipmentStatus.LOST: SuborderShipmentStatus.FAILED,
}

# order statuses that suborders may exist under; fan-in never moves an
# order through approval
FULFILMENT_STATUSES = frozenset(
    s.value
    for s in (
        OrderStatus.APPROVED,
        OrderStatus.IN_FULFILMENT,
        OrderStatus.DISPATCHED,
        OrderStatus.DELIVERED,
    )
)

# derived legacy label -> unified order status written by fan-in
FAN_IN_UNIFIED_STATUS = {
    LegacyOrderStatus.AWAITING_FULFILMENT.value: OrderStatus.IN_FULFILMENT,
    LegacyOrderStatus.DISPATCHED.value: OrderStatus.DISPATCHED,
    LegacyOrderStatus.DELIVERED.value: OrderStatus.DELIVERED,
}


def suborder_effective_status(suborder) -> str:
    return (
        getattr(suborder, "suborder_status", None)
        or getattr(suborder, "shipment_status", None)
        or SuborderStatus.CREATED.value
    )


def derive_status_from_suborders(order, suborders) -> str:
    """Legacy order label implied by the suborder set. Rule order matters."""
    if not suborders:
        if getattr(order, "indent_id", None):
            # suborders not created yet
            return LegacyOrderStatus.AWAITING_FULFILMENT.value
        return getattr(order, "status", None) or LegacyOrderStatus.AWAITING_APPROVAL.value

    statuses = [suborder_effective_status(s) for s in suborders]

    if all(s in AWAITING_STATUSES for s in statuses):
        return LegacyOrderStatus.AWAITING_FULFILMENT.value

    if all(s == SuborderStatus.DELIVERED.value for s in statuses):
        return LegacyOrderStatus.DELIVERED.value

    # partial progress dominates pending and failed suborders
    if any(s in SHIPPED_STATUSES for s in statuses):
        return LegacyOrderStatus.DISPATCHED.value

    if any(s in PROBLEM_STATUSES for s in statuses):
        # needs attention; there is no dedicated status for it
        return LegacyOrderStatus.AWAITING_FULFILMENT.value

    return LegacyOrderStatus.AWAITING_FULFILMENT.value


def suborder_status_for(shipment_status) -> SuborderStatus:
    return SUBORDER_STATUS_FOR_SHIPMENT[SuborderShipmentStatus(shipment_status)]
