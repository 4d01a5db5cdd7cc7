from enum import Enum


class OrderStatus(str, Enum):
    CREATED = "CREATED"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    IN_FULFILMENT = "IN_FULFILMENT"
    DISPATCHED = "DISPATCHED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class LegacyOrderStatus(str, Enum):
    AWAITING_APPROVAL = "Awaiting approval"
    AWAITING_FULFILMENT = "Awaiting fulfilment"
    DISPATCHED = "Dispatched"
    DELIVERED = "Delivered"
