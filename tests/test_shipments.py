"""
Carrier shipments and their mirror onto the owning suborder.
"""

import pytest

from uniform_workflow.core.exceptions import AppException
from uniform_workflow.models.enums.order_status import OrderStatus
from uniform_workflow.models.enums.shipment_status import ShipmentStatus, SuborderShipmentStatus
from uniform_workflow.models.fulfilment.suborder_models import OrderSuborder
from uniform_workflow.schemas.fulfilment.shipment_schemas import ShipmentCreateSchema
from uniform_workflow.schemas.workflow.status_schemas import StatusChangeSchema
from uniform_workflow.services.fulfilment.shipment_service import (
    create_shipment,
    get_shipment,
    update_shipment_status,
)
from uniform_workflow.services.fulfilment.suborder_service import create_suborders_for_order
from uniform_workflow.services.orders.order_service import get_order

from conftest import approved_order


async def _suborder(db, employee, site_admin, company_admin):
    order = await approved_order(db, employee, site_admin, company_admin)
    data = await create_suborders_for_order(db, order.id, company_admin)
    return order, data.items[0]


async def _move(db, shipment_id, status, actor):
    return await update_shipment_status(db, shipment_id, StatusChangeSchema(new_status=status), actor)


class TestCreateShipment:

    async def test_created_with_carrier_details(self, db, employee, site_admin, company_admin, vendor_a):
        _, suborder = await _suborder(db, employee, site_admin, company_admin)

        shipment = await create_shipment(
            db,
            ShipmentCreateSchema(suborder_id=suborder.id, shipper_name="BlueDart", tracking_number="BD-1"),
            vendor_a,
        )

        assert shipment.unified_shipment_status == ShipmentStatus.CREATED.value
        assert shipment.shipment_status == "CREATED"

        stored = await db.get(OrderSuborder, suborder.id)
        assert stored.shipper_name == "BlueDart"
        assert stored.consignment_number == "BD-1"

    async def test_one_shipment_per_suborder(self, db, employee, site_admin, company_admin, vendor_a):
        _, suborder = await _suborder(db, employee, site_admin, company_admin)
        await create_shipment(db, ShipmentCreateSchema(suborder_id=suborder.id), vendor_a)

        with pytest.raises(AppException) as exc:
            await create_shipment(db, ShipmentCreateSchema(suborder_id=suborder.id), vendor_a)
        assert exc.value.status_code == 409

    async def test_other_vendor_is_forbidden(self, db, employee, site_admin, company_admin, vendor_b):
        _, suborder = await _suborder(db, employee, site_admin, company_admin)

        with pytest.raises(AppException) as exc:
            await create_shipment(db, ShipmentCreateSchema(suborder_id=suborder.id), vendor_b)
        assert exc.value.status_code == 403

    async def test_unknown_suborder(self, db, vendor_a):
        with pytest.raises(AppException) as exc:
            await create_shipment(db, ShipmentCreateSchema(suborder_id="SUB-NOPE"), vendor_a)
        assert exc.value.status_code == 404


class TestShipmentStatus:
    """Carrier moves drive the suborder, which drives the master order."""

    async def test_pickup_ships_suborder_and_dispatches_order(
        self, db, employee, site_admin, company_admin, vendor_a
    ):
        order, suborder = await _suborder(db, employee, site_admin, company_admin)
        shipment = await create_shipment(db, ShipmentCreateSchema(suborder_id=suborder.id), vendor_a)

        result = await _move(db, shipment.id, ShipmentStatus.PICKED_UP.value, vendor_a)

        assert result.validation.valid
        stored = await db.get(OrderSuborder, suborder.id)
        assert stored.shipment_status == SuborderShipmentStatus.SHIPPED.value
        assert (await get_order(db, order.id)).unified_status == OrderStatus.DISPATCHED.value

    async def test_delivery_flows_up_to_order(self, db, employee, site_admin, company_admin, vendor_a):
        order, suborder = await _suborder(db, employee, site_admin, company_admin)
        shipment = await create_shipment(db, ShipmentCreateSchema(suborder_id=suborder.id), vendor_a)

        for status in (ShipmentStatus.PICKED_UP, ShipmentStatus.IN_TRANSIT, ShipmentStatus.DELIVERED):
            await _move(db, shipment.id, status.value, vendor_a)

        delivered = await get_shipment(db, shipment.id)
        assert delivered.unified_shipment_status == ShipmentStatus.DELIVERED.value
        assert delivered.delivered_date is not None

        stored = await db.get(OrderSuborder, suborder.id)
        assert stored.shipment_status == SuborderShipmentStatus.DELIVERED.value
        assert stored.delivered_date is not None
        assert (await get_order(db, order.id)).unified_status == OrderStatus.DELIVERED.value

    async def test_manifest_keeps_suborder_unshipped(self, db, employee, site_admin, company_admin, vendor_a):
        _, suborder = await _suborder(db, employee, site_admin, company_admin)
        shipment = await create_shipment(db, ShipmentCreateSchema(suborder_id=suborder.id), vendor_a)

        await _move(db, shipment.id, ShipmentStatus.MANIFESTED.value, vendor_a)

        stored = await db.get(OrderSuborder, suborder.id)
        assert stored.shipment_status == SuborderShipmentStatus.NOT_SHIPPED.value

    async def test_skipping_pickup_is_rejected(self, db, employee, site_admin, company_admin, vendor_a):
        _, suborder = await _suborder(db, employee, site_admin, company_admin)
        shipment = await create_shipment(db, ShipmentCreateSchema(suborder_id=suborder.id), vendor_a)

        with pytest.raises(AppException) as exc:
            await _move(db, shipment.id, ShipmentStatus.DELIVERED.value, vendor_a)
        assert exc.value.status_code == 400

    async def test_other_vendor_cannot_move_shipment(
        self, db, employee, site_admin, company_admin, vendor_a, vendor_b
    ):
        _, suborder = await _suborder(db, employee, site_admin, company_admin)
        shipment = await create_shipment(db, ShipmentCreateSchema(suborder_id=suborder.id), vendor_a)

        with pytest.raises(AppException) as exc:
            await _move(db, shipment.id, ShipmentStatus.PICKED_UP.value, vendor_b)
        assert exc.value.status_code == 403
