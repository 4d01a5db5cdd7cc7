# uniform_workflow/services/fulfilment/shipment_service.py

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from uniform_workflow.constants.activity_codes import ActivityCode
from uniform_workflow.constants.error_codes import ErrorCode
from uniform_workflow.constants.id_prefixes import SHIPMENT_PREFIX
from uniform_workflow.core.exceptions import AppException
from uniform_workflow.models.enums.entity_type import EntityType
from uniform_workflow.models.enums.shipment_status import ShipmentStatus
from uniform_workflow.models.fulfilment.shipment_models import Shipment
from uniform_workflow.models.fulfilment.suborder_models import OrderSuborder
from uniform_workflow.schemas.fulfilment.shipment_schemas import ShipmentCreateSchema, ShipmentOut
from uniform_workflow.schemas.support.actor_schemas import Actor
from uniform_workflow.schemas.workflow.status_schemas import StatusChangeSchema
from uniform_workflow.services.fulfilment.suborder_core import SUBORDER_SHIPMENT_FOR_SHIPMENT
from uniform_workflow.services.fulfilment.suborder_service import (
    ensure_vendor_owns,
    move_suborder_shipment,
)
from uniform_workflow.services.workflow.dual_write_core import DualWriteResult
from uniform_workflow.services.workflow.status_taxonomy import status_value
from uniform_workflow.services.workflow.status_transition_service import (
    apply_initial_status,
    effective_status_of,
    load_status_entity,
    transition_entity,
)
from uniform_workflow.utils.activity_helpers import emit_activity
from uniform_workflow.utils.id_generator import generate_id
from uniform_workflow.utils.logger import get_logger

logger = get_logger(__name__)


async def _get_suborder_for_update(db: AsyncSession, suborder_id: str) -> OrderSuborder:
    suborder = await db.scalar(
        select(OrderSuborder).where(OrderSuborder.id == suborder_id).with_for_update()
    )
    if not suborder:
        raise AppException(404, "Suborder not found", ErrorCode.SUBORDER_NOT_FOUND)
    return suborder


# =====================================================
# CREATE
# =====================================================
async def create_shipment(db: AsyncSession, payload: ShipmentCreateSchema, actor: Actor) -> ShipmentOut:
    suborder = await _get_suborder_for_update(db, payload.suborder_id)
    ensure_vendor_owns(actor, suborder.vendor_id)

    exists = await db.scalar(select(Shipment.id).where(Shipment.suborder_id == suborder.id))
    if exists:
        raise AppException(409, "Suborder already has a shipment", ErrorCode.SHIPMENT_EXISTS)

    shipment = Shipment(
        id=generate_id(SHIPMENT_PREFIX),
        suborder_id=suborder.id,
        shipper_name=payload.shipper_name,
        tracking_number=payload.tracking_number,
        created_by_id=actor.id,
        updated_by_id=actor.id,
    )
    await apply_initial_status(db, EntityType.SHIPMENT, shipment, ShipmentStatus.CREATED, actor)
    db.add(shipment)

    if payload.shipper_name and not suborder.shipper_name:
        suborder.shipper_name = payload.shipper_name
    if payload.tracking_number and not suborder.consignment_number:
        suborder.consignment_number = payload.tracking_number

    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.CREATE_SHIPMENT,
        target_id=shipment.id,
        suborder_id=suborder.id,
    )

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise AppException(409, "Suborder already has a shipment", ErrorCode.SHIPMENT_EXISTS)

    await db.refresh(shipment)
    return ShipmentOut.model_validate(shipment)


async def get_shipment(db: AsyncSession, shipment_id: str) -> ShipmentOut:
    shipment = await load_status_entity(db, EntityType.SHIPMENT, shipment_id)
    return ShipmentOut.model_validate(shipment)


# =====================================================
# STATUS
# =====================================================
async def update_shipment_status(
    db: AsyncSession,
    shipment_id: str,
    payload: StatusChangeSchema,
    actor: Actor,
) -> DualWriteResult:
    """Carrier-level status change, mirrored onto the owning suborder."""
    shipment = await load_status_entity(db, EntityType.SHIPMENT, shipment_id, for_update=True)
    suborder = await _get_suborder_for_update(db, shipment.suborder_id)
    ensure_vendor_owns(actor, suborder.vendor_id)

    previous = effective_status_of(EntityType.SHIPMENT, shipment)

    result = await transition_entity(
        db,
        EntityType.SHIPMENT,
        shipment,
        payload.new_status,
        actor,
        reason=payload.reason,
        metadata=payload.metadata,
        expected_version=payload.expected_version,
    )

    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.CHANGE_STATUS,
        entity_type=EntityType.SHIPMENT.value,
        target_id=shipment.id,
        old_status=previous,
        new_status=status_value(payload.new_status),
    )

    suborder_target = SUBORDER_SHIPMENT_FOR_SHIPMENT[ShipmentStatus(status_value(payload.new_status))]
    if suborder.shipment_status != suborder_target.value:
        await move_suborder_shipment(
            db,
            suborder,
            suborder_target,
            actor,
            details={
                "shipper_name": shipment.shipper_name,
                "consignment_number": shipment.tracking_number,
                "delivered_date": shipment.delivered_date,
                "failure_reason": shipment.failure_reason,
            },
            strict=False,
        )

    await db.commit()
    await db.refresh(shipment)

    logger.info(
        "Shipment status updated",
        extra={"shipment_id": shipment.id, "from": previous, "to": shipment.unified_shipment_status},
    )
    return result
