"""
Pytest fixtures for the workflow test suite.

Provides:
- An in-memory SQLite database (aiosqlite) rebuilt for every test
- Async sessions bound to it
- Actors for every role
- An HTTP client wired to the FastAPI app with the session overridden
- Builders that walk records through the procurement chain
"""

import os

os.environ.setdefault("APP_ENV", "development")
os.environ.setdefault("DB_TYPE", "sqlite")
os.environ.setdefault("SQLITE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ENABLE_SCHEDULER", "false")

from decimal import Decimal

import httpx
import pytest
from sqlalchemy.pool import StaticPool

from uniform_workflow.core.db import Base, build_engine, build_session_factory, get_db
from uniform_workflow.models.enums.actor_role import ActorRole
from uniform_workflow.schemas.support.actor_schemas import Actor
from uniform_workflow.schemas.orders.order_schemas import (
    OrderCreateSchema,
    OrderItemCreate,
    SiteAdminApproveSchema,
)
from uniform_workflow.schemas.indents.indent_schemas import IndentCreateSchema
from uniform_workflow.schemas.settlement.grn_schemas import GRNCreateSchema, GRNItemCreate
from uniform_workflow.schemas.settlement.invoice_schemas import VendorInvoiceCreateSchema
from uniform_workflow.services.fulfilment.suborder_service import create_suborders_for_order
from uniform_workflow.services.indents.indent_service import create_indent
from uniform_workflow.services.orders.order_service import (
    company_admin_approve,
    create_order,
    site_admin_approve,
)
from uniform_workflow.services.settlement.grn_service import approve_grn, create_grn, submit_grn
from uniform_workflow.services.settlement.invoice_service import (
    approve_invoice,
    create_vendor_invoice,
    submit_invoice,
)

COMPANY_ID = "CMP-ACME"
SITE_ID = "SITE-NORTH"
VENDOR_A = "VND-A"
VENDOR_B = "VND-B"


# =============================================================================
# Database
# =============================================================================

@pytest.fixture
async def engine():
    engine = build_engine("sqlite+aiosqlite://", poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


# =============================================================================
# Actors
# =============================================================================

@pytest.fixture
def employee():
    return Actor(id="EMP-1", role=ActorRole.EMPLOYEE, name="Asha")


@pytest.fixture
def site_admin():
    return Actor(id="SA-1", role=ActorRole.SITE_ADMIN, name="Ravi")


@pytest.fixture
def company_admin():
    return Actor(id="CA-1", role=ActorRole.COMPANY_ADMIN, name="Meera")


@pytest.fixture
def vendor_a():
    return Actor(id=VENDOR_A, role=ActorRole.VENDOR, name="Stitch Co")


@pytest.fixture
def vendor_b():
    return Actor(id=VENDOR_B, role=ActorRole.VENDOR, name="Thread Ltd")


def headers_for(actor: Actor) -> dict:
    return {
        "X-Actor-Id": actor.id,
        "X-Actor-Role": actor.role.value,
        "X-Actor-Name": actor.name or actor.id,
    }


# =============================================================================
# HTTP
# =============================================================================

@pytest.fixture
async def client(session_factory):
    from main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


# =============================================================================
# Builders
# =============================================================================

def order_payload(vendors=(VENDOR_A,), split_by_vendor=False, submit=True) -> OrderCreateSchema:
    return OrderCreateSchema(
        company_id=COMPANY_ID,
        site_id=SITE_ID,
        vendor_id=vendors[0] if len(vendors) == 1 else None,
        split_by_vendor=split_by_vendor,
        submit=submit,
        items=[
            OrderItemCreate(
                product_id=f"SHIRT-{vendor_id}",
                product_name="Uniform shirt",
                size="M",
                quantity=4,
                unit_price=Decimal("250.00"),
                vendor_id=vendor_id,
            )
            for vendor_id in vendors
        ],
    )


async def approved_order(db, employee, site_admin, company_admin, vendors=(VENDOR_A,), pr_number="PR-001"):
    """Single order carrying items for every vendor, approved at both levels."""
    [order] = await create_order(db, order_payload(vendors), employee)
    await site_admin_approve(db, order.id, SiteAdminApproveSchema(pr_number=pr_number), site_admin)
    return await company_admin_approve(db, order.id, company_admin)


async def indent_for(db, order_ids, actor, number="IND-001"):
    return await create_indent(
        db,
        IndentCreateSchema(
            client_indent_number=number,
            company_id=COMPANY_ID,
            site_id=SITE_ID,
            order_ids=list(order_ids),
        ),
        actor,
    )


async def approved_invoice_chain(db, employee, site_admin, company_admin, vendor, tax_amount=Decimal("50.00")):
    """
    Order -> indent -> suborder -> GRN (approved) -> invoice (approved)
    for a single vendor. Returns the ids needed to continue the chain.
    """
    order = await approved_order(db, employee, site_admin, company_admin, vendors=(vendor.id,))
    indent = await indent_for(db, [order.id], company_admin)
    suborders = await create_suborders_for_order(db, order.id, company_admin)
    vendor_indent_id = indent.vendor_indents[0].id

    grn = await create_grn(
        db,
        GRNCreateSchema(
            vendor_indent_id=vendor_indent_id,
            grn_number=f"GRN-{order.id}",
            items=[
                GRNItemCreate(
                    product_id=f"SHIRT-{vendor.id}",
                    product_name="Uniform shirt",
                    size="M",
                    quantity=4,
                    unit_price=Decimal("250.00"),
                )
            ],
        ),
        vendor,
    )
    await submit_grn(db, grn.id, vendor)
    await approve_grn(db, grn.id, company_admin)

    invoice = await create_vendor_invoice(
        db,
        VendorInvoiceCreateSchema(grn_id=grn.id, invoice_number=f"INV-{order.id}", tax_amount=tax_amount),
        vendor,
    )
    await submit_invoice(db, invoice.id, vendor)
    await approve_invoice(db, invoice.id, company_admin)

    return {
        "order_id": order.id,
        "indent_id": indent.id,
        "vendor_indent_id": vendor_indent_id,
        "suborder_id": suborders.items[0].id,
        "grn_id": grn.id,
        "invoice_id": invoice.id,
    }
