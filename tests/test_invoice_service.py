"""Invoice Materializer: snapshot copy, numbering and guards."""
import re
import uuid
from datetime import date
from decimal import Decimal

import pytest

from glassbill.core.exceptions import (
    CrossTenantAccessError,
    NotFoundError,
    QuotationNotConfirmedError,
)
from glassbill.models.billing import InvoiceType, PaymentStatus
from glassbill.schemas.quotation import QuotationItemCreate
from glassbill.services.invoice_service import InvoiceService
from glassbill.services.quotation_service import QuotationService

INVOICE_NUMBER = re.compile(r"^INV-\d{4}-\d{2}-\d{4}$")
ADVANCE_NUMBER = re.compile(r"^ADV-\d{4}-\d{2}-\d{4}$")


async def test_copies_confirmed_quotation(db, tenant_a, local_customer, make_quotation):
    quotation = await make_quotation(
        tenant_a, confirm=True, customer_id=local_customer.id, customer_name=None, customer_state=None
    )

    invoice = await InvoiceService(db).create_from_quotation(
        tenant_a, quotation.id, InvoiceType.STANDARD, invoice_date=date(2026, 10, 18)
    )

    assert INVOICE_NUMBER.match(invoice.invoice_number)
    assert invoice.quotation_id == quotation.id
    assert invoice.customer_id == local_customer.id
    assert invoice.invoice_date == date(2026, 10, 18)
    assert invoice.customer_name == quotation.customer_name
    assert invoice.customer_gstin == quotation.customer_gstin
    assert invoice.customer_state == quotation.customer_state
    for field in ("subtotal", "installation_charge", "transport_charge", "discount",
                  "cgst", "sgst", "igst", "gst_amount", "grand_total"):
        assert getattr(invoice, field) == getattr(quotation, field), field
    assert invoice.grand_total == Decimal("1298.00")

    assert invoice.paid_amount == Decimal("0.00")
    assert invoice.due_amount == Decimal("1298.00")
    assert invoice.payment_status == PaymentStatus.DUE.value
    assert invoice.created_by == "owner_a"


async def test_items_copied_with_order(db, tenant_a, make_quotation):
    items = [
        QuotationItemCreate(glass_type="Clear Float", thickness="5mm", height=Decimal("10"),
                            width=Decimal("10"), quantity=1, rate_per_sqft=Decimal("10")),
        QuotationItemCreate(glass_type="Lacquered", thickness="8mm", height=Decimal("600"),
                            width=Decimal("900"), height_unit="MM", width_unit="MM",
                            quantity=4, rate_per_sqft=Decimal("120"), hsn_code="7005"),
    ]
    quotation = await make_quotation(tenant_a, confirm=True, items=items, discount_value=Decimal("0"))

    invoice = await InvoiceService(db).create_from_quotation(tenant_a, quotation.id)

    assert len(invoice.items) == len(quotation.items) == 2
    for source, copied in zip(quotation.items, invoice.items):
        assert copied.item_order == source.item_order
        assert copied.glass_type == source.glass_type
        assert copied.thickness == source.thickness
        assert copied.area == source.area
        assert copied.subtotal == source.subtotal
        assert copied.height_unit == source.height_unit


async def test_advance_invoice_prefix(db, tenant_a, make_invoice):
    advance = await make_invoice(tenant_a, InvoiceType.ADVANCE)
    standard = await make_invoice(tenant_a, InvoiceType.STANDARD)

    assert ADVANCE_NUMBER.match(advance.invoice_number)
    assert advance.invoice_type == InvoiceType.ADVANCE.value
    assert INVOICE_NUMBER.match(standard.invoice_number)
    assert advance.invoice_number.endswith("-0001")
    assert standard.invoice_number.endswith("-0001")


async def test_draft_and_rejected_cannot_be_invoiced(db, tenant_a, make_quotation):
    service = InvoiceService(db)
    draft = await make_quotation(tenant_a)
    rejected = await make_quotation(tenant_a)
    await QuotationService(db).reject(tenant_a, rejected.id, "Lost to competitor")

    for quotation in (draft, rejected):
        with pytest.raises(QuotationNotConfirmedError) as exc_info:
            await service.create_from_quotation(tenant_a, quotation.id)
        assert exc_info.value.status_code == 409


async def test_other_shop_cannot_invoice(db, tenant_a, tenant_b, make_quotation):
    quotation = await make_quotation(tenant_a, confirm=True)

    with pytest.raises(CrossTenantAccessError):
        await InvoiceService(db).create_from_quotation(tenant_b, quotation.id)


async def test_unknown_quotation(db, tenant_a):
    with pytest.raises(NotFoundError):
        await InvoiceService(db).create_from_quotation(tenant_a, uuid.uuid4())


async def test_second_invoice_from_same_quotation_is_allowed(db, tenant_a, make_quotation):
    quotation = await make_quotation(tenant_a, confirm=True)
    service = InvoiceService(db)

    first = await service.create_from_quotation(tenant_a, quotation.id)
    second = await service.create_from_quotation(tenant_a, quotation.id)

    assert first.invoice_number != second.invoice_number
    assert first.quotation_id == second.quotation_id


async def test_invoice_figures_do_not_follow_quotation(db, tenant_a, make_invoice):
    invoice = await make_invoice(tenant_a)
    quotation = await QuotationService(db).get(tenant_a, invoice.quotation_id)

    quotation.grand_total = Decimal("1.00")
    await db.flush()

    reloaded = await InvoiceService(db).get(tenant_a, invoice.id)
    assert reloaded.grand_total == Decimal("1298.00")


async def test_get_and_lists_are_shop_scoped(db, tenant_a, tenant_b, make_invoice):
    mine = await make_invoice(tenant_a)
    theirs = await make_invoice(tenant_b, customer_state="Karnataka")
    service = InvoiceService(db)

    with pytest.raises(CrossTenantAccessError):
        await service.get(tenant_a, theirs.id)

    invoices, total = await service.list(tenant_a)
    assert total == 1
    assert invoices[0].id == mine.id

    due, total = await service.list_by_payment_status(tenant_a, PaymentStatus.DUE)
    assert total == 1
    paid, total = await service.list_by_payment_status(tenant_a, PaymentStatus.PAID)
    assert total == 0 and paid == []
