"""Payment Ledger & Status Reconciler."""
import uuid
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from glassbill.core.exceptions import CrossTenantAccessError, InvalidAmountError, NotFoundError
from glassbill.models.billing import PaymentStatus
from glassbill.services.invoice_service import InvoiceService
from glassbill.services.payment_service import PaymentService, payment_status_for

from conftest import payment


def _assert_consistent(invoice):
    assert invoice.paid_amount + invoice.due_amount == invoice.grand_total
    assert invoice.payment_status == payment_status_for(invoice.paid_amount, invoice.grand_total).value


@pytest.mark.parametrize("paid,expected", [
    (Decimal("0"), PaymentStatus.DUE),
    (Decimal("0.01"), PaymentStatus.PARTIAL),
    (Decimal("1297.99"), PaymentStatus.PARTIAL),
    (Decimal("1298"), PaymentStatus.PAID),
    (Decimal("1500"), PaymentStatus.PAID),
])
def test_status_rule(paid, expected):
    assert payment_status_for(paid, Decimal("1298.00")) == expected


async def test_partial_then_full(db, tenant_a, make_invoice):
    invoice = await make_invoice(tenant_a)
    service = PaymentService(db)

    await service.add_payment(tenant_a, invoice.id, payment(500, "UPI", transaction_id="UTR123"))
    assert invoice.paid_amount == Decimal("500.00")
    assert invoice.due_amount == Decimal("798.00")
    assert invoice.payment_status == PaymentStatus.PARTIAL.value
    _assert_consistent(invoice)

    await service.add_payment(tenant_a, invoice.id, payment(798, "CASH"))
    assert invoice.paid_amount == Decimal("1298.00")
    assert invoice.due_amount == Decimal("0.00")
    assert invoice.payment_status == PaymentStatus.PAID.value
    _assert_consistent(invoice)


async def test_payment_row_metadata(db, tenant_a, make_invoice):
    invoice = await make_invoice(tenant_a)
    paid_on = datetime(2026, 10, 1, 10, 30, tzinfo=timezone.utc)

    recorded = await PaymentService(db).add_payment(
        tenant_a,
        invoice.id,
        payment(
            "250.5",
            "CHEQUE",
            payment_date=paid_on,
            cheque_number="000123",
            bank_name="State Bank",
            notes="Advance",
        ),
    )

    assert recorded.invoice_id == invoice.id
    assert recorded.amount == Decimal("250.50")
    assert recorded.payment_mode == "CHEQUE"
    assert recorded.cheque_number == "000123"
    assert recorded.bank_name == "State Bank"
    assert recorded.created_by == "owner_a"
    assert recorded.created_at is not None


async def test_overpayment_makes_due_negative(db, tenant_a, make_invoice):
    invoice = await make_invoice(tenant_a)

    await PaymentService(db).add_payment(tenant_a, invoice.id, payment(1500))

    assert invoice.paid_amount == Decimal("1500.00")
    assert invoice.due_amount == Decimal("-202.00")
    assert invoice.payment_status == PaymentStatus.PAID.value
    _assert_consistent(invoice)


@pytest.mark.parametrize("amount", ["0", "-10"])
async def test_non_positive_amount(db, tenant_a, make_invoice, amount):
    invoice = await make_invoice(tenant_a)

    with pytest.raises(InvalidAmountError) as exc_info:
        await PaymentService(db).add_payment(tenant_a, invoice.id, payment(amount))
    assert exc_info.value.status_code == 422

    assert invoice.paid_amount == Decimal("0.00")
    assert invoice.payment_status == PaymentStatus.DUE.value


@pytest.mark.parametrize("amount", ["0.004", "100.005", "12.3456"])
async def test_sub_paisa_amount_is_rejected(db, tenant_a, make_invoice, amount):
    invoice = await make_invoice(tenant_a)
    service = PaymentService(db)

    with pytest.raises(InvalidAmountError):
        await service.add_payment(tenant_a, invoice.id, payment(amount))

    assert await service.list_payments(tenant_a, invoice.id) == []
    assert invoice.paid_amount == Decimal("0.00")
    assert invoice.payment_status == PaymentStatus.DUE.value


async def test_trailing_zeros_are_accepted(db, tenant_a, make_invoice):
    invoice = await make_invoice(tenant_a)

    recorded = await PaymentService(db).add_payment(tenant_a, invoice.id, payment("0.010"))

    assert recorded.amount == Decimal("0.01")
    assert recorded.amount > 0
    assert invoice.payment_status == PaymentStatus.PARTIAL.value


async def test_other_shop_cannot_pay_or_read(db, tenant_a, tenant_b, make_invoice):
    invoice = await make_invoice(tenant_a)
    service = PaymentService(db)

    with pytest.raises(CrossTenantAccessError):
        await service.add_payment(tenant_b, invoice.id, payment(100))
    with pytest.raises(CrossTenantAccessError):
        await service.list_payments(tenant_b, invoice.id)

    assert await service.list_payments(tenant_a, invoice.id) == []


async def test_unknown_invoice(db, tenant_a):
    with pytest.raises(NotFoundError):
        await PaymentService(db).add_payment(tenant_a, uuid.uuid4(), payment(100))


async def test_totals_follow_the_ledger(db, tenant_a, make_invoice):
    """Paid amount is always the sum of stored payments, however many."""
    invoice = await make_invoice(tenant_a)
    service = PaymentService(db)
    amounts = ["100.10", "200.20", "300.30", "0.40"]

    for amount in amounts:
        await service.add_payment(tenant_a, invoice.id, payment(amount))
        _assert_consistent(invoice)

    payments = await service.list_payments(tenant_a, invoice.id)
    assert len(payments) == 4
    assert sum(p.amount for p in payments) == invoice.paid_amount == Decimal("601.00")

    reloaded = await InvoiceService(db).get(tenant_a, invoice.id)
    assert len(reloaded.payments) == 4
    assert reloaded.payment_status == PaymentStatus.PARTIAL.value
