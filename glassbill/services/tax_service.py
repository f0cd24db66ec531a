"""Tax Computation Engine for glass quotations and invoices.

Implements the GST split used on every quotation:
- Same supplier and customer state (intra-state) -> CGST + SGST, half each
- Different states (inter-state) -> IGST for the whole tax
- NON_GST billing -> no tax at all

All arithmetic is Decimal. Intermediate values are kept unrounded and
quantized to 2 places (ROUND_HALF_UP) once, when the result is produced.

Example:
- Subtotal: 1000, Installation: 100, Transport: 50, Discount: 50
- Taxable base: 1100
- GST 18% same state: CGST 99 + SGST 99 = 198
- Grand total: 1298
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

from glassbill.core.exceptions import InvalidDiscountError, InvalidTaxRateError, ValidationError
from glassbill.models.quotation import DimensionUnit, DiscountType

Number = Union[Decimal, int, float, str]

TWO_PLACES = Decimal("0.01")
HUNDRED = Decimal("100")

# Length of one unit expressed in feet
UNIT_TO_FEET = {
    DimensionUnit.FEET: Decimal("1"),
    DimensionUnit.INCH: Decimal("1") / Decimal("12"),
    DimensionUnit.MM: Decimal("1") / Decimal("304.8"),
}


def to_decimal(value: Optional[Number]) -> Decimal:
    """Convert without going through binary floating point."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_money(value: Optional[Number]) -> Decimal:
    """Round to 2 decimal places, half up."""
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def same_state(supplier_state: Optional[str], customer_state: Optional[str]) -> bool:
    """
    Intra-state check.

    Names are compared trimmed and case-insensitively. A missing state on
    either side is treated as an intra-state sale.
    """
    if not supplier_state or not customer_state:
        return True
    return supplier_state.strip().casefold() == customer_state.strip().casefold()


@dataclass(frozen=True)
class TaxResult:
    taxable_base: Decimal
    cgst: Decimal
    sgst: Decimal
    igst: Decimal
    tax_amount: Decimal
    grand_total: Decimal
    is_interstate: bool


def compute(
    subtotal: Number,
    installation_charge: Number,
    transport_charge: Number,
    discount: Number,
    tax_percentage: Optional[Number],
    supplier_state: Optional[str],
    customer_state: Optional[str],
) -> TaxResult:
    """
    Compute the tax split and grand total.

    taxable_base = subtotal + installation + transport - discount
    tax_amount = taxable_base * tax_percentage / 100

    A tax_percentage of None means no tax (NON_GST billing).

    Raises:
        InvalidTaxRateError: tax_percentage outside [0, 100]
        InvalidDiscountError: discount negative or above subtotal + charges
    """
    gross = to_decimal(subtotal) + to_decimal(installation_charge) + to_decimal(transport_charge)
    discount = to_decimal(discount)

    if discount < 0 or discount > gross:
        raise InvalidDiscountError(
            "Discount must be between 0 and subtotal plus charges",
            {"discount": str(discount), "maximum": str(to_money(gross))}
        )

    rate = Decimal("0")
    if tax_percentage is not None:
        rate = to_decimal(tax_percentage)
        if rate < 0 or rate > HUNDRED:
            raise InvalidTaxRateError(
                "Tax percentage must be between 0 and 100",
                {"tax_percentage": str(rate)}
            )

    taxable_base = gross - discount
    tax = taxable_base * rate / HUNDRED
    interstate = not same_state(supplier_state, customer_state)
    tax_amount = to_money(tax)

    if interstate:
        igst = tax_amount
        cgst = sgst = to_money(0)
    else:
        # SGST takes the odd cent so the halves always add up to tax_amount
        cgst = to_money(tax_amount / 2)
        sgst = tax_amount - cgst
        igst = to_money(0)

    taxable_base = to_money(taxable_base)

    return TaxResult(
        taxable_base=taxable_base,
        cgst=cgst,
        sgst=sgst,
        igst=igst,
        tax_amount=tax_amount,
        grand_total=taxable_base + tax_amount,
        is_interstate=interstate,
    )


# ==================== Line item helpers ====================

def length_in_feet(value: Number, unit: Union[DimensionUnit, str]) -> Decimal:
    return to_decimal(value) * UNIT_TO_FEET[DimensionUnit(unit)]


def item_area(
    height: Number,
    width: Number,
    height_unit: Union[DimensionUnit, str] = DimensionUnit.FEET,
    width_unit: Union[DimensionUnit, str] = DimensionUnit.FEET,
) -> Decimal:
    """Unrounded area of one pane in square feet."""
    h = to_decimal(height)
    w = to_decimal(width)
    if h <= 0 or w <= 0:
        raise ValidationError(
            "Height and width must be greater than zero",
            {"height": str(h), "width": str(w)}
        )
    return length_in_feet(h, height_unit) * length_in_feet(w, width_unit)


def item_subtotal(area: Decimal, rate_per_sqft: Number, quantity: int) -> Decimal:
    """Unrounded line subtotal: area x rate x quantity."""
    if quantity is None or quantity <= 0:
        raise ValidationError("Quantity must be greater than zero", {"quantity": quantity})
    rate = to_decimal(rate_per_sqft)
    if rate < 0:
        raise ValidationError("Rate per sq ft cannot be negative", {"rate_per_sqft": str(rate)})
    return area * rate * quantity


def resolve_discount(
    discount_type: Union[DiscountType, str],
    discount_value: Optional[Number],
    subtotal: Number,
    installation_charge: Number,
    transport_charge: Number,
) -> Decimal:
    """
    Discount amount for a quotation.

    AMOUNT uses the value as entered; PERCENTAGE applies it to
    subtotal + installation + transport.
    """
    value = to_decimal(discount_value)
    if DiscountType(discount_type) == DiscountType.PERCENTAGE:
        if value < 0 or value > HUNDRED:
            raise InvalidDiscountError(
                "Discount percentage must be between 0 and 100",
                {"discount_value": str(value)}
            )
        gross = to_decimal(subtotal) + to_decimal(installation_charge) + to_decimal(transport_charge)
        return to_money(gross * value / HUNDRED)
    return to_money(value)
