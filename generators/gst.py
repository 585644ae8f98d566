"""
GST (Goods and Services Tax) calculations.

Intra-state supplies are taxed as CGST + SGST (half each), inter-state
supplies as IGST. All amounts are computed with ``Decimal`` and rounded
half-up to paise once, at the very end.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from numbers import Number

from generators.errors import InvalidArgumentError
from generators.invoice_data import TaxSummaryRow

TWO_PLACES = Decimal("0.01")
HUNDRED = Decimal(100)


def to_decimal(value, name: str = "value") -> Decimal:
    """Convert a numeric value to ``Decimal`` without binary float artefacts.

    Raises:
        InvalidArgumentError: for bools, non-numbers, NaN and infinities.
    """
    if isinstance(value, bool) or not isinstance(value, (Number, Decimal)):
        raise InvalidArgumentError(f"{name} must be a number, got {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise InvalidArgumentError(f"{name} must be finite, got {value!r}")
        result = Decimal(repr(value))
    else:
        try:
            result = Decimal(value)
        except (TypeError, ValueError) as exc:
            raise InvalidArgumentError(f"{name} must be a number, got {value!r}") from exc
    if not result.is_finite():
        raise InvalidArgumentError(f"{name} must be finite, got {value!r}")
    return result


def round_money(value: Decimal) -> float:
    """Round half-up to 2 decimals and return a float."""
    return float(value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP))


def normalize_state(state: str | None) -> str:
    return (state or "").strip().casefold()


@dataclass(frozen=True)
class GstSplit:
    """Tax split of one amount into IGST / CGST / SGST."""
    igst_amount: float = 0.0
    cgst_amount: float = 0.0
    sgst_amount: float = 0.0

    @property
    def total(self) -> float:
        return round(self.igst_amount + self.cgst_amount + self.sgst_amount, 2)

    @property
    def is_interstate(self) -> bool:
        return self.igst_amount != 0


def calculate_gst(line_total, gst_rate, supplier_state: str | None,
                  recipient_state: str | None) -> GstSplit:
    """Split the GST on ``line_total`` into IGST or CGST + SGST.

    Args:
        line_total: Taxable value of the line (before tax).
        gst_rate: Total GST percentage, e.g. 18 for 18 %.
        supplier_state: State of the issuing company.
        recipient_state: State of the client.

    Returns:
        ``GstSplit`` with all three amounts rounded to paise.

    Two empty states compare equal and therefore yield CGST + SGST.
    """
    total_tax = to_decimal(line_total, "line_total") * to_decimal(gst_rate, "gst_rate") / HUNDRED

    if normalize_state(supplier_state) == normalize_state(recipient_state):
        half = round_money(total_tax / 2)
        return GstSplit(igst_amount=0.0, cgst_amount=half, sgst_amount=half)
    return GstSplit(igst_amount=round_money(total_tax), cgst_amount=0.0, sgst_amount=0.0)


def calculate_line_amounts(quantity, unit_price, gst_rate) -> tuple[float, float]:
    """Return ``(line_total, gst_amount)`` for one invoice line."""
    qty = to_decimal(quantity, "quantity")
    price = to_decimal(unit_price, "unit_price")
    rate = to_decimal(gst_rate, "gst_rate")
    if qty <= 0:
        raise InvalidArgumentError(f"quantity must be positive, got {quantity!r}")
    if price < 0:
        raise InvalidArgumentError(f"unit_price must not be negative, got {unit_price!r}")
    if not 0 <= rate <= 100:
        raise InvalidArgumentError(f"gst_rate must be between 0 and 100, got {gst_rate!r}")

    line_total = (qty * price).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    gst_amount = line_total * rate / HUNDRED
    return float(line_total), round_money(gst_amount)


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: float
    total_gst: float
    total_amount: float


def calculate_invoice_totals(lines, discount=0) -> InvoiceTotals:
    """Sum ``(line_total, gst_amount)`` pairs and apply the discount."""
    subtotal = Decimal(0)
    total_gst = Decimal(0)
    for line_total, gst_amount in lines:
        subtotal += to_decimal(line_total, "line_total")
        total_gst += to_decimal(gst_amount, "gst_amount")
    disc = to_decimal(discount or 0, "discount")
    return InvoiceTotals(
        subtotal=round_money(subtotal),
        total_gst=round_money(total_gst),
        total_amount=round_money(subtotal + total_gst - disc),
    )


def line_split(item, supplier_state: str | None, recipient_state: str | None) -> GstSplit:
    """The frozen split of a line item if it has one, else a fresh calculation."""
    frozen = (item.igst_amount, item.cgst_amount, item.sgst_amount)
    if any(v is not None for v in frozen):
        igst, cgst, sgst = (v or 0.0 for v in frozen)
        return GstSplit(igst_amount=igst, cgst_amount=cgst, sgst_amount=sgst)
    return calculate_gst(item.line_total, item.gst_rate, supplier_state, recipient_state)


def summarize_by_hsn(items, supplier_state: str | None, recipient_state: str | None):
    """Group line items by HSN/SAC code into tax summary rows (first-seen order)."""
    groups: dict[str, list[Decimal]] = {}
    for item in items:
        split = line_split(item, supplier_state, recipient_state)
        row = groups.setdefault(item.hsn_sac or "", [Decimal(0)] * 4)
        row[0] += to_decimal(item.line_total, "line_total")
        row[1] += to_decimal(split.cgst_amount)
        row[2] += to_decimal(split.sgst_amount)
        row[3] += to_decimal(split.igst_amount)

    return [
        TaxSummaryRow(
            sac=sac,
            taxable_value=round_money(taxable),
            cgst=round_money(cgst),
            sgst=round_money(sgst),
            igst=round_money(igst),
            total=round_money(cgst + sgst + igst),
        )
        for sac, (taxable, cgst, sgst, igst) in groups.items()
    ]
