"""
Canonical input model for invoice rendering.

``InvoiceData`` is the only thing a template sees. It is built fresh for
every render request (see ``helpers.build_invoice_data``) and never
mutated by the generators.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Mapping

from generators.errors import InvoiceValidationError

TOTALS_TOLERANCE = 0.01


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"

    @classmethod
    def parse(cls, value) -> "InvoiceStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "draft").strip().lower())
        except ValueError:
            return cls.DRAFT


@dataclass(frozen=True)
class BankDetails:
    bank_name: str | None = None
    account_number: str | None = None
    ifsc: str | None = None
    account_name: str | None = None
    account_type: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.bank_name or self.account_number)


@dataclass(frozen=True)
class CompanyInfo:
    company_name: str = ""
    address: str | None = None
    email: str | None = None
    phone: str | None = None
    gstin: str | None = None
    pan: str | None = None
    logo_url: str | None = None
    website: str | None = None
    state: str | None = None
    bank: BankDetails | None = None


@dataclass(frozen=True)
class ClientInfo:
    name: str = ""
    company_name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    gstin: str | None = None
    state: str | None = None
    city: str | None = None
    pin_code: str | None = None

    @property
    def display_name(self) -> str:
        return self.company_name or self.name


@dataclass(frozen=True)
class LineItem:
    """A single invoice line (one product/service at a rate and tax %)."""
    item_name: str = ""
    quantity: float = 1
    unit_price: float = 0.0
    gst_rate: float = 0.0
    line_total: float = 0.0
    gst_amount: float = 0.0
    description: str | None = None
    hsn_sac: str | None = None
    # Split frozen at invoice creation; None means "not recorded"
    igst_amount: float | None = None
    cgst_amount: float | None = None
    sgst_amount: float | None = None

    @property
    def total_with_gst(self) -> float:
        return round(self.line_total + self.gst_amount, 2)


@dataclass(frozen=True)
class TaxSummaryRow:
    sac: str = ""
    taxable_value: float = 0.0
    cgst: float = 0.0
    sgst: float = 0.0
    igst: float = 0.0
    total: float = 0.0


@dataclass(frozen=True)
class InvoiceInfo:
    invoice_number: str = ""
    invoice_date: date | str | None = None
    id: Any = None
    due_date: date | str | None = None
    status: InvoiceStatus = InvoiceStatus.DRAFT
    subtotal: float = 0.0
    total_gst: float = 0.0
    total_amount: float = 0.0
    discount: float = 0.0
    notes: str | None = None
    reverse_charge: bool = False
    place_of_supply: str | None = None
    igst: float | None = None
    cgst: float | None = None
    sgst: float | None = None
    amount_words: str | None = None

    @property
    def has_frozen_split(self) -> bool:
        return any(v is not None for v in (self.igst, self.cgst, self.sgst))


@dataclass(frozen=True)
class InvoiceData:
    invoice: InvoiceInfo
    client: ClientInfo
    company: CompanyInfo | None = None
    items: tuple[LineItem, ...] = ()
    tax_summary: tuple[TaxSummaryRow, ...] = ()

    def __post_init__(self):
        # Accept lists from callers but store immutable tuples
        object.__setattr__(self, "items", tuple(self.items))
        object.__setattr__(self, "tax_summary", tuple(self.tax_summary))

    # ── Validation ──────────────────────────────────────────────
    def missing_required(self) -> list[str]:
        """Return the names of required fields that are absent."""
        missing = []
        if not (self.invoice.invoice_number or "").strip():
            missing.append("invoice.invoice_number")
        if not (self.client.name or "").strip():
            missing.append("client.name")
        if not self.items:
            missing.append("items")
        elif not any((item.item_name or "").strip() for item in self.items):
            missing.append("items.item_name")
        return missing

    def validate(self) -> None:
        missing = self.missing_required()
        if missing:
            raise InvoiceValidationError(missing)

    def check_totals(self) -> list[str]:
        """Compare the invoice totals against its lines.

        Advisory only: returns human-readable discrepancies, empty if consistent.
        """
        inv = self.invoice
        problems = []
        subtotal = sum(i.line_total for i in self.items)
        gst = sum(i.gst_amount for i in self.items)
        if abs(inv.subtotal - subtotal) > TOTALS_TOLERANCE:
            problems.append(f"subtotal {inv.subtotal:.2f} != sum of lines {subtotal:.2f}")
        if abs(inv.total_gst - gst) > TOTALS_TOLERANCE:
            problems.append(f"total_gst {inv.total_gst:.2f} != sum of line GST {gst:.2f}")
        expected = inv.subtotal + inv.total_gst - (inv.discount or 0)
        if abs(inv.total_amount - expected) > TOTALS_TOLERANCE:
            problems.append(f"total_amount {inv.total_amount:.2f} != {expected:.2f}")
        return problems

    # ── Construction from plain mappings ────────────────────────
    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "InvoiceData":
        """Build from the nested dict shape used by JSON APIs.

        Unknown keys are ignored; the company record may carry flat
        ``bank_name`` / ``bank_account_number`` / ``bank_ifsc`` keys.
        """
        inv = dict(data.get("invoice") or {})
        inv["status"] = InvoiceStatus.parse(inv.get("status"))
        reverse = inv.pop("gst_payable_reverse_charge", None)
        if reverse is not None and "reverse_charge" not in inv:
            inv["reverse_charge"] = bool(reverse)
        invoice = InvoiceInfo(**_known(InvoiceInfo, inv))

        client = ClientInfo(**_known(ClientInfo, data.get("client") or {}))

        company = None
        raw_company = data.get("company")
        if raw_company:
            comp = dict(raw_company)
            bank = comp.pop("bank", None)
            if bank is None and any(comp.get(k) for k in ("bank_name", "bank_account_number", "bank_ifsc")):
                bank = {
                    "bank_name": comp.get("bank_name"),
                    "account_number": comp.get("bank_account_number"),
                    "ifsc": comp.get("bank_ifsc"),
                }
            if isinstance(bank, Mapping):
                bank = BankDetails(**_known(BankDetails, bank))
            comp["bank"] = bank
            company = CompanyInfo(**_known(CompanyInfo, comp))

        items = tuple(LineItem(**_known(LineItem, i)) for i in data.get("items") or ())
        summary = tuple(
            TaxSummaryRow(**_known(TaxSummaryRow, r))
            for r in (data.get("tax_summary") or data.get("taxSummary") or ())
        )
        return cls(invoice=invoice, client=client, company=company,
                   items=items, tax_summary=summary)


def _known(dc, mapping: Mapping[str, Any]) -> dict:
    names = dc.__dataclass_fields__.keys()
    return {k: v for k, v in mapping.items() if k in names}
