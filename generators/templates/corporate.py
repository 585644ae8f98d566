"""
Corporate GST tax invoice.

Besides the common blocks this layout shows the place of supply, the
IGST or CGST/SGST totals, the amount in words, the reverse-charge flag,
an HSN/SAC tax summary, bank details and a signatory block.
"""
from __future__ import annotations

from decimal import Decimal

from generators.formatting import amount_in_words
from generators.gst import GstSplit, line_split, normalize_state, round_money, summarize_by_hsn, to_decimal
from generators.invoice_data import CompanyInfo, InvoiceData
from generators.templates.base import InvoiceTemplate, TemplateColors


class CorporateTemplate(InvoiceTemplate):
    template_id = "corporate"
    name = "Corporate Tax Invoice"
    description = "Formal GST tax invoice with split totals, HSN summary and bank details"
    colors = TemplateColors("#1f2937", "#f9fafb", "#0f172a")

    def split_totals(self, data: InvoiceData) -> GstSplit:
        """Invoice-level IGST/CGST/SGST: the frozen values, else summed per line."""
        inv = data.invoice
        if inv.has_frozen_split:
            return GstSplit(
                igst_amount=inv.igst or 0.0,
                cgst_amount=inv.cgst or 0.0,
                sgst_amount=inv.sgst or 0.0,
            )
        supplier, recipient = self._states(data)
        igst = cgst = sgst = Decimal(0)
        for item in data.items:
            split = line_split(item, supplier, recipient)
            igst += to_decimal(split.igst_amount)
            cgst += to_decimal(split.cgst_amount)
            sgst += to_decimal(split.sgst_amount)
        return GstSplit(round_money(igst), round_money(cgst), round_money(sgst))

    def is_interstate(self, data: InvoiceData, split: GstSplit) -> bool:
        if split.igst_amount or split.cgst_amount or split.sgst_amount:
            return split.is_interstate
        supplier, recipient = self._states(data)
        return normalize_state(supplier) != normalize_state(recipient)

    def tax_summary(self, data: InvoiceData):
        if data.tax_summary:
            return list(data.tax_summary)
        supplier, recipient = self._states(data)
        return summarize_by_hsn(data.items, supplier, recipient)

    def total_in_words(self, data: InvoiceData) -> str:
        if data.invoice.amount_words:
            return data.invoice.amount_words
        total = to_decimal(data.invoice.total_amount or 0, "total_amount")
        if total < 0:
            return "Minus " + amount_in_words(-total)
        return amount_in_words(total)

    def place_of_supply(self, data: InvoiceData) -> str:
        return data.invoice.place_of_supply or data.client.state or ""

    def client_address(self, data: InvoiceData) -> str:
        return data.client.address or ""

    @staticmethod
    def _states(data: InvoiceData):
        company = data.company or CompanyInfo()
        return company.state, data.client.state

    def get_context(self, data: InvoiceData) -> dict:
        context = super().get_context(data)
        split = self.split_totals(data)
        context.update(
            split=split,
            interstate=self.is_interstate(data, split),
            tax_summary=self.tax_summary(data),
            amount_words=self.total_in_words(data),
            place_of_supply=self.place_of_supply(data),
            client_address=self.client_address(data),
            reverse_charge="Yes" if data.invoice.reverse_charge else "No",
        )
        return context
