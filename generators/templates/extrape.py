from __future__ import annotations

from generators.formatting import fmt_date_short
from generators.invoice_data import InvoiceData
from generators.templates.base import TemplateColors
from generators.templates.corporate import CorporateTemplate


class ExtrapeTemplate(CorporateTemplate):
    """Tax invoice in the Extrape house style.

    Dates are printed as dd/mm/yyyy ("N/A" when missing), amounts as a
    plain ``₹ 1000.00``, and the client address is joined with city, state
    and PIN code. When no split was frozen on the invoice it is recomputed
    from the company and client states at render time.
    """

    template_id = "extrape"
    name = "Extrape Tax Invoice"
    description = "Tax invoice with numeric dates, HSN summary and amount in words"
    colors = TemplateColors("#000000", "#ffffff", "#444444")
    inline_logo = True
    date_fallback = "N/A"

    def format_date(self, value) -> str:
        return fmt_date_short(value, self.date_fallback)

    def client_address(self, data: InvoiceData) -> str:
        client = data.client
        parts = [client.address, client.city, client.state]
        text = ", ".join(p for p in parts if p)
        if client.pin_code:
            text = f"{text} - {client.pin_code}" if text else client.pin_code
        return text
