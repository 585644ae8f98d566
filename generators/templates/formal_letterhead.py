from generators.templates.base import InvoiceTemplate, TemplateColors


class FormalLetterheadTemplate(InvoiceTemplate):
    template_id = "formal_letterhead"
    name = "Formal Letterhead"
    description = "Centered company letterhead with website, PAN and a summary box"
    colors = TemplateColors("#1e3a8a", "#eff6ff", "#b45309")
    inline_logo = True
