from generators.templates.base import InvoiceTemplate, TemplateColors


class ModernMinimalTemplate(InvoiceTemplate):
    template_id = "modern_minimal"
    name = "Modern Minimal"
    description = "Soft cards, a gradient invoice badge and a payment details card"
    colors = TemplateColors("#7c3aed", "#faf5ff", "#ec4899")
    inline_logo = True
