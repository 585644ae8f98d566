from generators.templates.base import InvoiceTemplate, TemplateColors


class ModernTemplate(InvoiceTemplate):
    template_id = "modern"
    name = "Modern Professional"
    description = "Clean design with a blue gradient header and card layout"
    colors = TemplateColors("#2563eb", "#f8fafc", "#3b82f6")
    # Amount column has always shown the tax-inclusive line amount here
    amount_includes_gst = True
