from generators.templates.base import InvoiceTemplate, TemplateColors


class MinimalTemplate(InvoiceTemplate):
    template_id = "minimal"
    name = "Minimal Clean"
    description = "Light, whitespace-heavy layout with thin rules"
    colors = TemplateColors("#111827", "#ffffff", "#6b7280")
    amount_includes_gst = True
