from generators.templates.base import InvoiceTemplate, TemplateColors


class ClassicTemplate(InvoiceTemplate):
    template_id = "classic"
    name = "Classic Business"
    description = "Traditional bordered layout in a serif typeface"
    colors = TemplateColors("#1f2937", "#f3f4f6", "#374151")
    amount_includes_gst = True
