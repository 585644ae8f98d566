from generators.templates.base import InvoiceTemplate, TemplateColors


class SimpleLogoTemplate(InvoiceTemplate):
    """GST invoice with the company logo embedded in the page."""

    template_id = "simple_logo"
    name = "Simple with Logo"
    description = "Simple GST invoice with an embedded logo and bank details"
    colors = TemplateColors("#0f766e", "#f0fdfa", "#14b8a6")
    inline_logo = True
