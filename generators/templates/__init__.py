"""
Invoice template catalogue.

Each template renders ``InvoiceData`` into self-contained HTML with its
own look. The registry is built once at app start and handed to the
``DocumentAssembler``; it is immutable after construction.
"""
from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Iterable, Iterator

from generators.templates.base import InvoiceTemplate, LogoFetcher, TemplateInfo
from generators.templates.classic import ClassicTemplate
from generators.templates.corporate import CorporateTemplate
from generators.templates.extrape import ExtrapeTemplate
from generators.templates.formal_letterhead import FormalLetterheadTemplate
from generators.templates.minimal import MinimalTemplate
from generators.templates.modern import ModernTemplate
from generators.templates.modern_minimal import ModernMinimalTemplate
from generators.templates.simple_logo import SimpleLogoTemplate

logger = logging.getLogger(__name__)

# Available templates, in catalogue order
TEMPLATE_CLASSES: tuple[type[InvoiceTemplate], ...] = (
    ModernTemplate,
    ClassicTemplate,
    MinimalTemplate,
    CorporateTemplate,
    SimpleLogoTemplate,
    FormalLetterheadTemplate,
    ModernMinimalTemplate,
    ExtrapeTemplate,
)

# Identifiers stored on older invoices and settings
ALIASES = MappingProxyType({
    "extrape_invoice": "extrape",
    "extrape-invoice": "extrape",
    "simple-logo": "simple_logo",
    "simplelogo": "simple_logo",
    "formal-letterhead": "formal_letterhead",
    "letterhead": "formal_letterhead",
    "modern-minimal": "modern_minimal",
    "modernminimal": "modern_minimal",
    "professional": "modern",
    "business": "classic",
})

DEFAULT_TEMPLATE = "modern"


class TemplateRegistry:
    """Immutable mapping of template id to renderer.

    ``resolve`` never fails: unknown ids fall back to the default template
    with a warning, so a stale id on an invoice still yields a document.
    """

    def __init__(self, templates: Iterable[InvoiceTemplate], default_id: str = DEFAULT_TEMPLATE,
                 aliases=ALIASES):
        by_id = {}
        for template in templates:
            key = template.template_id.lower()
            if key in by_id:
                raise ValueError(f"Duplicate template id '{template.template_id}'")
            by_id[key] = template
        default_id = (default_id or "").lower()
        if default_id not in by_id:
            raise ValueError(
                f"Unknown default template '{default_id}'. "
                f"Available: {', '.join(by_id.keys())}"
            )
        self._templates = MappingProxyType(by_id)
        self._aliases = MappingProxyType({k.lower(): v.lower() for k, v in dict(aliases).items()})
        self.default_id = default_id

    def __contains__(self, template_id) -> bool:
        return self._lookup(template_id) is not None

    def __iter__(self) -> Iterator[InvoiceTemplate]:
        return iter(self._templates.values())

    def __len__(self) -> int:
        return len(self._templates)

    def ids(self) -> list[str]:
        return list(self._templates.keys())

    @property
    def default(self) -> InvoiceTemplate:
        return self._templates[self.default_id]

    def _lookup(self, template_id) -> InvoiceTemplate | None:
        if not isinstance(template_id, str):
            return None
        key = template_id.strip().lower()
        if key in self._templates:
            return self._templates[key]
        alias = self._aliases.get(key)
        if alias is not None:
            return self._templates.get(alias)
        return None

    def resolve(self, template_id: str | None) -> InvoiceTemplate:
        """Renderer for ``template_id``, or the default renderer if unknown."""
        if template_id is None or template_id == "":
            return self.default
        template = self._lookup(template_id)
        if template is None:
            logger.warning("Unknown invoice template %r, using %r", template_id, self.default_id)
            return self.default
        return template

    def catalog(self) -> list[TemplateInfo]:
        return [template.info for template in self._templates.values()]


def build_default_registry(logo_fetcher: LogoFetcher | None = None,
                           default_id: str = DEFAULT_TEMPLATE) -> TemplateRegistry:
    """Registry with every built-in template sharing one logo fetcher."""
    fetcher = logo_fetcher or LogoFetcher()
    return TemplateRegistry((cls(fetcher) for cls in TEMPLATE_CLASSES), default_id=default_id)
