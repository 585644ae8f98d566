"""
Base class and shared machinery for invoice templates.

A template turns an ``InvoiceData`` into one self-contained HTML document:
the Jinja2 markup from ``html/`` with its stylesheet from ``css/``
minified and inlined, and (for some templates) the company logo inlined
as a ``data:`` URI.

To add a new template:
1. Subclass ``InvoiceTemplate`` and set the class attributes
2. Add ``html/<template_id>.html`` (extending ``layout.html``) and ``css/<template_id>.css``
3. Register it in ``generators/templates/__init__.py`` TEMPLATE_CLASSES
"""
from __future__ import annotations

import base64
import logging
from dataclasses import asdict, dataclass
from functools import lru_cache
from pathlib import Path
from urllib.parse import urlparse

import cssmin
import requests
from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from generators.errors import LogoFetchError
from generators.formatting import (
    amount_in_words, fmt_amount, fmt_date, fmt_inr,
    fmt_percent, fmt_quantity,
)
from generators.invoice_data import CompanyInfo, InvoiceData, InvoiceStatus, LineItem

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent
HTML_DIR = TEMPLATE_DIR / "html"
CSS_DIR = TEMPLATE_DIR / "css"

_env = Environment(
    loader=FileSystemLoader(HTML_DIR),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)
_env.filters.update(
    inr=fmt_inr,
    amount=fmt_amount,
    pct=fmt_percent,
    qty=fmt_quantity,
    words=amount_in_words,
)

# Map file extensions to MIME types for logos
_LOGO_EXT_MAP = {
    '.png': 'image/png',
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.gif': 'image/gif',
    '.svg': 'image/svg+xml',
    '.webp': 'image/webp',
    '.bmp': 'image/bmp',
}


@dataclass(frozen=True)
class TemplateColors:
    primary: str
    secondary: str
    accent: str


@dataclass(frozen=True)
class TemplateInfo:
    """Display-only description of a template for pickers and previews."""
    id: str
    name: str
    description: str
    colors: TemplateColors

    def to_dict(self) -> dict:
        return asdict(self)


# ─── Logo fetching ───────────────────────────────────────────────
def _detect_mimetype(url, content_type_header):
    """Detect image MIME type from Content-Type header or URL extension."""
    if content_type_header:
        ct = content_type_header.split(';')[0].strip().lower()
        if ct and ct.startswith('image/'):
            return ct
    path = urlparse(url).path.lower()
    for ext, mime in _LOGO_EXT_MAP.items():
        if path.endswith(ext):
            return mime
    return 'image/png'


class LogoFetcher:
    """Downloads a remote logo and returns it as a ``data:`` URI."""

    def __init__(self, timeout: float = 10, session: requests.Session | None = None):
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch(self, url: str) -> str:
        if url.startswith("data:"):
            return url
        try:
            resp = self.session.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise LogoFetchError(f"Could not load logo from {url}: {exc}") from exc
        if not resp.content:
            raise LogoFetchError(f"Logo at {url} is empty")
        mime = _detect_mimetype(url, resp.headers.get('Content-Type', ''))
        encoded = base64.b64encode(resp.content).decode('ascii')
        return f"data:{mime};base64,{encoded}"


@lru_cache(maxsize=None)
def load_stylesheet(name: str) -> Markup:
    """Read ``css/<name>.css`` minified, ready to drop into a ``<style>`` block."""
    css = (CSS_DIR / f"{name}.css").read_text(encoding="utf-8")
    return Markup(cssmin.cssmin(css))


# ─── Template base class ─────────────────────────────────────────
class InvoiceTemplate:
    """One visual invoice style.

    Subclasses only declare their attributes and, when they show more
    than the common blocks, extend ``get_context``.
    """

    template_id: str = ""
    name: str = ""
    description: str = ""
    colors: TemplateColors = TemplateColors("#000000", "#ffffff", "#666666")

    # Amount column shows line_total + gst_amount instead of line_total
    amount_includes_gst: bool = False
    # Fetch the logo and embed it, rather than referencing the URL
    inline_logo: bool = False
    # Text shown for a missing date
    date_fallback: str = ""

    def __init__(self, logo_fetcher: LogoFetcher | None = None):
        self.logo_fetcher = logo_fetcher or LogoFetcher()

    @property
    def info(self) -> TemplateInfo:
        return TemplateInfo(self.template_id, self.name, self.description, self.colors)

    @property
    def html_template(self) -> str:
        return f"{self.template_id}.html"

    def __call__(self, data: InvoiceData) -> str:
        return self.render(data)

    def __repr__(self):
        return f"<{type(self).__name__} {self.template_id!r}>"

    def line_amount(self, item: LineItem) -> float:
        return item.total_with_gst if self.amount_includes_gst else item.line_total

    def format_date(self, value) -> str:
        return fmt_date(value, self.date_fallback)

    def logo_src(self, company: CompanyInfo) -> str | None:
        """The ``src`` for the logo ``<img>``, or None to leave the logo out."""
        url = (company.logo_url or "").strip()
        if not url:
            return None
        if not self.inline_logo:
            return url
        try:
            return self.logo_fetcher.fetch(url)
        except LogoFetchError as exc:
            logger.warning("Omitting logo from %s invoice: %s", self.template_id, exc)
            return None

    def get_context(self, data: InvoiceData) -> dict:
        company = data.company or CompanyInfo()
        bank = company.bank if company.bank and not company.bank.is_empty else None
        return {
            "invoice": data.invoice,
            "status": InvoiceStatus.parse(data.invoice.status).value,
            "client": data.client,
            "company": company,
            "bank": bank,
            "logo_src": self.logo_src(company),
            "rows": [(item, self.line_amount(item)) for item in data.items],
            "items": data.items,
            "invoice_date": self.format_date(data.invoice.invoice_date),
            "due_date": self.format_date(data.invoice.due_date) if data.invoice.due_date else "",
            "stylesheet": load_stylesheet(self.template_id),
        }

    def render(self, data: InvoiceData) -> str:
        """Render ``data`` into a complete HTML document.

        Raises:
            InvoiceValidationError: invoice number, client name or line items missing.
        """
        data.validate()
        context = self.get_context(data)
        return _env.get_template(self.html_template).render(**context)
