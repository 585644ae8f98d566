"""
Invoice PDF assembly (reportlab).

Pipeline: resolve template → render HTML → rasterize to one tall image →
slice into A4-proportioned pages → draw each page full-bleed onto an A4
reportlab canvas.
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from io import BytesIO

from PIL import Image
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas as pdf_canvas

from generators.errors import RasterizationError
from generators.invoice_data import CompanyInfo, InvoiceData
from generators.rasterizer import Rasterizer

logger = logging.getLogger(__name__)


# ─── Page metrics ─────────────────────────────────────────────────
PAGE_W, PAGE_H = A4
A4_WIDTH_MM, A4_HEIGHT_MM = 210, 297

# 210 mm at 96 dpi
PAGE_WIDTH_PX = 794
DEFAULT_SCALE = 2.0
# Print quality needs at least 2x oversampling
MIN_SCALE = 2.0
BACKGROUND = "#ffffff"

PDF_MIMETYPE = "application/pdf"

_UNSAFE_FILENAME = re.compile(r"[/\\]")


def page_height_for(width: int) -> int:
    """Pixel height of an A4 page that is ``width`` pixels wide."""
    return round(width * A4_HEIGHT_MM / A4_WIDTH_MM)


def invoice_filename(invoice_number: str) -> str:
    return f"Invoice-{_UNSAFE_FILENAME.sub('_', invoice_number or '')}.pdf"


# ─── Pagination ──────────────────────────────────────────────────
def paginate(image: Image.Image, background: str = BACKGROUND) -> list[Image.Image]:
    """Slice a tall rendering into A4-proportioned page images.

    Every page is exactly ``page_height_for(image.width)`` tall; the last
    one is padded with ``background``. Nothing is cropped, and an image
    whose height is an exact multiple of the page height gets no trailing
    blank page.
    """
    width, height = image.size
    page_h = page_height_for(width)
    count = max(1, math.ceil(height / page_h))

    pages = []
    for index in range(count):
        top = index * page_h
        bottom = min(height, top + page_h)
        page = Image.new("RGB", (width, page_h), background)
        if bottom > top:
            part = image.crop((0, top, width, bottom))
            page.paste(part, (0, 0))
            part.close()
        pages.append(page)
    return pages


def assemble_pdf(pages: list[Image.Image], *, title: str = "", author: str = "") -> bytes:
    """Draw each page image full-bleed on its own A4 page."""
    buf = BytesIO()
    c = pdf_canvas.Canvas(buf, pagesize=A4)
    c.setTitle(title)
    c.setAuthor(author)
    c.setCreator("Invoice Generator")
    for page in pages:
        c.drawImage(ImageReader(page), 0, 0, width=PAGE_W, height=PAGE_H)
        c.showPage()
    c.save()
    return buf.getvalue()


# ─── Document assembler ──────────────────────────────────────────
@dataclass(frozen=True)
class GeneratedDocument:
    filename: str
    content: bytes
    page_count: int
    template_id: str
    mimetype: str = PDF_MIMETYPE


class DocumentAssembler:
    """Produces invoice PDFs from ``InvoiceData`` with a chosen template."""

    def __init__(self, registry, rasterizer: Rasterizer, *,
                 page_width_px: int = PAGE_WIDTH_PX, scale: float = DEFAULT_SCALE):
        if scale < MIN_SCALE:
            raise ValueError(f"scale must be at least {MIN_SCALE:g}, got {scale!r}")
        self.registry = registry
        self.rasterizer = rasterizer
        self.page_width_px = page_width_px
        self.scale = scale

    def render_html(self, data: InvoiceData, template_id: str | None = None) -> str:
        """Resolve the template and render the markup (used for previews)."""
        return self.registry.resolve(template_id).render(data)

    def generate(self, data: InvoiceData, template_id: str | None = None) -> GeneratedDocument:
        """Render ``data`` with ``template_id`` and return the finished PDF.

        Raises:
            InvoiceValidationError: required invoice data is missing.
            RasterizationError: the markup could not be turned into a PDF.
        """
        template = self.registry.resolve(template_id)
        html = template.render(data)

        number = data.invoice.invoice_number
        image = None
        pages: list[Image.Image] = []
        try:
            image = self.rasterizer.rasterize(
                html, width_px=self.page_width_px, scale=self.scale, background=BACKGROUND,
            )
            pages = paginate(image)
            company = data.company or CompanyInfo()
            content = assemble_pdf(pages, title=f"Invoice {number}", author=company.company_name)
        except RasterizationError:
            logger.exception("Rasterizing invoice %s with template %s failed", number, template.template_id)
            raise
        except Exception as exc:
            logger.exception("Assembling PDF for invoice %s failed", number)
            raise RasterizationError(f"Could not assemble PDF for invoice {number}") from exc
        finally:
            for page in pages:
                page.close()
            if image is not None:
                image.close()

        doc = GeneratedDocument(
            filename=invoice_filename(number),
            content=content,
            page_count=len(pages),
            template_id=template.template_id,
        )
        logger.info("Generated %s (%d page(s), template %s)", doc.filename, doc.page_count, doc.template_id)
        return doc
