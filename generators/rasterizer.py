"""
HTML → bitmap rasterization.

The document pipeline only depends on the ``Rasterizer`` interface. The
production implementation drives a Gotenberg service
(https://gotenberg.dev), which screenshots the markup with headless
Chromium and returns a PNG.

To plug in another engine:
1. Subclass ``Rasterizer``
2. Implement ``rasterize()`` returning an RGB ``PIL.Image.Image``
3. Pass an instance as ``RASTERIZER`` in the app config
"""
from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from io import BytesIO

import requests
from PIL import Image, UnidentifiedImageError

from generators.errors import RasterizationError

logger = logging.getLogger(__name__)

SCREENSHOT_ROUTE = "/forms/chromium/screenshot/html"

# Height hint for the headless browser viewport; the capture is full-page
_VIEWPORT_HEIGHT = 1123

_HEAD_CLOSE = re.compile(r"</head\s*>", re.IGNORECASE)


def flatten(image: Image.Image, background: str = "#ffffff") -> Image.Image:
    """Return ``image`` as RGB, compositing any transparency onto ``background``."""
    if image.mode == "RGB":
        return image
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        flat = Image.new("RGB", rgba.size, background)
        flat.paste(rgba, mask=rgba.getchannel("A"))
        rgba.close()
        return flat
    return image.convert("RGB")


def zoom_markup(html: str, scale: float, background: str = "#ffffff") -> str:
    """Scale the whole document by ``scale`` so a wider viewport gets sharper text."""
    style = f"<style>html{{zoom:{scale:g};background:{background}}}</style>"
    if _HEAD_CLOSE.search(html):
        return _HEAD_CLOSE.sub(lambda m: style + m.group(0), html, count=1)
    return style + html


class Rasterizer(ABC):
    """Turns a self-contained HTML document into one tall page image."""

    @abstractmethod
    def rasterize(self, html: str, *, width_px: int, scale: float,
                  background: str = "#ffffff") -> Image.Image:
        """Render ``html`` at ``width_px`` CSS pixels, oversampled by ``scale``.

        Returns:
            RGB image ``width_px * scale`` pixels wide.

        Raises:
            RasterizationError: on any rendering failure.
        """


class GotenbergRasterizer(Rasterizer):
    """Rasterizer backed by Gotenberg's Chromium screenshot route."""

    def __init__(self, base_url: str = "http://localhost:3000", timeout: float = 30,
                 session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return self.base_url + SCREENSHOT_ROUTE

    def rasterize(self, html: str, *, width_px: int, scale: float,
                  background: str = "#ffffff") -> Image.Image:
        width = int(round(width_px * scale))
        files = {
            "files": ("index.html", zoom_markup(html, scale, background).encode("utf-8"), "text/html"),
        }
        form = {
            "width": str(width),
            "height": str(int(round(_VIEWPORT_HEIGHT * scale))),
            "clip": "false",
            "format": "png",
            "omitBackground": "false",
        }
        try:
            resp = self.session.post(self.endpoint, files=files, data=form, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise RasterizationError(f"Screenshot request to {self.endpoint} failed: {exc}") from exc

        try:
            with Image.open(BytesIO(resp.content)) as img:
                img.load()
                image = flatten(img, background)
                if image is img:
                    image = img.copy()
        except (UnidentifiedImageError, OSError) as exc:
            raise RasterizationError("Rasterizer returned an unreadable image") from exc

        logger.debug("Rasterized markup to %dx%d px", image.width, image.height)
        return image
