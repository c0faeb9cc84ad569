"""
certificate_renderer.py — Certificate PDF composition
=====================================================
Turns the background template PNG plus an attempt's data into a single-page
PDF.  The page is sized from the template itself, never hardcoded:

    page_w = round(img_w × 0.75)     (72 pt per inch ÷ 96 px per inch)
    page_h = round(img_h × 0.75)

The template is drawn full-bleed at (0, 0), then the participant's name is
centred inside the middle 70 % of the page width, its top edge placed at
``name_top_ratio × page_h`` from the top of the page.  The ratio depends on
where the template's caption sits, so it comes from TemplateConfig.

Public API
----------
  fetch_template(cfg)                     → bytes      (URL or local file)
  compute_page_size(img_w, img_h)         → (w_pt, h_pt)
  render_certificate(template, data, …)   → bytes      (optionally also written to dest)
  CertificateRenderer(cfg).render(data)   fetch + render in one call
"""

from __future__ import annotations

import io
import logging
import math
import urllib.error
import urllib.request
from pathlib import Path
from typing import Optional, Union
from xml.sax.saxutils import escape

from reportlab.lib.enums import TA_CENTER
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph

from quiz_cert.config import TemplateConfig
from quiz_cert.errors import RenderError, TemplateUnavailable
from quiz_cert.models import CertificateData
from quiz_cert.png_header import read_png_dimensions

logger = logging.getLogger(__name__)

PT_PER_PX        = 0.75
NAME_WIDTH_RATIO = 0.70
NAME_FONT        = "Helvetica-Bold"


# ─── Template fetch ──────────────────────────────────────────────────────────

def fetch_template(cfg: TemplateConfig) -> bytes:
    """Return the template PNG bytes from its URL or local path."""
    if cfg.is_remote:
        req = urllib.request.Request(cfg.source, method="GET")
        try:
            with urllib.request.urlopen(req, timeout=cfg.timeout_s) as resp:
                return resp.read()
        except urllib.error.HTTPError as exc:
            raise TemplateUnavailable(
                f"Template fetch failed: {exc.code} {exc.reason}"
            ) from exc
        except (urllib.error.URLError, OSError) as exc:
            raise TemplateUnavailable(f"Template fetch failed: {exc}") from exc

    try:
        return Path(cfg.source).read_bytes()
    except OSError as exc:
        raise TemplateUnavailable(f"Template read failed: {exc}") from exc


# ─── Layout ──────────────────────────────────────────────────────────────────

def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_page_size(img_w: int, img_h: int) -> tuple[int, int]:
    """Page size in points for a template of img_w × img_h pixels."""
    return _round_half_up(img_w * PT_PER_PX), _round_half_up(img_h * PT_PER_PX)


def _rl_colour(hex_str: str):
    """Convert a CSS hex colour string to a reportlab Color."""
    from reportlab.lib import colors as rl_colors
    h = hex_str.lstrip("#")
    if len(h) == 3:
        h = "".join(c * 2 for c in h)
    r, g, b = int(h[0:2], 16) / 255, int(h[2:4], 16) / 255, int(h[4:6], 16) / 255
    return rl_colors.Color(r, g, b)


# ─── Rendering ───────────────────────────────────────────────────────────────

def render_certificate(
    template: bytes,
    data: CertificateData,
    *,
    name_top_ratio: float = 0.40,
    name_font_size: float = 32.0,
    name_color: str = "#1a1a1a",
    dest: Optional[Union[str, Path]] = None,
) -> bytes:
    """
    Compose the certificate PDF and return its bytes.

    When *dest* is given the same bytes are also written to that path.
    Raises InvalidImage for a template whose header is not a sane PNG and
    RenderError when reportlab cannot compose the page.
    """
    img_w, img_h = read_png_dimensions(template)
    page_w, page_h = compute_page_size(img_w, img_h)
    logger.debug("Template %dx%d px → page %dx%d pt", img_w, img_h, page_w, page_h)

    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=(page_w, page_h))
    c.setTitle(f"Certificate of Participation - {data.name}")

    try:
        c.drawImage(ImageReader(io.BytesIO(template)), 0, 0, width=page_w, height=page_h)
    except Exception as exc:
        raise RenderError(f"PDF image error: {exc}") from exc

    try:
        style = ParagraphStyle(
            "CertName",
            fontName=NAME_FONT,
            fontSize=name_font_size,
            leading=name_font_size * 1.2,
            alignment=TA_CENTER,
            textColor=_rl_colour(name_color),
        )
        text_w = page_w * NAME_WIDTH_RATIO
        start_x = (page_w - text_w) / 2
        para = Paragraph(escape(data.name), style)
        _, para_h = para.wrap(text_w, page_h)
        # reportlab's origin is bottom-left; the ratio is measured from the top.
        # Paragraph sets its first baseline one font size below the box top;
        # the name's first baseline belongs one ascent below name_top.
        name_top = page_h - page_h * name_top_ratio
        ascent = pdfmetrics.getAscent(NAME_FONT, name_font_size)
        para.drawOn(c, start_x, name_top - para_h + (name_font_size - ascent))

        c.showPage()
        c.save()
    except Exception as exc:
        raise RenderError(f"PDF text error: {exc}") from exc

    pdf = buf.getvalue()
    if dest is not None:
        dest = Path(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(pdf)
    return pdf


class CertificateRenderer:
    """
    Fetches the configured template and renders certificates onto it.

    Usage::

        renderer = CertificateRenderer(get_settings().template)
        pdf      = renderer.render(CertificateData.from_attempt(attempt))
    """

    def __init__(self, cfg: TemplateConfig):
        self.cfg = cfg

    def render(self, data: CertificateData, dest: Optional[Union[str, Path]] = None) -> bytes:
        template = fetch_template(self.cfg)
        return render_certificate(
            template,
            data,
            name_top_ratio=self.cfg.name_top_ratio,
            name_font_size=self.cfg.name_font_size,
            name_color=self.cfg.name_color,
            dest=dest,
        )
