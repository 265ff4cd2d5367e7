"""
Badge PDF rendering.

Page 1 of the background template is scaled to A4 and the attendee's
name, company and QR code are stamped on the right-hand panel. The QR
payload is the badge code scanned at the entrance.

Layout (mm, measured from the top-left corner like the print template):

    right panel   x = 105, width 105
    name          Helvetica-Bold 20, white, cell top 46
    company       Helvetica 13, white, cell top 59
    QR            23 x 23 at (146.5, 76), navy on white, level H
"""

from __future__ import annotations

import io
import logging
import re
from pathlib import Path

from pypdf import PdfReader, PdfWriter
from reportlab.graphics import renderPDF
from reportlab.graphics.barcode.qr import QrCodeWidget
from reportlab.graphics.shapes import Drawing
from reportlab.lib.colors import Color, white
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from expolink.core.config import settings
from expolink.models.user import User

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4

PANEL_X_MM = 105
PANEL_WIDTH_MM = 105

NAME_FONT = ("Helvetica-Bold", 20)
NAME_TOP_MM = 46
NAME_CELL_MM = 10

COMPANY_FONT = ("Helvetica", 13)
COMPANY_TOP_MM = 59
COMPANY_CELL_MM = 8

QR_X_MM = 146.5
QR_Y_MM = 76
QR_SIZE_MM = 23
QR_COLOR = Color(10 / 255, 25 / 255, 60 / 255)


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug or "attendee"


def badge_filename(user: User) -> str:
    return f"badge_{slugify(user.full_name)}.pdf"


def _baseline(top_mm: float, cell_mm: float, font_size: float) -> float:
    """Baseline that vertically centres a line of text in a cell."""
    return PAGE_HEIGHT - (top_mm + cell_mm / 2) * mm - font_size * 0.35


class BadgeService:
    def __init__(self, template_path: Path | None = None) -> None:
        self.template_path = Path(template_path or settings.BADGE_TEMPLATE_PATH)

    def render(self, user: User) -> bytes:
        """Badge PDF bytes for the user."""
        overlay = PdfReader(io.BytesIO(self._overlay(user))).pages[0]

        writer = PdfWriter()
        if self.template_path.is_file():
            page = PdfReader(self.template_path).pages[0]
            page.scale_to(PAGE_WIDTH, PAGE_HEIGHT)
            page.merge_page(overlay)
            writer.add_page(page)
        else:
            logger.warning("Badge template %s not found, using a blank page", self.template_path)
            writer.add_page(overlay)

        output = io.BytesIO()
        writer.write(output)
        logger.info("Rendered badge %s for user %s", user.badge_code, user.id)
        return output.getvalue()

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def _overlay(self, user: User) -> bytes:
        buffer = io.BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=A4)
        pdf.setTitle(f"Badge {user.badge_code}")
        center_x = (PANEL_X_MM + PANEL_WIDTH_MM / 2) * mm

        pdf.setFillColor(white)
        pdf.setFont(*NAME_FONT)
        pdf.drawCentredString(
            center_x,
            _baseline(NAME_TOP_MM, NAME_CELL_MM, NAME_FONT[1]),
            f"{user.name} {user.last_name or ''}".strip().upper(),
        )

        company = user.display_company_name
        if company:
            pdf.setFont(*COMPANY_FONT)
            pdf.drawCentredString(
                center_x,
                _baseline(COMPANY_TOP_MM, COMPANY_CELL_MM, COMPANY_FONT[1]),
                company,
            )

        self._draw_qr(pdf, user.badge_code)
        pdf.showPage()
        pdf.save()
        return buffer.getvalue()

    @staticmethod
    def _draw_qr(pdf: canvas.Canvas, payload: str) -> None:
        size = QR_SIZE_MM * mm
        x = QR_X_MM * mm
        y = PAGE_HEIGHT - (QR_Y_MM + QR_SIZE_MM) * mm

        widget = QrCodeWidget(payload, barLevel="H", barBorder=0)
        widget.barFillColor = QR_COLOR
        widget.barStrokeColor = QR_COLOR
        x0, y0, x1, y1 = widget.getBounds()
        drawing = Drawing(size, size, transform=[size / (x1 - x0), 0, 0, size / (y1 - y0), 0, 0])
        drawing.add(widget)

        pdf.setFillColor(white)
        pdf.rect(x, y, size, size, stroke=0, fill=1)
        renderPDF.draw(drawing, pdf, x, y)
