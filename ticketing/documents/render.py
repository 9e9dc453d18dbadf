"""
PDF rendering of layout documents with reportlab.

The canvas runs in invariant mode (fixed creation date and document id), so
equal documents render to equal bytes.
"""

import io

from reportlab.graphics import renderPDF
from reportlab.graphics.barcode.qr import QrCodeWidget
from reportlab.graphics.shapes import Drawing
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from ticketing.documents.layout import (
    FONT, FONT_BOLD, PAGE_HEIGHT, Document, QrOp, RuleOp, TextOp, RGB,
)


def _rgb(color: RGB) -> tuple[float, float, float]:
    return tuple(channel / 255 for channel in color)


def _draw_text(pdf: canvas.Canvas, op: TextOp) -> None:
    pdf.setFont(FONT_BOLD if op.bold else FONT, op.size)
    pdf.setFillColorRGB(*_rgb(op.color))
    x, y = op.x * mm, (PAGE_HEIGHT - op.y) * mm
    if op.align == "right":
        pdf.drawRightString(x, y, op.text)
    elif op.align == "center":
        pdf.drawCentredString(x, y, op.text)
    else:
        pdf.drawString(x, y, op.text)


def _draw_rule(pdf: canvas.Canvas, op: RuleOp) -> None:
    pdf.setStrokeColorRGB(*_rgb(op.color))
    pdf.setLineWidth(op.width)
    pdf.line(op.x1 * mm, (PAGE_HEIGHT - op.y1) * mm, op.x2 * mm, (PAGE_HEIGHT - op.y2) * mm)


def _draw_qr(pdf: canvas.Canvas, op: QrOp) -> None:
    widget = QrCodeWidget(op.value)
    x1, y1, x2, y2 = widget.getBounds()
    size = op.size * mm
    drawing = Drawing(size, size, transform=[size / (x2 - x1), 0, 0, size / (y2 - y1), 0, 0])
    drawing.add(widget)
    renderPDF.draw(drawing, pdf, op.x * mm, (PAGE_HEIGHT - op.y - op.size) * mm)


def render_pdf(document: Document, author: str = "") -> bytes:
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4, invariant=1)
    pdf.setTitle(document.title)
    if author:
        pdf.setAuthor(author)

    for page in document.pages:
        for op in page:
            if isinstance(op, TextOp):
                _draw_text(pdf, op)
            elif isinstance(op, RuleOp):
                _draw_rule(pdf, op)
            elif isinstance(op, QrOp):
                _draw_qr(pdf, op)
        pdf.showPage()

    pdf.save()
    return buffer.getvalue()
