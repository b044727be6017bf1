from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from io import BytesIO
from typing import List, Optional, Tuple

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.units import inch
from reportlab.pdfgen import canvas

from catalog import Catalog
from quote_export import PLACEHOLDER, item_label, item_summary
from quote_model import Quote


@dataclass(frozen=True)
class QuotePdfLineItem:
    description: str
    qty: int
    amount_cents: int


@dataclass(frozen=True)
class QuotePdfTotals:
    subtotal_cents: int
    installation_cents: int
    delivery_cents: int
    tax_cents: int
    grand_total_cents: int


@dataclass(frozen=True)
class QuotePdfArtifact:
    quote_id: str
    quote_date: date
    catalog_revision: str
    customer_name: str
    customer_email: str
    customer_phone: str
    install_option: str
    delivery_option: str
    line_items: Tuple[QuotePdfLineItem, ...]
    totals: QuotePdfTotals
    notes: Tuple[str, ...] = ()


def to_cents(amount: float) -> int:
    return int(round(float(amount) * 100))


def format_usd(amount: int) -> str:
    """
    Format a USD currency amount from integer cents.

    Quote totals are floats (area-based pricing and tax produce fractional cents); the PDF
    artifact rounds once to cents so every printed figure is stable.
    """
    if not isinstance(amount, int):
        raise TypeError(f"amount must be int cents (got {type(amount).__name__})")
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount) / 100.0:,.2f}"


def build_quote_pdf_artifact(
    quote: Quote,
    *,
    quote_date: Optional[date] = None,
    catalog: Optional[Catalog] = None,
    notes: Tuple[str, ...] = (),
) -> QuotePdfArtifact:
    """Freeze a priced quote into the values printed on the PDF (one line per item)."""
    line_items: List[QuotePdfLineItem] = []
    for idx, item in enumerate(quote.items):
        room = item.room_name.strip()
        desc = f"{item_label(idx)}: {item_summary(item)}"
        if room:
            desc = f"{desc} ({room})"
        subtotal = item.price_breakdown.item_subtotal if item.price_breakdown else 0.0
        line_items.append(QuotePdfLineItem(description=desc, qty=item.quantity, amount_cents=to_cents(subtotal)))

    t = quote.totals
    c = quote.customer
    name = " ".join(p for p in (c.first_name.strip(), c.last_name.strip()) if p)
    return QuotePdfArtifact(
        quote_id=(quote.quote_number or "").strip() or "DRAFT",
        quote_date=quote_date or date.today(),
        catalog_revision=catalog.revision if catalog is not None else "built-in",
        customer_name=name,
        customer_email=c.email,
        customer_phone=c.phone,
        install_option=quote.install_option,
        delivery_option=quote.delivery_option,
        line_items=tuple(line_items),
        totals=QuotePdfTotals(
            subtotal_cents=to_cents(t.subtotal),
            installation_cents=to_cents(t.installation_cost),
            delivery_cents=to_cents(t.delivery_cost),
            tax_cents=to_cents(t.tax),
            grand_total_cents=to_cents(t.grand_total),
        ),
        notes=tuple(notes),
    )


_MARGIN = 0.6 * inch
_PAD = 0.15 * inch
_ROW_H = 0.27 * inch
_TOTALS_BOX_W = 2.6 * inch
_TOTALS_BOX_H = 1.45 * inch


def make_quote_pdf_bytes(artifact: QuotePdfArtifact) -> bytes:
    """
    Render the quote PDF.

    Page 1 carries the header, customer and options blocks and the start of the line items
    table. Rows continue on extra pages as needed; the totals box follows the last row, on a
    fresh page when it does not fit below it.
    """
    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    # Uncompressed so tests can find text markers in the bytes.
    c.setPageCompression(0)
    w, h = letter
    x0 = _MARGIN
    content_w = w - 2 * _MARGIN
    footer_y = _MARGIN + 0.2 * inch
    notes_h = min(3, len(artifact.notes)) * 0.12 * inch
    bottom_limit = footer_y + notes_h + 0.3 * inch

    y = _draw_header(c, artifact, x0=x0, top_y=h - _MARGIN, content_w=content_w)
    y = _draw_table_head(c, x0=x0, y=y, content_w=content_w)

    for li in artifact.line_items:
        if y - _ROW_H < bottom_limit:
            _draw_footer(c, artifact, x0=x0, footer_y=footer_y)
            c.showPage()
            c.setFont("Helvetica-Bold", 10)
            c.drawString(x0, h - _MARGIN - 0.1 * inch, "LINE ITEMS (CONTINUED)")
            y = _draw_table_head(c, x0=x0, y=h - _MARGIN - 0.3 * inch, content_w=content_w)
        c.setFont("Helvetica", 9)
        _draw_truncated(c, x0 + _PAD, y - 0.18 * inch, li.description, max_width=content_w - 1.9 * inch)
        c.drawRightString(x0 + content_w - 1.4 * inch, y - 0.18 * inch, str(max(1, int(li.qty))))
        c.drawRightString(x0 + content_w - _PAD, y - 0.18 * inch, format_usd(li.amount_cents))
        y -= _ROW_H
    c.line(x0, y, x0 + content_w, y)

    if y - 0.25 * inch - _TOTALS_BOX_H < bottom_limit:
        _draw_footer(c, artifact, x0=x0, footer_y=footer_y)
        c.showPage()
        y = h - _MARGIN
    _draw_totals_box(c, artifact, x=x0 + content_w - _TOTALS_BOX_W, top_y=y - 0.25 * inch)

    _draw_footer(c, artifact, x0=x0, footer_y=footer_y)
    c.showPage()
    c.save()
    return buf.getvalue()


def _draw_header(c: canvas.Canvas, artifact: QuotePdfArtifact, *, x0: float, top_y: float, content_w: float) -> float:
    header_h = 1.1 * inch
    c.rect(x0, top_y - header_h, content_w, header_h, stroke=1, fill=0)
    c.setFont("Helvetica-Bold", 14)
    c.drawString(x0 + _PAD, top_y - 0.45 * inch, "Door & Window Quote")
    c.setFont("Helvetica", 9)
    c.drawString(x0 + _PAD, top_y - 0.70 * inch, f"Quote #{artifact.quote_id}")
    c.drawString(x0 + _PAD, top_y - 0.88 * inch, f"Date: {artifact.quote_date.isoformat()}")
    c.setFont("Helvetica-Bold", 11)
    c.drawRightString(
        x0 + content_w - _PAD, top_y - 0.45 * inch, f"Total: {format_usd(artifact.totals.grand_total_cents)}"
    )

    y = top_y - header_h - 0.2 * inch
    block_h = 1.0 * inch
    half_w = (content_w - 0.15 * inch) / 2.0
    right_x = x0 + half_w + 0.15 * inch
    c.rect(x0, y - block_h, half_w, block_h, stroke=1, fill=0)
    c.rect(right_x, y - block_h, half_w, block_h, stroke=1, fill=0)

    c.setFont("Helvetica-Bold", 9)
    c.drawString(x0 + _PAD, y - 0.25 * inch, "CUSTOMER")
    c.drawString(right_x + _PAD, y - 0.25 * inch, "OPTIONS")
    text_w = half_w - 2 * _PAD
    c.setFont("Helvetica", 9)
    for i, value in enumerate((artifact.customer_name, artifact.customer_email, artifact.customer_phone)):
        _draw_truncated(c, x0 + _PAD, y - (0.48 + 0.18 * i) * inch, value.strip() or PLACEHOLDER, max_width=text_w)
    _draw_truncated(
        c, right_x + _PAD, y - 0.48 * inch, f"Installation: {artifact.install_option or PLACEHOLDER}", max_width=text_w
    )
    _draw_truncated(
        c, right_x + _PAD, y - 0.66 * inch, f"Delivery: {artifact.delivery_option or PLACEHOLDER}", max_width=text_w
    )
    return y - block_h - 0.25 * inch


def _draw_table_head(c: canvas.Canvas, *, x0: float, y: float, content_w: float) -> float:
    c.setFont("Helvetica-Bold", 9)
    c.drawString(x0 + _PAD, y - 0.2 * inch, "DESCRIPTION")
    c.drawRightString(x0 + content_w - 1.4 * inch, y - 0.2 * inch, "QTY")
    c.drawRightString(x0 + content_w - _PAD, y - 0.2 * inch, "AMOUNT")
    c.line(x0, y - 0.3 * inch, x0 + content_w, y - 0.3 * inch)
    return y - 0.3 * inch


def _draw_totals_box(c: canvas.Canvas, artifact: QuotePdfArtifact, *, x: float, top_y: float) -> None:
    t = artifact.totals
    c.rect(x, top_y - _TOTALS_BOX_H, _TOTALS_BOX_W, _TOTALS_BOX_H, stroke=1, fill=0)
    y = top_y - 0.28 * inch
    c.setFont("Helvetica", 9)
    for label, cents in (
        ("Subtotal", t.subtotal_cents),
        ("Installation", t.installation_cents),
        ("Delivery", t.delivery_cents),
        ("Tax", t.tax_cents),
    ):
        _totals_row(c, x, y, label, cents, _TOTALS_BOX_W)
        y -= 0.2 * inch
    c.line(x + 0.12 * inch, y + 0.08 * inch, x + _TOTALS_BOX_W - 0.12 * inch, y + 0.08 * inch)
    y -= 0.1 * inch
    c.setFont("Helvetica-Bold", 10)
    _totals_row(c, x, y, "Grand Total", t.grand_total_cents, _TOTALS_BOX_W)


def _draw_footer(c: canvas.Canvas, artifact: QuotePdfArtifact, *, x0: float, footer_y: float) -> None:
    c.setFont("Helvetica", 8)
    c.setFillColor(colors.grey)
    c.drawString(x0, footer_y, f"Catalog revision: {artifact.catalog_revision}")
    c.setFillColor(colors.black)
    note_y = footer_y + 0.15 * inch
    for n in artifact.notes[:3]:
        c.drawString(x0, note_y, f"Note: {n}")
        note_y += 0.12 * inch


def _totals_row(c: canvas.Canvas, x: float, y: float, label: str, amount_cents: int, box_w: float) -> None:
    """Label on the left, amount right-aligned; the label is truncated so the two never collide."""
    amount_txt = format_usd(amount_cents)
    label_max = box_w - 0.24 * inch - c.stringWidth(amount_txt) - 0.1 * inch
    _draw_truncated(c, x + 0.12 * inch, y, (label or "").strip(), max_width=max(0.0, label_max))
    c.drawRightString(x + box_w - 0.12 * inch, y, amount_txt)


def _draw_truncated(c: canvas.Canvas, x: float, y: float, text: str, *, max_width: float) -> None:
    """
    Draw text truncated with an ASCII ellipsis so it stays inside a box.
    """
    t = (text or "").strip()
    if not t or max_width <= 0:
        return
    if c.stringWidth(t) <= max_width:
        c.drawString(x, y, t)
        return
    ell = "..."
    lo, hi = 0, len(t)
    best = ""
    while lo <= hi:
        mid = (lo + hi) // 2
        cand = t[:mid].rstrip() + ell
        if c.stringWidth(cand) <= max_width:
            best = cand
            lo = mid + 1
        else:
            hi = mid - 1
    if best:
        c.drawString(x, y, best)
