from __future__ import annotations

from typing import Any, Dict, List

from quote_model import Quote, QuoteItem, Swatch, breakdown_to_dict, coerce_number

# ASCII so the built-in PDF fonts can always render it.
PLACEHOLDER = "-"


def _text(value: object) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return PLACEHOLDER


def item_label(index: int) -> str:
    """Letter labels for the first 26 items ("Item A"), numbers after that."""
    if 0 <= index < 26:
        return f"Item {chr(ord('A') + index)}"
    return f"Item {index + 1}"


def _swatch_label(s: Swatch) -> str:
    if not s.name and not s.ral:
        return PLACEHOLDER
    if s.name and s.ral:
        return f"{s.name} ({s.ral})"
    return s.name or s.ral


def _format_inches(value: float) -> str:
    return f"{value:g}"


def size_label(item: QuoteItem) -> str:
    w = coerce_number(item.product.width_in)
    h = coerce_number(item.product.height_in)
    if not w or not h:
        return PLACEHOLDER
    return f'{_format_inches(w)}" x {_format_inches(h)}"'


def item_summary(item: QuoteItem) -> str:
    """One-line product description used by the PDF table."""
    parts = [p for p in (item.product.type, item.product.system_type, item.product.configuration) if p]
    size = size_label(item)
    if size != PLACEHOLDER:
        parts.append(size)
    return ", ".join(parts) if parts else "Unconfigured item"


def _export_item(index: int, item: QuoteItem) -> Dict[str, Any]:
    glazing = " / ".join(p for p in (item.glazing.tint, item.glazing.pane_count) if p)
    return {
        "id": item.id,
        "index": index,
        "label": item_label(index),
        "roomName": _text(item.room_name),
        "product": _text(item.product.type),
        "systemType": _text(item.product.system_type),
        "configuration": _text(item.product.configuration),
        "size": size_label(item),
        "panels": _text(item.product.panels),
        "track": _text(item.product.track),
        "exterior": _swatch_label(item.colors.exterior),
        "interior": _swatch_label(item.colors.interior),
        "colorsMatch": item.colors.is_same,
        "glazing": glazing or PLACEHOLDER,
        "hardware": _text(item.hardware_finish),
        "quantity": item.quantity,
        "price": item.price_breakdown.item_total if item.price_breakdown else 0.0,
        "priceBreakdown": breakdown_to_dict(item.price_breakdown) if item.price_breakdown else None,
    }


def quote_export_payload(quote: Quote) -> Dict[str, Any]:
    """
    JSON-safe document view of a priced quote for downstream document/export generators.

    Missing optional text fields are rendered as "-". Amounts come straight from the quote's
    derived totals; nothing is recomputed here.
    """
    c = quote.customer
    name = " ".join(p for p in (c.first_name.strip(), c.last_name.strip()) if p)
    items: List[Dict[str, Any]] = [_export_item(i, item) for i, item in enumerate(quote.items)]
    t = quote.totals
    return {
        "quoteNumber": _text(quote.quote_number),
        "customer": {
            "name": name or PLACEHOLDER,
            "email": _text(c.email),
            "phone": _text(c.phone),
            "zip": _text(c.zip_code),
            "timeline": _text(c.timeline),
        },
        "installOption": _text(quote.install_option),
        "deliveryOption": _text(quote.delivery_option),
        "items": items,
        "totals": {
            "subtotal": t.subtotal,
            "installationCost": t.installation_cost,
            "deliveryCost": t.delivery_cost,
            "tax": t.tax,
            "grandTotal": t.grand_total,
        },
    }
