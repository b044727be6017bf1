from __future__ import annotations

import re
from dataclasses import replace
from typing import List, Mapping, Optional, Tuple

from catalog import Catalog, default_catalog
from quote_model import (
    InstallOption,
    PriceBreakdown,
    Quote,
    QuoteItem,
    QuoteTotals,
    SystemType,
    coerce_number,
    coerce_quantity,
)

SQ_IN_PER_SQ_FT = 144.0
INSTALL_RATE_PER_SQFT = 30.0
POCKET_DOOR_COST = 1200.0
TAX_RATE = 0.08

# Delivery: panels above the allowance are charged per extra panel, for the listed options only.
FREE_DELIVERY_PANELS = 10
DELIVERY_PANEL_SURCHARGES: Mapping[str, float] = {
    "Regular Delivery": 10.0,
    "White Glove Delivery": 12.0,
}


class PricingError(ValueError):
    pass


_LEADING_INT_RE = re.compile(r"^\s*[+-]?\d+")


def panel_multiplier(panels: object) -> int:
    """
    Integer panel count from the string-encoded `product.panels`.

    Leading digits are honored ("4 panels" -> 4); absent, unparsable or non-positive values
    count as a single panel.
    """
    if isinstance(panels, bool):
        return 1
    if isinstance(panels, int):
        n = panels
    elif isinstance(panels, float):
        n = int(panels) if panels == panels else 0
    elif isinstance(panels, str):
        m = _LEADING_INT_RE.match(panels)
        n = int(m.group(0)) if m else 0
    else:
        n = 0
    return n if n > 0 else 1


def area_sq_ft(width_in: float, height_in: float) -> float:
    return (width_in * height_in) / SQ_IN_PER_SQ_FT


def price_item(item: QuoteItem, *, install_option: str, catalog: Catalog) -> Optional[PriceBreakdown]:
    """Derived cost fields for one item, or None when width or height is unset."""
    width_in = coerce_number(item.product.width_in)
    height_in = coerce_number(item.product.height_in)
    if not width_in or not height_in:
        return None

    sq_ft = area_sq_ft(width_in, height_in)
    rate = catalog.rate_per_sqft(item.product.type)
    quantity = coerce_quantity(item.quantity)

    # Both hooks stay at zero: dual pane is priced into the per-sq-ft rate.
    base_cost = 0.0
    pane_cost = 0.0
    size_and_panel_cost = sq_ft * rate

    tint_cost = catalog.tint_surcharge(item.glazing.tint)
    glazing_cost = (pane_cost + tint_cost) * panel_multiplier(item.product.panels)
    pocket_door_cost = POCKET_DOOR_COST if item.product.system_type == SystemType.POCKET_DOOR.value else 0.0

    total_upgrades = glazing_cost + pocket_door_cost
    unit_price = base_cost + size_and_panel_cost + total_upgrades
    item_subtotal = unit_price * quantity

    installation_cost = 0.0
    if install_option == InstallOption.PROFESSIONAL.value:
        installation_cost = sq_ft * INSTALL_RATE_PER_SQFT * quantity

    return PriceBreakdown(
        base_cost=base_cost,
        size_and_panel_cost=size_and_panel_cost,
        pocket_door_cost=pocket_door_cost,
        glazing_cost=glazing_cost,
        total_upgrades=total_upgrades,
        unit_price=unit_price,
        quantity=quantity,
        item_subtotal=item_subtotal,
        installation_cost=installation_cost,
        item_total=item_subtotal + installation_cost,
    )


def delivery_cost(items: Tuple[QuoteItem, ...], *, delivery_option: str, catalog: Catalog) -> float:
    base = catalog.delivery_price(delivery_option)
    if base is None:
        return 0.0
    total_panels = sum(panel_multiplier(i.product.panels) * coerce_quantity(i.quantity) for i in items)
    cost = base
    if total_panels > FREE_DELIVERY_PANELS:
        per_panel = DELIVERY_PANEL_SURCHARGES.get(delivery_option, 0.0)
        cost += (total_panels - FREE_DELIVERY_PANELS) * per_panel
    return cost


def price_quote(quote: Quote, catalog: Optional[Catalog] = None) -> Quote:
    """
    Recompute every item's PriceBreakdown and the quote totals.

    Pure and deterministic: the result depends only on the items, the global install and
    delivery options and the catalog. Unchanged breakdowns keep their item object.
    """
    cat = catalog or default_catalog()

    items: List[QuoteItem] = []
    item_totals: List[float] = []
    total_subtotal = 0.0
    total_installation = 0.0
    for item in quote.items:
        breakdown = price_item(item, install_option=quote.install_option, catalog=cat)
        if breakdown is None:
            item_totals.append(0.0)
        else:
            item_totals.append(breakdown.item_total)
            total_subtotal += breakdown.item_subtotal
            total_installation += breakdown.installation_cost
        items.append(item if item.price_breakdown == breakdown else replace(item, price_breakdown=breakdown))

    delivery = delivery_cost(quote.items, delivery_option=quote.delivery_option, catalog=cat)
    grand_subtotal = total_subtotal + total_installation + delivery
    tax = grand_subtotal * TAX_RATE

    totals = QuoteTotals(
        subtotal=total_subtotal,
        installation_cost=total_installation,
        delivery_cost=delivery,
        tax=tax,
        grand_total=grand_subtotal + tax,
        item_totals=tuple(item_totals),
    )
    return replace(quote, items=tuple(items), totals=totals)


def price_with_tax(price: float, tax_rate: float = TAX_RATE) -> float:
    if price < 0:
        raise PricingError("Price cannot be negative")
    if tax_rate < 0 or tax_rate > 1:
        raise PricingError("Tax rate must be between 0 and 1")
    return price * (1 + tax_rate)
