from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple


class SystemType(str, Enum):
    MULTI_SLIDE = "Multi-Slide"
    POCKET_DOOR = "Pocket Door"


class InstallOption(str, Enum):
    NONE = "None"
    PROFESSIONAL = "Professional Installation"


class DeliveryOption(str, Enum):
    REGULAR = "Regular Delivery"
    WHITE_GLOVE = "White Glove Delivery"


DEFAULT_SYSTEM_TYPE = SystemType.MULTI_SLIDE.value


class QuoteInvariantError(ValueError):
    pass


@dataclass(frozen=True)
class Swatch:
    name: str = ""
    hex: str = ""
    ral: str = ""


EMPTY_SWATCH = Swatch()


@dataclass(frozen=True)
class Customer:
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    email: str = ""
    zip_code: str = ""
    timeline: str = ""
    heard_via: Tuple[str, ...] = ()
    customer_type: str = ""
    referral_code: str = ""
    budget: str = ""


# Fields that make a session worth persisting.
CONTACT_FIELDS: Tuple[str, ...] = ("first_name", "last_name", "email", "phone")


@dataclass(frozen=True)
class ProductSpec:
    type: str = ""
    width_in: float = 0
    height_in: float = 0
    configuration: str = ""
    system_type: str = DEFAULT_SYSTEM_TYPE
    # String-encoded integer, e.g. "4".
    panels: str = ""
    track: str = ""
    configuration_image_url: str = ""


@dataclass(frozen=True)
class ItemColors:
    exterior: Swatch = EMPTY_SWATCH
    interior: Swatch = EMPTY_SWATCH
    is_same: bool = True


@dataclass(frozen=True)
class Glazing:
    pane_count: str = ""
    tint: str = ""


@dataclass(frozen=True)
class PriceBreakdown:
    base_cost: float
    size_and_panel_cost: float
    pocket_door_cost: float
    glazing_cost: float
    total_upgrades: float
    unit_price: float
    quantity: int
    item_subtotal: float
    installation_cost: float
    item_total: float


@dataclass(frozen=True)
class QuoteItem:
    id: str
    quantity: int = 1
    room_name: str = ""
    product: ProductSpec = field(default_factory=ProductSpec)
    colors: ItemColors = field(default_factory=ItemColors)
    glazing: Glazing = field(default_factory=Glazing)
    hardware_finish: str = ""
    # Derived; None until the item has both width and height.
    price_breakdown: Optional[PriceBreakdown] = None


@dataclass(frozen=True)
class QuoteTotals:
    subtotal: float = 0.0
    installation_cost: float = 0.0
    delivery_cost: float = 0.0
    tax: float = 0.0
    grand_total: float = 0.0
    item_totals: Tuple[float, ...] = ()


@dataclass(frozen=True)
class Quote:
    customer: Customer
    items: Tuple[QuoteItem, ...]
    active_item_index: int = 0
    install_option: str = InstallOption.PROFESSIONAL.value
    delivery_option: str = DeliveryOption.REGULAR.value
    totals: QuoteTotals = field(default_factory=QuoteTotals)
    quote_number: Optional[str] = None

    @property
    def active_item(self) -> QuoteItem:
        return self.items[self.active_item_index]


def new_item_id() -> str:
    return f"item-{uuid.uuid4().hex[:16]}"


def default_item(*, system_type: str = DEFAULT_SYSTEM_TYPE, item_id: Optional[str] = None) -> QuoteItem:
    return QuoteItem(
        id=item_id or new_item_id(),
        product=ProductSpec(system_type=system_type or DEFAULT_SYSTEM_TYPE),
    )


def initial_quote(customer: Optional[Customer] = None) -> Quote:
    return Quote(customer=customer or Customer(), items=(default_item(),))


def check_invariants(quote: Quote) -> None:
    if not quote.items:
        raise QuoteInvariantError("quote has no items")
    if not (0 <= quote.active_item_index < len(quote.items)):
        raise QuoteInvariantError(
            f"active_item_index {quote.active_item_index} out of range for {len(quote.items)} items"
        )
    for idx, item in enumerate(quote.items):
        if item.colors.is_same and item.colors.interior != item.colors.exterior:
            raise QuoteInvariantError(f"item {idx} has is_same=True but interior != exterior")
        if item.quantity < 1:
            raise QuoteInvariantError(f"item {idx} has quantity {item.quantity}")


# ---------------------------------------------------------------------------
# Snapshot codec (camelCase JSON shape consumed by the document generator)
# ---------------------------------------------------------------------------


def _str(value: object, default: str = "") -> str:
    return value if isinstance(value, str) else default


def coerce_number(value: object, default: float = 0.0) -> float:
    """Finite float from a number or numeric string; anything else gives `default`."""
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        f = float(value)
    elif isinstance(value, str):
        try:
            f = float(value.strip())
        except ValueError:
            return default
    else:
        return default
    if math.isnan(f) or math.isinf(f):
        return default
    return f


def coerce_quantity(value: object) -> int:
    n = coerce_number(value, 1.0)
    return max(1, int(n))


def _swatch_to_dict(s: Swatch) -> Dict[str, str]:
    return {"ral": s.ral, "name": s.name, "hex": s.hex}


def swatch_from_dict(data: object) -> Swatch:
    if isinstance(data, Swatch):
        return data
    if not isinstance(data, Mapping):
        return EMPTY_SWATCH
    return Swatch(name=_str(data.get("name")), hex=_str(data.get("hex")), ral=_str(data.get("ral")))


def breakdown_to_dict(b: PriceBreakdown) -> Dict[str, Any]:
    return {
        "baseCost": b.base_cost,
        "sizeAndPanelCost": b.size_and_panel_cost,
        "pocketDoorCost": b.pocket_door_cost,
        "glazingCost": b.glazing_cost,
        "totalUpgrades": b.total_upgrades,
        "unitPrice": b.unit_price,
        "quantity": b.quantity,
        "itemSubtotal": b.item_subtotal,
        "installationCost": b.installation_cost,
        "itemTotal": b.item_total,
    }


def _breakdown_from_dict(data: object) -> Optional[PriceBreakdown]:
    if not isinstance(data, Mapping):
        return None
    return PriceBreakdown(
        base_cost=coerce_number(data.get("baseCost")),
        size_and_panel_cost=coerce_number(data.get("sizeAndPanelCost")),
        pocket_door_cost=coerce_number(data.get("pocketDoorCost")),
        glazing_cost=coerce_number(data.get("glazingCost")),
        total_upgrades=coerce_number(data.get("totalUpgrades")),
        unit_price=coerce_number(data.get("unitPrice")),
        quantity=coerce_quantity(data.get("quantity")),
        item_subtotal=coerce_number(data.get("itemSubtotal")),
        installation_cost=coerce_number(data.get("installationCost")),
        item_total=coerce_number(data.get("itemTotal")),
    )


def item_to_dict(item: QuoteItem) -> Dict[str, Any]:
    p = item.product
    out: Dict[str, Any] = {
        "id": item.id,
        "quantity": item.quantity,
        "roomName": item.room_name,
        "product": {
            "type": p.type,
            "widthIn": p.width_in,
            "heightIn": p.height_in,
            "configuration": p.configuration,
            "configurationImageUrl": p.configuration_image_url,
            "systemType": p.system_type,
            "panels": p.panels,
            "track": p.track,
        },
        "colors": {
            "exterior": _swatch_to_dict(item.colors.exterior),
            "interior": _swatch_to_dict(item.colors.interior),
            "isSame": item.colors.is_same,
        },
        "glazing": {"paneCount": item.glazing.pane_count, "tint": item.glazing.tint},
        "hardwareFinish": item.hardware_finish,
    }
    if item.price_breakdown is not None:
        out["priceBreakdown"] = breakdown_to_dict(item.price_breakdown)
    return out


def item_from_dict(data: Mapping[str, Any]) -> QuoteItem:
    product = data.get("product") if isinstance(data.get("product"), Mapping) else {}
    colors = data.get("colors") if isinstance(data.get("colors"), Mapping) else {}
    glazing = data.get("glazing") if isinstance(data.get("glazing"), Mapping) else {}
    item_id = _str(data.get("id")).strip() or new_item_id()
    panels = product.get("panels")
    is_same = colors.get("isSame")
    is_same = is_same if isinstance(is_same, bool) else True
    exterior = swatch_from_dict(colors.get("exterior"))
    interior = exterior if is_same else swatch_from_dict(colors.get("interior"))
    return QuoteItem(
        id=item_id,
        quantity=coerce_quantity(data.get("quantity")),
        room_name=_str(data.get("roomName")),
        product=ProductSpec(
            type=_str(product.get("type")),
            width_in=coerce_number(product.get("widthIn")),
            height_in=coerce_number(product.get("heightIn")),
            configuration=_str(product.get("configuration")),
            system_type=_str(product.get("systemType"), DEFAULT_SYSTEM_TYPE),
            panels=str(panels) if isinstance(panels, (str, int)) and not isinstance(panels, bool) else "",
            track=_str(product.get("track")),
            configuration_image_url=_str(product.get("configurationImageUrl")),
        ),
        colors=ItemColors(exterior=exterior, interior=interior, is_same=is_same),
        glazing=Glazing(pane_count=_str(glazing.get("paneCount")), tint=_str(glazing.get("tint"))),
        hardware_finish=_str(data.get("hardwareFinish")),
        price_breakdown=_breakdown_from_dict(data.get("priceBreakdown")),
    )


def customer_to_dict(c: Customer) -> Dict[str, Any]:
    return {
        "firstName": c.first_name,
        "lastName": c.last_name,
        "phone": c.phone,
        "email": c.email,
        "zipCode": c.zip_code,
        "timeline": c.timeline,
        "heardVia": list(c.heard_via),
        "customerType": c.customer_type,
        "referralCode": c.referral_code,
        "budget": c.budget,
    }


_CUSTOMER_KEYS: Dict[str, str] = {
    "firstName": "first_name",
    "lastName": "last_name",
    "phone": "phone",
    "email": "email",
    "zipCode": "zip_code",
    "timeline": "timeline",
    "customerType": "customer_type",
    "referralCode": "referral_code",
    "budget": "budget",
}


def customer_from_dict(data: object) -> Customer:
    if not isinstance(data, Mapping):
        return Customer()
    kwargs: Dict[str, Any] = {attr: _str(data.get(key)) for key, attr in _CUSTOMER_KEYS.items()}
    heard = data.get("heardVia")
    kwargs["heard_via"] = tuple(h for h in heard if isinstance(h, str)) if isinstance(heard, list) else ()
    return Customer(**kwargs)


def quote_to_dict(quote: Quote) -> Dict[str, Any]:
    t = quote.totals
    out: Dict[str, Any] = {
        "customer": customer_to_dict(quote.customer),
        "items": [item_to_dict(i) for i in quote.items],
        "activeItemIndex": quote.active_item_index,
        "installOption": quote.install_option,
        "deliveryOption": quote.delivery_option,
        "totals": {
            "subtotal": t.subtotal,
            "installationCost": t.installation_cost,
            "deliveryCost": t.delivery_cost,
            "tax": t.tax,
            "grandTotal": t.grand_total,
            "itemTotals": list(t.item_totals),
        },
    }
    if quote.quote_number is not None:
        out["quoteNumber"] = quote.quote_number
    return out


def quote_from_dict(data: Mapping[str, Any]) -> Quote:
    """
    Build a Quote from its JSON shape.

    Missing or mistyped fields take defaults; an empty/missing item list yields one default
    item, and the cursor is clamped into range so the result always satisfies the invariants.
    """
    raw_items = data.get("items")
    items: Tuple[QuoteItem, ...] = ()
    if isinstance(raw_items, list):
        items = tuple(item_from_dict(i) if isinstance(i, Mapping) else default_item() for i in raw_items)
    if not items:
        items = (default_item(),)

    idx_raw = data.get("activeItemIndex")
    idx = int(coerce_number(idx_raw, 0.0))
    idx = max(0, min(idx, len(items) - 1))

    totals_raw = data.get("totals") if isinstance(data.get("totals"), Mapping) else {}
    item_totals = totals_raw.get("itemTotals")
    totals = QuoteTotals(
        subtotal=coerce_number(totals_raw.get("subtotal")),
        installation_cost=coerce_number(totals_raw.get("installationCost")),
        delivery_cost=coerce_number(totals_raw.get("deliveryCost")),
        tax=coerce_number(totals_raw.get("tax")),
        grand_total=coerce_number(totals_raw.get("grandTotal")),
        item_totals=tuple(coerce_number(v) for v in item_totals) if isinstance(item_totals, list) else (),
    )

    quote_number = data.get("quoteNumber")
    return Quote(
        customer=customer_from_dict(data.get("customer")),
        items=items,
        active_item_index=idx,
        install_option=_str(data.get("installOption"), InstallOption.PROFESSIONAL.value),
        delivery_option=_str(data.get("deliveryOption"), DeliveryOption.REGULAR.value),
        totals=totals,
        quote_number=quote_number if isinstance(quote_number, str) else None,
    )
