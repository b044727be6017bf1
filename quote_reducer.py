from __future__ import annotations

from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Mapping, Optional

from catalog import Catalog
from pricing_engine import price_quote
from quote_model import (
    DEFAULT_SYSTEM_TYPE,
    EMPTY_SWATCH,
    Customer,
    Quote,
    QuoteItem,
    coerce_number,
    coerce_quantity,
    default_item,
    initial_quote,
    new_item_id,
    quote_from_dict,
    swatch_from_dict,
)


class ActionType(str, Enum):
    SET_CUSTOMER_DETAILS = "SET_CUSTOMER_DETAILS"
    SET_PRODUCT_TYPE = "SET_PRODUCT_TYPE"
    SET_PRODUCT_SIZE = "SET_PRODUCT_SIZE"
    SET_CONFIGURATION = "SET_CONFIGURATION"
    SET_VISUAL_CONFIGURATION = "SET_VISUAL_CONFIGURATION"
    SET_SYSTEM_TYPE = "SET_SYSTEM_TYPE"
    SET_EXTERIOR_COLOR = "SET_EXTERIOR_COLOR"
    SET_INTERIOR_COLOR = "SET_INTERIOR_COLOR"
    SET_COLORS_SAME = "SET_COLORS_SAME"
    SET_GLAZING = "SET_GLAZING"
    SET_HARDWARE = "SET_HARDWARE"
    SET_INSTALL = "SET_INSTALL"
    SET_DELIVERY = "SET_DELIVERY"
    SET_ROOM_NAME = "SET_ROOM_NAME"
    ADD_ITEM = "ADD_ITEM"
    DELETE_ITEM = "DELETE_ITEM"
    SET_ACTIVE_ITEM = "SET_ACTIVE_ITEM"
    DUPLICATE_ITEM = "DUPLICATE_ITEM"
    SET_ITEM_QUANTITY = "SET_ITEM_QUANTITY"
    CALCULATE_PRICES = "CALCULATE_PRICES"
    RESET_QUOTE = "RESET_QUOTE"
    HYDRATE_STATE = "HYDRATE_STATE"
    SET_QUOTE_NUMBER = "SET_QUOTE_NUMBER"


@dataclass(frozen=True)
class Action:
    type: str
    payload: Any = None


# ---------------------------------------------------------------------------
# Payload helpers (malformed payloads degrade to no-ops or defaults)
# ---------------------------------------------------------------------------


def _as_mapping(payload: object) -> Mapping[str, Any]:
    return payload if isinstance(payload, Mapping) else {}


def _as_index(payload: object, key: str = "index") -> Optional[int]:
    if isinstance(payload, Mapping):
        payload = payload.get(key)
    if isinstance(payload, bool) or not isinstance(payload, int):
        return None
    return payload


def _as_str(payload: object, key: str) -> str:
    if isinstance(payload, Mapping):
        payload = payload.get(key)
    if payload is None:
        return ""
    return payload if isinstance(payload, str) else str(payload)


def _with_active_item(state: Quote, item: QuoteItem) -> Quote:
    items = list(state.items)
    items[state.active_item_index] = item
    return replace(state, items=tuple(items))


def _update_product(state: Quote, **changes: Any) -> Quote:
    item = state.active_item
    return _with_active_item(state, replace(item, product=replace(item.product, **changes)))


def _update_active(state: Quote, **changes: Any) -> Quote:
    return _with_active_item(state, replace(state.active_item, **changes))


# ---------------------------------------------------------------------------
# Handlers: return the next state, or None for a guarded no-op.
# ---------------------------------------------------------------------------

_CUSTOMER_FIELDS = frozenset(f.name for f in fields(Customer))


def _set_customer_details(state: Quote, payload: Any) -> Optional[Quote]:
    changes: Dict[str, Any] = {}
    for key, value in _as_mapping(payload).items():
        if key not in _CUSTOMER_FIELDS:
            continue
        if key == "heard_via":
            changes[key] = tuple(v for v in value if isinstance(v, str)) if isinstance(value, (list, tuple)) else ()
        else:
            changes[key] = "" if value is None else str(value)
    return replace(state, customer=replace(state.customer, **changes))


def _set_product_type(state: Quote, payload: Any) -> Optional[Quote]:
    return _update_product(state, type=_as_str(payload, "type"))


def _set_product_size(state: Quote, payload: Any) -> Optional[Quote]:
    data = _as_mapping(payload)
    changes: Dict[str, Any] = {}
    if "width_in" in data:
        changes["width_in"] = coerce_number(data["width_in"])
    if "height_in" in data:
        changes["height_in"] = coerce_number(data["height_in"])
    return _update_product(state, **changes)


def _set_configuration(state: Quote, payload: Any) -> Optional[Quote]:
    return _update_product(state, configuration=_as_str(payload, "configuration"))


def _set_visual_configuration(state: Quote, payload: Any) -> Optional[Quote]:
    data = _as_mapping(payload)
    changes: Dict[str, Any] = {}
    if "configuration" in data:
        changes["configuration"] = _as_str(data, "configuration")
    if "panels" in data:
        changes["panels"] = _as_str(data, "panels")
    if "configuration_image_url" in data:
        changes["configuration_image_url"] = _as_str(data, "configuration_image_url")
    return _update_product(state, **changes)


def _set_system_type(state: Quote, payload: Any) -> Optional[Quote]:
    return _update_product(state, system_type=_as_str(payload, "system_type"))


def _set_exterior_color(state: Quote, payload: Any) -> Optional[Quote]:
    colors = state.active_item.colors
    swatch = swatch_from_dict(payload)
    interior = swatch if colors.is_same else colors.interior
    return _update_active(state, colors=replace(colors, exterior=swatch, interior=interior))


def _set_interior_color(state: Quote, payload: Any) -> Optional[Quote]:
    colors = state.active_item.colors
    swatch = swatch_from_dict(payload)
    if colors.is_same and swatch != colors.exterior:
        # Unlike a plain interior write, a distinct interior while matched also clears is_same.
        return _update_active(state, colors=replace(colors, interior=swatch, is_same=False))
    return _update_active(state, colors=replace(colors, interior=swatch))


def _set_colors_same(state: Quote, payload: Any) -> Optional[Quote]:
    if isinstance(payload, Mapping):
        payload = payload.get("is_same")
    is_same = bool(payload)
    colors = state.active_item.colors
    # Splitting starts the interior from an unset swatch rather than a copy.
    interior = colors.exterior if is_same else EMPTY_SWATCH
    return _update_active(state, colors=replace(colors, is_same=is_same, interior=interior))


def _set_glazing(state: Quote, payload: Any) -> Optional[Quote]:
    data = _as_mapping(payload)
    changes: Dict[str, Any] = {}
    if "pane_count" in data:
        changes["pane_count"] = _as_str(data, "pane_count")
    if "tint" in data:
        changes["tint"] = _as_str(data, "tint")
    return _update_active(state, glazing=replace(state.active_item.glazing, **changes))


def _set_hardware(state: Quote, payload: Any) -> Optional[Quote]:
    return _update_active(state, hardware_finish=_as_str(payload, "hardware_finish"))


def _set_room_name(state: Quote, payload: Any) -> Optional[Quote]:
    return _update_active(state, room_name=_as_str(payload, "room_name"))


def _set_install(state: Quote, payload: Any) -> Optional[Quote]:
    return replace(state, install_option=_as_str(payload, "install_option"))


def _set_delivery(state: Quote, payload: Any) -> Optional[Quote]:
    return replace(state, delivery_option=_as_str(payload, "delivery_option"))


def _add_item(state: Quote, payload: Any) -> Optional[Quote]:
    system_type = state.active_item.product.system_type or DEFAULT_SYSTEM_TYPE
    items = state.items + (default_item(system_type=system_type),)
    return replace(state, items=items, active_item_index=len(items) - 1)


def _delete_item(state: Quote, payload: Any) -> Optional[Quote]:
    index = _as_index(payload)
    if len(state.items) <= 1 or index is None or not (0 <= index < len(state.items)):
        return None
    items = state.items[:index] + state.items[index + 1 :]
    active = state.active_item_index - 1 if state.active_item_index >= index else state.active_item_index
    active = max(0, min(active, len(items) - 1))
    return replace(state, items=items, active_item_index=active)


def _duplicate_item(state: Quote, payload: Any) -> Optional[Quote]:
    index = _as_index(payload)
    if index is None or not (0 <= index < len(state.items)):
        return None
    source = state.items[index]
    # Nested values are immutable, so sharing them is a deep copy.
    copy = replace(
        source,
        id=new_item_id(),
        room_name=f"{source.room_name} (Copy)" if source.room_name else "",
    )
    items = state.items + (copy,)
    return replace(state, items=items, active_item_index=len(items) - 1)


def _set_item_quantity(state: Quote, payload: Any) -> Optional[Quote]:
    index = _as_index(payload)
    if index is None or not (0 <= index < len(state.items)):
        return None
    items = list(state.items)
    items[index] = replace(items[index], quantity=coerce_quantity(_as_mapping(payload).get("quantity")))
    return replace(state, items=tuple(items))


def _set_active_item(state: Quote, payload: Any) -> Optional[Quote]:
    index = _as_index(payload)
    if index is None or not (0 <= index < len(state.items)):
        return None
    return replace(state, active_item_index=index)


def _calculate_prices(state: Quote, payload: Any) -> Optional[Quote]:
    return state


def _reset_quote(state: Quote, payload: Any) -> Optional[Quote]:
    return initial_quote(customer=state.customer)


def _hydrate_state(state: Quote, payload: Any) -> Optional[Quote]:
    if isinstance(payload, Quote):
        return payload
    if isinstance(payload, Mapping):
        return quote_from_dict(payload)
    return None


def _set_quote_number(state: Quote, payload: Any) -> Optional[Quote]:
    return replace(state, quote_number=None if payload is None else str(payload))


_HANDLERS: Dict[ActionType, Callable[[Quote, Any], Optional[Quote]]] = {
    ActionType.SET_CUSTOMER_DETAILS: _set_customer_details,
    ActionType.SET_PRODUCT_TYPE: _set_product_type,
    ActionType.SET_PRODUCT_SIZE: _set_product_size,
    ActionType.SET_CONFIGURATION: _set_configuration,
    ActionType.SET_VISUAL_CONFIGURATION: _set_visual_configuration,
    ActionType.SET_SYSTEM_TYPE: _set_system_type,
    ActionType.SET_EXTERIOR_COLOR: _set_exterior_color,
    ActionType.SET_INTERIOR_COLOR: _set_interior_color,
    ActionType.SET_COLORS_SAME: _set_colors_same,
    ActionType.SET_GLAZING: _set_glazing,
    ActionType.SET_HARDWARE: _set_hardware,
    ActionType.SET_INSTALL: _set_install,
    ActionType.SET_DELIVERY: _set_delivery,
    ActionType.SET_ROOM_NAME: _set_room_name,
    ActionType.ADD_ITEM: _add_item,
    ActionType.DELETE_ITEM: _delete_item,
    ActionType.SET_ACTIVE_ITEM: _set_active_item,
    ActionType.DUPLICATE_ITEM: _duplicate_item,
    ActionType.SET_ITEM_QUANTITY: _set_item_quantity,
    ActionType.CALCULATE_PRICES: _calculate_prices,
    ActionType.RESET_QUOTE: _reset_quote,
    ActionType.HYDRATE_STATE: _hydrate_state,
    ActionType.SET_QUOTE_NUMBER: _set_quote_number,
}

# Everything except metadata-only writes, cursor moves, reset and hydrate.
_NO_REPRICE: FrozenSet[ActionType] = frozenset(
    {
        ActionType.SET_CUSTOMER_DETAILS,
        ActionType.SET_ACTIVE_ITEM,
        ActionType.RESET_QUOTE,
        ActionType.HYDRATE_STATE,
        ActionType.SET_QUOTE_NUMBER,
    }
)


def action_type_of(action: object) -> Optional[ActionType]:
    raw = action.get("type") if isinstance(action, Mapping) else getattr(action, "type", None)
    try:
        return ActionType(raw)
    except (TypeError, ValueError):
        return None


def apply(state: Quote, action: Action, catalog: Optional[Catalog] = None) -> Quote:
    """
    Apply one action and return the next Quote.

    Total: unknown action types and guarded no-ops (deleting the last item, an out-of-range
    index) return `state` itself. Every other cost-relevant transition leaves through
    `price_quote`, so totals are never stale.
    """
    action_type = action_type_of(action)
    if action_type is None:
        return state
    payload = action.get("payload") if isinstance(action, Mapping) else getattr(action, "payload", None)

    next_state = _HANDLERS[action_type](state, payload)
    if next_state is None:
        return state
    if action_type in _NO_REPRICE:
        return next_state
    return price_quote(next_state, catalog)


# ---------------------------------------------------------------------------
# Action constructors
# ---------------------------------------------------------------------------


def set_customer_details(**fields_: Any) -> Action:
    return Action(ActionType.SET_CUSTOMER_DETAILS.value, fields_)


def set_product_type(product_type: str) -> Action:
    return Action(ActionType.SET_PRODUCT_TYPE.value, product_type)


def set_product_size(width_in: float, height_in: float) -> Action:
    return Action(ActionType.SET_PRODUCT_SIZE.value, {"width_in": width_in, "height_in": height_in})


def set_visual_configuration(configuration: str, panels: str) -> Action:
    return Action(ActionType.SET_VISUAL_CONFIGURATION.value, {"configuration": configuration, "panels": panels})


def set_item_quantity(index: int, quantity: int) -> Action:
    return Action(ActionType.SET_ITEM_QUANTITY.value, {"index": index, "quantity": quantity})


def simple(action_type: ActionType, payload: Any = None) -> Action:
    return Action(action_type.value, payload)
