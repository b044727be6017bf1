from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional


class CatalogError(ValueError):
    pass


@dataclass(frozen=True)
class SizeConstraints:
    min_panel_width_in: float
    max_panel_width_in: float
    max_height_in: float
    max_width_in: float


@dataclass(frozen=True)
class ProductTypeInfo:
    id: str
    name: str
    size_constraints: Optional[SizeConstraints] = None


@dataclass(frozen=True)
class Catalog:
    """
    Read-only rate and catalog tables used by pricing and bootstrapping.

    Lookups never raise: unknown product types price at `default_sqft_rate`, unknown tints and
    delivery options cost nothing.
    """

    product_types: Mapping[str, ProductTypeInfo]
    sqft_rates: Mapping[str, float]
    tint_surcharges: Mapping[str, float]
    delivery_prices: Mapping[str, float]
    default_sqft_rate: float = 50.0
    revision: str = "built-in"

    def rate_per_sqft(self, product_type: object) -> float:
        if isinstance(product_type, str) and product_type in self.sqft_rates:
            return float(self.sqft_rates[product_type])
        return float(self.default_sqft_rate)

    def tint_surcharge(self, tint: object) -> float:
        if not isinstance(tint, str) or not tint:
            return 0.0
        return float(self.tint_surcharges.get(tint, 0.0))

    def delivery_price(self, option: object) -> Optional[float]:
        """Base price of a delivery option, or None when the option is not offered."""
        if not isinstance(option, str) or option not in self.delivery_prices:
            return None
        return float(self.delivery_prices[option])

    def is_known_product(self, product_id: object) -> bool:
        return isinstance(product_id, str) and bool(product_id) and product_id in self.product_types


def default_catalog() -> Catalog:
    slide_and_stack = ProductTypeInfo(
        id="Slide-and-Stack",
        name="Slide-&-Stack Systems",
        size_constraints=SizeConstraints(
            min_panel_width_in=28,
            max_panel_width_in=39,
            max_height_in=137.79,
            max_width_in=292,
        ),
    )
    return Catalog(
        product_types={slide_and_stack.id: slide_and_stack},
        sqft_rates={"Slide-and-Stack": 110.0, "": 50.0},
        tint_surcharges={
            "Clear Glass": -50.0,
            "Low-E3 Glass": 0.0,
            "Laminated Glass": 75.0,
        },
        delivery_prices={
            "Regular Delivery": 800.0,
            "White Glove Delivery": 1500.0,
        },
    )


def _number_map(data: Mapping[str, object], key: str, path: Path) -> Dict[str, float]:
    raw = data.get(key, {})
    if not isinstance(raw, dict):
        raise CatalogError(f"'{key}' must be an object in {path}")
    out: Dict[str, float] = {}
    for name, value in raw.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise CatalogError(f"'{key}.{name}' must be a number in {path} (got {value!r})")
        out[str(name)] = float(value)
    return out


def _size_constraints(raw: object) -> Optional[SizeConstraints]:
    if not isinstance(raw, dict):
        return None
    try:
        return SizeConstraints(
            min_panel_width_in=float(raw["min_panel_width_in"]),
            max_panel_width_in=float(raw["max_panel_width_in"]),
            max_height_in=float(raw["max_height_in"]),
            max_width_in=float(raw["max_width_in"]),
        )
    except (KeyError, TypeError, ValueError):
        return None


def load_catalog(path: Path) -> Catalog:
    """
    Load a catalog JSON file.

    Expected shape::

        {
          "revision": "2025-06",
          "product_types": [{"id": "Slide-and-Stack", "name": "...", "size_constraints": {...}}],
          "sqft_rates": {"Slide-and-Stack": 110},
          "default_sqft_rate": 50,
          "tint_surcharges": {"Clear Glass": -50},
          "delivery_prices": {"Regular Delivery": 800}
        }
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise CatalogError(f"Could not read catalog {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise CatalogError(f"Expected JSON object in {path}")

    product_types: Dict[str, ProductTypeInfo] = {}
    pt_raw = data.get("product_types", [])
    if not isinstance(pt_raw, list):
        raise CatalogError(f"'product_types' must be a list in {path}")
    for pt in pt_raw:
        if not isinstance(pt, dict):
            continue
        pid = pt.get("id")
        if not isinstance(pid, str) or not pid.strip():
            raise CatalogError(f"Product type without an id in {path}")
        name = pt.get("name")
        product_types[pid.strip()] = ProductTypeInfo(
            id=pid.strip(),
            name=name.strip() if isinstance(name, str) and name.strip() else pid.strip(),
            size_constraints=_size_constraints(pt.get("size_constraints")),
        )

    default_rate = data.get("default_sqft_rate", 50)
    if isinstance(default_rate, bool) or not isinstance(default_rate, (int, float)):
        raise CatalogError(f"'default_sqft_rate' must be a number in {path}")

    revision = data.get("revision")
    return Catalog(
        product_types=product_types,
        sqft_rates=_number_map(data, "sqft_rates", path),
        tint_surcharges=_number_map(data, "tint_surcharges", path),
        delivery_prices=_number_map(data, "delivery_prices", path),
        default_sqft_rate=float(default_rate),
        revision=revision.strip() if isinstance(revision, str) and revision.strip() else str(path),
    )
