from __future__ import annotations

"""
Smoke test for the quote engine (local, offline).

Simulates a short configuration session by dispatching actions one at a time, then:
- prints the running totals after every step (pricing_engine via quote_reducer)
- persists the snapshot to a JSON file and reloads it (snapshot_store)
- renders a PDF of the final quote (quote_pdf)

Writes to `out/smoke_test_quote/` and exits non-zero if anything breaks.

Usage:
  python3 scripts/smoke_test_quote.py
  python3 scripts/smoke_test_quote.py --out-dir out/smoke_test_quote --product Slide-and-Stack
"""

import argparse
import json
import sys
import traceback
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

# Allow running as `python3 scripts/smoke_test_quote.py` (module imports live at repo root).
_ROOT = Path(__file__).resolve().parents[1]
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from catalog import CatalogError, default_catalog, load_catalog
from quote_export import quote_export_payload
from quote_model import Swatch, check_invariants
from quote_pdf import build_quote_pdf_artifact, make_quote_pdf_bytes
from quote_reducer import (
    Action,
    ActionType,
    set_customer_details,
    set_item_quantity,
    set_product_size,
    set_visual_configuration,
    simple,
)
from quote_session import QuoteSession
from snapshot_store import JsonFileKeyValueStore, SnapshotStore


@dataclass(frozen=True)
class Step:
    label: str
    action: Action


def _steps() -> list[Step]:
    bronze = Swatch(name="Bronze", hex="#4e3b31", ral="RAL 8019")
    return [
        Step("customer", set_customer_details(first_name="Demo", last_name="Customer", email="demo@example.com")),
        Step("size", set_product_size(120, 96)),
        Step("configuration", set_visual_configuration("3L", "3")),
        Step("exterior_color", simple(ActionType.SET_EXTERIOR_COLOR, bronze)),
        Step("tint", simple(ActionType.SET_GLAZING, {"tint": "Laminated Glass", "pane_count": "Dual"})),
        Step("room", simple(ActionType.SET_ROOM_NAME, "Living Room")),
        Step("duplicate", simple(ActionType.DUPLICATE_ITEM, 0)),
        Step("pocket_door", simple(ActionType.SET_SYSTEM_TYPE, "Pocket Door")),
        Step("quantity", set_item_quantity(1, 3)),
        Step("white_glove", simple(ActionType.SET_DELIVERY, "White Glove Delivery")),
        Step("quote_number", simple(ActionType.SET_QUOTE_NUMBER, "SMOKE-0001")),
    ]


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--out-dir",
        default=str(_ROOT / "out" / "smoke_test_quote"),
        help="Directory to write the snapshot and PDF into (default: out/smoke_test_quote).",
    )
    parser.add_argument("--catalog", default="", help="Optional JSON catalog file (default: built-in catalog).")
    parser.add_argument("--product", default="Slide-and-Stack", help="Simulated `product=` query parameter.")
    args = parser.parse_args(argv)

    out_dir = Path(args.out_dir).resolve()
    out_dir.mkdir(parents=True, exist_ok=True)
    state_path = out_dir / "quote_state.json"
    if state_path.exists():
        state_path.unlink()

    catalog = load_catalog(Path(args.catalog)) if args.catalog else default_catalog()
    store = SnapshotStore(JsonFileKeyValueStore(state_path))
    session = QuoteSession(catalog=catalog, store=store)
    session.hydrate({"product": args.product})

    steps = _steps()
    for i, step in enumerate(steps, start=1):
        quote = session.dispatch(step.action)
        check_invariants(quote)
        print(f"[{i}/{len(steps)}] {step.label}")
        print(f"  - items: {len(quote.items)}  active: {quote.active_item_index}")
        print(f"  - total: ${quote.totals.grand_total:,.2f}")

    reloaded = SnapshotStore(JsonFileKeyValueStore(state_path)).load()
    if reloaded.totals != session.quote.totals:
        raise RuntimeError("Reloaded snapshot totals differ from the live session.")

    (out_dir / "quote_export.json").write_text(
        json.dumps(quote_export_payload(session.quote), indent=2) + "\n", encoding="utf-8"
    )

    artifact = build_quote_pdf_artifact(
        session.quote, quote_date=datetime.now(timezone.utc).date(), catalog=catalog
    )
    pdf_bytes = make_quote_pdf_bytes(artifact)
    if not pdf_bytes.startswith(b"%PDF"):
        raise RuntimeError("Generated PDF does not start with %PDF header.")
    for marker in (b"Grand Total", b"Delivery", b"Catalog revision"):
        if marker not in pdf_bytes:
            raise RuntimeError(f"Generated PDF missing expected marker: {marker!r}")
    (out_dir / "quote.pdf").write_bytes(pdf_bytes)

    print("")
    print(f"OK: wrote snapshot, export and PDF to {out_dir}")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except CatalogError as exc:
        print(f"FAIL: CatalogError: {exc}", file=sys.stderr)
        raise SystemExit(2)
    except Exception:
        traceback.print_exc()
        raise SystemExit(1)
