from __future__ import annotations

import json
import unittest

from quote_export import PLACEHOLDER, item_label, quote_export_payload
from quote_model import Swatch, initial_quote
from quote_reducer import ActionType, apply, set_customer_details, set_product_size, simple


class TestQuoteExport(unittest.TestCase):
    def test_blank_quote_uses_placeholders(self) -> None:
        payload = quote_export_payload(initial_quote())
        self.assertEqual(payload["quoteNumber"], PLACEHOLDER)
        self.assertEqual(payload["customer"]["name"], PLACEHOLDER)
        self.assertEqual(payload["customer"]["email"], PLACEHOLDER)
        item = payload["items"][0]
        self.assertEqual(item["label"], "Item A")
        self.assertEqual(item["roomName"], PLACEHOLDER)
        self.assertEqual(item["size"], PLACEHOLDER)
        self.assertEqual(item["exterior"], PLACEHOLDER)
        self.assertEqual(item["glazing"], PLACEHOLDER)
        self.assertEqual(item["price"], 0.0)
        self.assertIsNone(item["priceBreakdown"])
        # JSON-safe.
        json.dumps(payload)

    def test_priced_quote_projection(self) -> None:
        quote = apply(initial_quote(), set_customer_details(first_name="Ada", last_name="Lovelace"))
        quote = apply(quote, set_product_size(120, 96))
        quote = apply(quote, simple(ActionType.SET_EXTERIOR_COLOR, Swatch(name="Bronze", ral="RAL 8019")))
        quote = apply(quote, simple(ActionType.SET_GLAZING, {"tint": "Low-E3 Glass", "pane_count": "Dual"}))
        quote = apply(quote, simple(ActionType.SET_QUOTE_NUMBER, "Q-1"))

        payload = quote_export_payload(quote)
        self.assertEqual(payload["quoteNumber"], "Q-1")
        self.assertEqual(payload["customer"]["name"], "Ada Lovelace")
        item = payload["items"][0]
        self.assertEqual(item["size"], '120" x 96"')
        self.assertEqual(item["exterior"], "Bronze (RAL 8019)")
        self.assertEqual(item["interior"], "Bronze (RAL 8019)")
        self.assertEqual(item["glazing"], "Low-E3 Glass / Dual")
        self.assertEqual(item["price"], 6400)
        self.assertEqual(item["priceBreakdown"]["itemSubtotal"], 4000)
        self.assertEqual(payload["totals"]["grandTotal"], quote.totals.grand_total)

    def test_item_labels(self) -> None:
        self.assertEqual(item_label(0), "Item A")
        self.assertEqual(item_label(25), "Item Z")
        self.assertEqual(item_label(26), "Item 27")


if __name__ == "__main__":
    unittest.main()
