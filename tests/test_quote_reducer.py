from __future__ import annotations

import random
import unittest

from quote_model import EMPTY_SWATCH, Customer, Swatch, check_invariants, initial_quote
from quote_reducer import (
    Action,
    ActionType,
    apply,
    set_customer_details,
    set_item_quantity,
    set_product_size,
    set_visual_configuration,
    simple,
)

BRONZE = Swatch(name="Bronze", hex="#4e3b31", ral="RAL 8019")
WHITE = Swatch(name="White", hex="#ffffff", ral="RAL 9016")


def _run(state, *actions):
    for a in actions:
        state = apply(state, a)
    return state


class TestQuoteReducer(unittest.TestCase):
    def test_unknown_action_returns_same_state(self) -> None:
        state = initial_quote()
        self.assertIs(apply(state, Action("NOT_A_REAL_ACTION", 3)), state)
        self.assertIs(apply(state, Action("")), state)

    def test_mapping_actions_are_accepted(self) -> None:
        state = apply(initial_quote(), {"type": "SET_ROOM_NAME", "payload": "Kitchen"})
        self.assertEqual(state.active_item.room_name, "Kitchen")

    def test_product_size_reprices(self) -> None:
        state = apply(initial_quote(), set_product_size(120, 96))
        self.assertEqual(state.active_item.product.width_in, 120)
        self.assertEqual(state.totals.subtotal, 4000)
        self.assertIsNotNone(state.active_item.price_breakdown)

    def test_unparsable_dimension_becomes_zero(self) -> None:
        state = apply(initial_quote(), set_product_size("abc", 96))
        self.assertEqual(state.active_item.product.width_in, 0)
        self.assertIsNone(state.active_item.price_breakdown)
        self.assertEqual(state.totals.subtotal, 0)

    def test_visual_configuration_sets_panels(self) -> None:
        state = apply(initial_quote(), set_visual_configuration("4L", "4"))
        self.assertEqual(state.active_item.product.configuration, "4L")
        self.assertEqual(state.active_item.product.panels, "4")

    def test_customer_details_merge_without_repricing(self) -> None:
        priced = apply(initial_quote(), set_product_size(120, 96))
        state = apply(priced, set_customer_details(first_name="Ada", email="ada@example.com"))
        state = apply(state, set_customer_details(last_name="Lovelace", unknown_field="x"))
        self.assertEqual(state.customer.first_name, "Ada")
        self.assertEqual(state.customer.last_name, "Lovelace")
        self.assertEqual(state.customer.email, "ada@example.com")
        self.assertIs(state.totals, priced.totals)

    def test_color_symmetry(self) -> None:
        state = apply(initial_quote(), simple(ActionType.SET_EXTERIOR_COLOR, BRONZE))
        # Exterior edits propagate while the colors match.
        self.assertEqual(state.active_item.colors.interior, BRONZE)

        state = apply(state, simple(ActionType.SET_COLORS_SAME, True))
        self.assertEqual(state.active_item.colors.interior, BRONZE)

        state = apply(state, simple(ActionType.SET_COLORS_SAME, False))
        self.assertEqual(state.active_item.colors.interior, EMPTY_SWATCH)
        self.assertEqual(state.active_item.colors.exterior, BRONZE)

        state = apply(state, simple(ActionType.SET_INTERIOR_COLOR, WHITE))
        state = apply(state, simple(ActionType.SET_EXTERIOR_COLOR, {"name": "Black", "hex": "#000000", "ral": "RAL 9005"}))
        self.assertEqual(state.active_item.colors.interior, WHITE)
        self.assertEqual(state.active_item.colors.exterior.name, "Black")

        state = apply(state, simple(ActionType.SET_COLORS_SAME, True))
        self.assertEqual(state.active_item.colors.interior, state.active_item.colors.exterior)
        check_invariants(state)

    def test_interior_edit_while_matched_splits_colors(self) -> None:
        state = apply(initial_quote(), simple(ActionType.SET_EXTERIOR_COLOR, BRONZE))
        state = apply(state, simple(ActionType.SET_INTERIOR_COLOR, WHITE))
        self.assertFalse(state.active_item.colors.is_same)
        self.assertEqual(state.active_item.colors.interior, WHITE)
        self.assertEqual(state.active_item.colors.exterior, BRONZE)
        check_invariants(state)

    def test_glazing_merges_and_reprices(self) -> None:
        state = _run(
            initial_quote(),
            set_product_size(120, 96),
            set_visual_configuration("3L", "3"),
            simple(ActionType.SET_GLAZING, {"pane_count": "Dual"}),
            simple(ActionType.SET_GLAZING, {"tint": "Laminated Glass"}),
        )
        self.assertEqual(state.active_item.glazing.pane_count, "Dual")
        self.assertEqual(state.active_item.glazing.tint, "Laminated Glass")
        b = state.active_item.price_breakdown
        assert b is not None
        self.assertEqual(b.glazing_cost, 225)

    def test_global_options_reprice(self) -> None:
        state = apply(initial_quote(), set_product_size(120, 96))
        self.assertEqual(state.totals.installation_cost, 2400)
        self.assertEqual(state.totals.delivery_cost, 800)

        state = apply(state, simple(ActionType.SET_INSTALL, "None"))
        state = apply(state, simple(ActionType.SET_DELIVERY, "White Glove Delivery"))
        self.assertEqual(state.totals.installation_cost, 0)
        self.assertEqual(state.totals.delivery_cost, 1500)

    def test_add_item_inherits_system_type(self) -> None:
        state = apply(initial_quote(), simple(ActionType.SET_SYSTEM_TYPE, "Pocket Door"))
        state = apply(state, simple(ActionType.ADD_ITEM))
        self.assertEqual(len(state.items), 2)
        self.assertEqual(state.active_item_index, 1)
        self.assertEqual(state.active_item.product.system_type, "Pocket Door")
        self.assertNotEqual(state.items[0].id, state.items[1].id)

    def test_add_item_falls_back_to_default_system_type(self) -> None:
        state = apply(initial_quote(), simple(ActionType.SET_SYSTEM_TYPE, ""))
        state = apply(state, simple(ActionType.ADD_ITEM))
        self.assertEqual(state.active_item.product.system_type, "Multi-Slide")

    def test_delete_last_item_is_a_no_op(self) -> None:
        state = initial_quote()
        self.assertIs(apply(state, simple(ActionType.DELETE_ITEM, 0)), state)

    def test_delete_out_of_range_is_a_no_op(self) -> None:
        state = _run(initial_quote(), simple(ActionType.ADD_ITEM))
        self.assertIs(apply(state, simple(ActionType.DELETE_ITEM, 5)), state)
        self.assertIs(apply(state, simple(ActionType.DELETE_ITEM, -1)), state)
        self.assertIs(apply(state, simple(ActionType.DELETE_ITEM, "1")), state)

    def test_delete_shifts_cursor(self) -> None:
        state = _run(
            initial_quote(),
            simple(ActionType.ADD_ITEM),
            simple(ActionType.ADD_ITEM),
        )
        ids = [i.id for i in state.items]
        self.assertEqual(state.active_item_index, 2)

        after = apply(state, simple(ActionType.DELETE_ITEM, 0))
        self.assertEqual([i.id for i in after.items], ids[1:])
        self.assertEqual(after.active_item_index, 1)
        self.assertEqual(after.active_item.id, ids[2])

        before_cursor = apply(state, simple(ActionType.SET_ACTIVE_ITEM, 0))
        after = apply(before_cursor, simple(ActionType.DELETE_ITEM, 2))
        self.assertEqual(after.active_item_index, 0)

        at_zero = apply(before_cursor, simple(ActionType.DELETE_ITEM, 0))
        self.assertEqual(at_zero.active_item_index, 0)
        self.assertEqual(at_zero.active_item.id, ids[1])

    def test_duplicate_item(self) -> None:
        state = _run(
            initial_quote(),
            simple(ActionType.SET_ROOM_NAME, "Living Room"),
            set_product_size(120, 96),
            simple(ActionType.SET_EXTERIOR_COLOR, BRONZE),
            simple(ActionType.ADD_ITEM),
        )
        dup = apply(state, simple(ActionType.DUPLICATE_ITEM, 0))
        self.assertEqual(len(dup.items), 3)
        self.assertEqual(dup.active_item_index, 2)
        copy = dup.active_item
        self.assertNotEqual(copy.id, state.items[0].id)
        self.assertEqual(copy.room_name, "Living Room (Copy)")
        self.assertEqual(copy.product, state.items[0].product)
        self.assertEqual(copy.colors, state.items[0].colors)
        self.assertEqual(dup.totals.subtotal, 8000)

        unnamed = apply(state, simple(ActionType.DUPLICATE_ITEM, 1))
        self.assertEqual(unnamed.active_item.room_name, "")

        self.assertIs(apply(state, simple(ActionType.DUPLICATE_ITEM, 9)), state)

    def test_set_item_quantity(self) -> None:
        state = apply(initial_quote(), set_product_size(120, 96))
        state = apply(state, set_item_quantity(0, 3))
        self.assertEqual(state.items[0].quantity, 3)
        self.assertEqual(state.totals.subtotal, 12000)

        self.assertIs(apply(state, set_item_quantity(4, 2)), state)

        coerced = apply(state, set_item_quantity(0, 0))
        self.assertEqual(coerced.items[0].quantity, 1)
        coerced = apply(state, set_item_quantity(0, "2"))
        self.assertEqual(coerced.items[0].quantity, 2)

    def test_set_active_item_does_not_reprice(self) -> None:
        state = _run(initial_quote(), set_product_size(120, 96), simple(ActionType.ADD_ITEM))
        moved = apply(state, simple(ActionType.SET_ACTIVE_ITEM, 0))
        self.assertEqual(moved.active_item_index, 0)
        self.assertIs(moved.totals, state.totals)
        self.assertIs(apply(state, simple(ActionType.SET_ACTIVE_ITEM, 2)), state)
        self.assertIs(apply(state, simple(ActionType.SET_ACTIVE_ITEM, True)), state)

    def test_calculate_prices_twice_is_identical(self) -> None:
        state = _run(
            initial_quote(),
            set_product_size(120, 96),
            set_visual_configuration("4L", "4"),
            simple(ActionType.SET_GLAZING, {"tint": "Clear Glass"}),
            simple(ActionType.ADD_ITEM),
            set_product_size(72, 80),
            set_item_quantity(1, 5),
        )
        once = apply(state, simple(ActionType.CALCULATE_PRICES))
        twice = apply(once, simple(ActionType.CALCULATE_PRICES))
        self.assertEqual(once.totals, twice.totals)
        self.assertEqual([i.price_breakdown for i in once.items], [i.price_breakdown for i in twice.items])

    def test_reset_keeps_customer_only(self) -> None:
        state = _run(
            initial_quote(),
            set_customer_details(first_name="Ada", phone="555-0100"),
            set_product_size(120, 96),
            simple(ActionType.ADD_ITEM),
            simple(ActionType.SET_DELIVERY, "White Glove Delivery"),
            simple(ActionType.SET_QUOTE_NUMBER, "Q-1"),
        )
        reset = apply(state, simple(ActionType.RESET_QUOTE))
        self.assertEqual(reset.customer, state.customer)
        self.assertEqual(len(reset.items), 1)
        self.assertEqual(reset.active_item_index, 0)
        self.assertEqual(reset.delivery_option, "Regular Delivery")
        self.assertIsNone(reset.quote_number)
        self.assertEqual(reset.totals.grand_total, 0)

    def test_hydrate_replaces_state_verbatim(self) -> None:
        payload = apply(initial_quote(Customer(first_name="Ada")), set_product_size(10, 10))
        self.assertIs(apply(initial_quote(), simple(ActionType.HYDRATE_STATE, payload)), payload)
        self.assertIs(apply(payload, simple(ActionType.HYDRATE_STATE, "garbage")), payload)

    def test_set_quote_number(self) -> None:
        state = apply(initial_quote(), set_product_size(120, 96))
        numbered = apply(state, simple(ActionType.SET_QUOTE_NUMBER, "Q-2024-001"))
        self.assertEqual(numbered.quote_number, "Q-2024-001")
        self.assertIs(numbered.totals, state.totals)

    def test_random_action_sequences_keep_invariants(self) -> None:
        rng = random.Random(20240611)
        makers = [
            lambda: simple(ActionType.ADD_ITEM),
            lambda: simple(ActionType.DELETE_ITEM, rng.randint(-2, 6)),
            lambda: simple(ActionType.DUPLICATE_ITEM, rng.randint(-2, 6)),
            lambda: simple(ActionType.SET_ACTIVE_ITEM, rng.randint(-2, 6)),
            lambda: set_item_quantity(rng.randint(-2, 6), rng.randint(-3, 5)),
            lambda: set_product_size(rng.choice([0, 36, 96, "x", None]), rng.choice([0, 80, 120])),
            lambda: set_visual_configuration("cfg", rng.choice(["", "2", "6", "abc"])),
            lambda: simple(ActionType.SET_COLORS_SAME, rng.choice([True, False])),
            lambda: simple(ActionType.SET_EXTERIOR_COLOR, rng.choice([BRONZE, WHITE, None])),
            lambda: simple(ActionType.SET_INTERIOR_COLOR, rng.choice([BRONZE, WHITE])),
            lambda: simple(ActionType.SET_SYSTEM_TYPE, rng.choice(["Multi-Slide", "Pocket Door"])),
            lambda: simple(ActionType.SET_DELIVERY, rng.choice(["Regular Delivery", "White Glove Delivery", "Pickup"])),
            lambda: simple(ActionType.CALCULATE_PRICES),
            lambda: simple(ActionType.RESET_QUOTE),
            lambda: Action("BOGUS", rng.random()),
        ]
        state = initial_quote()
        for _ in range(600):
            state = apply(state, rng.choice(makers)())
            check_invariants(state)
            self.assertGreaterEqual(len(state.items), 1)
            self.assertTrue(0 <= state.active_item_index < len(state.items))


if __name__ == "__main__":
    unittest.main()
