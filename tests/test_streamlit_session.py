from __future__ import annotations

import unittest

import streamlit_session
from catalog import default_catalog
from quote_reducer import set_product_size
from quote_session import QuoteSession
from snapshot_store import MemoryKeyValueStore, SnapshotStore


class TestStreamlitSession(unittest.TestCase):
    def setUp(self) -> None:
        self._original_session_state = streamlit_session.st.session_state
        self._original_query_params = streamlit_session.st.query_params
        self.fake_session_state: dict[str, object] = {}
        streamlit_session.st.session_state = self.fake_session_state  # type: ignore[assignment]
        streamlit_session.st.query_params = {"product": "Slide-and-Stack"}  # type: ignore[assignment]
        self.built = 0

    def tearDown(self) -> None:
        streamlit_session.st.session_state = self._original_session_state
        streamlit_session.st.query_params = self._original_query_params

    def _factory(self) -> QuoteSession:
        self.built += 1
        return QuoteSession(catalog=default_catalog(), store=SnapshotStore(MemoryKeyValueStore()))

    def test_session_is_created_and_hydrated_once(self) -> None:
        session = streamlit_session.get_quote_session(self._factory)
        self.assertTrue(session.hydrated)
        self.assertEqual(session.quote.items[0].product.type, "Slide-and-Stack")
        self.assertIs(self.fake_session_state[streamlit_session.SESSION_KEY], session)

        # A rerun reuses the stored session.
        again = streamlit_session.get_quote_session(self._factory)
        self.assertIs(again, session)
        self.assertEqual(self.built, 1)

    def test_rerun_does_not_rehydrate_over_edits(self) -> None:
        streamlit_session.dispatch(set_product_size(72, 80), self._factory)
        streamlit_session.st.query_params = {"product": "Something-Else"}  # type: ignore[assignment]

        quote = streamlit_session.get_quote_session(self._factory).quote
        self.assertEqual(quote.items[0].product.width_in, 72)
        self.assertEqual(quote.items[0].product.type, "Slide-and-Stack")
        self.assertEqual(quote.totals.subtotal, 72 * 80 / 144 * 110)


if __name__ == "__main__":
    unittest.main()
