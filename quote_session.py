from __future__ import annotations

from dataclasses import replace
from typing import Mapping, Optional, Union
from urllib.parse import parse_qs

from catalog import Catalog, default_catalog
from debug_log import agent_log
from quote_model import Quote, initial_quote
from quote_reducer import Action, ActionType, action_type_of, apply
from snapshot_store import MemoryKeyValueStore, SnapshotStore

QueryLike = Union[str, Mapping[str, object], None]

PRODUCT_QUERY_PARAM = "product"


def preselected_product_id(query: QueryLike, catalog: Catalog) -> Optional[str]:
    """
    The `product=<id>` query value when it names a catalog product, else None.

    `query` may be a raw query string ("?product=x&...") or a mapping such as Streamlit's
    `st.query_params` (values may be strings or lists of strings).
    """
    if query is None:
        return None
    if isinstance(query, str):
        values = parse_qs(query.lstrip("?")).get(PRODUCT_QUERY_PARAM) or []
        value: object = values[0] if values else None
    else:
        value = query.get(PRODUCT_QUERY_PARAM)
        if isinstance(value, (list, tuple)):
            value = value[0] if value else None
    if not isinstance(value, str) or not catalog.is_known_product(value):
        return None
    return value


def _overlay_product(quote: Quote, product_id: str) -> Quote:
    first = quote.items[0]
    first = replace(first, product=replace(first.product, type=product_id))
    return replace(quote, items=(first,) + quote.items[1:], active_item_index=0)


class QuoteSession:
    """
    Owns the single live Quote for one user session.

    Mutations go through `dispatch`; every dispatch that yields a new value is persisted
    immediately (one store write per change).
    """

    def __init__(self, catalog: Optional[Catalog] = None, store: Optional[SnapshotStore] = None) -> None:
        self.catalog = catalog or default_catalog()
        self.store = store if store is not None else SnapshotStore(MemoryKeyValueStore())
        self._quote = initial_quote()
        self._hydrated = False

    @property
    def quote(self) -> Quote:
        return self._quote

    @property
    def hydrated(self) -> bool:
        return self._hydrated

    def hydrate(self, query: QueryLike = None) -> Quote:
        """Load the persisted snapshot, apply the product preselection and install it. Runs once."""
        if self._hydrated:
            agent_log(
                location="quote_session.py:QuoteSession.hydrate",
                message="hydrate skipped (already hydrated)",
                data={"items": len(self._quote.items)},
            )
            return self._quote
        self._hydrated = True

        loaded = self.store.load()
        product_id = preselected_product_id(query, self.catalog)
        if product_id is not None:
            loaded = _overlay_product(loaded, product_id)

        agent_log(
            location="quote_session.py:QuoteSession.hydrate",
            message="hydrating",
            data={"items": len(loaded.items), "preselected_product": product_id},
        )
        return self.dispatch(Action(ActionType.HYDRATE_STATE.value, loaded))

    def dispatch(self, action: Action) -> Quote:
        before = self._quote
        after = apply(before, action, self.catalog)
        action_type = action_type_of(action)
        if action_type is ActionType.RESET_QUOTE:
            self.store.clear()
        if after is before:
            return before

        self._quote = after
        saved = self.store.save(after)
        agent_log(
            location="quote_session.py:QuoteSession.dispatch",
            message="state changed",
            data={
                "action": action_type.value if action_type else None,
                "items": len(after.items),
                "activeItemIndex": after.active_item_index,
                "grandTotal": after.totals.grand_total,
                "saved": saved,
            },
        )
        return after
