from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol, Union

from debug_log import agent_log
from quote_model import (
    CONTACT_FIELDS,
    Quote,
    default_item,
    initial_quote,
    item_from_dict,
    item_to_dict,
    quote_from_dict,
    quote_to_dict,
)

DEFAULT_SNAPSHOT_KEY = "quoteState"


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryKeyValueStore:
    def __init__(self, initial: Optional[Mapping[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileKeyValueStore:
    """
    String values kept in a single JSON object file.

    Every `set`/`delete` rewrites the whole file. An unreadable or non-object file reads as empty
    and is replaced on the next write.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, RecursionError, json.JSONDecodeError) as exc:
            agent_log(
                location="snapshot_store.py:JsonFileKeyValueStore._read_all",
                message="unreadable store file",
                data={"path": str(self.path), "error": repr(exc)},
            )
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, data: Mapping[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(dict(data), indent=2, sort_keys=True) + "\n", encoding="utf-8")

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def delete(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)


def _merge(template: Mapping[str, Any], overlay: Mapping[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = dict(template)
    for key, value in overlay.items():
        base = out.get(key)
        if isinstance(base, Mapping) and isinstance(value, Mapping):
            out[key] = _merge(base, value)
        else:
            out[key] = value
    return out


def merge_item_onto_default(raw: object) -> Dict[str, Any]:
    """
    Lay one persisted item over a freshly defaulted item, field by field.

    Fields introduced after the snapshot was written come from the template; everything the
    snapshot carries wins. A falsy quantity becomes 1 and a non-object item becomes a default one.
    """
    template = item_to_dict(default_item())
    if not isinstance(raw, Mapping):
        return template
    merged = _merge(template, raw)
    if not merged.get("quantity"):
        merged["quantity"] = 1
    return merged


class SnapshotStore:
    def __init__(self, kv: KeyValueStore, key: str = DEFAULT_SNAPSHOT_KEY) -> None:
        self.kv = kv
        self.key = key

    @staticmethod
    def is_meaningful(quote: Quote) -> bool:
        """True once a contact field is filled or any item has a product type or a dimension."""
        if any(getattr(quote.customer, f) for f in CONTACT_FIELDS):
            return True
        return any(i.product.type or i.product.width_in > 0 or i.product.height_in > 0 for i in quote.items)

    def save(self, quote: Quote) -> bool:
        if not self.is_meaningful(quote):
            return False
        try:
            self.kv.set(self.key, json.dumps(quote_to_dict(quote)))
        except (OSError, TypeError, ValueError) as exc:
            agent_log(
                location="snapshot_store.py:SnapshotStore.save",
                message="snapshot save failed",
                data={"key": self.key, "error": repr(exc)},
            )
            return False
        return True

    def peek(self) -> Optional[Dict[str, Any]]:
        """The raw persisted snapshot, or None when absent or unparsable."""
        try:
            raw = self.kv.get(self.key)
            data = json.loads(raw) if raw else None
        except (OSError, RecursionError, ValueError):
            return None
        return data if isinstance(data, dict) else None

    def load(self) -> Quote:
        defaults = initial_quote()
        try:
            raw = self.kv.get(self.key)
            if not raw:
                return defaults
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError(f"snapshot is {type(data).__name__}, expected object")
            items = data.get("items")
            if not isinstance(items, list) or not items:
                # Without usable items the snapshot is ignored wholesale.
                return defaults
            merged = _merge(quote_to_dict(defaults), {k: v for k, v in data.items() if k != "items"})
            merged["items"] = [merge_item_onto_default(i) for i in items]
            quote = quote_from_dict(merged)
        except (OSError, RecursionError, TypeError, ValueError, AttributeError) as exc:
            agent_log(
                location="snapshot_store.py:SnapshotStore.load",
                message="snapshot load failed; using defaults",
                data={"key": self.key, "error": repr(exc)},
            )
            return defaults

        agent_log(
            location="snapshot_store.py:SnapshotStore.load",
            message="snapshot loaded",
            data={"key": self.key, "items": len(quote.items), "activeItemIndex": quote.active_item_index},
        )
        return quote

    def clear(self) -> None:
        try:
            self.kv.delete(self.key)
        except OSError as exc:
            agent_log(
                location="snapshot_store.py:SnapshotStore.clear",
                message="snapshot clear failed",
                data={"key": self.key, "error": repr(exc)},
            )
