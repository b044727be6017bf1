from __future__ import annotations

import json
import os
import time
from pathlib import Path
from typing import Any, Mapping, Optional, Union

_SESSION_ID = "quote-session"

# Set by `configure_debug_log`; when None the environment is consulted on every call.
_LOG_PATH: Optional[str] = None
_RUN_ID: Optional[str] = None


def configure_debug_log(path: Optional[Union[str, Path]], run_id: Optional[str] = None) -> None:
    global _LOG_PATH, _RUN_ID
    _LOG_PATH = str(path) if path else None
    _RUN_ID = run_id


def _log_path() -> Optional[str]:
    if _LOG_PATH:
        return _LOG_PATH
    path = str(os.environ.get("QUOTE_DEBUG_LOG", "")).strip()
    return path or None


def _run_id() -> str:
    if _RUN_ID:
        return _RUN_ID
    return str(os.environ.get("QUOTE_DEBUG_RUN_ID", "")).strip() or "local"


def agent_log(*, location: str, message: str, data: Optional[Mapping[str, Any]] = None) -> None:
    """
    Append one JSON line to the debug log.

    The destination comes from `configure_debug_log` or `QUOTE_DEBUG_LOG`; with neither set
    this is a no-op. Values that are not JSON serializable are written via `str()`.
    """
    path = _log_path()
    if path is None:
        return
    try:
        payload = {
            "sessionId": _SESSION_ID,
            "runId": _run_id(),
            "location": location,
            "message": message,
            "data": dict(data or {}),
            "timestamp": int(time.time() * 1000),
        }
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(payload, default=str) + "\n")
    except Exception:
        # Never let logging break a dispatch.
        pass
