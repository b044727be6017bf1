from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    state_path: Path
    catalog_path: Optional[Path]
    debug_log_path: Optional[Path]
    debug_run_id: str


def _as_optional_path(value: object) -> Optional[Path]:
    if not isinstance(value, str):
        return None
    v = value.strip()
    return Path(v) if v else None


def load_settings(*, dotenv_path: Optional[Path] = None) -> Settings:
    """
    Loads settings from environment variables (after dotenv is loaded).

    Nothing here is required; an empty environment yields a working local setup
    that keeps the quote snapshot under `out/`.
    """
    # python-dotenv's auto discovery can fail without a calling frame (e.g. `python -c`).
    load_dotenv(dotenv_path=dotenv_path or (Path.cwd() / ".env"))

    state_path = _as_optional_path(os.environ.get("QUOTE_STATE_PATH")) or Path("out") / "quote_state.json"
    run_id = str(os.environ.get("QUOTE_DEBUG_RUN_ID", "")).strip() or "local"
    return Settings(
        state_path=state_path,
        catalog_path=_as_optional_path(os.environ.get("QUOTE_CATALOG_PATH")),
        debug_log_path=_as_optional_path(os.environ.get("QUOTE_DEBUG_LOG")),
        debug_run_id=run_id,
    )
