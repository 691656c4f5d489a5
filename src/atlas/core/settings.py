from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

_DEFAULT_INTENT_URL = "http://127.0.0.1:54321/functions/v1/atlas-chat"
_DEFAULT_INTENT_TIMEOUT_S = 30.0
_DEFAULT_STEP_DELAY_S = 2.0
_DEFAULT_PAYMENT_SETTLE_S = 1.5


def _get_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def state_dir() -> Path:
    configured = os.getenv("ATLAS_STATE_DIR")
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".atlas"


@dataclass(frozen=True)
class WorkflowSettings:
    step_delay_s: float = _DEFAULT_STEP_DELAY_S
    payment_settle_s: float = _DEFAULT_PAYMENT_SETTLE_S
    intent_url: str = _DEFAULT_INTENT_URL
    intent_timeout_s: float = _DEFAULT_INTENT_TIMEOUT_S
    store_mode: str = "jsonl"
    store_url: str | None = None
    store_key: str | None = None
    runs_max: int = 500

    @classmethod
    def from_env(cls) -> "WorkflowSettings":
        return cls(
            step_delay_s=max(0.0, _get_float_env("ATLAS_STEP_DELAY_S", _DEFAULT_STEP_DELAY_S)),
            payment_settle_s=max(0.0, _get_float_env("ATLAS_PAYMENT_SETTLE_S", _DEFAULT_PAYMENT_SETTLE_S)),
            intent_url=os.getenv("ATLAS_INTENT_URL", _DEFAULT_INTENT_URL).strip(),
            intent_timeout_s=max(0.1, _get_float_env("ATLAS_INTENT_TIMEOUT_S", _DEFAULT_INTENT_TIMEOUT_S)),
            store_mode=os.getenv("ATLAS_STORE_MODE", "jsonl").strip().casefold(),
            store_url=os.getenv("ATLAS_STORE_URL") or None,
            store_key=os.getenv("ATLAS_STORE_KEY") or None,
            runs_max=max(1, _get_int_env("ATLAS_RUNS_MAX", 500)),
        )
