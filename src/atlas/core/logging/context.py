from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Iterator

correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)
run_id_var: ContextVar[str | None] = ContextVar("run_id", default=None)
booking_id_var: ContextVar[str | None] = ContextVar("booking_id", default=None)
phase_var: ContextVar[str | None] = ContextVar("phase", default=None)

_CONTEXT_VARS: dict[str, ContextVar[str | None]] = {
    "correlation_id": correlation_id_var,
    "run_id": run_id_var,
    "booking_id": booking_id_var,
    "phase": phase_var,
}


def set_context(**kwargs: str | None) -> dict[str, Token[str | None]]:
    tokens: dict[str, Token[str | None]] = {}
    for key, value in kwargs.items():
        var = _CONTEXT_VARS.get(key)
        if var is None:
            continue
        tokens[key] = var.set(value)
    return tokens


def reset_context(tokens: dict[str, Token[str | None]]) -> None:
    for key, token in tokens.items():
        var = _CONTEXT_VARS.get(key)
        if var is not None:
            var.reset(token)


@contextmanager
def log_context(
    correlation_id: str | None = None,
    run_id: str | None = None,
    booking_id: str | None = None,
    phase: str | None = None,
) -> Iterator[None]:
    """Bind the given ids for the duration of the block.

    Ids left as ``None`` keep whatever an enclosing block bound, so a phase
    run nested in a request keeps the request's correlation id.
    """
    provided = {
        "correlation_id": correlation_id,
        "run_id": run_id,
        "booking_id": booking_id,
        "phase": phase,
    }
    tokens = set_context(**{key: value for key, value in provided.items() if value is not None})
    try:
        yield
    finally:
        reset_context(tokens)


def bind_booking_id(booking_id: str | None) -> Token[str | None]:
    return booking_id_var.set(booking_id)


def get_log_context() -> dict[str, str]:
    values = {name: var.get() for name, var in _CONTEXT_VARS.items()}
    return {key: value for key, value in values.items() if value is not None}
