from __future__ import annotations

from typing import Callable, Protocol, Sequence, Union, runtime_checkable

from .schemas import Step


@runtime_checkable
class ProgressSink(Protocol):
    def on_step_change(self, step: Step, all_steps: Sequence[Step]) -> None: ...


StepCallback = Callable[[Step, Sequence[Step]], None]
SinkLike = Union[ProgressSink, StepCallback, None]


class _CallbackSink:
    def __init__(self, callback: StepCallback) -> None:
        self._callback = callback

    def on_step_change(self, step: Step, all_steps: Sequence[Step]) -> None:
        self._callback(step, all_steps)


class _NullSink:
    def on_step_change(self, step: Step, all_steps: Sequence[Step]) -> None:
        return None


def as_sink(sink: SinkLike) -> ProgressSink:
    if sink is None:
        return _NullSink()
    if isinstance(sink, ProgressSink):
        return sink
    if callable(sink):
        return _CallbackSink(sink)
    raise TypeError(f"progress sink must be callable or define on_step_change, got {type(sink).__name__}")
