from __future__ import annotations

import logging
from typing import Iterable

from .errors import (
    ConfigurationError,
    InvalidStateError,
    InvalidTransitionError,
    TerminalStateError,
    UnknownStepError,
)
from .schemas import ACTIVE, COMPLETED, ERROR, PENDING, Step, StepDetails, StepTemplate

logger = logging.getLogger("atlas.workflow.sequencer")


class StepSequencer:
    """Ordered step state machine for a single phase run.

    Steps progress strictly in catalog order: ``pending -> active ->
    completed``, or to ``error`` from ``pending``/``active``. Once any step is
    in ``error`` the run is terminal and no further activation or completion
    is accepted.
    """

    def __init__(self, templates: Iterable[StepTemplate] | None = None) -> None:
        self._steps: list[Step] = []
        self._index: dict[str, int] = {}
        self._seeded = False
        if templates is not None:
            self.seed(templates)

    def seed(self, templates: Iterable[StepTemplate]) -> None:
        if self._seeded:
            raise InvalidStateError("sequencer already seeded; call reset() first")
        steps: list[Step] = []
        index: dict[str, int] = {}
        for position, template in enumerate(templates):
            if template.id in index:
                raise ConfigurationError(f"duplicate step id in catalog: {template.id}")
            index[template.id] = position
            steps.append(Step.from_template(template, position))
        self._steps = steps
        self._index = index
        self._seeded = True

    def reset(self) -> None:
        self._steps = []
        self._index = {}
        self._seeded = False

    @property
    def is_terminal(self) -> bool:
        return self.failed_step is not None

    @property
    def failed_step(self) -> Step | None:
        for step in self._steps:
            if step.status == ERROR:
                return step
        return None

    def _position(self, step_id: str) -> int:
        position = self._index.get(step_id)
        if position is None:
            raise UnknownStepError(step_id)
        return position

    def _ensure_not_terminal(self, action: str, step_id: str) -> None:
        failed = self.failed_step
        if failed is not None:
            raise TerminalStateError(f"cannot {action} {step_id}: run failed at {failed.id}")

    def activate(self, step_id: str, details: StepDetails | None = None) -> Step:
        position = self._position(step_id)
        self._ensure_not_terminal("activate", step_id)

        target = self._steps[position]
        if target.status != PENDING:
            raise InvalidTransitionError(f"cannot activate {step_id} from {target.status}")

        for earlier in self._steps[:position]:
            if earlier.status == PENDING:
                raise InvalidTransitionError(f"cannot activate {step_id} before {earlier.id}")

        for earlier_position, earlier in enumerate(self._steps[:position]):
            if earlier.status == ACTIVE:
                # Catch-up completion: a later activation closes any step left active.
                logger.warning(
                    "step_auto_completed",
                    extra={"extra_fields": {"step_id": earlier.id, "activated_step_id": step_id}},
                )
                self._steps[earlier_position] = earlier.model_copy(update={"status": COMPLETED})

        update: dict[str, object] = {"status": ACTIVE}
        if details is not None:
            update["details"] = details
        activated = target.model_copy(update=update)
        self._steps[position] = activated
        return activated.model_copy(deep=True)

    def complete(self, step_id: str, details: StepDetails | None = None) -> Step:
        position = self._position(step_id)
        self._ensure_not_terminal("complete", step_id)

        target = self._steps[position]
        if target.status != ACTIVE:
            raise InvalidTransitionError(f"cannot complete {step_id} from {target.status}")

        update: dict[str, object] = {"status": COMPLETED}
        if details is not None:
            update["details"] = details
        completed = target.model_copy(update=update)
        self._steps[position] = completed
        return completed.model_copy(deep=True)

    def fail(self, step_id: str, details: StepDetails | None = None) -> Step:
        position = self._position(step_id)
        self._ensure_not_terminal("fail", step_id)

        target = self._steps[position]
        if target.status not in {PENDING, ACTIVE}:
            raise InvalidTransitionError(f"cannot fail {step_id} from {target.status}")

        update: dict[str, object] = {"status": ERROR}
        if details is not None:
            update["details"] = details
        failed = target.model_copy(update=update)
        self._steps[position] = failed
        return failed.model_copy(deep=True)

    def get(self, step_id: str) -> Step:
        return self._steps[self._position(step_id)].model_copy(deep=True)

    def current(self) -> Step | None:
        for step in self._steps:
            if step.status == ACTIVE:
                return step.model_copy(deep=True)
        return None

    def next_pending(self) -> Step | None:
        for step in self._steps:
            if step.status == PENDING:
                return step.model_copy(deep=True)
        return None

    def progress(self) -> int:
        if not self._steps:
            return 0
        completed = sum(1 for step in self._steps if step.status == COMPLETED)
        return round(completed * 100 / len(self._steps))

    def snapshot(self) -> tuple[Step, ...]:
        return tuple(step.model_copy(deep=True) for step in self._steps)

    def __len__(self) -> int:
        return len(self._steps)
