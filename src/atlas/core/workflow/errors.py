from __future__ import annotations


class WorkflowError(RuntimeError):
    """Base error for the booking workflow."""


class ConfigurationError(WorkflowError):
    pass


class InvalidStateError(WorkflowError):
    pass


class InvalidTransitionError(WorkflowError):
    pass


class UnknownStepError(WorkflowError):
    def __init__(self, step_id: str) -> None:
        super().__init__(f"unknown step: {step_id}")
        self.step_id = step_id


class TerminalStateError(WorkflowError):
    pass


class NetworkError(WorkflowError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PersistenceError(WorkflowError):
    pass


class PhaseCancelled(WorkflowError):
    def __init__(self) -> None:
        super().__init__("cancelled")


class NoActiveSession(WorkflowError):
    def __init__(self) -> None:
        super().__init__("no active session")
