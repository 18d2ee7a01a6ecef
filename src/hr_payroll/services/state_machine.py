"""Payroll run state machine with transition validation."""

from __future__ import annotations

from enum import Enum


class PayrollRunStatus(str, Enum):
    """Payroll run status values."""

    NOT_RUN = "not_run"
    PROCESSING = "processing"
    COMPLETED = "completed"


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = _value(from_status)
        self.to_status = _value(to_status)
        self.reason = reason
        msg = f"Invalid transition from '{self.from_status}' to '{self.to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


def _value(status: str) -> str:
    return status.value if isinstance(status, PayrollRunStatus) else status


class PayrollRunStateMachine:
    """State machine for payroll run status transitions.

    Allowed transitions:
    - not_run → processing
    - processing → completed
    - completed → processing (re-run overwrites the period)
    - processing → processing (restart of a stale run)
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        PayrollRunStatus.NOT_RUN.value: [PayrollRunStatus.PROCESSING.value],
        PayrollRunStatus.PROCESSING.value: [
            PayrollRunStatus.COMPLETED.value,
            PayrollRunStatus.PROCESSING.value,
        ],
        PayrollRunStatus.COMPLETED.value: [PayrollRunStatus.PROCESSING.value],
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(_value(from_status), [])
        return _value(to_status) in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def is_rerun(cls, from_status: str, to_status: str) -> bool:
        """Check if this transition re-runs a completed period."""
        return (
            _value(from_status) == PayrollRunStatus.COMPLETED.value
            and _value(to_status) == PayrollRunStatus.PROCESSING.value
        )

    @classmethod
    def is_restart(cls, from_status: str, to_status: str) -> bool:
        """Check if this transition restarts a run left in processing."""
        return (
            _value(from_status) == PayrollRunStatus.PROCESSING.value
            and _value(to_status) == PayrollRunStatus.PROCESSING.value
        )

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(_value(current_status), [])
