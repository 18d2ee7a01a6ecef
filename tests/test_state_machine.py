"""Tests for payroll run state machine."""

import pytest

from hr_payroll.services.state_machine import (
    InvalidTransitionError,
    PayrollRunStateMachine,
    PayrollRunStatus,
)


class TestPayrollRunStateMachine:
    """Test state machine transitions."""

    def test_valid_transitions(self):
        """Test that valid transitions are allowed."""
        # not_run → processing
        assert PayrollRunStateMachine.can_transition("not_run", "processing") is True

        # processing → completed
        assert PayrollRunStateMachine.can_transition("processing", "completed") is True

        # completed → processing (re-run)
        assert PayrollRunStateMachine.can_transition("completed", "processing") is True

        # processing → processing (stale restart)
        assert PayrollRunStateMachine.can_transition("processing", "processing") is True

    def test_invalid_transitions(self):
        """Test that invalid transitions are blocked."""
        # Can't complete without processing
        assert PayrollRunStateMachine.can_transition("not_run", "completed") is False

        # Nothing goes back to not_run
        assert PayrollRunStateMachine.can_transition("processing", "not_run") is False
        assert PayrollRunStateMachine.can_transition("completed", "not_run") is False

        # Unknown statuses have no transitions
        assert PayrollRunStateMachine.can_transition("paid", "processing") is False

    def test_enum_and_string_are_equivalent(self):
        assert PayrollRunStateMachine.can_transition(
            PayrollRunStatus.NOT_RUN, PayrollRunStatus.PROCESSING
        ) is True
        assert PayrollRunStateMachine.can_transition(
            "completed", PayrollRunStatus.PROCESSING
        ) is True

    def test_validate_transition_raises(self):
        """Test that validate_transition raises on invalid transitions."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            PayrollRunStateMachine.validate_transition("not_run", "completed")

        assert exc_info.value.from_status == "not_run"
        assert exc_info.value.to_status == "completed"
        assert "Invalid transition" in str(exc_info.value)

    def test_validate_transition_error_uses_plain_values(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            PayrollRunStateMachine.validate_transition(
                PayrollRunStatus.COMPLETED, PayrollRunStatus.NOT_RUN
            )
        assert exc_info.value.from_status == "completed"
        assert exc_info.value.to_status == "not_run"

    def test_validate_transition_passes(self):
        """Test that validate_transition passes for valid transitions."""
        PayrollRunStateMachine.validate_transition("not_run", "processing")
        PayrollRunStateMachine.validate_transition("processing", "completed")

    def test_is_rerun(self):
        assert PayrollRunStateMachine.is_rerun("completed", "processing") is True
        assert PayrollRunStateMachine.is_rerun("not_run", "processing") is False

    def test_is_restart(self):
        assert PayrollRunStateMachine.is_restart("processing", "processing") is True
        assert PayrollRunStateMachine.is_restart("completed", "processing") is False

    def test_get_next_statuses(self):
        """Test getting valid next statuses."""
        assert PayrollRunStateMachine.get_next_statuses("not_run") == ["processing"]
        assert set(PayrollRunStateMachine.get_next_statuses("processing")) == {
            "completed",
            "processing",
        }
        assert PayrollRunStateMachine.get_next_statuses("completed") == ["processing"]
        assert PayrollRunStateMachine.get_next_statuses("unknown") == []
