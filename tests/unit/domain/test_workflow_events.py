"""Tests for workflow triggers, session event types and the workflow state value."""

import pytest

from src.domain.entities.workflow_events import SessionEventType, WorkflowTrigger
from src.domain.entities.workflow_state import (
    ClassifiedError,
    ErrorCategory,
    Severity,
    WorkflowStage,
    WorkflowState,
)


def test_triggers_are_strings():
    """All triggers should be string enums."""
    assert WorkflowTrigger.CONFIRMED == "confirmed"
    assert WorkflowTrigger.DECLINED.value == "declined"


def test_session_event_types():
    expected = {"notification", "closed"}
    assert {e.value for e in SessionEventType} == expected


def test_stages_defined():
    """Exactly the six stages of the dialog exist."""
    expected = {
        "awaiting_target",
        "awaiting_reason",
        "awaiting_confirmation",
        "submitting",
        "succeeded",
        "recoverable_error",
    }
    assert {s.value for s in WorkflowStage} == expected


class TestWorkflowState:
    """WorkflowState carries an error exactly in RECOVERABLE_ERROR."""

    @pytest.fixture
    def error(self) -> ClassifiedError:
        return ClassifiedError(ErrorCategory.GENERIC, "request.failed", Severity.ERROR, "Try again")

    def test_default_is_awaiting_target(self):
        state = WorkflowState()
        assert state.stage == WorkflowStage.AWAITING_TARGET
        assert state.error is None
        assert state.is_editable

    def test_recoverable_keeps_error(self, error):
        state = WorkflowState.recoverable(error)
        assert state.stage == WorkflowStage.RECOVERABLE_ERROR
        assert state.error is error
        assert state.is_editable

    def test_recoverable_without_error_rejected(self):
        with pytest.raises(ValueError):
            WorkflowState(WorkflowStage.RECOVERABLE_ERROR)

    def test_error_outside_recoverable_rejected(self, error):
        with pytest.raises(ValueError):
            WorkflowState(WorkflowStage.AWAITING_TARGET, error)

    def test_terminal_and_editable_flags(self):
        assert WorkflowState(WorkflowStage.SUCCEEDED).is_terminal
        assert not WorkflowState(WorkflowStage.SUBMITTING).is_editable
        assert not WorkflowState(WorkflowStage.AWAITING_CONFIRMATION).is_editable
