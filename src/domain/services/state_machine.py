"""Workflow state machine - guarded transitions of a mutation dialog.

The confirmation step cannot be skipped: there is no edge from a base view
straight to SUBMITTING, and SUBMITTING is left only through the commit
response (or a dialog close). Declining a confirmation keeps the selection.
The read-only guard is checked at confirmation time so demo users can walk
the whole flow and are denied only the commit.
"""

import logging
from collections.abc import Callable, Collection, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from src.domain.entities.capabilities import CapabilityFlags
from src.domain.entities.selection import SelectionState, TargetRef
from src.domain.entities.workflow_events import WorkflowTrigger
from src.domain.entities.workflow_state import (
    EDITABLE_STAGES,
    ClassifiedError,
    ErrorCategory,
    WorkflowStage,
    WorkflowState,
)
from src.domain.services.error_classifier import ErrorClassifier

logger = logging.getLogger(__name__)

# Returns a list of human-readable problems; empty means valid
PayloadValidator = Callable[[Mapping[str, Any] | None, TargetRef], list[str]]


class WorkflowTransitionError(RuntimeError):
    """Trigger not allowed in the current state."""

    def __init__(self, stage: WorkflowStage, trigger: WorkflowTrigger, detail: str = "") -> None:
        self.stage = stage
        self.trigger = trigger
        message = f"Cannot apply {trigger.value!r} while {stage.value!r}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ConfirmOutcome(str, Enum):
    """What a confirmation attempt resolved to."""

    PROCEED = "proceed"  # Now SUBMITTING; caller must commit exactly once
    READ_ONLY = "read_only"
    UNAUTHORIZED = "unauthorized"
    INVALID = "invalid"


@dataclass(frozen=True)
class FlowRequirements:
    """Per-entity knobs of the generic workflow."""

    scope_required: bool = False
    reason_required: bool = False
    payload_required: bool = False
    allowed_reasons: frozenset[str] = frozenset()  # Empty: any non-blank reason

    @property
    def has_input_step(self) -> bool:
        return self.reason_required or self.payload_required


class WorkflowStateMachine:
    """Holds the current WorkflowState and applies guarded triggers."""

    def __init__(
        self,
        requirements: FlowRequirements,
        classifier: ErrorClassifier,
        payload_validator: PayloadValidator | None = None,
    ) -> None:
        self._requirements = requirements
        self._classifier = classifier
        self._payload_validator = payload_validator
        self._state = WorkflowState.awaiting_target()

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def stage(self) -> WorkflowStage:
        return self._state.stage

    @property
    def requirements(self) -> FlowRequirements:
        return self._requirements

    def _require(self, trigger: WorkflowTrigger, allowed: Collection[WorkflowStage]) -> None:
        if self._state.stage not in allowed:
            raise WorkflowTransitionError(self._state.stage, trigger)

    def _move(self, trigger: WorkflowTrigger, new_state: WorkflowState) -> WorkflowState:
        logger.debug(
            "Workflow transition %s --%s--> %s",
            self._state.stage.value,
            trigger.value,
            new_state.stage.value,
        )
        self._state = new_state
        return new_state

    # -- Selection-driven triggers --

    def target_selected(self, selection: SelectionState) -> WorkflowState:
        """Target chosen from a lookup result."""
        self._require(WorkflowTrigger.TARGET_SELECTED, EDITABLE_STAGES)
        if selection.target is None:
            raise WorkflowTransitionError(self._state.stage, WorkflowTrigger.TARGET_SELECTED, "no target")
        if self._requirements.scope_required and selection.scope is None:
            raise WorkflowTransitionError(
                self._state.stage, WorkflowTrigger.TARGET_SELECTED, "scope must be selected first"
            )
        stage = (
            WorkflowStage.AWAITING_REASON
            if self._requirements.has_input_step
            else WorkflowStage.AWAITING_CONFIRMATION
        )
        return self._move(WorkflowTrigger.TARGET_SELECTED, WorkflowState(stage))

    def target_cleared(self) -> WorkflowState:
        self._require(WorkflowTrigger.TARGET_CLEARED, EDITABLE_STAGES)
        return self._move(WorkflowTrigger.TARGET_CLEARED, WorkflowState.awaiting_target())

    def scope_changed(self) -> WorkflowState:
        """Scope replaced: whatever was in progress belongs to the old scope."""
        self._require(
            WorkflowTrigger.SCOPE_CHANGED,
            EDITABLE_STAGES | {WorkflowStage.AWAITING_CONFIRMATION},
        )
        return self._move(WorkflowTrigger.SCOPE_CHANGED, WorkflowState.awaiting_target())

    # -- Validation --

    def validate(self, selection: SelectionState) -> tuple[WorkflowStage, str] | None:
        """Check target, reason and payload. Returns (fallback stage, message) on failure."""
        if selection.target is None:
            return WorkflowStage.AWAITING_TARGET, self._classifier.message_for("validation.no_target")

        req = self._requirements
        if req.reason_required:
            reason = selection.reason.strip()
            if not reason or (req.allowed_reasons and reason not in req.allowed_reasons):
                return WorkflowStage.AWAITING_REASON, self._classifier.message_for("validation.no_reason")

        if req.payload_required:
            if selection.payload is None:
                return WorkflowStage.AWAITING_REASON, self._classifier.message_for("validation.invalid_payload")
            if self._payload_validator is not None:
                problems = self._payload_validator(selection.payload, selection.target)
                if problems:
                    return WorkflowStage.AWAITING_REASON, "; ".join(problems)
        return None

    def request_submit(self, selection: SelectionState) -> WorkflowState:
        """Submit from a base view: either open the confirmation or explain what is missing."""
        self._require(WorkflowTrigger.SUBMIT_REQUESTED, EDITABLE_STAGES)
        problem = self.validate(selection)
        if problem is not None:
            stage, message = problem
            selection.set_form_message(message)
            if stage == WorkflowStage.AWAITING_TARGET:
                # Missing target is a form-level message, not a state change
                return self._state
            return self._move(WorkflowTrigger.SUBMIT_REQUESTED, WorkflowState(stage))

        selection.set_form_message(None)
        return self._move(
            WorkflowTrigger.SUBMIT_REQUESTED,
            WorkflowState(WorkflowStage.AWAITING_CONFIRMATION),
        )

    # -- Confirmation --

    def decline(self) -> WorkflowState:
        """User said no. Selection is untouched so re-confirming is cheap."""
        self._require(WorkflowTrigger.DECLINED, {WorkflowStage.AWAITING_CONFIRMATION})
        return self._move(WorkflowTrigger.DECLINED, WorkflowState.awaiting_target())

    def confirm(self, selection: SelectionState, flags: CapabilityFlags) -> ConfirmOutcome:
        """Apply every submission guard. Only PROCEED leaves the machine in SUBMITTING."""
        self._require(WorkflowTrigger.CONFIRMED, {WorkflowStage.AWAITING_CONFIRMATION})

        problem = self.validate(selection)
        if problem is not None:
            stage, message = problem
            selection.set_form_message(message)
            self._move(WorkflowTrigger.CONFIRMED, WorkflowState(stage))
            return ConfirmOutcome.INVALID

        if flags.read_only:
            selection.set_form_message(self._classifier.message_for("validation.demo_mode"))
            return ConfirmOutcome.READ_ONLY

        if not flags.is_authorized:
            error = self._classifier.for_category(ErrorCategory.AUTHORIZATION)
            self._move(WorkflowTrigger.CONFIRMED, WorkflowState.recoverable(error))
            return ConfirmOutcome.UNAUTHORIZED

        selection.set_form_message(None)
        self._move(WorkflowTrigger.CONFIRMED, WorkflowState(WorkflowStage.SUBMITTING))
        return ConfirmOutcome.PROCEED

    # -- Commit response --

    def commit_succeeded(self) -> WorkflowState:
        self._require(WorkflowTrigger.COMMIT_SUCCEEDED, {WorkflowStage.SUBMITTING})
        return self._move(WorkflowTrigger.COMMIT_SUCCEEDED, WorkflowState(WorkflowStage.SUCCEEDED))

    def commit_failed(self, error: ClassifiedError) -> WorkflowState:
        self._require(WorkflowTrigger.COMMIT_FAILED, {WorkflowStage.SUBMITTING})
        return self._move(WorkflowTrigger.COMMIT_FAILED, WorkflowState.recoverable(error))

    # -- Lifecycle --

    def close(self) -> WorkflowState:
        """Dialog closed from any state."""
        return self._move(WorkflowTrigger.CLOSED, WorkflowState.awaiting_target())
