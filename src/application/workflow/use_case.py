"""Guarded mutation workflow - one dialog instance of delete/edit flows.

Composes Selection State, Dependent Lookup Coordinator, Workflow State
Machine and Mutation Orchestrator behind user-level triggers. The returned
WorkflowView is a pure function of workflow state plus selection state.
"""

import logging

from src.application.workflow.definitions import WorkflowDefinition
from src.application.workflow.dto import ErrorView, WorkflowView
from src.application.workflow.lookup_coordinator import DependentLookupCoordinator
from src.application.workflow.orchestrator import MutationOrchestrator, RefreshSignal, SubmissionOutcome
from src.domain.entities.capabilities import CapabilityFlags
from src.domain.entities.selection import EntityRef, SelectionError, SelectionState, TargetRef
from src.domain.entities.workflow_events import WorkflowTrigger
from src.domain.entities.workflow_state import EDITABLE_STAGES, Severity, WorkflowStage, WorkflowState
from src.domain.ports.config import WorkflowConfig
from src.domain.ports.lookup import LookupOption, LookupPort
from src.domain.ports.mutation import MutationPort
from src.domain.ports.notifier import NotifierPort
from src.domain.services.error_classifier import ErrorClassifier
from src.domain.services.state_machine import (
    ConfirmOutcome,
    WorkflowStateMachine,
    WorkflowTransitionError,
)

logger = logging.getLogger(__name__)


class DialogClosedError(WorkflowTransitionError):
    """Trigger received while the dialog is closed."""


class GuardedMutationWorkflow:
    """Select → validate → confirm → commit → classify, for one entity kind."""

    def __init__(
        self,
        definition: WorkflowDefinition,
        lookup: LookupPort,
        commit: MutationPort,
        notifier: NotifierPort,
        flags: CapabilityFlags | None = None,
        on_committed: RefreshSignal | None = None,
        config: WorkflowConfig | None = None,
    ) -> None:
        config = config or WorkflowConfig()
        self._definition = definition
        self._notifier = notifier
        self._flags = flags or CapabilityFlags()
        self._classifier = ErrorClassifier(definition.messages, definition.rules)
        self._selection = SelectionState(scope_required=definition.requirements.scope_required)
        self._machine = WorkflowStateMachine(
            definition.requirements,
            self._classifier,
            definition.payload_validator,
        )
        self._lookups = DependentLookupCoordinator(
            lookup,
            self._selection,
            scope_required=definition.requirements.scope_required,
            min_search_chars=config.min_search_chars,
            debounce_seconds=config.debounce_seconds,
            search_limit=config.search_limit,
        )
        self._orchestrator = MutationOrchestrator(
            commit,
            self._classifier,
            notifier,
            success_message=definition.success_message,
            on_committed=on_committed,
            entity=definition.entity,
        )
        self._is_open = False
        self._epoch = 0  # Bumped on open/close; late commit results compare against it

    # -- Properties --

    @property
    def definition(self) -> WorkflowDefinition:
        return self._definition

    @property
    def selection(self) -> SelectionState:
        return self._selection

    @property
    def state(self) -> WorkflowState:
        return self._machine.state

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def flags(self) -> CapabilityFlags:
        return self._flags

    def set_capabilities(self, flags: CapabilityFlags) -> None:
        """Capabilities come from the hosting context and may change between requests."""
        self._flags = flags

    # -- Lifecycle --

    def open(self) -> WorkflowView:
        """Open (or re-open) the dialog from a clean AWAITING_TARGET state."""
        self._reset()
        self._is_open = True
        self._lookups.dialog_opened()
        logger.info("Opened %s workflow", self._definition.kind.value)
        return self.view()

    def close(self) -> WorkflowView:
        """Close from any state. In-flight responses are ignored, not aborted."""
        was_open = self._is_open
        self._reset()
        self._is_open = False
        if was_open:
            logger.info("Closed %s workflow", self._definition.kind.value)
        return self.view()

    def _reset(self) -> None:
        self._epoch += 1
        self._machine.close()
        self._selection.reset()
        self._lookups.reset()

    # -- Selection triggers --

    def set_scope(self, scope_id: str | None) -> WorkflowView:
        self._require_open(WorkflowTrigger.SCOPE_CHANGED)
        if not self._definition.requirements.scope_required:
            raise SelectionError(f"The {self._definition.kind.value} workflow has no scope")

        scope: EntityRef | None = None
        if scope_id is not None:
            option = self._lookups.find_scope(scope_id)
            if option is None:
                raise SelectionError(f"Unknown scope {scope_id!r}")
            scope = EntityRef(id=option.id, label=option.label)

        self._machine.scope_changed()
        self._selection.set_scope(scope)
        self._lookups.scope_changed()
        return self.view()

    def set_search_text(self, text: str) -> WorkflowView:
        self._require_open(WorkflowTrigger.TARGET_SELECTED)
        self._selection.set_search_text(text)
        self._lookups.search_text_changed()
        return self.view()

    def select_target(self, target_id: str | None) -> WorkflowView:
        """Choose a target among the visible options, or clear it with None."""
        self._require_open(WorkflowTrigger.TARGET_SELECTED)
        self._require_editable(WorkflowTrigger.TARGET_SELECTED)

        if target_id is None:
            self._selection.set_target(None)
            self._machine.target_cleared()
        else:
            option = self._lookups.find_option(target_id)
            if option is None:
                raise SelectionError(f"Unknown target {target_id!r}")
            self._selection.set_target(_to_target(option))
            self._machine.target_selected(self._selection)
        self._lookups.target_changed()
        return self.view()

    def set_reason(self, reason: str) -> WorkflowView:
        self._require_open(WorkflowTrigger.SUBMIT_REQUESTED)
        self._require_editable(WorkflowTrigger.SUBMIT_REQUESTED)
        self._selection.set_reason(reason)
        return self.view()

    def set_payload(self, payload: dict | None) -> WorkflowView:
        self._require_open(WorkflowTrigger.SUBMIT_REQUESTED)
        self._require_editable(WorkflowTrigger.SUBMIT_REQUESTED)
        self._selection.set_payload(payload)
        return self.view()

    # -- Submission --

    def request_submit(self) -> WorkflowView:
        """Open the confirmation, or explain what is missing."""
        self._require_open(WorkflowTrigger.SUBMIT_REQUESTED)
        self._machine.request_submit(self._selection)
        return self.view()

    def decline(self) -> WorkflowView:
        """Close the confirmation keeping the selection. Repeating it changes nothing."""
        self._require_open(WorkflowTrigger.DECLINED)
        if self._machine.stage in EDITABLE_STAGES:
            return self.view()
        self._machine.decline()
        self._notify(self._definition.cancel_message, Severity.INFO)
        return self.view()

    async def confirm(self, flags: CapabilityFlags | None = None) -> WorkflowView:
        """Confirm the irreversible action; commits at most once."""
        self._require_open(WorkflowTrigger.CONFIRMED)
        if flags is not None:
            self._flags = flags

        outcome = self._machine.confirm(self._selection, self._flags)
        if outcome != ConfirmOutcome.PROCEED:
            logger.info("Confirmation of %s refused: %s", self._definition.kind.value, outcome.value)
            return self.view()

        epoch = self._epoch
        result: SubmissionOutcome = await self._orchestrator.submit(
            self._machine,
            self._selection,
            self._flags,
            is_current=lambda: self._is_open and self._epoch == epoch,
        )
        if result.committed and not result.stale:
            # Succeeded closes the dialog; the next open() starts from scratch
            self._is_open = False
            self._lookups.reset()
        return self.view()

    async def settle(self) -> WorkflowView:
        """Wait for pending lookups, then return the view."""
        await self._lookups.settle()
        return self.view()

    # -- View --

    def view(self, session_id: str | None = None) -> WorkflowView:
        state = self._machine.state
        selection = self._selection
        lookups = self._lookups.snapshot()
        error = None
        if state.error is not None:
            error = ErrorView(
                category=state.error.category.value,
                message_key=state.error.message_key,
                severity=state.error.severity.value,
                message=state.error.message,
            )
        scope = None
        if selection.scope is not None:
            scope = LookupOption(id=selection.scope.id, label=selection.scope.label)
        target = None
        if selection.target is not None:
            t = selection.target
            target = LookupOption(
                id=t.id,
                label=t.label,
                scope_id=t.scope_id,
                quantity=t.quantity,
                price=t.price,
                attributes=dict(t.attributes),
            )
        return WorkflowView(
            session_id=session_id,
            kind=self._definition.kind.value,
            is_open=self._is_open,
            stage=state.stage.value,
            confirmation_open=state.stage == WorkflowStage.AWAITING_CONFIRMATION,
            can_submit=self._is_open and state.is_editable and selection.has_target,
            read_only=self._flags.read_only,
            error=error,
            form_message=selection.form_message,
            scope=scope,
            target=target,
            search_text=selection.search_text,
            reason=selection.reason,
            payload=selection.payload,
            reasons=list(self._definition.reasons),
            scopes=lookups.scopes,
            scopes_loading=lookups.scopes_loading,
            options=lookups.options,
            search_enabled=lookups.search_enabled,
            search_loading=lookups.search_loading,
            no_matches=lookups.no_matches,
        )

    # -- Internals --

    def _require_open(self, trigger: WorkflowTrigger) -> None:
        if not self._is_open:
            raise DialogClosedError(self._machine.stage, trigger, "dialog is closed")

    def _require_editable(self, trigger: WorkflowTrigger) -> None:
        if self._machine.stage not in EDITABLE_STAGES:
            raise WorkflowTransitionError(self._machine.stage, trigger)

    def _notify(self, message: str, severity: Severity) -> None:
        try:
            self._notifier.notify(message, severity)
        except Exception:
            logger.exception("Notifier failed for %r", message)


def _to_target(option: LookupOption) -> TargetRef:
    return TargetRef(
        id=option.id,
        label=option.label,
        scope_id=option.scope_id,
        quantity=option.quantity,
        price=option.price,
        attributes=dict(option.attributes),
    )
