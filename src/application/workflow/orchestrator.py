"""Mutation orchestrator - runs the single guarded commit and interprets its outcome."""

import asyncio
import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from src.domain.entities.capabilities import CapabilityFlags
from src.domain.entities.selection import SelectionState
from src.domain.entities.workflow_events import WorkflowTrigger
from src.domain.entities.workflow_state import (
    ClassifiedError,
    ErrorCategory,
    Severity,
    WorkflowStage,
    WorkflowState,
)
from src.domain.ports.mutation import CommitResult, MutationPort
from src.domain.ports.notifier import NotifierPort
from src.domain.services.error_classifier import ErrorClassifier
from src.domain.services.state_machine import WorkflowStateMachine, WorkflowTransitionError

logger = logging.getLogger(__name__)

RefreshSignal = Callable[[], Any]


@dataclass(frozen=True)
class SubmissionOutcome:
    """Result of one confirmed submission."""

    committed: bool
    state: WorkflowState
    error: ClassifiedError | None = None
    stale: bool = False  # Response arrived after the dialog was closed


class MutationOrchestrator:
    """Executes the commit once, then drives the state machine to its next state.

    Every failure is caught here: application rejections are classified,
    transport or unexpected exceptions become the generic outcome and are
    logged for operators, never shown to the user.
    """

    def __init__(
        self,
        commit: MutationPort,
        classifier: ErrorClassifier,
        notifier: NotifierPort,
        success_message: str,
        on_committed: RefreshSignal | None = None,
        entity: str = "entity",
    ) -> None:
        self._commit = commit
        self._classifier = classifier
        self._notifier = notifier
        self._success_message = success_message
        self._on_committed = on_committed
        self._entity = entity
        self._refresh_tasks: set[asyncio.Task] = set()

    async def submit(
        self,
        machine: WorkflowStateMachine,
        selection: SelectionState,
        flags: CapabilityFlags,
        is_current: Callable[[], bool] = lambda: True,
    ) -> SubmissionOutcome:
        """Commit the current selection. The machine must already be SUBMITTING."""
        if machine.stage != WorkflowStage.SUBMITTING:
            raise WorkflowTransitionError(machine.stage, WorkflowTrigger.COMMIT_SUCCEEDED, "not submitting")

        target = selection.target
        blocked = self._precondition_failure(machine, selection, flags)
        if blocked is None and target is None:
            blocked = self._classifier.generic()
        if blocked is not None:
            logger.error("Commit blocked by precondition for %s: %s", self._entity, blocked.message_key)
            if flags.read_only:
                selection.set_form_message(self._classifier.message_for("validation.demo_mode"))
            state = machine.commit_failed(blocked)
            return SubmissionOutcome(committed=False, state=state, error=blocked)

        reason = (selection.reason.strip() or None) if machine.requirements.reason_required else None
        payload = selection.payload if machine.requirements.payload_required else None

        result: CommitResult | None
        try:
            result = await self._commit(target.id, reason, payload)
        except Exception:
            logger.exception("Commit raised for %s %s", self._entity, target.id)
            result = None

        succeeded = result is not None and result.ok

        if not is_current():
            logger.info(
                "Commit for %s %s finished after the dialog closed (ok=%s); state untouched",
                self._entity,
                target.id,
                succeeded,
            )
            if succeeded:
                self._refresh()
            return SubmissionOutcome(committed=succeeded, state=machine.state, stale=True)

        if succeeded:
            logger.info("Committed %s %s", self._entity, target.id)
            self._notify(self._success_message, Severity.SUCCESS)
            self._refresh()
            state = machine.commit_succeeded()
            selection.reset()
            return SubmissionOutcome(committed=True, state=state)

        if result is None:
            error = self._classifier.generic()
        else:
            error = self._classifier.classify(result.failure)
            logger.warning(
                "Commit rejected for %s %s: category=%s raw=%r",
                self._entity,
                target.id,
                error.category.value,
                result.failure.message if result.failure else None,
            )
        state = machine.commit_failed(error)
        return SubmissionOutcome(committed=False, state=state, error=error)

    def _precondition_failure(
        self,
        machine: WorkflowStateMachine,
        selection: SelectionState,
        flags: CapabilityFlags,
    ) -> ClassifiedError | None:
        if not flags.is_authorized:
            return self._classifier.for_category(ErrorCategory.AUTHORIZATION)
        if flags.read_only or machine.validate(selection) is not None:
            return self._classifier.generic()
        return None

    def _notify(self, message: str, severity: Severity) -> None:
        try:
            self._notifier.notify(message, severity)
        except Exception:
            logger.exception("Notifier failed for %r", message)

    def _refresh(self) -> None:
        if self._on_committed is None:
            return
        try:
            result = self._on_committed()
            if inspect.isawaitable(result):
                # Coroutine callbacks are scheduled, not awaited
                task = asyncio.ensure_future(result)
                self._refresh_tasks.add(task)
                task.add_done_callback(self._refresh_done)
        except Exception:
            logger.exception("Refresh signal failed after committing %s", self._entity)

    def _refresh_done(self, task: asyncio.Future) -> None:
        self._refresh_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Refresh signal failed after committing %s",
                self._entity,
                exc_info=(type(exc), exc, exc.__traceback__),
            )
