"""Workflow state - the single tagged value describing where a dialog is."""

from dataclasses import dataclass
from enum import Enum


class WorkflowStage(str, Enum):
    """Stages of a guarded mutation workflow. Exactly one is active."""

    AWAITING_TARGET = "awaiting_target"
    AWAITING_REASON = "awaiting_reason"  # Reason or edit payload step
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    RECOVERABLE_ERROR = "recoverable_error"


class Severity(str, Enum):
    """Severity shown next to a message or notification."""

    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ErrorCategory(str, Enum):
    """Stable failure taxonomy surfaced to the user."""

    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    GENERIC = "generic"


@dataclass(frozen=True)
class ClassifiedError:
    """Raw failure mapped to a stable {category, message key, severity} triple."""

    category: ErrorCategory
    message_key: str
    severity: Severity
    message: str


@dataclass(frozen=True)
class WorkflowState:
    """Tagged workflow state. `error` is set only for RECOVERABLE_ERROR."""

    stage: WorkflowStage = WorkflowStage.AWAITING_TARGET
    error: ClassifiedError | None = None

    def __post_init__(self) -> None:
        if (self.stage == WorkflowStage.RECOVERABLE_ERROR) != (self.error is not None):
            raise ValueError("error must be set exactly when stage is RECOVERABLE_ERROR")

    @classmethod
    def awaiting_target(cls) -> "WorkflowState":
        return cls(WorkflowStage.AWAITING_TARGET)

    @classmethod
    def recoverable(cls, error: ClassifiedError) -> "WorkflowState":
        return cls(WorkflowStage.RECOVERABLE_ERROR, error)

    @property
    def is_terminal(self) -> bool:
        return self.stage == WorkflowStage.SUCCEEDED

    @property
    def is_editable(self) -> bool:
        """Base (pre-confirmation) views in which the selection may change."""
        return self.stage in EDITABLE_STAGES


EDITABLE_STAGES = frozenset(
    {
        WorkflowStage.AWAITING_TARGET,
        WorkflowStage.AWAITING_REASON,
        WorkflowStage.RECOVERABLE_ERROR,
    }
)
