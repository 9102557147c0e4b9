"""Workflow triggers and session stream event types."""

from enum import Enum


class WorkflowTrigger(str, Enum):
    """Inputs that drive the workflow state machine."""

    TARGET_SELECTED = "target_selected"
    TARGET_CLEARED = "target_cleared"
    SCOPE_CHANGED = "scope_changed"
    SUBMIT_REQUESTED = "submit_requested"
    CONFIRMED = "confirmed"
    DECLINED = "declined"
    COMMIT_SUCCEEDED = "commit_succeeded"
    COMMIT_FAILED = "commit_failed"
    CLOSED = "closed"


class SessionEventType(str, Enum):
    """Event types streamed to the client for a workflow session."""

    NOTIFICATION = "notification"
    CLOSED = "closed"
