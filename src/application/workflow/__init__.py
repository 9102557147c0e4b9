"""Workflow application layer."""

from src.application.workflow.definitions import (
    DEFINITIONS,
    WorkflowDefinition,
    WorkflowKind,
)
from src.application.workflow.dto import WorkflowView
from src.application.workflow.use_case import GuardedMutationWorkflow

__all__ = [
    "DEFINITIONS",
    "GuardedMutationWorkflow",
    "WorkflowDefinition",
    "WorkflowKind",
    "WorkflowView",
]
