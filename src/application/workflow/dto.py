"""Workflow DTOs."""

from typing import Any

from pydantic import BaseModel, Field

from src.domain.ports.lookup import LookupOption


class ScopeRequest(BaseModel):
    """Choose (or clear) the parent entity."""

    scope_id: str | None = Field(None, max_length=100)


class SearchRequest(BaseModel):
    """Free-text query for the dependent search."""

    text: str = Field("", max_length=200)


class TargetRequest(BaseModel):
    """Choose (or clear) the target among visible options."""

    target_id: str | None = Field(None, max_length=100)


class ReasonRequest(BaseModel):
    reason: str = Field("", max_length=100)


class PayloadRequest(BaseModel):
    payload: dict[str, Any] = Field(default_factory=dict)


class ErrorView(BaseModel):
    """Classified failure as displayed in the base form view."""

    category: str
    message_key: str
    severity: str
    message: str


class WorkflowView(BaseModel):
    """Everything a dialog renders; a pure function of workflow and selection state."""

    session_id: str | None = None
    kind: str
    is_open: bool
    stage: str
    confirmation_open: bool = False
    can_submit: bool = False
    read_only: bool = False
    error: ErrorView | None = None
    form_message: str | None = None
    scope: LookupOption | None = None
    target: LookupOption | None = None  # Includes the review snapshot
    search_text: str = ""
    reason: str = ""
    payload: dict[str, Any] | None = None
    reasons: list[str] = Field(default_factory=list)
    scopes: list[LookupOption] = Field(default_factory=list)
    scopes_loading: bool = False
    options: list[LookupOption] = Field(default_factory=list)
    search_enabled: bool = False
    search_loading: bool = False
    no_matches: bool = False


class NotificationEvent(BaseModel):
    """SSE event for a transient notification."""

    event_type: str  # notification, closed
    message: str | None = None
    severity: str | None = None
