"""Per-entity workflow definitions.

The guarded mutation workflow is generic; each entity contributes only its
requirements (scope, reason, payload), its message catalog and, for edit
flows, a payload validator.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from src.domain.entities.deletion_reason import DELETION_REASONS, DeletionReason
from src.domain.entities.selection import TargetRef
from src.domain.services.error_classifier import DEFAULT_RULES, DELETE_RULES, ClassifierRule
from src.domain.services.state_machine import FlowRequirements, PayloadValidator

CANCEL_MESSAGE = "Operation cancelled"


class WorkflowKind(str, Enum):
    DELETE_ITEM = "delete-item"
    DELETE_SUPPLIER = "delete-supplier"
    EDIT_SUPPLIER = "edit-supplier"


@dataclass(frozen=True)
class WorkflowDefinition:
    """Everything that differs between two instances of the workflow."""

    kind: WorkflowKind
    entity: str
    requirements: FlowRequirements
    messages: Mapping[str, str]
    success_message: str
    cancel_message: str = CANCEL_MESSAGE
    payload_validator: PayloadValidator | None = None
    reasons: tuple[str, ...] = field(default=())
    rules: tuple[ClassifierRule, ...] = DEFAULT_RULES


# -- Supplier edit payload --

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PHONE_RE = re.compile(r"^[0-9+\-() ]{6,20}$")


class SupplierChanges(BaseModel):
    """Editable supplier fields. `name` may be echoed back but never changed."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: str | None = None
    contact_name: str | None = None
    phone: str | None = None
    email: str | None = None

    @field_validator("name", "contact_name", "phone", "email", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("contact_name")
    @classmethod
    def _check_contact_name(cls, v: str | None) -> str | None:
        if v is not None and len(v) > 100:
            raise ValueError("Contact name must be at most 100 characters")
        return v

    @field_validator("phone")
    @classmethod
    def _check_phone(cls, v: str | None) -> str | None:
        if v is not None and not _PHONE_RE.match(v):
            raise ValueError("Phone must be 6-20 characters of digits, spaces or + - ( )")
        return v

    @field_validator("email")
    @classmethod
    def _check_email(cls, v: str | None) -> str | None:
        if v is not None and not _EMAIL_RE.match(v):
            raise ValueError("Email must be a valid address")
        return v


def validate_supplier_changes(payload: Mapping[str, Any] | None, target: TargetRef) -> list[str]:
    """Return human-readable problems with a supplier edit payload."""
    try:
        changes = SupplierChanges.model_validate(dict(payload or {}))
    except ValidationError as e:
        problems = []
        for err in e.errors():
            where = ".".join(str(p) for p in err["loc"]) or "payload"
            problems.append(f"{where}: {err['msg']}")
        return problems

    if changes.name is not None and changes.name != target.label:
        return ["name: Supplier name cannot be changed"]
    return []


# -- Definitions --

delete_item_definition = WorkflowDefinition(
    kind=WorkflowKind.DELETE_ITEM,
    entity="item",
    requirements=FlowRequirements(
        scope_required=True,
        reason_required=True,
        allowed_reasons=DELETION_REASONS,
    ),
    messages={
        "business.quantity_not_zero": (
            "You still have merchandise in stock. "
            "You need to first remove items from stock by changing quantity."
        ),
        "auth.admin_required": "Only administrators can delete items.",
        "target.not_found": "Item not found. It may have been deleted by another user.",
        "validation.no_target": "Please select an item.",
        "validation.no_reason": "Please select a deletion reason.",
        "request.failed": "Failed to delete item. Please try again.",
    },
    success_message="Operation successful. Item was removed from inventory!",
    reasons=tuple(r.value for r in DeletionReason),
    rules=DELETE_RULES,
)

_SUPPLIER_HAS_STOCK = (
    "This supplier cannot be deleted because there are still items with stock > 0. "
    "Please reduce the stock to 0 before deleting the supplier."
)

delete_supplier_definition = WorkflowDefinition(
    kind=WorkflowKind.DELETE_SUPPLIER,
    entity="supplier",
    requirements=FlowRequirements(),
    messages={
        "business.quantity_not_zero": _SUPPLIER_HAS_STOCK,
        "conflict.dependent_records": _SUPPLIER_HAS_STOCK,
        "auth.admin_required": "Only administrators can perform this action.",
        "target.not_found": "Supplier not found. It may have been deleted by another user.",
        "validation.no_target": "Please select a supplier.",
        "request.failed": "Failed to delete supplier. Please try again.",
    },
    success_message="Supplier deleted successfully.",
    rules=DELETE_RULES,
)

edit_supplier_definition = WorkflowDefinition(
    kind=WorkflowKind.EDIT_SUPPLIER,
    entity="supplier",
    requirements=FlowRequirements(payload_required=True),
    messages={
        "auth.admin_required": "Only administrators can perform this action.",
        "target.not_found": "Supplier not found. It may have been deleted by another user.",
        "conflict.duplicate": "Supplier already exists.",
        "conflict.dependent_records": "The supplier details conflict with existing records.",
        "validation.no_target": "Please select a supplier.",
        "validation.invalid_payload": "Please provide the supplier details to update.",
        "request.failed": "Failed to update supplier. Please try again.",
    },
    success_message="Supplier information updated successfully!",
    payload_validator=validate_supplier_changes,
)

DEFINITIONS: dict[WorkflowKind, WorkflowDefinition] = {
    d.kind: d for d in (delete_item_definition, delete_supplier_definition, edit_supplier_definition)
}
