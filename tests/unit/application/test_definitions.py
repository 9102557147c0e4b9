"""Tests for per-entity workflow definitions and the supplier edit payload."""

import pytest
from pydantic import ValidationError

from src.application.workflow.definitions import (
    DEFINITIONS,
    SupplierChanges,
    WorkflowKind,
    delete_item_definition,
    validate_supplier_changes,
)
from src.domain.entities.deletion_reason import DELETION_REASONS
from src.domain.entities.selection import TargetRef

ACME = TargetRef(id="sup-1", label="Acme Corp")


class TestDefinitions:
    """Registry and requirement wiring."""

    def test_every_kind_registered(self):
        assert set(DEFINITIONS) == set(WorkflowKind)

    def test_delete_item_requires_scope_and_reason(self):
        req = delete_item_definition.requirements
        assert req.scope_required is True
        assert req.reason_required is True
        assert req.allowed_reasons == DELETION_REASONS
        assert set(delete_item_definition.reasons) == DELETION_REASONS

    def test_supplier_flows_are_unscoped(self):
        assert DEFINITIONS[WorkflowKind.DELETE_SUPPLIER].requirements.scope_required is False
        assert DEFINITIONS[WorkflowKind.EDIT_SUPPLIER].requirements.payload_required is True


class TestSupplierChanges:
    """Field-level validation of supplier edits."""

    def test_blank_fields_become_none(self):
        changes = SupplierChanges.model_validate({"contact_name": "  ", "phone": ""})
        assert changes.contact_name is None
        assert changes.phone is None

    def test_whitespace_stripped(self):
        changes = SupplierChanges.model_validate({"email": "  ops@acme.example "})
        assert changes.email == "ops@acme.example"

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            SupplierChanges.model_validate({"address": "Main St"})

    @pytest.mark.parametrize("phone", ["12345", "call me maybe", "+1 (555) 0100 0100 0100 0"])
    def test_bad_phone(self, phone):
        with pytest.raises(ValidationError):
            SupplierChanges.model_validate({"phone": phone})

    def test_contact_name_length(self):
        with pytest.raises(ValidationError):
            SupplierChanges.model_validate({"contact_name": "x" * 101})


class TestValidateSupplierChanges:
    """Problems are reported as "field: message" strings."""

    def test_valid(self):
        assert validate_supplier_changes({"email": "ops@acme.example"}, ACME) == []

    def test_same_name_allowed(self):
        assert validate_supplier_changes({"name": "Acme Corp", "phone": "555-0100"}, ACME) == []

    def test_name_change_rejected(self):
        assert validate_supplier_changes({"name": "Acme Inc"}, ACME) == [
            "name: Supplier name cannot be changed"
        ]

    def test_field_errors_located(self):
        problems = validate_supplier_changes({"email": "nope", "phone": "x"}, ACME)
        assert len(problems) == 2
        assert any(p.startswith("email:") for p in problems)
        assert any(p.startswith("phone:") for p in problems)

    def test_empty_payload_is_valid(self):
        assert validate_supplier_changes(None, ACME) == []
