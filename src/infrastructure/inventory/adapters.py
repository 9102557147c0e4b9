"""Adapters binding an inventory backend to the workflow's lookup and mutation ports."""

from typing import Any

from src.application.workflow.definitions import SupplierChanges, WorkflowKind
from src.domain.ports.inventory import InventoryBackendPort
from src.domain.ports.lookup import LookupOption, LookupPort
from src.domain.ports.mutation import CommitResult, MutationPort


class ItemLookup:
    """Scope = supplier, targets = that supplier's items."""

    def __init__(self, backend: InventoryBackendPort) -> None:
        self._backend = backend

    async def list_scopes(self) -> list[LookupOption]:
        return await self._backend.list_suppliers()

    async def search(self, scope_id: str | None, query: str, limit: int = 10) -> list[LookupOption]:
        return await self._backend.search_items(scope_id, query, limit)

    async def details(self, target_id: str) -> LookupOption | None:
        return await self._backend.get_item(target_id)


class SupplierLookup:
    """Unscoped: targets are suppliers."""

    def __init__(self, backend: InventoryBackendPort) -> None:
        self._backend = backend

    async def list_scopes(self) -> list[LookupOption]:
        return []

    async def search(self, scope_id: str | None, query: str, limit: int = 10) -> list[LookupOption]:
        return await self._backend.search_suppliers(query, limit)

    async def details(self, target_id: str) -> LookupOption | None:
        return await self._backend.get_supplier(target_id)


def lookup_for(kind: WorkflowKind, backend: InventoryBackendPort) -> LookupPort:
    if kind == WorkflowKind.DELETE_ITEM:
        return ItemLookup(backend)
    return SupplierLookup(backend)


def commit_for(kind: WorkflowKind, backend: InventoryBackendPort) -> MutationPort:
    """Build the commit callable for one workflow kind."""

    async def delete_item(
        target_id: str, reason: str | None = None, payload: dict[str, Any] | None = None
    ) -> CommitResult:
        return await backend.delete_item(target_id, reason or "")

    async def delete_supplier(
        target_id: str, reason: str | None = None, payload: dict[str, Any] | None = None
    ) -> CommitResult:
        return await backend.delete_supplier(target_id)

    async def update_supplier(
        target_id: str, reason: str | None = None, payload: dict[str, Any] | None = None
    ) -> CommitResult:
        changes = SupplierChanges.model_validate(payload or {}).model_dump(exclude_unset=True)
        changes.pop("name", None)  # Name is immutable in this flow
        return await backend.update_supplier(target_id, changes)

    commits = {
        WorkflowKind.DELETE_ITEM: delete_item,
        WorkflowKind.DELETE_SUPPLIER: delete_supplier,
        WorkflowKind.EDIT_SUPPLIER: update_supplier,
    }
    return commits[kind]
