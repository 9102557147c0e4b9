"""Inventory backend port - suppliers and items as seen by the mutation workflows."""

from typing import Any, Protocol

from src.domain.ports.lookup import LookupOption
from src.domain.ports.mutation import CommitResult


class InventoryBackendPort(Protocol):
    """Interface for inventory stores (in-memory demo data or the REST service).

    Lookups return LookupOption rows: suppliers carry contact data in
    `attributes`, items carry `scope_id` (supplier), `quantity` and `price`.
    Mutations return CommitResult for application-level outcomes and raise on
    transport failures.
    """

    async def list_suppliers(self) -> list[LookupOption]:
        ...

    async def search_suppliers(self, query: str, limit: int = 10) -> list[LookupOption]:
        ...

    async def get_supplier(self, supplier_id: str) -> LookupOption | None:
        ...

    async def search_items(self, supplier_id: str | None, query: str, limit: int = 10) -> list[LookupOption]:
        ...

    async def get_item(self, item_id: str) -> LookupOption | None:
        ...

    async def delete_item(self, item_id: str, reason: str) -> CommitResult:
        ...

    async def delete_supplier(self, supplier_id: str) -> CommitResult:
        ...

    async def update_supplier(self, supplier_id: str, changes: dict[str, Any]) -> CommitResult:
        ...

    async def close(self) -> None:
        ...
