"""Lookup Port - read-only data source feeding the cascading selectors."""

from typing import Protocol

from pydantic import BaseModel


class LookupOption(BaseModel):
    """One row returned by a lookup (supplier or inventory item)."""

    id: str
    label: str
    scope_id: str | None = None
    quantity: int | None = None
    price: float | None = None
    attributes: dict = {}


class LookupPort(Protocol):
    """Interface for lookup providers. No ordering guarantee; may return empty."""

    async def list_scopes(self) -> list[LookupOption]:
        """List parent entities (e.g. suppliers) for the scope selector."""
        ...

    async def search(self, scope_id: str | None, query: str, limit: int = 10) -> list[LookupOption]:
        """Search children of `scope_id` (or all, when unscoped) matching `query`."""
        ...

    async def details(self, target_id: str) -> LookupOption | None:
        """Fetch the current snapshot (quantity, price, contact data) for one target."""
        ...
