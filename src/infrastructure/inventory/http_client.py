"""Inventory REST client - suppliers and items over the service's /api endpoints."""

import logging
from typing import Any

import httpx

from src.domain.ports.config import BackendConfig
from src.domain.ports.lookup import LookupOption
from src.domain.ports.mutation import CommitResult

logger = logging.getLogger(__name__)

SUPPLIERS_BASE = "/api/suppliers"
INVENTORY_BASE = "/api/inventory"


def _rows(data: Any) -> list[dict]:
    """Accept a plain array or an {items: [...]} / {content: [...]} envelope."""
    if isinstance(data, list):
        rows = data
    elif isinstance(data, dict):
        rows = data.get("items") or data.get("content") or []
    else:
        rows = []
    return [r for r in rows if isinstance(r, dict)]


def _pick(row: dict, *keys: str) -> Any:
    for key in keys:
        value = row.get(key)
        if value is not None and value != "":
            return value
    return None


def _as_int(value: Any) -> int | None:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _as_float(value: Any) -> float | None:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def supplier_from_row(row: dict) -> LookupOption | None:
    sid = _pick(row, "id", "supplierId", "supplier_id")
    name = _pick(row, "name", "supplierName")
    if sid is None or not name:
        return None
    return LookupOption(
        id=str(sid),
        label=str(name),
        attributes={
            "contact_name": _pick(row, "contactName", "contact_name"),
            "phone": _pick(row, "phone"),
            "email": _pick(row, "email"),
        },
    )


def item_from_row(row: dict, default_supplier: str | None = None) -> LookupOption | None:
    iid = _pick(row, "id", "itemId", "item_id")
    if iid is None:
        return None
    supplier = _pick(row, "supplierId", "supplier_id")
    return LookupOption(
        id=str(iid),
        label=str(_pick(row, "name", "itemName") or "(unnamed)"),
        scope_id=str(supplier) if supplier is not None else default_supplier,
        quantity=_as_int(_pick(row, "quantity", "onHand")),
        price=_as_float(_pick(row, "price")),
    )


def failure_from_response(resp: httpx.Response) -> CommitResult:
    """Turn an error response into a rejection carrying status, code and message."""
    message = ""
    code = None
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = str(body.get("message") or body.get("error") or "")
        code = body.get("error") if isinstance(body.get("error"), str) else None
    elif resp.text:
        message = resp.text[:500]
    return CommitResult.rejected(message=message, status=resp.status_code, code=code)


class InventoryApiClient:
    """Implements InventoryBackendPort against the inventory REST service.

    Lookup errors (HTTP or transport) are raised to the caller, which
    degrades them to empty results. Mutation rejections are returned as
    CommitResult; transport errors propagate.
    """

    def __init__(
        self,
        config: BackendConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        fetch_limit: int = 500,
    ) -> None:
        self._config = config
        self._base_url = config.base_url.rstrip("/")
        self._transport = transport
        self._fetch_limit = fetch_limit
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create persistent async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._config.timeout,
                headers={"Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client (call during app shutdown)."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _get_json(self, path: str, params: dict | None = None) -> Any:
        resp = await self._get_client().get(path, params=params)
        resp.raise_for_status()
        return resp.json()

    # -- Lookups --

    async def list_suppliers(self) -> list[LookupOption]:
        data = await self._get_json(SUPPLIERS_BASE, {"pageSize": self._fetch_limit})
        return [s for s in map(supplier_from_row, _rows(data)) if s is not None]

    async def search_suppliers(self, query: str, limit: int = 10) -> list[LookupOption]:
        data = await self._get_json(SUPPLIERS_BASE, {"pageSize": limit, "q": query})
        options = [s for s in map(supplier_from_row, _rows(data)) if s is not None]
        return options[:limit]

    async def get_supplier(self, supplier_id: str) -> LookupOption | None:
        resp = await self._get_client().get(f"{SUPPLIERS_BASE}/{supplier_id}")
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        data = resp.json()
        return supplier_from_row(data) if isinstance(data, dict) else None

    async def search_items(self, supplier_id: str | None, query: str, limit: int = 10) -> list[LookupOption]:
        params: dict[str, Any] = {"q": query}
        if supplier_id is not None:
            params["supplierId"] = supplier_id
        data = await self._get_json(f"{INVENTORY_BASE}/search", params)
        options = [o for o in (item_from_row(r, supplier_id) for r in _rows(data)) if o is not None]
        if supplier_id is not None:
            # The service may ignore supplierId; filter client-side
            options = [o for o in options if o.scope_id == supplier_id]
        return options[:limit]

    async def get_item(self, item_id: str) -> LookupOption | None:
        resp = await self._get_client().get(f"{INVENTORY_BASE}/{item_id}")
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        data = resp.json()
        return item_from_row(data) if isinstance(data, dict) else None

    # -- Mutations --

    async def delete_item(self, item_id: str, reason: str) -> CommitResult:
        resp = await self._get_client().delete(f"{INVENTORY_BASE}/{item_id}", params={"reason": reason})
        return self._result(resp, "delete item", item_id)

    async def delete_supplier(self, supplier_id: str) -> CommitResult:
        resp = await self._get_client().delete(f"{SUPPLIERS_BASE}/{supplier_id}")
        return self._result(resp, "delete supplier", supplier_id)

    async def update_supplier(self, supplier_id: str, changes: dict[str, Any]) -> CommitResult:
        current = await self.get_supplier(supplier_id)
        if current is None:
            return CommitResult.rejected(f"Supplier not found: {supplier_id}", status=404, code="NOT_FOUND")
        attrs = current.attributes
        body = {
            "id": supplier_id,
            "name": changes.get("name", current.label),
            "contactName": changes.get("contact_name", attrs.get("contact_name")),
            "phone": changes.get("phone", attrs.get("phone")),
            "email": changes.get("email", attrs.get("email")),
        }
        resp = await self._get_client().put(f"{SUPPLIERS_BASE}/{supplier_id}", json=body)
        return self._result(resp, "update supplier", supplier_id)

    @staticmethod
    def _result(resp: httpx.Response, action: str, entity_id: str) -> CommitResult:
        if resp.is_success:
            return CommitResult.success()
        logger.info("Backend refused to %s %s: HTTP %d", action, entity_id, resp.status_code)
        return failure_from_response(resp)
