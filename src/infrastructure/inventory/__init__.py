"""Inventory backends."""

from src.infrastructure.inventory.http_client import InventoryApiClient
from src.infrastructure.inventory.memory_backend import InMemoryInventoryBackend

__all__ = ["InMemoryInventoryBackend", "InventoryApiClient"]
