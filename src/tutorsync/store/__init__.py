"""Remote store adapters."""

from tutorsync.store.base import RemoteStore, Row, StoreResult
from tutorsync.store.memory import InMemoryStore
from tutorsync.store.rest import RestStore

__all__ = ["InMemoryStore", "RemoteStore", "RestStore", "Row", "StoreResult"]
