# gatevault/db/collections.py
from __future__ import annotations

from typing import Callable, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel

from gatevault.core.types import Collection
from gatevault.db.store import LedgerStore

T = TypeVar("T", bound=BaseModel)


class TypedCollection(Generic[T]):
    """
    Typed view over one store collection: pydantic models in, JSON dicts
    out to the store.
    """

    def __init__(
        self,
        store: LedgerStore,
        collection: Collection,
        model: Type[T],
        key: Callable[[T], str],
    ):
        self.store = store
        self.name = collection.value
        self.model = model
        self._key = key

    def get(self, key: str) -> Optional[T]:
        raw = self.store.get(self.name, key)
        return self.model.model_validate(raw) if raw is not None else None

    def list(self) -> List[T]:
        return [self.model.model_validate(r) for r in self.store.list(self.name)]

    def filter(self, predicate: Callable[[T], bool]) -> List[T]:
        return [r for r in self.list() if predicate(r)]

    def put(self, record: T) -> T:
        self.store.put(self.name, self._key(record), record.model_dump(mode="json"))
        return record


class VaultByEventIndex:
    """
    event_id -> vault_id. Backs the one-vault-per-event rule and the
    ticket -> event -> vault resolution used by scans and purchases.
    """

    def __init__(self, store: LedgerStore):
        self.store = store
        self.name = Collection.VAULT_BY_EVENT.value

    def vault_id_for(self, event_id: str) -> Optional[str]:
        row = self.store.get(self.name, event_id)
        return row["vault_id"] if row else None

    def link(self, event_id: str, vault_id: str) -> None:
        self.store.put(self.name, event_id, {"event_id": event_id, "vault_id": vault_id})


def next_sequence(store: LedgerStore, name: str) -> int:
    """
    Next value of a zero-based counter. Call inside a transaction, holding
    a lock that serializes other callers of the same counter.
    """
    row = store.get(Collection.COUNTERS.value, name)
    value = row["next"] if row else 0
    store.put(Collection.COUNTERS.value, name, {"name": name, "next": value + 1})
    return value
