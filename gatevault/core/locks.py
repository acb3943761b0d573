from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator


class _Entry:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.holders = 0


class KeyedLock:
    """
    One re-entrant lock per key (vault id).

    Funding-threshold and settlement checks are check-then-act sequences;
    holding the vault's lock for the whole read-modify-write serializes them
    within this process.

    A key's lock only lives while some thread holds or waits on it, so the
    registry stays bounded by concurrency, not by the ids callers send.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, _Entry] = {}

    def _acquire_entry(self, key: str) -> _Entry:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = _Entry()
                self._locks[key] = entry
            entry.holders += 1
            return entry

    def _release_entry(self, key: str, entry: _Entry) -> None:
        with self._guard:
            entry.holders -= 1
            if entry.holders == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        entry = self._acquire_entry(key)
        try:
            with entry.lock:
                yield
        finally:
            self._release_entry(key, entry)


# Shared by every service that mutates vault-scoped records.
VAULT_LOCKS = KeyedLock()
