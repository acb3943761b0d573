# gatevault/db/store.py
from __future__ import annotations

import abc
import copy
import logging
import threading
from contextlib import contextmanager, nullcontext
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from gatevault.db.base import Base
from gatevault.db.session import make_engine, make_session_factory
from gatevault.models.ledger_record import LedgerRecord

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class LedgerStore(abc.ABC):
    """
    Key-value persistence of ledger collections.

    Records are JSON-compatible dicts. Callers never share references with
    the store: every read returns a fresh copy.

    `transaction()` groups writes: either all of them become visible on exit
    or, if the block raises, none of them do. Reads inside the block see the
    block's own pending writes. Transactions nest; only the outermost one
    commits.
    """

    @abc.abstractmethod
    def get(self, collection: str, key: str) -> Optional[Record]:
        ...

    @abc.abstractmethod
    def list(self, collection: str) -> List[Record]:
        ...

    @abc.abstractmethod
    def put(self, collection: str, key: str, record: Record) -> None:
        ...

    @abc.abstractmethod
    def transaction(self):
        ...


class _TxState(threading.local):
    def __init__(self) -> None:
        self.depth = 0
        self.pending: Optional[Dict[str, Dict[str, Record]]] = None


class InMemoryLedgerStore(LedgerStore):
    """
    Dict-of-dicts store. Pending transaction writes are buffered per thread
    and applied under the store lock on commit.
    """

    def __init__(self) -> None:
        self._data: Dict[str, Dict[str, Record]] = {}
        self._lock = threading.RLock()
        self._tx = _TxState()

    def get(self, collection: str, key: str) -> Optional[Record]:
        pending = self._tx.pending
        if pending is not None and key in pending.get(collection, {}):
            return copy.deepcopy(pending[collection][key])
        with self._lock:
            rec = self._data.get(collection, {}).get(key)
            return copy.deepcopy(rec) if rec is not None else None

    def list(self, collection: str) -> List[Record]:
        with self._lock:
            merged = dict(self._data.get(collection, {}))
        pending = self._tx.pending
        if pending is not None:
            merged.update(pending.get(collection, {}))
        return [copy.deepcopy(r) for r in merged.values()]

    def put(self, collection: str, key: str, record: Record) -> None:
        rec = copy.deepcopy(record)
        pending = self._tx.pending
        if pending is not None:
            pending.setdefault(collection, {})[key] = rec
            return
        with self._lock:
            self._data.setdefault(collection, {})[key] = rec

    @contextmanager
    def transaction(self) -> Iterator["InMemoryLedgerStore"]:
        tx = self._tx
        outermost = tx.depth == 0
        if outermost:
            tx.pending = {}
        tx.depth += 1
        try:
            yield self
        except BaseException:
            if outermost:
                tx.pending = None
            raise
        else:
            if outermost:
                with self._lock:
                    for collection, rows in tx.pending.items():
                        self._data.setdefault(collection, {}).update(rows)
                tx.pending = None
        finally:
            tx.depth -= 1


class _SessionState(threading.local):
    def __init__(self) -> None:
        self.depth = 0
        self.session: Optional[Session] = None


class SqlLedgerStore(LedgerStore):
    """
    SQLAlchemy-backed store: one `ledger_records` row per (collection, key).

    Outside a transaction each call runs in its own short session. Inside
    `transaction()` all calls on the same thread share one session, committed
    on exit or rolled back if the block raises.

    On a single-connection engine (`StaticPool`, used for SQLite `:memory:`)
    every thread shares one DBAPI connection and so one database transaction.
    Sessions are then serialized by a store-level lock, held for the whole
    outermost `transaction()`.
    """

    def __init__(self, session_factory: sessionmaker, *, create_schema: bool = True) -> None:
        self._session_factory = session_factory
        self._state = _SessionState()
        engine = session_factory.kw["bind"]
        self._shared_connection = threading.RLock() if isinstance(engine.pool, StaticPool) else None
        if create_schema:
            Base.metadata.create_all(bind=engine)

    def _exclusive(self):
        if self._shared_connection is None:
            return nullcontext()
        return self._shared_connection

    @contextmanager
    def _session(self) -> Iterator[Session]:
        if self._state.session is not None:
            yield self._state.session
            return
        with self._exclusive():
            db = self._session_factory()
            try:
                yield db
                db.commit()
            except BaseException:
                db.rollback()
                raise
            finally:
                db.close()

    def _row(self, db: Session, collection: str, key: str) -> Optional[LedgerRecord]:
        return db.execute(
            select(LedgerRecord).where(
                LedgerRecord.collection == collection,
                LedgerRecord.key == key,
            )
        ).scalar_one_or_none()

    def get(self, collection: str, key: str) -> Optional[Record]:
        with self._session() as db:
            row = self._row(db, collection, key)
            return copy.deepcopy(row.payload_json) if row else None

    def list(self, collection: str) -> List[Record]:
        with self._session() as db:
            rows = (
                db.execute(
                    select(LedgerRecord)
                    .where(LedgerRecord.collection == collection)
                    .order_by(LedgerRecord.id)
                )
                .scalars()
                .all()
            )
            return [copy.deepcopy(r.payload_json) for r in rows]

    def put(self, collection: str, key: str, record: Record) -> None:
        payload = copy.deepcopy(record)
        with self._session() as db:
            row = self._row(db, collection, key)
            if row is None:
                db.add(LedgerRecord(collection=collection, key=key, payload_json=payload))
            else:
                # reassign so the JSON column is flagged dirty
                row.payload_json = payload
            db.flush()

    @contextmanager
    def transaction(self) -> Iterator["SqlLedgerStore"]:
        state = self._state
        if state.depth > 0:
            state.depth += 1
            try:
                yield self
            finally:
                state.depth -= 1
            return

        with self._exclusive():
            state.session = self._session_factory()
            state.depth = 1
            try:
                yield self
                state.session.commit()
            except BaseException:
                logger.debug("ledger transaction rolled back")
                state.session.rollback()
                raise
            finally:
                state.depth = 0
                state.session.close()
                state.session = None


def build_store(backend: str, database_url: str) -> LedgerStore:
    if backend == "memory":
        return InMemoryLedgerStore()
    if backend == "sql":
        return SqlLedgerStore(make_session_factory(make_engine(database_url)))
    raise ValueError(f"Unknown ledger store backend: {backend!r}")
