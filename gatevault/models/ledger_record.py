# gatevault/models/ledger_record.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from sqlalchemy import JSON, DateTime, Index, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from gatevault.db.base import Base


class LedgerRecord(Base):
    """
    One entity of one ledger collection, stored as a JSON payload.

    (collection, key) is unique; writes replace the payload in place.
    """

    __tablename__ = "ledger_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    collection: Mapped[str] = mapped_column(String(64), nullable=False)
    key: Mapped[str] = mapped_column(String(128), nullable=False)

    payload_json: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint("collection", "key", name="uq_ledger_record_key"),
        Index("ix_ledger_record_collection", "collection", "id"),
    )
