from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_id(prefix: str) -> str:
    """
    Prefixed opaque identifier, e.g. VLT-3f2a9c1e4b7d.
    """
    return f"{prefix}-{uuid.uuid4().hex[:12].upper()}"


def as_utc(dt: datetime) -> datetime:
    # naive datetimes are taken to be UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
