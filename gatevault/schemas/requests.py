from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, Field

from gatevault.core.types import EventStatus, TicketType

# --- Numeric primitives ---
Money = Annotated[Decimal, Field(gt=0, max_digits=20, decimal_places=6)]
Bps = Annotated[int, Field(ge=0)]


class EventCreateRequest(BaseModel):
    organizer_id: str = Field(..., min_length=1)
    event_name: str = ""
    event_date: Optional[datetime] = None
    ticket_price: Money
    total_tickets: int = Field(..., gt=0)
    status: EventStatus = EventStatus.PUBLISHED


class MintTicketsRequest(BaseModel):
    quantity: int = Field(..., gt=0)
    price: Optional[Money] = None
    ticket_type: TicketType = TicketType.REGULAR
    metadata_uri: str = ""


class PurchaseRequest(BaseModel):
    buyer_address: str = Field(..., min_length=1)


class ScanRequest(BaseModel):
    gate_id: str = Field(..., min_length=1)
    scanner_address: Optional[str] = None
    metadata_uri: Optional[str] = None


class VaultCreateRequest(BaseModel):
    """
    Organizer deploys a vault against an event's future ticket revenue.
    ltv_ratio and risk_score are stored for display only.
    """
    event_id: str = Field(..., min_length=1)
    organizer_address: str = Field(..., min_length=1)
    loan_amount: Money
    yield_rate_bps: Bps
    ltv_ratio: Decimal = Field(Decimal("0"), ge=0)
    risk_score: int = Field(0, ge=0, le=100)
    total_tickets: int = Field(0, ge=0)
    funding_deadline: datetime


class InvestmentRequest(BaseModel):
    investor_address: str = Field(..., min_length=1)
    amount: Money
