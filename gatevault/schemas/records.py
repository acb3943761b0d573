# gatevault/schemas/records.py
"""
Persisted ledger entities.

Each model is stored as `model_dump(mode="json")` in its collection and read
back with `model_validate`; money survives the round trip as a decimal string.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from gatevault.core.types import (
    EventStatus,
    InvestmentStatus,
    TicketStatus,
    TicketType,
    VaultStatus,
)


class LedgerModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


# ─────────────────────────────────────────────
# Catalog (read by the ledger)
# ─────────────────────────────────────────────

class Event(LedgerModel):
    event_id: str
    organizer_id: str
    event_name: str = ""
    event_date: Optional[datetime] = None
    ticket_price: Decimal = Field(..., gt=0)
    total_tickets: int = Field(..., gt=0)
    status: EventStatus = EventStatus.DRAFT
    created_at: datetime


class Ticket(LedgerModel):
    ticket_id: str
    event_id: str
    token_id: int = Field(..., ge=0)
    ticket_type: TicketType = TicketType.REGULAR
    price: Decimal = Field(..., gt=0)
    owner_address: str
    status: TicketStatus = TicketStatus.AVAILABLE
    metadata_uri: str = ""
    minted_at: datetime


class TicketSale(LedgerModel):
    sale_id: str
    ticket_id: str
    buyer_address: str
    vault_id: str
    sale_price: Decimal
    purchased_at: datetime


# ─────────────────────────────────────────────
# Vault accounting
# ─────────────────────────────────────────────

class Vault(LedgerModel):
    vault_id: str
    event_id: str
    organizer_address: str

    loan_amount: Decimal = Field(..., gt=0)
    yield_rate_bps: int = Field(..., ge=0)
    # informational only, never enforced
    ltv_ratio: Decimal = Decimal("0")
    risk_score: int = Field(0, ge=0, le=100)
    total_tickets: int = Field(0, ge=0)

    status: VaultStatus = VaultStatus.FUNDING
    total_funded: Decimal = Decimal("0")
    total_released: Decimal = Decimal("0")
    debt_remaining: Decimal

    funding_deadline: datetime
    investors: List[str] = Field(default_factory=list)
    investor_contributions: Dict[str, Decimal] = Field(default_factory=dict)

    created_at: datetime


class Investment(LedgerModel):
    investment_id: str
    investor_id: str
    vault_id: str
    amount: Decimal = Field(..., gt=0)
    expected_return: Decimal
    status: InvestmentStatus = InvestmentStatus.ACTIVE
    invested_at: datetime
    paidout_at: Optional[datetime] = None
    actual_return: Optional[Decimal] = None


# ─────────────────────────────────────────────
# Escrow / scans / settlement
# ─────────────────────────────────────────────

class EscrowBalance(LedgerModel):
    vault_id: str
    balance: Decimal = Field(Decimal("0"), ge=0)
    is_settled: bool = False


class TicketScan(LedgerModel):
    scan_id: str
    ticket_id: str
    gate_id: str
    scanner_address: str
    scanned_at: datetime


class AttendanceRecord(LedgerModel):
    attendance_id: str
    scan_id: str
    organizer_id: str
    token_id: int = Field(..., ge=0)
    metadata_uri: str
    minted_at: datetime


class SettlementDistribution(LedgerModel):
    vault_id: str
    total_revenue: Decimal
    investor_payout: Decimal
    platform_fee: Decimal
    organizer_payout: Decimal
    distributed_at: datetime
