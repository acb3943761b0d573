from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from gatevault.schemas.records import Event, Vault


class VaultAnalytics(BaseModel):
    vault: Vault
    # None when the vault's event can no longer be resolved
    event: Optional[Event] = None
    funding_progress: Decimal
    tickets_sold: Optional[int] = None
    projected_roi: Decimal
    days_until_event: Optional[int] = None


class ScanResult(BaseModel):
    scan_id: str
    attendance_token_id: int
    debt_reduced: Decimal


class EventScanStats(BaseModel):
    total_scans: int
    vault_id: Optional[str] = None
    organizer_address: Optional[str] = None


class TicketSalesStats(BaseModel):
    sold: int
    total: int
    revenue: Decimal
    sold_percentage: Decimal


class InvestorStats(BaseModel):
    total_invested: Decimal
    active_investments: int
    total_returns: Decimal
    average_roi: Decimal
    portfolio_value: Decimal
