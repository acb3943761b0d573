# gatevault/api/v1/vaults.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from gatevault.core.deps import get_ledger
from gatevault.core.errors import NotFound
from gatevault.core.types import VaultStatus
from gatevault.schemas.records import EscrowBalance, Investment, SettlementDistribution, Vault
from gatevault.schemas.requests import InvestmentRequest, VaultCreateRequest
from gatevault.schemas.views import VaultAnalytics
from gatevault.services.ledger import Ledger

router = APIRouter(prefix="/vaults")


# ─────────────────────────────────────────────────────────────
# VAULTS
# ─────────────────────────────────────────────────────────────

@router.post("", response_model=Vault, status_code=201)
def create_vault(body: VaultCreateRequest, ledger: Ledger = Depends(get_ledger)):
    return ledger.vaults.create_vault(
        event_id=body.event_id,
        organizer_address=body.organizer_address,
        loan_amount=body.loan_amount,
        yield_rate_bps=body.yield_rate_bps,
        ltv_ratio=body.ltv_ratio,
        risk_score=body.risk_score,
        total_tickets=body.total_tickets,
        funding_deadline=body.funding_deadline,
    )


@router.get("", response_model=List[Vault])
def list_vaults(
    status: Optional[VaultStatus] = Query(default=None),
    ledger: Ledger = Depends(get_ledger),
):
    if status is None:
        return ledger.vaults.list_vaults()
    return ledger.vaults.list_vaults_by_status(status)


# declared before /{vault_id} so "analytics" is not taken for an id
@router.get("/analytics", response_model=List[VaultAnalytics])
def get_vault_analytics(ledger: Ledger = Depends(get_ledger)):
    return ledger.vaults.get_vault_analytics()


@router.get("/{vault_id}", response_model=Vault)
def get_vault(vault_id: str, ledger: Ledger = Depends(get_ledger)):
    return ledger.vaults.get_vault_by_id(vault_id)


# ─────────────────────────────────────────────────────────────
# INVESTMENTS
# ─────────────────────────────────────────────────────────────

@router.post("/{vault_id}/investments", response_model=Investment, status_code=201)
def record_investment(vault_id: str, body: InvestmentRequest, ledger: Ledger = Depends(get_ledger)):
    return ledger.vaults.record_investment(vault_id, body.investor_address, body.amount)


@router.get("/{vault_id}/investments", response_model=List[Investment])
def list_vault_investments(vault_id: str, ledger: Ledger = Depends(get_ledger)):
    ledger.vaults.get_vault_by_id(vault_id)
    return ledger.vaults.list_investments_by_vault(vault_id)


# ─────────────────────────────────────────────────────────────
# ESCROW / SETTLEMENT
# ─────────────────────────────────────────────────────────────

@router.get("/{vault_id}/escrow", response_model=EscrowBalance)
def get_escrow_balance(vault_id: str, ledger: Ledger = Depends(get_ledger)):
    return ledger.escrow.get_balance(vault_id)


@router.post("/{vault_id}/settlement", response_model=SettlementDistribution, status_code=201)
def distribute_settlement(vault_id: str, ledger: Ledger = Depends(get_ledger)):
    return ledger.settlement.distribute_settlement(vault_id)


@router.get("/{vault_id}/settlement", response_model=SettlementDistribution)
def get_settlement(vault_id: str, ledger: Ledger = Depends(get_ledger)):
    row = ledger.settlement.get_settlement(vault_id)
    if row is None:
        raise NotFound(f"No settlement recorded for vault {vault_id}.", vault_id=vault_id)
    return row
