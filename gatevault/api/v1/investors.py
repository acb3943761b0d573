from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from gatevault.core.deps import get_ledger
from gatevault.schemas.records import Investment
from gatevault.schemas.views import InvestorStats
from gatevault.services.ledger import Ledger

router = APIRouter(prefix="/investors")


@router.get("/{investor_address}/investments", response_model=List[Investment])
def list_investor_investments(investor_address: str, ledger: Ledger = Depends(get_ledger)):
    return ledger.vaults.list_investments_by_investor(investor_address)


@router.get("/{investor_address}/stats", response_model=InvestorStats)
def get_investor_stats(investor_address: str, ledger: Ledger = Depends(get_ledger)):
    return ledger.vaults.get_investor_stats(investor_address)
