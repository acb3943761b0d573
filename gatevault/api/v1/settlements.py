from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from gatevault.core.deps import get_ledger
from gatevault.schemas.records import SettlementDistribution
from gatevault.services.ledger import Ledger

router = APIRouter(prefix="/settlements")


@router.get("", response_model=List[SettlementDistribution])
def list_settlements(ledger: Ledger = Depends(get_ledger)):
    return ledger.settlement.list_settlements()
