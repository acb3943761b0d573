# gatevault/api/v1/tickets.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from gatevault.core.deps import get_ledger
from gatevault.schemas.records import Ticket, TicketSale
from gatevault.schemas.requests import PurchaseRequest, ScanRequest
from gatevault.schemas.views import ScanResult
from gatevault.services.ledger import Ledger
from gatevault.services.scan_service import DEFAULT_SCANNER_ADDRESS

router = APIRouter(prefix="/tickets")


@router.get("/{ticket_id}", response_model=Ticket)
def get_ticket(ticket_id: str, ledger: Ledger = Depends(get_ledger)):
    return ledger.catalog.require_ticket(ticket_id)


@router.post("/{ticket_id}/purchase", response_model=TicketSale, status_code=201)
def purchase_ticket(ticket_id: str, body: PurchaseRequest, ledger: Ledger = Depends(get_ledger)):
    return ledger.catalog.purchase_ticket(ticket_id, body.buyer_address)


@router.post("/{ticket_id}/scan", response_model=ScanResult)
def scan_ticket(ticket_id: str, body: ScanRequest, ledger: Ledger = Depends(get_ledger)):
    return ledger.scanner.scan_ticket(
        ticket_id,
        body.gate_id,
        scanner_address=body.scanner_address or DEFAULT_SCANNER_ADDRESS,
        metadata_uri=body.metadata_uri,
    )
