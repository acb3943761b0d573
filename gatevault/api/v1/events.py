# gatevault/api/v1/events.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from gatevault.core.deps import get_ledger
from gatevault.core.errors import EventNotFound
from gatevault.schemas.records import Event, Ticket
from gatevault.schemas.requests import EventCreateRequest, MintTicketsRequest
from gatevault.schemas.views import EventScanStats, TicketSalesStats
from gatevault.services.ledger import Ledger

router = APIRouter(prefix="/events")


@router.post("", response_model=Event, status_code=201)
def create_event(body: EventCreateRequest, ledger: Ledger = Depends(get_ledger)):
    return ledger.catalog.create_event(
        organizer_id=body.organizer_id,
        ticket_price=body.ticket_price,
        total_tickets=body.total_tickets,
        event_name=body.event_name,
        event_date=body.event_date,
        status=body.status,
    )


@router.get("/{event_id}", response_model=Event)
def get_event(event_id: str, ledger: Ledger = Depends(get_ledger)):
    event = ledger.catalog.get_event_by_id(event_id)
    if event is None:
        raise EventNotFound(event_id)
    return event


@router.post("/{event_id}/tickets", response_model=List[Ticket], status_code=201)
def mint_tickets(event_id: str, body: MintTicketsRequest, ledger: Ledger = Depends(get_ledger)):
    return ledger.catalog.batch_mint(
        event_id,
        body.quantity,
        price=body.price,
        ticket_type=body.ticket_type,
        metadata_uri=body.metadata_uri,
    )


@router.get("/{event_id}/tickets", response_model=List[Ticket])
def list_event_tickets(event_id: str, ledger: Ledger = Depends(get_ledger)):
    return ledger.catalog.list_tickets_by_event(event_id)


@router.get("/{event_id}/sales", response_model=TicketSalesStats)
def get_ticket_sales(event_id: str, ledger: Ledger = Depends(get_ledger)):
    return ledger.catalog.get_ticket_sales(event_id)


@router.get("/{event_id}/scans/stats", response_model=EventScanStats)
def get_event_scan_stats(event_id: str, ledger: Ledger = Depends(get_ledger)):
    return ledger.scanner.get_event_scan_stats(event_id)
