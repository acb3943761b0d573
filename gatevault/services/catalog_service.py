# gatevault/services/catalog_service.py
"""
Minimal in-process event/ticket catalog.

The ledger only reads events and ticket prices from here; the one write it
performs on catalog data is the OWNED -> BURNED move done by the scan
service.
"""
from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from gatevault.core.errors import (
    EventNotFound,
    InvalidAmount,
    TicketNotAvailable,
    TicketNotFound,
    VaultNotFound,
)
from gatevault.core.ids import Clock, as_utc, generate_id, utc_now
from gatevault.core.locks import VAULT_LOCKS, KeyedLock
from gatevault.core.types import Collection, EventStatus, TicketStatus, TicketType
from gatevault.db.collections import TypedCollection, VaultByEventIndex
from gatevault.db.store import LedgerStore
from gatevault.schemas.records import Event, Ticket, TicketSale
from gatevault.schemas.views import TicketSalesStats
from gatevault.services.escrow_service import EscrowService

logger = logging.getLogger(__name__)

MAX_MINT_QUANTITY = 10000

ORGANIZER_TREASURY = "0xOrganizer0000000000000000000000000000000"


class CatalogService:
    def __init__(
        self,
        store: LedgerStore,
        escrow: EscrowService,
        *,
        clock: Clock = utc_now,
        locks: KeyedLock = VAULT_LOCKS,
    ):
        self.store = store
        self.escrow = escrow
        self.clock = clock
        self.locks = locks
        self.events = TypedCollection(store, Collection.EVENTS, Event, key=lambda e: e.event_id)
        self.tickets = TypedCollection(store, Collection.TICKETS, Ticket, key=lambda t: t.ticket_id)
        self.sales = TypedCollection(store, Collection.TICKET_SALES, TicketSale, key=lambda s: s.sale_id)
        self.vault_index = VaultByEventIndex(store)

    # ---------------------------
    # EVENTS
    # ---------------------------

    def create_event(
        self,
        *,
        organizer_id: str,
        ticket_price: Decimal,
        total_tickets: int,
        event_name: str = "",
        event_date: Optional[datetime] = None,
        status: EventStatus = EventStatus.DRAFT,
    ) -> Event:
        event = Event(
            event_id=generate_id("EVT"),
            organizer_id=organizer_id,
            event_name=event_name,
            event_date=as_utc(event_date) if event_date else None,
            ticket_price=Decimal(str(ticket_price)),
            total_tickets=total_tickets,
            status=status,
            created_at=self.clock(),
        )
        self.events.put(event)
        return event

    def get_event_by_id(self, event_id: str) -> Optional[Event]:
        return self.events.get(event_id)

    def require_event(self, event_id: str) -> Event:
        event = self.get_event_by_id(event_id)
        if event is None:
            raise EventNotFound(event_id)
        return event

    # ---------------------------
    # TICKETS
    # ---------------------------

    def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        return self.tickets.get(ticket_id)

    def require_ticket(self, ticket_id: str) -> Ticket:
        ticket = self.get_ticket(ticket_id)
        if ticket is None:
            raise TicketNotFound(ticket_id)
        return ticket

    def get_ticket_price(self, ticket_id: str) -> Decimal:
        return self.require_ticket(ticket_id).price

    def list_tickets_by_event(self, event_id: str) -> List[Ticket]:
        return sorted(
            self.tickets.filter(lambda t: t.event_id == event_id),
            key=lambda t: t.token_id,
        )

    def list_tickets_by_owner(self, owner_address: str) -> List[Ticket]:
        owner = owner_address.lower()
        return self.tickets.filter(lambda t: t.owner_address.lower() == owner)

    def batch_mint(
        self,
        event_id: str,
        quantity: int,
        *,
        price: Optional[Decimal] = None,
        ticket_type: TicketType = TicketType.REGULAR,
        metadata_uri: str = "",
    ) -> List[Ticket]:
        """
        Mints `quantity` AVAILABLE tickets for the event, held by the organizer.
        Token ids continue from the event's highest token id.
        """
        event = self.require_event(event_id)
        if quantity <= 0 or quantity > MAX_MINT_QUANTITY:
            raise InvalidAmount(
                f"Invalid quantity (1-{MAX_MINT_QUANTITY}).", quantity=quantity
            )
        unit_price = Decimal(str(price)) if price is not None else event.ticket_price
        if unit_price <= 0:
            raise InvalidAmount("Price must be greater than 0.", price=str(unit_price))

        minted: List[Ticket] = []
        with self.locks.hold(f"event:{event_id}"), self.store.transaction():
            existing = self.list_tickets_by_event(event_id)
            next_token = existing[-1].token_id + 1 if existing else 0
            now = self.clock()
            for i in range(quantity):
                ticket = Ticket(
                    ticket_id=generate_id("TKT"),
                    event_id=event_id,
                    token_id=next_token + i,
                    ticket_type=ticket_type,
                    price=unit_price,
                    owner_address=ORGANIZER_TREASURY,
                    status=TicketStatus.AVAILABLE,
                    metadata_uri=metadata_uri,
                    minted_at=now,
                )
                self.tickets.put(ticket)
                minted.append(ticket)

        logger.info(
            "tickets minted",
            extra={"event_id": event_id, "quantity": quantity, "price": str(unit_price)},
        )
        return minted

    def purchase_ticket(self, ticket_id: str, buyer_address: str) -> TicketSale:
        """
        AVAILABLE -> OWNED for the buyer, with the face value deposited into
        the escrow of the event's vault.
        """
        ticket = self.require_ticket(ticket_id)
        vault_id = self.vault_index.vault_id_for(ticket.event_id)
        if vault_id is None:
            raise VaultNotFound(event_id=ticket.event_id)

        with self.locks.hold(vault_id), self.store.transaction():
            ticket = self.require_ticket(ticket_id)
            if ticket.status != TicketStatus.AVAILABLE:
                raise TicketNotAvailable(ticket_id, TicketStatus(ticket.status).value)

            ticket.status = TicketStatus.OWNED
            ticket.owner_address = buyer_address
            self.tickets.put(ticket)

            self.escrow.deposit_from_ticket_sale(vault_id, ticket.price)

            sale = TicketSale(
                sale_id=generate_id("SAL"),
                ticket_id=ticket_id,
                buyer_address=buyer_address,
                vault_id=vault_id,
                sale_price=ticket.price,
                purchased_at=self.clock(),
            )
            self.sales.put(sale)

        logger.info(
            "ticket purchased",
            extra={"ticket_id": ticket_id, "vault_id": vault_id, "price": str(ticket.price)},
        )
        return sale

    def get_ticket_sales(self, event_id: str) -> TicketSalesStats:
        event = self.get_event_by_id(event_id)
        if event is None:
            return TicketSalesStats(
                sold=0, total=0, revenue=Decimal("0"), sold_percentage=Decimal("0")
            )

        event_ticket_ids = {t.ticket_id for t in self.list_tickets_by_event(event_id)}
        event_sales = self.sales.filter(lambda s: s.ticket_id in event_ticket_ids)
        sold = len(event_sales)
        revenue = sum((s.sale_price for s in event_sales), Decimal("0"))
        pct = Decimal(sold) / Decimal(event.total_tickets) * 100

        return TicketSalesStats(
            sold=sold,
            total=event.total_tickets,
            revenue=revenue,
            sold_percentage=pct,
        )
