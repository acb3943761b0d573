# gatevault/services/scan_service.py
from __future__ import annotations

import logging
from typing import List, Optional

from gatevault.core.errors import (
    AlreadyScanned,
    TicketNotScannable,
    VaultNotFound,
)
from gatevault.core.ids import Clock, generate_id, utc_now
from gatevault.core.locks import VAULT_LOCKS, KeyedLock
from gatevault.core.types import Collection, TicketStatus
from gatevault.core.vault_state_graph import can_transition_ticket
from gatevault.db.collections import TypedCollection, VaultByEventIndex, next_sequence
from gatevault.db.store import LedgerStore
from gatevault.schemas.records import AttendanceRecord, TicketScan, Vault
from gatevault.schemas.views import EventScanStats, ScanResult
from gatevault.services.catalog_service import CatalogService
from gatevault.services.vault_transitions import amortize

logger = logging.getLogger(__name__)

DEFAULT_SCANNER_ADDRESS = "0xScanner00000000000000000000000000000000"

ATTENDANCE_TOKEN_COUNTER = "attendance_token_id"

_SPENT_STATUSES = {TicketStatus.SCANNED, TicketStatus.BURNED}


class ScanService:
    """
    Gate check-in: burns the ticket, mints an attendance record to the
    organizer and pays the ticket's face value off the vault's debt.
    """

    def __init__(
        self,
        store: LedgerStore,
        catalog: CatalogService,
        *,
        clock: Clock = utc_now,
        locks: KeyedLock = VAULT_LOCKS,
    ):
        self.store = store
        self.catalog = catalog
        self.clock = clock
        self.locks = locks
        self.vaults = TypedCollection(store, Collection.VAULTS, Vault, key=lambda v: v.vault_id)
        self.scans = TypedCollection(store, Collection.TICKET_SCANS, TicketScan, key=lambda s: s.scan_id)
        self.attendance = TypedCollection(
            store, Collection.ATTENDANCE_RECORDS, AttendanceRecord, key=lambda a: a.attendance_id
        )
        self.vault_index = VaultByEventIndex(store)

    def _check_scannable(self, ticket_id: str, status: TicketStatus) -> None:
        if status in _SPENT_STATUSES:
            raise AlreadyScanned(ticket_id)
        if not can_transition_ticket(status, TicketStatus.BURNED):
            raise TicketNotScannable(ticket_id, status.value)

    def scan_ticket(
        self,
        ticket_id: str,
        gate_id: str,
        *,
        scanner_address: str = DEFAULT_SCANNER_ADDRESS,
        metadata_uri: Optional[str] = None,
    ) -> ScanResult:
        """
        Steps (one transaction, under the vault lock):
        1. ticket must exist and be OWNED
        2. resolve event -> vault; no vault means no scan
        3. burn the ticket
        4. mint attendance record (global sequential token id)
        5. debt_remaining = max(0, debt_remaining - price)
        6. append the scan record
        """
        ticket = self.catalog.require_ticket(ticket_id)
        self._check_scannable(ticket_id, TicketStatus(ticket.status))

        event = self.catalog.require_event(ticket.event_id)
        vault_id = self.vault_index.vault_id_for(event.event_id)
        if vault_id is None:
            raise VaultNotFound(event_id=event.event_id)

        with self.locks.hold(vault_id), self.locks.hold(ATTENDANCE_TOKEN_COUNTER), self.store.transaction():
            # re-read under the lock; a concurrent scan may have won
            ticket = self.catalog.require_ticket(ticket_id)
            self._check_scannable(ticket_id, TicketStatus(ticket.status))

            vault = self.vaults.get(vault_id)
            if vault is None:
                raise VaultNotFound(vault_id)

            ticket.status = TicketStatus.BURNED
            self.catalog.tickets.put(ticket)

            now = self.clock()
            scan_id = generate_id("SCN")
            token_id = next_sequence(self.store, ATTENDANCE_TOKEN_COUNTER)
            self.attendance.put(
                AttendanceRecord(
                    attendance_id=generate_id("ATT"),
                    scan_id=scan_id,
                    organizer_id=event.organizer_id,
                    token_id=token_id,
                    metadata_uri=metadata_uri or f"ipfs://attendance/{ticket.token_id}",
                    minted_at=now,
                )
            )

            retired = amortize(vault, ticket.price)
            self.vaults.put(vault)

            self.scans.put(
                TicketScan(
                    scan_id=scan_id,
                    ticket_id=ticket_id,
                    gate_id=gate_id,
                    scanner_address=scanner_address,
                    scanned_at=now,
                )
            )

        logger.info(
            "ticket scanned",
            extra={
                "ticket_id": ticket_id,
                "gate_id": gate_id,
                "vault_id": vault_id,
                "attendance_token_id": token_id,
                "debt_retired": str(retired),
                "debt_remaining": str(vault.debt_remaining),
            },
        )
        return ScanResult(scan_id=scan_id, attendance_token_id=token_id, debt_reduced=ticket.price)

    # ---------------------------
    # READS
    # ---------------------------

    def list_scans_by_event(self, event_id: str) -> List[TicketScan]:
        ticket_ids = {t.ticket_id for t in self.catalog.list_tickets_by_event(event_id)}
        return self.scans.filter(lambda s: s.ticket_id in ticket_ids)

    def list_attendance_records(self) -> List[AttendanceRecord]:
        return sorted(self.attendance.list(), key=lambda a: a.token_id)

    def get_event_scan_stats(self, event_id: str) -> EventScanStats:
        vault_id = self.vault_index.vault_id_for(event_id)
        vault = self.vaults.get(vault_id) if vault_id else None
        return EventScanStats(
            total_scans=len(self.list_scans_by_event(event_id)),
            vault_id=vault.vault_id if vault else None,
            organizer_address=vault.organizer_address if vault else None,
        )
