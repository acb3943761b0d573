# gatevault/services/ledger.py
from __future__ import annotations

from typing import Optional

from gatevault.core.ids import Clock, utc_now
from gatevault.core.locks import KeyedLock
from gatevault.db.store import LedgerStore
from gatevault.services.catalog_service import CatalogService
from gatevault.services.escrow_service import EscrowService
from gatevault.services.scan_service import ScanService
from gatevault.services.settlement_service import SettlementService
from gatevault.services.vault_service import VaultService


class Ledger:
    """
    Wires every service onto one store, one clock and one lock registry.
    """

    def __init__(self, store: LedgerStore, *, clock: Clock = utc_now, locks: Optional[KeyedLock] = None):
        self.store = store
        self.clock = clock
        self.locks = locks or KeyedLock()

        self.escrow = EscrowService(store, locks=self.locks)
        self.catalog = CatalogService(store, self.escrow, clock=clock, locks=self.locks)
        self.vaults = VaultService(store, self.catalog, clock=clock, locks=self.locks)
        self.scanner = ScanService(store, self.catalog, clock=clock, locks=self.locks)
        self.settlement = SettlementService(store, self.escrow, clock=clock, locks=self.locks)
