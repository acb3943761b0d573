# gatevault/services/settlement_service.py
from __future__ import annotations

import logging
from typing import List, Optional

from gatevault.core.errors import AlreadySettled, VaultNotActive, VaultNotFound
from gatevault.core.ids import Clock, utc_now
from gatevault.core.locks import VAULT_LOCKS, KeyedLock
from gatevault.core.types import Collection, VaultStatus
from gatevault.db.collections import TypedCollection
from gatevault.db.store import LedgerStore
from gatevault.schemas.records import SettlementDistribution, Vault
from gatevault.services.escrow_service import EscrowService
from gatevault.services.settlement_compute import compute_distribution
from gatevault.services.vault_transitions import settle

logger = logging.getLogger(__name__)


class SettlementService:
    """
    Splits a vault's escrowed revenue between investors, the platform and
    the organizer. Runs once per vault.
    """

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
        self.vaults = TypedCollection(store, Collection.VAULTS, Vault, key=lambda v: v.vault_id)
        self.settlements = TypedCollection(
            store, Collection.SETTLEMENTS, SettlementDistribution, key=lambda s: s.vault_id
        )

    # ─────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────

    def distribute_settlement(self, vault_id: str) -> SettlementDistribution:
        """
        Requires an ACTIVE vault with an unsettled escrow. Applies together:
        vault -> SETTLED with its residual debt forgiven, escrow zeroed and
        flagged settled, one distribution record written.
        """
        if self.vaults.get(vault_id) is None:
            raise VaultNotFound(vault_id)

        with self.locks.hold(vault_id), self.store.transaction():
            vault = self.vaults.get(vault_id)
            if vault is None:
                raise VaultNotFound(vault_id)
            if vault.status != VaultStatus.ACTIVE:
                raise VaultNotActive(vault_id, VaultStatus(vault.status).value)

            escrow = self.escrow.find_balance(vault_id)
            if escrow is None or escrow.is_settled:
                raise AlreadySettled(vault_id)

            total_revenue = self.escrow.close_out(vault_id)
            dist = compute_distribution(vault.loan_amount, vault.yield_rate_bps, total_revenue)

            settle(vault)
            self.vaults.put(vault)

            settlement = SettlementDistribution(
                vault_id=vault_id,
                total_revenue=dist.total_revenue,
                investor_payout=dist.investor_payout,
                platform_fee=dist.platform_fee,
                organizer_payout=dist.organizer_payout,
                distributed_at=self.clock(),
            )
            self.settlements.put(settlement)

        logger.info(
            "settlement distributed",
            extra={
                "vault_id": vault_id,
                "total_revenue": str(settlement.total_revenue),
                "investor_payout": str(settlement.investor_payout),
                "platform_fee": str(settlement.platform_fee),
                "organizer_payout": str(settlement.organizer_payout),
            },
        )
        return settlement

    def get_settlement(self, vault_id: str) -> Optional[SettlementDistribution]:
        return self.settlements.get(vault_id)

    def list_settlements(self) -> List[SettlementDistribution]:
        return self.settlements.list()
