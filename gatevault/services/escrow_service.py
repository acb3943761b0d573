# gatevault/services/escrow_service.py
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from gatevault.core.errors import AlreadySettled, InvalidAmount
from gatevault.core.locks import VAULT_LOCKS, KeyedLock
from gatevault.core.types import Collection
from gatevault.db.collections import TypedCollection
from gatevault.db.store import LedgerStore
from gatevault.schemas.records import EscrowBalance

logger = logging.getLogger(__name__)


class EscrowService:
    """
    Ticket-sale revenue held per vault until settlement.
    """

    def __init__(self, store: LedgerStore, *, locks: KeyedLock = VAULT_LOCKS):
        self.store = store
        self.locks = locks
        self.balances = TypedCollection(
            store, Collection.ESCROW_BALANCES, EscrowBalance, key=lambda e: e.vault_id
        )

    # ---------------------------
    # READS
    # ---------------------------

    def find_balance(self, vault_id: str) -> Optional[EscrowBalance]:
        return self.balances.get(vault_id)

    def get_balance(self, vault_id: str) -> EscrowBalance:
        """
        Never fails: a vault without deposits reads as an empty, unsettled
        escrow. Nothing is persisted by the read.
        """
        return self.find_balance(vault_id) or EscrowBalance(vault_id=vault_id)

    # ---------------------------
    # MUTATIONS
    # ---------------------------

    def deposit_from_ticket_sale(self, vault_id: str, amount: Decimal) -> EscrowBalance:
        """
        Credits a ticket sale to the vault's escrow, creating it on first use.
        Accepted whatever the vault's status: sales may start before funding
        completes.
        """
        amount = Decimal(str(amount))
        if amount <= 0:
            raise InvalidAmount("Deposit amount must be greater than 0.", amount=str(amount))

        with self.locks.hold(vault_id), self.store.transaction():
            escrow = self.find_balance(vault_id) or EscrowBalance(vault_id=vault_id)
            if escrow.is_settled:
                raise AlreadySettled(vault_id)
            escrow.balance = escrow.balance + amount
            self.balances.put(escrow)

        logger.debug("escrow deposit", extra={"vault_id": vault_id, "amount": str(amount)})
        return escrow

    def close_out(self, vault_id: str) -> Decimal:
        """
        Marks the escrow settled and zeroes it; returns the balance it held.
        Caller holds the vault lock and an open transaction.
        """
        escrow = self.find_balance(vault_id)
        if escrow is None or escrow.is_settled:
            raise AlreadySettled(vault_id)
        total = escrow.balance
        escrow.is_settled = True
        escrow.balance = Decimal("0")
        self.balances.put(escrow)
        return total
