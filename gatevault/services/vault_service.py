# gatevault/services/vault_service.py
from __future__ import annotations

import logging
import math
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from gatevault.core.errors import (
    DeadlinePassed,
    EventNotOpen,
    ExceedsLoanAmount,
    InvalidAmount,
    VaultAlreadyExists,
    VaultNotFound,
    VaultNotFunding,
)
from gatevault.core.ids import Clock, as_utc, generate_id, utc_now
from gatevault.core.locks import VAULT_LOCKS, KeyedLock
from gatevault.core.types import (
    Collection,
    EventStatus,
    InvestmentStatus,
    VaultStatus,
)
from gatevault.db.collections import TypedCollection, VaultByEventIndex
from gatevault.db.store import LedgerStore
from gatevault.schemas.records import Investment, TicketSale, Vault
from gatevault.schemas.views import InvestorStats, VaultAnalytics
from gatevault.services.catalog_service import CatalogService
from gatevault.services.settlement_compute import expected_return
from gatevault.services.vault_transitions import activate_if_fully_funded, apply_contribution

logger = logging.getLogger(__name__)

VAULTABLE_EVENT_STATUSES = {EventStatus.DRAFT, EventStatus.PUBLISHED}

SECONDS_PER_DAY = 60 * 60 * 24


class VaultService:
    """
    Vault lifecycle and investor accounting.

    Every mutation runs under the vault's lock and inside one store
    transaction, so the funding cap and the one-time activation are checked
    and applied without interleaving.
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
        self.investments = TypedCollection(
            store, Collection.INVESTMENTS, Investment, key=lambda i: i.investment_id
        )
        self.vault_index = VaultByEventIndex(store)

    # ---------------------------
    # READS
    # ---------------------------

    def find_vault(self, vault_id: str) -> Optional[Vault]:
        return self.vaults.get(vault_id)

    def get_vault_by_id(self, vault_id: str) -> Vault:
        vault = self.find_vault(vault_id)
        if vault is None:
            raise VaultNotFound(vault_id)
        return vault

    def get_vault_for_event(self, event_id: str) -> Optional[Vault]:
        vault_id = self.vault_index.vault_id_for(event_id)
        return self.find_vault(vault_id) if vault_id else None

    def list_vaults(self) -> List[Vault]:
        return self.vaults.list()

    def list_vaults_by_status(self, status: VaultStatus) -> List[Vault]:
        status = VaultStatus(status)
        return self.vaults.filter(lambda v: v.status == status)

    def list_investments_by_vault(self, vault_id: str) -> List[Investment]:
        return self.investments.filter(lambda i: i.vault_id == vault_id)

    def list_investments_by_investor(self, investor_id: str) -> List[Investment]:
        return self.investments.filter(lambda i: i.investor_id == investor_id)

    # ---------------------------
    # MUTATIONS
    # ---------------------------

    def create_vault(
        self,
        *,
        event_id: str,
        organizer_address: str,
        loan_amount: Decimal,
        yield_rate_bps: int,
        ltv_ratio: Decimal,
        risk_score: int,
        total_tickets: int,
        funding_deadline: datetime,
    ) -> Vault:
        """
        Opens a FUNDING vault for an event that has none yet.
        """
        loan_amount = Decimal(str(loan_amount))
        if loan_amount <= 0:
            raise InvalidAmount("Loan amount must be greater than 0.", loan_amount=str(loan_amount))
        if yield_rate_bps < 0:
            raise InvalidAmount("Yield rate cannot be negative.", yield_rate_bps=yield_rate_bps)
        if not 0 <= risk_score <= 100:
            raise InvalidAmount("Risk score must be between 0 and 100.", risk_score=risk_score)
        ltv_ratio = Decimal(str(ltv_ratio))
        if ltv_ratio < 0:
            raise InvalidAmount("LTV ratio cannot be negative.", ltv_ratio=str(ltv_ratio))
        if total_tickets < 0:
            raise InvalidAmount("Total tickets cannot be negative.", total_tickets=total_tickets)

        now = self.clock()
        funding_deadline = as_utc(funding_deadline)
        if funding_deadline <= now:
            raise DeadlinePassed(
                "Funding deadline must be in the future.",
                funding_deadline=funding_deadline.isoformat(),
            )

        event = self.catalog.require_event(event_id)
        if EventStatus(event.status) not in VAULTABLE_EVENT_STATUSES:
            raise EventNotOpen(event_id, EventStatus(event.status).value)

        with self.locks.hold(f"event:{event_id}"), self.store.transaction():
            existing = self.vault_index.vault_id_for(event_id)
            if existing is not None:
                raise VaultAlreadyExists(event_id, existing)

            vault = Vault(
                vault_id=generate_id("VLT"),
                event_id=event_id,
                organizer_address=organizer_address,
                loan_amount=loan_amount,
                yield_rate_bps=yield_rate_bps,
                ltv_ratio=ltv_ratio,
                risk_score=risk_score,
                total_tickets=total_tickets,
                status=VaultStatus.FUNDING,
                total_funded=Decimal("0"),
                total_released=Decimal("0"),
                debt_remaining=loan_amount,
                funding_deadline=funding_deadline,
                created_at=now,
            )
            self.vaults.put(vault)
            self.vault_index.link(event_id, vault.vault_id)

        logger.info(
            "vault created",
            extra={
                "vault_id": vault.vault_id,
                "event_id": event_id,
                "loan_amount": str(loan_amount),
                "yield_rate_bps": yield_rate_bps,
            },
        )
        return vault

    def record_investment(self, vault_id: str, investor_address: str, amount: Decimal) -> Investment:
        """
        Rules:
        - vault must exist and be FUNDING
        - funding deadline not yet reached
        - amount > 0 and must fit under the loan cap (no truncation)
        - reaching the cap activates the vault and releases the loan, once
        """
        amount = Decimal(str(amount))
        if amount <= 0:
            raise InvalidAmount("Investment amount must be greater than 0.", amount=str(amount))

        # unknown ids are rejected before a lock is taken for them
        self.get_vault_by_id(vault_id)

        with self.locks.hold(vault_id), self.store.transaction():
            vault = self.get_vault_by_id(vault_id)

            if vault.status != VaultStatus.FUNDING:
                raise VaultNotFunding(vault_id, VaultStatus(vault.status).value)

            now = self.clock()
            if now >= vault.funding_deadline:
                raise DeadlinePassed(
                    vault_id=vault_id, funding_deadline=vault.funding_deadline.isoformat()
                )

            remaining = vault.loan_amount - vault.total_funded
            if amount > remaining:
                raise ExceedsLoanAmount(vault_id, remaining)

            investment = Investment(
                investment_id=generate_id("INV"),
                investor_id=investor_address,
                vault_id=vault_id,
                amount=amount,
                expected_return=expected_return(amount, vault.yield_rate_bps),
                status=InvestmentStatus.ACTIVE,
                invested_at=now,
            )
            self.investments.put(investment)

            apply_contribution(vault, investor_address, amount)
            activated = activate_if_fully_funded(vault)
            self.vaults.put(vault)

        if activated:
            logger.info(
                "vault auto-disbursed",
                extra={
                    "vault_id": vault_id,
                    "status": VaultStatus.ACTIVE.value,
                    "total_released": str(vault.total_released),
                },
            )
        return investment

    # ---------------------------
    # ANALYTICS
    # ---------------------------

    def get_vault_analytics(self) -> List[VaultAnalytics]:
        """
        Per-vault funding progress and event timing. A vault whose event is
        missing still appears, with event-derived fields left empty.
        """
        now = self.clock()
        sales: List[TicketSale] = self.catalog.sales.list()
        out: List[VaultAnalytics] = []

        for vault in self.vaults.list():
            event = self.catalog.get_event_by_id(vault.event_id)
            progress = vault.total_funded / vault.loan_amount * 100

            tickets_sold: Optional[int] = None
            days_until: Optional[int] = None
            if event is not None:
                tickets_sold = sum(1 for s in sales if s.vault_id == vault.vault_id)
                if event.event_date is not None:
                    delta = (event.event_date - now).total_seconds()
                    days_until = math.ceil(delta / SECONDS_PER_DAY)

            out.append(
                VaultAnalytics(
                    vault=vault,
                    event=event,
                    funding_progress=progress,
                    tickets_sold=tickets_sold,
                    projected_roi=Decimal(vault.yield_rate_bps) / 100,
                    days_until_event=days_until,
                )
            )
        return out

    def get_investor_stats(self, investor_id: str) -> InvestorStats:
        investments = self.list_investments_by_investor(investor_id)

        total_invested = sum((i.amount for i in investments), Decimal("0"))
        active = sum(1 for i in investments if i.status == InvestmentStatus.ACTIVE)
        total_returns = sum(
            (i.actual_return for i in investments if i.actual_return), Decimal("0")
        )
        if investments:
            average_roi = sum(
                ((i.expected_return - i.amount) / i.amount * 100 for i in investments),
                Decimal("0"),
            ) / len(investments)
        else:
            average_roi = Decimal("0")

        return InvestorStats(
            total_invested=total_invested,
            active_investments=active,
            total_returns=total_returns,
            average_roi=average_roi,
            portfolio_value=total_invested + total_returns,
        )
