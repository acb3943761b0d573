import threading
from datetime import timedelta
from decimal import Decimal

import pytest

from gatevault.core.errors import (
    DeadlinePassed,
    EventNotFound,
    EventNotOpen,
    ExceedsLoanAmount,
    InvalidAmount,
    InvalidState,
    InvariantViolation,
    LedgerError,
    VaultAlreadyExists,
    VaultNotFound,
    VaultNotFunding,
)
from gatevault.core.types import Collection, EventStatus, InvestmentStatus, VaultStatus


def _contribution_sum(vault):
    return sum(vault.investor_contributions.values(), Decimal("0"))


# ---------------------------
# create_vault
# ---------------------------

def test_create_vault_starts_funding_with_full_debt(ledger, event):
    vault = ledger.vaults.create_vault(
        event_id=event.event_id,
        organizer_address="0xOrganizerWallet",
        loan_amount=Decimal("5000"),
        yield_rate_bps=800,
        ltv_ratio=Decimal("65.5"),
        risk_score=42,
        total_tickets=100,
        funding_deadline=ledger.clock() + timedelta(days=30),
    )

    assert vault.status == VaultStatus.FUNDING
    assert vault.total_funded == 0
    assert vault.total_released == 0
    assert vault.debt_remaining == Decimal("5000")
    assert vault.investors == []
    assert vault.investor_contributions == {}

    stored = ledger.vaults.get_vault_by_id(vault.vault_id)
    assert stored.model_dump() == vault.model_dump()
    assert ledger.vaults.get_vault_for_event(event.event_id).vault_id == vault.vault_id


def test_create_vault_rejects_non_positive_loan(ledger, event, make_vault):
    with pytest.raises(InvalidAmount):
        make_vault(event, loan_amount="0")
    with pytest.raises(InvalidAmount):
        make_vault(event, loan_amount="-10")


def test_create_vault_rejects_deadline_in_past(ledger, event, make_vault):
    with pytest.raises(DeadlinePassed):
        make_vault(event, deadline_days=-1)


@pytest.mark.parametrize(
    "field, value",
    [
        ("risk_score", 150),
        ("risk_score", -1),
        ("yield_rate_bps", -5),
        ("ltv_ratio", Decimal("-0.1")),
        ("total_tickets", -1),
    ],
)
def test_create_vault_rejects_out_of_range_terms(ledger, event, store, field, value):
    terms = dict(
        event_id=event.event_id,
        organizer_address="0xOrganizerWallet",
        loan_amount=Decimal("1000"),
        yield_rate_bps=500,
        ltv_ratio=Decimal("70"),
        risk_score=35,
        total_tickets=100,
        funding_deadline=ledger.clock() + timedelta(days=30),
    )
    terms[field] = value

    with pytest.raises(InvalidAmount) as exc:
        ledger.vaults.create_vault(**terms)
    assert isinstance(exc.value, LedgerError)
    assert store.list(Collection.VAULTS.value) == []


def test_create_vault_requires_known_event(ledger):
    with pytest.raises(EventNotFound):
        ledger.vaults.create_vault(
            event_id="EVT-MISSING",
            organizer_address="0xOrganizerWallet",
            loan_amount=Decimal("1000"),
            yield_rate_bps=500,
            ltv_ratio=Decimal("50"),
            risk_score=10,
            total_tickets=10,
            funding_deadline=ledger.clock() + timedelta(days=5),
        )


def test_create_vault_requires_draft_or_published_event(make_event, make_vault):
    cancelled = make_event(status=EventStatus.CANCELLED)
    with pytest.raises(EventNotOpen) as exc:
        make_vault(cancelled)
    assert isinstance(exc.value, InvalidState)

    draft = make_event(status=EventStatus.DRAFT)
    assert make_vault(draft).status == VaultStatus.FUNDING


def test_one_vault_per_event(event, vault, make_vault, store):
    with pytest.raises(VaultAlreadyExists):
        make_vault(event)
    assert len(store.list(Collection.VAULTS.value)) == 1


# ---------------------------
# record_investment
# ---------------------------

def test_partial_investment_tracks_contributions(ledger, vault):
    inv = ledger.vaults.record_investment(vault.vault_id, "0xInvestorA", Decimal("300"))

    assert inv.amount == Decimal("300")
    assert inv.expected_return == Decimal("315")
    assert inv.status == InvestmentStatus.ACTIVE
    assert inv.invested_at == ledger.clock()

    v = ledger.vaults.get_vault_by_id(vault.vault_id)
    assert v.status == VaultStatus.FUNDING
    assert v.total_funded == Decimal("300")
    assert v.total_released == 0
    assert v.investors == ["0xInvestorA"]
    assert v.investor_contributions == {"0xInvestorA": Decimal("300")}


def test_repeat_investor_listed_once_and_sum_matches_total(ledger, vault):
    ledger.vaults.record_investment(vault.vault_id, "0xInvestorA", Decimal("100"))
    ledger.vaults.record_investment(vault.vault_id, "0xInvestorB", Decimal("250"))
    ledger.vaults.record_investment(vault.vault_id, "0xInvestorA", Decimal("150"))

    v = ledger.vaults.get_vault_by_id(vault.vault_id)
    assert v.investors == ["0xInvestorA", "0xInvestorB"]
    assert v.investor_contributions["0xInvestorA"] == Decimal("250")
    assert _contribution_sum(v) == v.total_funded == Decimal("500")
    assert len(ledger.vaults.list_investments_by_vault(vault.vault_id)) == 3


def test_over_funding_rejected_without_side_effects(ledger, vault, store):
    ledger.vaults.record_investment(vault.vault_id, "0xInvestorA", Decimal("900"))

    with pytest.raises(ExceedsLoanAmount) as exc:
        ledger.vaults.record_investment(vault.vault_id, "0xInvestorB", Decimal("101"))
    assert isinstance(exc.value, InvariantViolation)

    v = ledger.vaults.get_vault_by_id(vault.vault_id)
    assert v.total_funded == Decimal("900")
    assert "0xInvestorB" not in v.investors
    assert len(store.list(Collection.INVESTMENTS.value)) == 1


def test_auto_activation_exactly_once(ledger, vault):
    ledger.vaults.record_investment(vault.vault_id, "0xInvestorA", Decimal("999"))
    ledger.vaults.record_investment(vault.vault_id, "0xInvestorB", Decimal("1"))

    v = ledger.vaults.get_vault_by_id(vault.vault_id)
    assert v.status == VaultStatus.ACTIVE
    assert v.total_released == Decimal("1000")
    assert v.total_funded == v.loan_amount

    with pytest.raises(VaultNotFunding) as exc:
        ledger.vaults.record_investment(vault.vault_id, "0xInvestorC", Decimal("1"))
    assert isinstance(exc.value, InvalidState)

    after = ledger.vaults.get_vault_by_id(vault.vault_id)
    assert after.total_funded == Decimal("1000")
    assert after.total_released == Decimal("1000")


def test_investment_after_deadline_rejected(ledger, clock, vault):
    clock.advance(days=30)
    with pytest.raises(DeadlinePassed):
        ledger.vaults.record_investment(vault.vault_id, "0xInvestorA", Decimal("10"))


@pytest.mark.parametrize("amount", ["0", "-5"])
def test_investment_amount_must_be_positive(ledger, vault, amount):
    with pytest.raises(InvalidAmount):
        ledger.vaults.record_investment(vault.vault_id, "0xInvestorA", Decimal(amount))


def test_investment_into_unknown_vault(ledger):
    with pytest.raises(VaultNotFound):
        ledger.vaults.record_investment("VLT-NOPE", "0xInvestorA", Decimal("10"))


def test_concurrent_investments_never_exceed_cap(ledger, vault):
    results = []
    lock = threading.Lock()

    def invest(i):
        try:
            ledger.vaults.record_investment(vault.vault_id, f"0xInvestor{i}", Decimal("100"))
            outcome = "ok"
        except LedgerError as e:
            outcome = e.code
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=invest, args=(i,)) for i in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    v = ledger.vaults.get_vault_by_id(vault.vault_id)
    assert results.count("ok") == 10
    assert v.total_funded == Decimal("1000")
    assert _contribution_sum(v) == v.total_funded
    assert v.status == VaultStatus.ACTIVE
    assert len(ledger.vaults.list_investments_by_vault(vault.vault_id)) == 10


# ---------------------------
# reads / analytics
# ---------------------------

def test_list_vaults_by_status(ledger, make_event, make_vault):
    funding = make_vault(make_event())
    active = make_vault(make_event())
    ledger.vaults.record_investment(active.vault_id, "0xInvestorA", Decimal("1000"))

    assert [v.vault_id for v in ledger.vaults.list_vaults_by_status(VaultStatus.FUNDING)] == [funding.vault_id]
    assert [v.vault_id for v in ledger.vaults.list_vaults_by_status("ACTIVE")] == [active.vault_id]
    assert ledger.vaults.list_vaults_by_status(VaultStatus.SETTLED) == []


def test_get_vault_by_id_missing(ledger):
    with pytest.raises(VaultNotFound):
        ledger.vaults.get_vault_by_id("VLT-NOPE")


def test_vault_analytics(ledger, vault, sell_tickets):
    ledger.vaults.record_investment(vault.vault_id, "0xInvestorA", Decimal("500"))
    sell_tickets(vault, 2)

    [row] = ledger.vaults.get_vault_analytics()
    assert row.vault.vault_id == vault.vault_id
    assert row.event.event_id == vault.event_id
    assert row.funding_progress == Decimal("50")
    assert row.tickets_sold == 2
    assert row.projected_roi == Decimal("5")
    assert row.days_until_event == 45


def test_vault_analytics_tolerates_missing_event(ledger, vault, store):
    raw = store.get(Collection.VAULTS.value, vault.vault_id)
    raw["vault_id"] = "VLT-ORPHAN"
    raw["event_id"] = "EVT-GONE"
    store.put(Collection.VAULTS.value, "VLT-ORPHAN", raw)

    rows = {r.vault.vault_id: r for r in ledger.vaults.get_vault_analytics()}
    assert len(rows) == 2

    orphan = rows["VLT-ORPHAN"]
    assert orphan.event is None
    assert orphan.days_until_event is None
    assert orphan.tickets_sold is None
    assert orphan.funding_progress == 0

    assert rows[vault.vault_id].event is not None


def test_investor_stats(ledger, make_event, make_vault):
    v1 = make_vault(make_event(), yield_rate_bps=500)
    v2 = make_vault(make_event(), yield_rate_bps=1500)
    ledger.vaults.record_investment(v1.vault_id, "0xInvestorA", Decimal("400"))
    ledger.vaults.record_investment(v2.vault_id, "0xInvestorA", Decimal("200"))
    ledger.vaults.record_investment(v2.vault_id, "0xInvestorB", Decimal("50"))

    stats = ledger.vaults.get_investor_stats("0xInvestorA")
    assert stats.total_invested == Decimal("600")
    assert stats.active_investments == 2
    assert stats.total_returns == 0
    assert stats.average_roi == Decimal("10")
    assert stats.portfolio_value == Decimal("600")

    empty = ledger.vaults.get_investor_stats("0xNobody")
    assert empty.total_invested == 0
    assert empty.average_roi == 0


def test_unknown_vault_ids_leave_no_locks_behind(ledger):
    for i in range(50):
        with pytest.raises(VaultNotFound):
            ledger.vaults.record_investment(f"VLT-BOGUS{i}", "0xInvestorA", Decimal("10"))
        with pytest.raises(VaultNotFound):
            ledger.settlement.distribute_settlement(f"VLT-BOGUS{i}")

    assert ledger.locks._locks == {}


def test_locks_released_after_mutations(ledger, vault, sell_tickets):
    ledger.vaults.record_investment(vault.vault_id, "0xInvestorA", Decimal("1000"))
    [ticket] = sell_tickets(vault, 1)
    ledger.scanner.scan_ticket(ticket.ticket_id, "GATE-A")
    ledger.settlement.distribute_settlement(vault.vault_id)

    assert ledger.locks._locks == {}
