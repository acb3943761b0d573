from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

# FORCE model registration
import gatevault.models  # noqa

from gatevault.core.config import Settings
from gatevault.core.types import EventStatus
from gatevault.db.session import make_engine, make_session_factory
from gatevault.db.store import InMemoryLedgerStore, SqlLedgerStore
from gatevault.main import create_app
from gatevault.services.ledger import Ledger


T0 = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(request):
    # services run on the in-memory store unless a test asks for
    # @pytest.mark.parametrize("store", ["memory", "sql"], indirect=True)
    if getattr(request, "param", "memory") == "memory":
        yield InMemoryLedgerStore()
        return
    engine = make_engine("sqlite+pysqlite:///:memory:")
    try:
        yield SqlLedgerStore(make_session_factory(engine))
    finally:
        engine.dispose()


@pytest.fixture
def sql_store():
    engine = make_engine("sqlite+pysqlite:///:memory:")
    try:
        yield SqlLedgerStore(make_session_factory(engine))
    finally:
        engine.dispose()


@pytest.fixture(params=["memory", "sql"])
def any_store(request):
    if request.param == "memory":
        yield InMemoryLedgerStore()
        return
    engine = make_engine("sqlite+pysqlite:///:memory:")
    try:
        yield SqlLedgerStore(make_session_factory(engine))
    finally:
        engine.dispose()


@pytest.fixture
def ledger(store, clock):
    return Ledger(store, clock=clock)


def _create_event(ledger, *, ticket_price="400", total_tickets=100, status=EventStatus.PUBLISHED, days_out=45):
    return ledger.catalog.create_event(
        organizer_id="ORG-001",
        event_name="Night Market Live",
        event_date=ledger.clock() + timedelta(days=days_out),
        ticket_price=Decimal(ticket_price),
        total_tickets=total_tickets,
        status=status,
    )


def _create_vault(ledger, event, *, loan_amount="1000", yield_rate_bps=500, deadline_days=30):
    return ledger.vaults.create_vault(
        event_id=event.event_id,
        organizer_address="0xOrganizerWallet",
        loan_amount=Decimal(loan_amount),
        yield_rate_bps=yield_rate_bps,
        ltv_ratio=Decimal("70"),
        risk_score=35,
        total_tickets=event.total_tickets,
        funding_deadline=ledger.clock() + timedelta(days=deadline_days),
    )


@pytest.fixture
def event(ledger):
    return _create_event(ledger)


@pytest.fixture
def vault(ledger, event):
    return _create_vault(ledger, event)


@pytest.fixture
def active_vault(ledger, vault):
    ledger.vaults.record_investment(vault.vault_id, "0xInvestorA", Decimal("1000"))
    return ledger.vaults.get_vault_by_id(vault.vault_id)


@pytest.fixture
def make_event(ledger):
    return lambda **kw: _create_event(ledger, **kw)


@pytest.fixture
def make_vault(ledger):
    return lambda event, **kw: _create_vault(ledger, event, **kw)


@pytest.fixture
def sell_tickets(ledger):
    """
    Mint `count` tickets for the vault's event and sell each to a fan.
    """
    def _sell(vault, count, price=None, buyer="0xFan"):
        tickets = ledger.catalog.batch_mint(vault.event_id, count, price=price)
        for i, t in enumerate(tickets):
            ledger.catalog.purchase_ticket(t.ticket_id, f"{buyer}{i}")
        return [ledger.catalog.require_ticket(t.ticket_id) for t in tickets]

    return _sell


@pytest.fixture
def client(ledger):
    app = create_app(Settings(), ledger=ledger)
    with TestClient(app) as c:
        yield c
