from decimal import Decimal

import pytest

from gatevault.core.errors import AlreadyProcessed, AlreadySettled, VaultNotActive, VaultNotFound
from gatevault.core.types import VaultStatus


def test_end_to_end_financing_cycle(ledger, vault, sell_tickets):
    ledger.vaults.record_investment(vault.vault_id, "0xInvestorA", Decimal("1000"))
    v = ledger.vaults.get_vault_by_id(vault.vault_id)
    assert v.status == VaultStatus.ACTIVE
    assert v.total_released == Decimal("1000")

    tickets = sell_tickets(vault, 3)
    assert ledger.escrow.get_balance(vault.vault_id).balance == Decimal("1200")

    for t in tickets:
        ledger.scanner.scan_ticket(t.ticket_id, "GATE-MAIN")
    assert ledger.vaults.get_vault_by_id(vault.vault_id).debt_remaining == 0

    s = ledger.settlement.distribute_settlement(vault.vault_id)
    assert s.total_revenue == Decimal("1200")
    assert s.investor_payout == Decimal("1050")
    assert s.platform_fee == Decimal("36")
    assert s.organizer_payout == Decimal("114")
    assert s.distributed_at == ledger.clock()

    escrow = ledger.escrow.get_balance(vault.vault_id)
    assert escrow.balance == 0
    assert escrow.is_settled is True
    assert ledger.vaults.get_vault_by_id(vault.vault_id).status == VaultStatus.SETTLED


def test_settlement_forgives_residual_debt(ledger, active_vault, sell_tickets):
    sell_tickets(active_vault, 1)
    ledger.settlement.distribute_settlement(active_vault.vault_id)

    v = ledger.vaults.get_vault_by_id(active_vault.vault_id)
    assert v.debt_remaining == 0


def test_shortfall_zeroes_organizer(ledger, active_vault, sell_tickets):
    sell_tickets(active_vault, 2)
    s = ledger.settlement.distribute_settlement(active_vault.vault_id)
    assert s.total_revenue == Decimal("800")
    assert s.investor_payout == Decimal("1050")
    assert s.organizer_payout == 0


def test_settlement_is_one_shot(ledger, active_vault, sell_tickets):
    sell_tickets(active_vault, 3)
    ledger.settlement.distribute_settlement(active_vault.vault_id)

    with pytest.raises((AlreadyProcessed, VaultNotActive)):
        ledger.settlement.distribute_settlement(active_vault.vault_id)
    assert len(ledger.settlement.list_settlements()) == 1


def test_settlement_requires_active_vault(ledger, vault, sell_tickets):
    sell_tickets(vault, 1)
    with pytest.raises(VaultNotActive):
        ledger.settlement.distribute_settlement(vault.vault_id)
    assert ledger.escrow.get_balance(vault.vault_id).balance == Decimal("400")


def test_settlement_requires_escrow(ledger, active_vault):
    with pytest.raises(AlreadySettled):
        ledger.settlement.distribute_settlement(active_vault.vault_id)
    assert ledger.vaults.get_vault_by_id(active_vault.vault_id).status == VaultStatus.ACTIVE


def test_settlement_unknown_vault(ledger):
    with pytest.raises(VaultNotFound):
        ledger.settlement.distribute_settlement("VLT-NOPE")


@pytest.mark.parametrize("store", ["memory", "sql"], indirect=True)
def test_failed_settlement_leaves_no_partial_effects(ledger, active_vault, sell_tickets, monkeypatch):
    sell_tickets(active_vault, 3)

    def boom(record):
        raise RuntimeError("settlement log unavailable")

    monkeypatch.setattr(ledger.settlement.settlements, "put", boom)
    with pytest.raises(RuntimeError):
        ledger.settlement.distribute_settlement(active_vault.vault_id)

    escrow = ledger.escrow.get_balance(active_vault.vault_id)
    assert escrow.balance == Decimal("1200")
    assert escrow.is_settled is False
    assert ledger.vaults.get_vault_by_id(active_vault.vault_id).status == VaultStatus.ACTIVE
    assert ledger.settlement.get_settlement(active_vault.vault_id) is None


def test_get_and_list_settlements(ledger, make_event, make_vault, sell_tickets):
    settled = []
    for _ in range(2):
        v = make_vault(make_event())
        ledger.vaults.record_investment(v.vault_id, "0xInvestorA", Decimal("1000"))
        sell_tickets(v, 3)
        settled.append(ledger.settlement.distribute_settlement(v.vault_id))

    assert ledger.settlement.get_settlement(settled[0].vault_id).model_dump() == settled[0].model_dump()
    assert {s.vault_id for s in ledger.settlement.list_settlements()} == {s.vault_id for s in settled}
    assert ledger.settlement.get_settlement("VLT-NOPE") is None
