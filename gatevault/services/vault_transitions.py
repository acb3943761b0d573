# gatevault/services/vault_transitions.py
"""
Pure state transitions on a Vault record.

Functions mutate the given model in place and never touch the store; the
calling service persists the result inside its transaction.
"""
from __future__ import annotations

from decimal import Decimal

from gatevault.core.errors import InvalidState
from gatevault.core.types import VaultStatus
from gatevault.core.vault_state_graph import can_transition_vault
from gatevault.schemas.records import Vault
from gatevault.services.settlement_compute import saturating_sub


def transition(vault: Vault, target: VaultStatus) -> Vault:
    current = VaultStatus(vault.status)
    if not can_transition_vault(current, target):
        raise InvalidState(
            f"Vault {vault.vault_id} cannot move from {current.value} to {target.value}.",
            vault_id=vault.vault_id,
            status=current.value,
            target=target.value,
        )
    vault.status = target
    return vault


def apply_contribution(vault: Vault, investor_address: str, amount: Decimal) -> Vault:
    if investor_address not in vault.investors:
        vault.investors.append(investor_address)
    prior = vault.investor_contributions.get(investor_address, Decimal("0"))
    vault.investor_contributions[investor_address] = prior + amount
    vault.total_funded = vault.total_funded + amount
    return vault


def activate_if_fully_funded(vault: Vault) -> bool:
    """
    FUNDING -> ACTIVE once the loan is covered; releases the full loan.

    Returns True only on the call that performs the transition, so a vault
    is disbursed at most once however often this is invoked.
    """
    if vault.status != VaultStatus.FUNDING:
        return False
    if vault.total_funded < vault.loan_amount:
        return False
    transition(vault, VaultStatus.ACTIVE)
    vault.total_released = vault.loan_amount
    return True


def amortize(vault: Vault, amount: Decimal) -> Decimal:
    """
    Reduce outstanding debt by `amount`, floored at zero.
    Returns the debt actually retired.
    """
    before = vault.debt_remaining
    vault.debt_remaining = saturating_sub(before, amount)
    return before - vault.debt_remaining


def settle(vault: Vault) -> Vault:
    # settlement forgives whatever debt the gate scans left outstanding
    transition(vault, VaultStatus.SETTLED)
    vault.debt_remaining = Decimal("0")
    return vault
