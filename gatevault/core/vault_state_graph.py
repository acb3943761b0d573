# gatevault/core/vault_state_graph.py
from gatevault.core.types import VaultStatus, TicketStatus

ALLOWED_VAULT_TRANSITIONS = {
    VaultStatus.FUNDING: {
        VaultStatus.ACTIVE,
    },

    VaultStatus.ACTIVE: {
        VaultStatus.SETTLED,
    },

    VaultStatus.SETTLED: set(),

    VaultStatus.DEFAULTED: set(),
}

# AVAILABLE -> OWNED is the catalog purchase; OWNED -> BURNED is the gate scan.
ALLOWED_TICKET_TRANSITIONS = {
    TicketStatus.AVAILABLE: {TicketStatus.OWNED},
    TicketStatus.OWNED: {TicketStatus.BURNED},
    TicketStatus.LOCKED: set(),
    TicketStatus.LISTED: set(),
    TicketStatus.SCANNED: set(),
    TicketStatus.BURNED: set(),
}


def can_transition_vault(current: VaultStatus, target: VaultStatus) -> bool:
    return target in ALLOWED_VAULT_TRANSITIONS.get(current, set())


def can_transition_ticket(current: TicketStatus, target: TicketStatus) -> bool:
    return target in ALLOWED_TICKET_TRANSITIONS.get(current, set())
