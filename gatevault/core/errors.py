# gatevault/core/errors.py
from __future__ import annotations

from typing import Any, Dict, Optional


class LedgerError(Exception):
    """
    Base class for every business-rule rejection raised by the ledger core.

    `kind` groups errors into the four families callers branch on;
    `code` is stable per concrete error and safe to show to clients.
    """

    kind: str = "LedgerError"
    code: str = "LEDGER_ERROR"
    http_status: int = 400

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context

    def to_dict(self) -> Dict[str, Any]:
        return {
            "detail": self.message,
            "code": self.code,
            "kind": self.kind,
        }


# ─────────────────────────────────────────────
# Families
# ─────────────────────────────────────────────

class NotFound(LedgerError):
    kind = "NotFound"
    code = "NOT_FOUND"
    http_status = 404


class InvalidState(LedgerError):
    kind = "InvalidState"
    code = "INVALID_STATE"
    http_status = 409


class InvariantViolation(LedgerError):
    kind = "InvariantViolation"
    code = "INVARIANT_VIOLATION"
    http_status = 422


class AlreadyProcessed(LedgerError):
    kind = "AlreadyProcessed"
    code = "ALREADY_PROCESSED"
    http_status = 409


# ─────────────────────────────────────────────
# NotFound
# ─────────────────────────────────────────────

class VaultNotFound(NotFound):
    code = "VAULT_NOT_FOUND"

    def __init__(self, vault_id: Optional[str] = None, *, event_id: Optional[str] = None):
        if event_id is not None:
            msg = f"No vault is associated with event {event_id}."
        else:
            msg = f"Vault {vault_id} not found."
        super().__init__(msg, vault_id=vault_id, event_id=event_id)


class EventNotFound(NotFound):
    code = "EVENT_NOT_FOUND"

    def __init__(self, event_id: str):
        super().__init__(f"Event {event_id} not found.", event_id=event_id)


class TicketNotFound(NotFound):
    code = "TICKET_NOT_FOUND"

    def __init__(self, ticket_id: str):
        super().__init__(f"Ticket {ticket_id} not found.", ticket_id=ticket_id)


# ─────────────────────────────────────────────
# InvalidState
# ─────────────────────────────────────────────

class VaultNotFunding(InvalidState):
    code = "VAULT_NOT_FUNDING"

    def __init__(self, vault_id: str, status: str):
        super().__init__(
            f"Vault {vault_id} is not accepting funding (status {status}).",
            vault_id=vault_id,
            status=status,
        )


class VaultNotActive(InvalidState):
    code = "VAULT_NOT_ACTIVE"

    def __init__(self, vault_id: str, status: str):
        super().__init__(
            f"Vault {vault_id} must be ACTIVE to settle (status {status}).",
            vault_id=vault_id,
            status=status,
        )


class EventNotOpen(InvalidState):
    code = "EVENT_NOT_OPEN"

    def __init__(self, event_id: str, status: str):
        super().__init__(
            f"Event {event_id} cannot take a vault in status {status}.",
            event_id=event_id,
            status=status,
        )


class TicketNotScannable(InvalidState):
    code = "TICKET_NOT_SCANNABLE"

    def __init__(self, ticket_id: str, status: str):
        super().__init__(
            f"Ticket {ticket_id} cannot be scanned in status {status}.",
            ticket_id=ticket_id,
            status=status,
        )


class TicketNotAvailable(InvalidState):
    code = "TICKET_NOT_AVAILABLE"

    def __init__(self, ticket_id: str, status: str):
        super().__init__(
            f"Ticket {ticket_id} is not for sale (status {status}).",
            ticket_id=ticket_id,
            status=status,
        )


class AlreadyScanned(InvalidState):
    code = "ALREADY_SCANNED"

    def __init__(self, ticket_id: str):
        super().__init__(f"Ticket {ticket_id} already scanned.", ticket_id=ticket_id)


# ─────────────────────────────────────────────
# InvariantViolation
# ─────────────────────────────────────────────

class ExceedsLoanAmount(InvariantViolation):
    code = "EXCEEDS_LOAN_AMOUNT"

    def __init__(self, vault_id: str, remaining: Any):
        super().__init__(
            f"Investment exceeds remaining funding needed for vault {vault_id} "
            f"(remaining {remaining}).",
            vault_id=vault_id,
            remaining=str(remaining),
        )


class DeadlinePassed(InvariantViolation):
    code = "DEADLINE_PASSED"

    def __init__(self, message: str = "Funding deadline passed.", **context: Any):
        super().__init__(message, **context)


class InvalidAmount(InvariantViolation):
    code = "INVALID_AMOUNT"


# ─────────────────────────────────────────────
# AlreadyProcessed
# ─────────────────────────────────────────────

class AlreadySettled(AlreadyProcessed):
    code = "ALREADY_SETTLED"

    def __init__(self, vault_id: str):
        super().__init__(
            f"Escrow for vault {vault_id} already settled or not found.",
            vault_id=vault_id,
        )


class VaultAlreadyExists(AlreadyProcessed):
    code = "VAULT_ALREADY_EXISTS"

    def __init__(self, event_id: str, vault_id: str):
        super().__init__(
            f"Event {event_id} already has vault {vault_id}.",
            event_id=event_id,
            vault_id=vault_id,
        )
