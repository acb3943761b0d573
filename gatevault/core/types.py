from enum import Enum


class EventStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class VaultStatus(str, Enum):
    FUNDING = "FUNDING"
    ACTIVE = "ACTIVE"
    SETTLED = "SETTLED"
    # reserved for liquidation handling; no operation transitions into it
    DEFAULTED = "DEFAULTED"


class InvestmentStatus(str, Enum):
    PENDING = "PENDING"
    FUNDED = "FUNDED"
    ACTIVE = "ACTIVE"
    PAID = "PAID"
    DEFAULTED = "DEFAULTED"


class TicketType(str, Enum):
    VIP = "VIP"
    REGULAR = "REGULAR"
    EARLY_BIRD = "EARLY_BIRD"
    STUDENT = "STUDENT"


class TicketStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    LOCKED = "LOCKED"
    OWNED = "OWNED"
    LISTED = "LISTED"
    SCANNED = "SCANNED"
    BURNED = "BURNED"


class Collection(str, Enum):
    EVENTS = "events"
    TICKETS = "tickets"
    TICKET_SALES = "ticket_sales"
    VAULTS = "vaults"
    VAULT_BY_EVENT = "vault_by_event"
    INVESTMENTS = "investments"
    TICKET_SCANS = "ticket_scans"
    ATTENDANCE_RECORDS = "attendance_records"
    ESCROW_BALANCES = "escrow_balances"
    SETTLEMENTS = "settlements"
    COUNTERS = "counters"
