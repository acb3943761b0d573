from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, NamedTuple

BPS_DENOMINATOR = Decimal("10000")

# Platform fee: fixed 3% of total escrowed revenue.
PLATFORM_FEE_BPS = Decimal("300")

ZERO = Decimal("0")


def _d(x: Any) -> Decimal:
    if x is None:
        raise ValueError("Missing required numeric input.")
    try:
        return Decimal(str(x))
    except (InvalidOperation, TypeError):
        raise ValueError(f"Invalid numeric input: {x}")


def apply_bps(amount: Any, bps: Any) -> Decimal:
    """
    amount · bps / 10000
    """
    return _d(amount) * _d(bps) / BPS_DENOMINATOR


def expected_return(amount: Any, yield_rate_bps: Any) -> Decimal:
    """
    Principal plus pro-rata yield: amount + amount · yield / 10000
    """
    return _d(amount) + apply_bps(amount, yield_rate_bps)


def compute_investor_payout(loan_amount: Any, yield_rate_bps: Any) -> Decimal:
    return expected_return(loan_amount, yield_rate_bps)


def compute_platform_fee(total_revenue: Any) -> Decimal:
    return apply_bps(total_revenue, PLATFORM_FEE_BPS)


def compute_organizer_payout(total_revenue: Any, investor_payout: Any, platform_fee: Any) -> Decimal:
    """
    Residual after investors and platform; zero (not negative) on shortfall.
    """
    residual = _d(total_revenue) - _d(investor_payout) - _d(platform_fee)
    return residual if residual > ZERO else ZERO


def saturating_sub(value: Any, amount: Any) -> Decimal:
    """
    max(0, value - amount)
    """
    out = _d(value) - _d(amount)
    return out if out > ZERO else ZERO


class Distribution(NamedTuple):
    total_revenue: Decimal
    investor_payout: Decimal
    platform_fee: Decimal
    organizer_payout: Decimal


def compute_distribution(loan_amount: Any, yield_rate_bps: Any, total_revenue: Any) -> Distribution:
    """
    investor  = loan + loan · yield / 10000
    platform  = revenue · 300 / 10000
    organizer = max(0, revenue - investor - platform)
    """
    revenue = _d(total_revenue)
    investor = compute_investor_payout(loan_amount, yield_rate_bps)
    fee = compute_platform_fee(revenue)
    organizer = compute_organizer_payout(revenue, investor, fee)
    return Distribution(revenue, investor, fee, organizer)
