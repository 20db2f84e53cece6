"""Commission engine: tiered per-sale commissions and per-seller reports.

Everything here is a pure function of the sales sequence. Reports are rebuilt
from scratch on every call so there is never any stale accumulation carried
between invocations.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, Iterable, List, Mapping, Sequence, Union

from . import log
from .constants import (
    BASE_TIER_RATE,
    MID_TIER_RATE,
    MID_TIER_THRESHOLD,
    TOP_TIER_RATE,
    TOP_TIER_THRESHOLD,
)

HUNDRED = Decimal("100")
PERCENT_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class Sale:
    """A single sale attributed to a seller."""

    seller: str
    amount: Decimal

    @classmethod
    def from_raw(cls, seller: object, amount: object) -> "Sale":
        """Build a sale from loosely typed input such as worksheet cells.

        Raises:
            ValueError: If ``seller`` is blank or ``amount`` is not numeric.
        """
        name = str(seller).strip() if seller is not None else ""
        if not name:
            raise ValueError("Sale seller must not be blank")
        try:
            value = Decimal(str(amount))
        except (InvalidOperation, ValueError) as exc:
            raise ValueError(f"Sale amount is not numeric: {amount!r}") from exc
        if not value.is_finite():
            raise ValueError(f"Sale amount is not numeric: {amount!r}")
        return cls(seller=name, amount=value)


@dataclass(frozen=True)
class CommissionReportRow:
    """One line of the commission report."""

    seller: str
    total: Decimal
    share_percent: Decimal


@dataclass(frozen=True)
class CommissionReport:
    """Commission rows sorted by total plus the grand total line."""

    rows: List[CommissionReportRow]
    grand_total: Decimal
    grand_share_percent: Decimal


def _as_decimal(amount: object) -> Decimal:
    """Read ``amount`` as a Decimal; unreadable or non-finite values count as zero."""
    if isinstance(amount, bool):
        return Decimal("0")
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        log.warning("Unreadable sale amount %r counted as zero", amount)
        return Decimal("0")
    if not value.is_finite():
        log.warning("Non-finite sale amount %r counted as zero", amount)
        return Decimal("0")
    return value


def commission_rate(amount: Union[Decimal, int, float, str]) -> Decimal:
    """Return the tier rate that applies to a single sale amount."""
    value = _as_decimal(amount)
    if value < MID_TIER_THRESHOLD:
        return BASE_TIER_RATE
    if value < TOP_TIER_THRESHOLD:
        return MID_TIER_RATE
    return TOP_TIER_RATE


def calculate_commission(amount: Union[Decimal, int, float, str]) -> Decimal:
    """Compute the commission earned on a single sale.

    Amounts below 100 earn nothing, amounts from 100 up to (excluding) 500
    earn 1%, and amounts of 500 or more earn 5%. Negative, non-numeric and
    non-finite amounts fall into the lowest tier and therefore earn zero.

    Args:
        amount: Sale value. Floats are converted through ``str`` so that
            ``499.99`` behaves as the decimal literal rather than its binary
            approximation.

    Returns:
        Decimal: Commission for the sale.
    """
    value = _as_decimal(amount)
    rate = commission_rate(value)
    if rate == BASE_TIER_RATE:
        return Decimal("0")
    return value * rate


def aggregate_commissions(sales: Iterable[Sale]) -> Dict[str, Decimal]:
    """Sum per-sale commissions into a seller -> total mapping.

    Sellers without any sale never appear in the result. Sellers whose sales
    all fall in the lowest tier appear with a zero total.
    """
    totals: Dict[str, Decimal] = {}
    count = 0
    for sale in sales:
        totals[sale.seller] = totals.get(sale.seller, Decimal("0")) + calculate_commission(sale.amount)
        count += 1
    log.debug("Aggregated commissions for %d sellers from %d sales", len(totals), count)
    return totals


def total_commission(totals: Mapping[str, Decimal]) -> Decimal:
    return sum(totals.values(), Decimal("0"))


def commission_share(totals: Mapping[str, Decimal], seller: str) -> Decimal:
    """Return the seller's fraction of the overall commission (0 when none)."""
    overall = total_commission(totals)
    if overall == 0:
        return Decimal("0")
    return totals.get(seller, Decimal("0")) / overall


def rank_sellers(totals: Mapping[str, Decimal]) -> List[str]:
    """Sellers ordered by descending total; ties keep their first-seen order."""
    return sorted(totals, key=lambda seller: totals[seller], reverse=True)


def build_commission_report(sales: Sequence[Sale]) -> CommissionReport:
    """Aggregate ``sales`` into the sorted report consumed by the front-end.

    Share percentages are rounded half-up to two decimal places. The grand
    total row reports 100% whenever any commission was earned and 0%
    otherwise.
    """
    totals = aggregate_commissions(sales)
    overall = total_commission(totals)
    rows = []
    for seller in rank_sellers(totals):
        share = commission_share(totals, seller) * HUNDRED
        rows.append(
            CommissionReportRow(
                seller=seller,
                total=totals[seller],
                share_percent=share.quantize(PERCENT_PLACES, rounding=ROUND_HALF_UP),
            )
        )
    grand_share = HUNDRED if overall > 0 else Decimal("0")
    return CommissionReport(
        rows=rows,
        grand_total=overall,
        grand_share_percent=grand_share.quantize(PERCENT_PLACES),
    )


__all__ = [
    "Sale",
    "CommissionReportRow",
    "CommissionReport",
    "commission_rate",
    "calculate_commission",
    "aggregate_commissions",
    "total_commission",
    "commission_share",
    "rank_sellers",
    "build_commission_report",
]
