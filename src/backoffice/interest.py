"""Overdue interest calculator.

A late payment pays a flat 2% fine once, plus 1% a month in interest prorated
per day over a 30-day month. Both dates are compared as calendar dates; any
time-of-day component is discarded before the comparison.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from . import log
from .constants import DAYS_PER_MONTH, DEFAULT_FEEDBACK_DURATION_MS, FIXED_FINE_RATE, MONTHLY_INTEREST_RATE
from .formatting import format_currency, format_date, format_percent
from .results import Feedback, InvalidInputError, Outcome

DateLike = Union[date, datetime, str, None]

DAILY_INTEREST_RATE = MONTHLY_INTEREST_RATE / DAYS_PER_MONTH


@dataclass(frozen=True)
class InterestInput:
    """Validated arguments for :func:`compute_interest`."""

    principal: Decimal
    due_date: date
    payment_date: date


@dataclass(frozen=True)
class OnTime:
    """Payment made on or before the due date: nothing is added."""

    principal: Decimal
    payment_date: Optional[date] = None


@dataclass(frozen=True)
class Overdue:
    """Breakdown of the charges owed on a late payment."""

    days_overdue: int
    fixed_fine: Decimal
    accrued_interest: Decimal
    total_due: Decimal
    principal: Decimal
    due_date: date
    payment_date: date
    daily_rate: Decimal = DAILY_INTEREST_RATE

    @property
    def total_charges(self) -> Decimal:
        return self.fixed_fine + self.accrued_interest


InterestResult = Union[OnTime, Overdue]


def normalize_date(value: DateLike, *, field: str) -> date:
    """Reduce ``value`` to a calendar date.

    Accepts :class:`date`, :class:`datetime` (time of day dropped) and ISO
    ``YYYY-MM-DD`` strings, optionally followed by a time part.

    Raises:
        InvalidInputError: If ``value`` is missing or cannot be parsed.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidInputError(f"The {field} is required")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            pass
        try:
            return date.fromisoformat(text[:10])
        except ValueError as exc:
            raise InvalidInputError(f"The {field} is not a valid date: {value!r}") from exc
    raise InvalidInputError(f"The {field} is not a valid date: {value!r}")


def normalize_principal(value: object) -> Decimal:
    """Validate the principal as a positive, finite decimal.

    Raises:
        InvalidInputError: If the principal is missing, not numeric or not
            greater than zero.
    """
    if value is None or isinstance(value, bool):
        raise InvalidInputError("The principal is required")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise InvalidInputError(f"The principal is not numeric: {value!r}") from exc
    if not amount.is_finite() or amount <= 0:
        raise InvalidInputError("The principal must be greater than zero")
    return amount


def build_interest_input(principal: object, due_date: DateLike, payment_date: DateLike) -> InterestInput:
    return InterestInput(
        principal=normalize_principal(principal),
        due_date=normalize_date(due_date, field="due date"),
        payment_date=normalize_date(payment_date, field="payment date"),
    )


def days_between(start: date, end: date) -> int:
    """Whole calendar days from ``start`` to ``end``.

    Dates carry no clock or zone, so the difference is already the rounded
    day count and daylight-saving shifts cannot produce fractional days.
    """
    return (end - start).days


def evaluate(request: InterestInput) -> InterestResult:
    """Compute the outcome for already validated input."""
    if request.payment_date <= request.due_date:
        return OnTime(principal=request.principal, payment_date=request.payment_date)

    days_overdue = days_between(request.due_date, request.payment_date)
    fixed_fine = request.principal * FIXED_FINE_RATE
    # multiply before dividing so exact inputs keep exact results
    accrued_interest = request.principal * MONTHLY_INTEREST_RATE * days_overdue / DAYS_PER_MONTH
    total_due = request.principal + fixed_fine + accrued_interest
    return Overdue(
        days_overdue=days_overdue,
        fixed_fine=fixed_fine,
        accrued_interest=accrued_interest,
        total_due=total_due,
        principal=request.principal,
        due_date=request.due_date,
        payment_date=request.payment_date,
    )


def describe(result: InterestResult, *, display_ms: int = DEFAULT_FEEDBACK_DURATION_MS) -> Feedback:
    """Turn an interest result into the message shown to the user."""
    if isinstance(result, OnTime):
        when = f" (payment date: {format_date(result.payment_date)})" if result.payment_date else ""
        return Feedback.success(
            f"Payment on time{when}! Amount: {format_currency(result.principal)}. "
            "No fine or interest applied.",
            display_ms=display_ms,
        )
    lines = [
        f"Overdue: {result.days_overdue} days",
        f"Due: {format_date(result.due_date)} | Payment: {format_date(result.payment_date)}",
        f"Principal: {format_currency(result.principal)}",
        f"Fixed fine (2%): {format_currency(result.fixed_fine)}",
        f"Late interest ({format_percent(result.daily_rate * 100, places=4)} a day for "
        f"{result.days_overdue} days): {format_currency(result.accrued_interest)}",
        f"Total due: {format_currency(result.total_due)}",
    ]
    return Feedback.danger("\n".join(lines), display_ms=display_ms)


def compute_interest(
    principal: object,
    due_date: DateLike,
    payment_date: DateLike,
    *,
    display_ms: int = DEFAULT_FEEDBACK_DURATION_MS,
) -> Outcome[InterestResult]:
    """Compute fine and interest for a payment made on ``payment_date``.

    Args:
        principal: Original amount owed; must be greater than zero.
        due_date: Date the payment was due.
        payment_date: Date the payment was (or will be) made.
        display_ms: Suggested display duration for the resulting feedback.

    Returns:
        Outcome[InterestResult]: :class:`OnTime` when the payment is not late,
        :class:`Overdue` otherwise, or an :class:`InvalidInputError` failure.
    """
    try:
        request = build_interest_input(principal, due_date, payment_date)
    except InvalidInputError as error:
        log.error("Interest calculation rejected: %s", error)
        return Outcome.failure(
            error,
            Feedback.danger(
                "Please fill in the principal, the due date and the payment date. "
                f"({error})",
                display_ms=display_ms,
            ),
        )

    result = evaluate(request)
    if isinstance(result, Overdue):
        log.info(
            "Computed overdue charges: %d days, fine=%s, interest=%s",
            result.days_overdue,
            result.fixed_fine,
            result.accrued_interest,
        )
    else:
        log.debug("Payment of %s is on time", request.principal)
    return Outcome.success(result, describe(result, display_ms=display_ms))


__all__ = [
    "DAILY_INTEREST_RATE",
    "InterestInput",
    "OnTime",
    "Overdue",
    "InterestResult",
    "normalize_date",
    "normalize_principal",
    "build_interest_input",
    "days_between",
    "evaluate",
    "describe",
    "compute_interest",
]
