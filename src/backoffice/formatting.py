"""Display helpers for BRL currency, percentages, and dates."""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Union

Number = Union[Decimal, int, float, str]


def _round_half_up(value: Number, places: int) -> Decimal:
    """Round to ``places`` decimals with enough precision for any magnitude."""
    amount = Decimal(str(value))
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, amount.adjusted() + places + 2)
        return amount.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def format_currency(value: Number) -> str:
    """Render ``value`` as ``R$ 1.234,56``."""
    grouped = f"{_round_half_up(value, 2):,.2f}"
    # swap the US separators for the Brazilian ones
    localized = grouped.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"R$ {localized}"


def format_percent(value: Number, *, places: int = 2) -> str:
    """Render ``value`` (already in percent units) as ``12,34%``."""
    return f"{_round_half_up(value, places):.{places}f}".replace(".", ",") + "%"


def format_date(value: date) -> str:
    return value.strftime("%d/%m/%Y")
