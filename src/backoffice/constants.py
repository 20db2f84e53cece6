"""Enumerations and business constants shared across the back-office modules.

Centralises the commission tiers, the overdue-payment rates, and the
identifiers used by the data access layer so the engines, the orchestration
layer, and the CLI rely on a single source of truth.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum


# Central schema version expected by all layers when validating seed workbooks.
EXPECTED_SCHEMA_VERSION = "1.0.0"

# Commission tiers: lower bounds are inclusive, so 100.00 and 500.00 already
# belong to the higher bracket.
MID_TIER_THRESHOLD = Decimal("100.00")
TOP_TIER_THRESHOLD = Decimal("500.00")
BASE_TIER_RATE = Decimal("0")
MID_TIER_RATE = Decimal("0.01")
TOP_TIER_RATE = Decimal("0.05")

# Overdue payments: flat 2% fine plus 1% a month prorated over 30 days.
FIXED_FINE_RATE = Decimal("0.02")
MONTHLY_INTEREST_RATE = Decimal("0.01")
DAYS_PER_MONTH = 30

DEFAULT_FEEDBACK_DURATION_MS = 5000
DEFAULT_MOVEMENT_QUANTITY = 10
DEFAULT_MOVEMENT_DESCRIPTION = "Ajuste Padrão"


class MovementKind(str, Enum):
    """Enumerate the stock movement directions accepted by the ledger."""

    INFLOW = "inflow"
    OUTFLOW = "outflow"


class Severity(str, Enum):
    """Enumerate the feedback severities understood by the presentation layer."""

    SUCCESS = "success"
    DANGER = "danger"
    INFO = "info"


class ExportFormat(str, Enum):
    """Enumerate the simulated export targets for the stock table."""

    SPREADSHEET = "spreadsheet"
    DOCUMENT = "document"


class SheetName(str, Enum):
    """Enumerate the seed workbook sheet names managed by the DAL."""

    SALES = "Sales"
    PRODUCTS = "Products"


__all__ = [
    "EXPECTED_SCHEMA_VERSION",
    "MID_TIER_THRESHOLD",
    "TOP_TIER_THRESHOLD",
    "BASE_TIER_RATE",
    "MID_TIER_RATE",
    "TOP_TIER_RATE",
    "FIXED_FINE_RATE",
    "MONTHLY_INTEREST_RATE",
    "DAYS_PER_MONTH",
    "DEFAULT_FEEDBACK_DURATION_MS",
    "DEFAULT_MOVEMENT_QUANTITY",
    "DEFAULT_MOVEMENT_DESCRIPTION",
    "MovementKind",
    "Severity",
    "ExportFormat",
    "SheetName",
]
