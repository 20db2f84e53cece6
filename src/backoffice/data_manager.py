"""Data access layer for the back-office calculators.

This module provides low-level helpers that locate the configuration and read
the seed workbook. Business rules belong to the engines.

The public API is designed around three responsibilities:

1. Configuration handling: finding and parsing ``config.ini``.
2. Workbook lifecycle: opening and saving the seed Excel file.
3. Sheet operations: loading structured sale and product records.
"""


from __future__ import annotations

import configparser
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from openpyxl.workbook import Workbook
import openpyxl

from . import log
from .commission import Sale
from .constants import (
    DEFAULT_FEEDBACK_DURATION_MS,
    DEFAULT_MOVEMENT_DESCRIPTION,
    DEFAULT_MOVEMENT_QUANTITY,
    SheetName,
)
from .stock_ledger import Product


CONFIG_FILE_NAME = "config.ini"
SALES_SHEET = SheetName.SALES.value
PRODUCTS_SHEET = SheetName.PRODUCTS.value

SHEET_COLUMNS = {
    SALES_SHEET: ("Seller", "Amount"),
    PRODUCTS_SHEET: ("ProductCode", "Description", "Quantity"),
}


@dataclass(frozen=True)
class ConfigSettings:
    """Typed representation of the ``config.ini`` settings we care about."""

    data_file: Path
    company_name: str
    schema_version: str
    movement_quantity: int = DEFAULT_MOVEMENT_QUANTITY
    movement_description: str = DEFAULT_MOVEMENT_DESCRIPTION
    feedback_duration_ms: int = DEFAULT_FEEDBACK_DURATION_MS


def find_config_file(explicit_path: Optional[Path] = None) -> Path:
    """Locate the configuration file.

    An explicit path is returned untouched. Otherwise the search walks up from
    the current working directory and the first ``config.ini`` found wins.

    Raises:
        FileNotFoundError: If no parent directory holds ``CONFIG_FILE_NAME``.
    """

    if explicit_path:
        return explicit_path

    current = Path.cwd()
    for p in (current, *current.parents):
        candidate = p / CONFIG_FILE_NAME
        if candidate.exists():
            return candidate

    raise FileNotFoundError(
        f"Configuration file not found: {CONFIG_FILE_NAME}")


def read_config(config_path: Path) -> configparser.ConfigParser:
    """Load ``config.ini`` and return a populated ``ConfigParser`` instance.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist after expansion and
            resolution.
    """

    config_path = Path(config_path).expanduser().resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    parser = configparser.ConfigParser()
    parser.read(config_path, encoding="utf-8")
    return parser


def parse_settings(parser: configparser.ConfigParser, *, base_path: Optional[Path] = None) -> ConfigSettings:
    """Convert a ``ConfigParser`` into strongly typed :class:`ConfigSettings`.

    ``[System]`` entries are mandatory. ``[Defaults]`` entries are optional and
    fall back to the built-in defaults. Relative ``DataFile`` paths are anchored
    to ``base_path`` (or the working directory) and resolved.

    Args:
        parser (configparser.ConfigParser): Parsed configuration data.
        base_path (Path | None): Directory used to anchor a relative
            ``DataFile`` entry.

    Returns:
        ConfigSettings: Immutable settings container.

    Raises:
        KeyError: If a required section or option is missing.
        ValueError: If a numeric default cannot be parsed.
    """

    try:
        data_file_raw = parser.get("System", "DataFile")
        company_name = parser.get("System", "CompanyName")
        schema_version = parser.get("System", "SchemaVersion")
    except (configparser.NoSectionError, configparser.NoOptionError) as exc:
        raise KeyError(f"Missing required configuration entry: {exc}") from exc

    movement_quantity = parser.getint("Defaults", "MovementQuantity", fallback=DEFAULT_MOVEMENT_QUANTITY)
    movement_description = parser.get("Defaults", "MovementDescription", fallback=DEFAULT_MOVEMENT_DESCRIPTION)
    feedback_duration_ms = parser.getint("Defaults", "FeedbackDurationMs", fallback=DEFAULT_FEEDBACK_DURATION_MS)

    data_file_path = Path(data_file_raw)
    if not data_file_path.is_absolute():
        if base_path is None:
            base_path = Path.cwd()
        data_file_path = (base_path / data_file_path).resolve()

    return ConfigSettings(
        data_file=data_file_path,
        company_name=company_name,
        schema_version=schema_version,
        movement_quantity=movement_quantity,
        movement_description=movement_description,
        feedback_duration_ms=feedback_duration_ms,
    )


def open_workbook(data_file: Path) -> Workbook:
    """Open the seed workbook and return a live ``openpyxl`` workbook.

    Raises:
        FileNotFoundError: If ``data_file`` does not exist after expansion and
            resolution.
    """

    data_file = Path(data_file).expanduser().resolve()
    if not data_file.exists():
        raise FileNotFoundError(f"Workbook not found: {data_file}")

    wb = openpyxl.load_workbook(data_file)
    return wb


def save_workbook(workbook: Workbook, destination: Path) -> None:
    """Persist the workbook at ``destination``, creating parent folders."""

    dest = Path(destination).expanduser().resolve()
    dest.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(dest)


def _require_sheet(workbook: Workbook, sheet_name: str):
    if sheet_name not in workbook.sheetnames:
        raise KeyError(f"Workbook is missing the '{sheet_name}' sheet")
    return workbook[sheet_name]


def iter_sales(workbook: Workbook) -> Iterable[Sale]:
    """Iterate over sale records stored on the ``Sales`` worksheet.

    The header row and fully empty rows are skipped.

    Yields:
        Sale: One structured sale per populated row, in sheet order.
    """

    sheet = _require_sheet(workbook, SALES_SHEET)
    for raw in sheet.iter_rows(min_row=2, values_only=True):
        # skip fully empty rows
        if any(cell is not None for cell in raw):
            yield deserialize_sale(raw)


def iter_products(workbook: Workbook) -> Iterable[Product]:
    """Iterate over the ``Products`` worksheet and yield typed records."""

    sheet = _require_sheet(workbook, PRODUCTS_SHEET)
    for raw in sheet.iter_rows(min_row=2, values_only=True):
        if any(cell is not None for cell in raw):
            yield deserialize_product(raw)


def load_sales(workbook: Workbook) -> List[Sale]:
    sales = list(iter_sales(workbook))
    log.debug("Loaded %d sales from seed workbook", len(sales))
    return sales


def load_products(workbook: Workbook) -> List[Product]:
    products = list(iter_products(workbook))
    log.debug("Loaded %d products from seed workbook", len(products))
    return products


def deserialize_sale(raw_row: Sequence[object]) -> Sale:
    """Convert a raw worksheet row into a :class:`Sale`.

    Numeric cells are routed through ``str`` so a float such as ``499.99``
    becomes ``Decimal("499.99")``.

    Raises:
        ValueError: If the seller is blank or the amount is not numeric.
    """

    seller = raw_row[0] if len(raw_row) > 0 else None
    amount = raw_row[1] if len(raw_row) > 1 else None
    return Sale.from_raw(seller, amount)


def deserialize_product(raw_row: Sequence[object]) -> Product:
    """Convert a raw worksheet row into a :class:`Product`.

    Codes and quantities stored as floats by Excel (``1001.0``) are accepted
    when integral. Range checks are left to the ledger.

    Raises:
        ValueError: If the code or quantity is missing or not an integer.
    """

    code_raw = raw_row[0] if len(raw_row) > 0 else None
    description = raw_row[1] if len(raw_row) > 1 else None
    quantity_raw = raw_row[2] if len(raw_row) > 2 else None

    return Product(
        code=_cell_to_int(code_raw, column="ProductCode"),
        description="" if description is None else str(description),
        quantity=_cell_to_int(quantity_raw, column="Quantity"),
    )


def _cell_to_int(value: object, *, column: str) -> int:
    if value is None or isinstance(value, bool):
        raise ValueError(f"Missing {column} value")
    if isinstance(value, int):
        return value
    try:
        number = float(str(value).strip())
    except ValueError as exc:
        raise ValueError(f"{column} is not numeric: {value!r}") from exc
    if not number.is_integer():
        raise ValueError(f"{column} is not an integer: {value!r}")
    return int(number)
