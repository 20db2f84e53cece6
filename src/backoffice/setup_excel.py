"""Utility for initializing the back-office seed workbook.

The module doubles as a script (``python -m backoffice.setup_excel``) and as a
library used by tests or other tooling. The workbook it produces carries the
demonstration sales and stock data set.
"""

from __future__ import annotations

import argparse
import configparser
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Sequence, Tuple
import sys

import openpyxl
from openpyxl.styles import Font

from .constants import SheetName
from .data_manager import SHEET_COLUMNS, save_workbook

# Covers every tier, including the 500.00 and 499.99 boundaries.
DEFAULT_SALES: Sequence[Tuple[str, float]] = (
    ("Ana Paula", 650.00),
    ("Carlos Silva", 1200.00),
    ("Ana Paula", 500.00),
    ("Bianca Lima", 250.00),
    ("Carlos Silva", 150.00),
    ("Bianca Lima", 499.99),
    ("David Rocha", 99.99),
    ("David Rocha", 50.00),
    ("Ana Paula", 800.00),
    ("Carlos Silva", 300.00),
)

DEFAULT_PRODUCTS: Sequence[Tuple[int, str, int]] = (
    (1001, "Notebook Gamer X-Pro", 45),
    (1002, "Monitor Curvo UltraWide", 120),
    (1003, "Teclado Mecânico RGB", 210),
    (1004, "Mouse Sem Fio Ergonômico", 88),
)

CONFIG_FILE = "config.ini"


@dataclass(frozen=True)
class SetupSettings:
    """Type-safe representation of configuration values used during setup."""

    data_file: Path


def load_settings(config_path: Path) -> SetupSettings:
    """Read ``config.ini`` and produce :class:`SetupSettings`.

    Relative paths inside the config file are resolved against the config
    file's directory.
    """

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    parser = configparser.ConfigParser()
    parser.read(config_path, encoding="utf-8")

    try:
        data_file_raw = parser.get("System", "DataFile")
    except (configparser.NoSectionError, configparser.NoOptionError) as exc:
        raise KeyError(f"Missing required configuration entry: {exc}") from exc

    data_file_path = Path(data_file_raw)
    if not data_file_path.is_absolute():
        data_file_path = (config_path.parent / data_file_path).resolve()

    return SetupSettings(data_file=data_file_path)


def create_seed_workbook(
    destination: Path,
    *,
    sales: Sequence[Sequence[object]] = DEFAULT_SALES,
    products: Sequence[Sequence[object]] = DEFAULT_PRODUCTS,
    sheet_columns: Mapping[str, Sequence[str]] = SHEET_COLUMNS,
    overwrite: bool = False,
) -> Path:
    """Create the seed workbook at ``destination``.

    Parameters are overridable to facilitate testing. When ``overwrite`` is
    ``False`` (the default) this function raises ``FileExistsError`` if the
    target already exists.
    """

    destination = Path(destination).expanduser().resolve()
    if destination.exists() and not overwrite:
        raise FileExistsError(
            f"Refusing to overwrite existing seed workbook: {destination}"
        )

    workbook = openpyxl.Workbook()

    # Remove the default sheet openpyxl generates so we can create ours.
    if workbook.active and workbook.active.title == "Sheet":
        workbook.remove(workbook.active)

    bold_font = Font(bold=True)

    for sheet_name, columns in sheet_columns.items():
        worksheet = workbook.create_sheet(title=sheet_name)
        for column_index, column_name in enumerate(columns, start=1):
            cell = worksheet.cell(row=1, column=column_index)
            cell.value = column_name
            cell.font = bold_font

    for row in sales:
        workbook[SheetName.SALES.value].append(list(row))
    for row in products:
        workbook[SheetName.PRODUCTS.value].append(list(row))

    save_workbook(workbook, destination)
    return destination


def run_from_config(config_path: Path, *, overwrite: bool = False) -> Path:
    settings = load_settings(config_path)
    return create_seed_workbook(settings.data_file, overwrite=overwrite)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for the setup script."""

    parser = argparse.ArgumentParser(description="Initialize the back-office seed workbook")
    parser.add_argument(
        "--config",
        default=CONFIG_FILE,
        help="Path to configuration file (default: config.ini)",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite the target workbook if it already exists.",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the setup script."""

    args = parse_args(argv)
    config_path = Path(args.config).expanduser().resolve()

    print("--- Back-Office Setup Script ---")
    print(f"Using configuration: {config_path}")

    try:
        output_path = run_from_config(config_path, overwrite=args.force)
    except (FileNotFoundError, KeyError) as exc:
        print(f"\n[ERROR] {exc}")
        return 1
    except FileExistsError as exc:
        print(f"\n[ERROR] {exc}")
        print("Run with --force to overwrite the existing file if appropriate.")
        return 1
    except (PermissionError, OSError) as exc:
        print(f"\n[ERROR] Unable to write workbook: {exc}")
        return 1

    print(f"\n[SUCCESS] Created seed workbook at '{output_path}'.")
    return 0


if __name__ == "__main__":  # pragma: no cover - exercised via manual runs
    sys.exit(main())
