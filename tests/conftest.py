"""Shared pytest fixtures and utilities for the back-office tests."""

from __future__ import annotations

import argparse
import sys
import uuid
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Callable, Iterator

import pytest

# Ensure source packages are importable without installation.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"

if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from backoffice import cli, constants, core_logic, data_manager  # noqa: E402
from backoffice.commission import Sale  # noqa: E402
from backoffice.setup_excel import create_seed_workbook  # noqa: E402
from backoffice.stock_ledger import Product, StockLedger  # noqa: E402

DEFAULT_SCHEMA_VERSION = constants.EXPECTED_SCHEMA_VERSION
_CONFIG_TEMPLATE = (
    "[System]\n"
    "DataFile = {data_file}\n"
    "CompanyName = {company_name}\n"
    "SchemaVersion = {schema_version}\n\n"
    "[Defaults]\n"
    "MovementQuantity = {movement_quantity}\n"
    "MovementDescription = Ajuste Padrão\n"
    "FeedbackDurationMs = 5000\n"
)

SEED_SALES = [
    Sale("Ana Paula", Decimal("650.00")),
    Sale("Carlos Silva", Decimal("1200.00")),
    Sale("Ana Paula", Decimal("500.00")),
    Sale("Bianca Lima", Decimal("250.00")),
    Sale("Carlos Silva", Decimal("150.00")),
    Sale("Bianca Lima", Decimal("499.99")),
    Sale("David Rocha", Decimal("99.99")),
    Sale("David Rocha", Decimal("50.00")),
    Sale("Ana Paula", Decimal("800.00")),
    Sale("Carlos Silva", Decimal("300.00")),
]

SEED_PRODUCTS = [
    Product(1001, "Notebook Gamer X-Pro", 45),
    Product(1002, "Monitor Curvo UltraWide", 120),
    Product(1003, "Teclado Mecânico RGB", 210),
    Product(1004, "Mouse Sem Fio Ergonômico", 88),
]


@dataclass(frozen=True)
class ConfigBundle:
    """Container bundling together config metadata for tests."""

    directory: Path
    config_path: Path
    workbook_path: Path
    schema_version: str
    company_name: str


@pytest.fixture(scope="session", autouse=True)
def _restore_sys_path() -> Iterator[None]:
    """Ensure sys.path modifications are undone after the test session."""

    original = sys.path.copy()
    try:
        yield
    finally:
        sys.path[:] = original


@pytest.fixture
def workbook_factory(tmp_path: Path) -> Callable[..., Path]:
    """Factory that creates a seeded workbook in a temp folder."""

    def _create_workbook(
        *,
        subdir: str | None = None,
        filename: str = "seed_data.xlsx",
        **overrides,
    ) -> Path:
        base_dir = tmp_path if subdir is None else tmp_path / subdir
        base_dir.mkdir(parents=True, exist_ok=True)
        workbook_path = base_dir / filename
        create_seed_workbook(workbook_path, overwrite=True, **overrides)
        return workbook_path

    return _create_workbook


@pytest.fixture
def seed_workbook_path(workbook_factory: Callable[..., Path]) -> Path:
    """Return a fresh seed workbook ready for use in a test."""

    return workbook_factory(subdir=f"workbook_{uuid.uuid4().hex}")


@pytest.fixture
def config_factory(tmp_path: Path, workbook_factory: Callable[..., Path]) -> Callable[..., ConfigBundle]:
    """Provide a callable that creates config/workbook bundles on demand."""

    def _create_config(
        *,
        make_relative: bool = False,
        company_name: str = "Test Company",
        schema_version: str = DEFAULT_SCHEMA_VERSION,
        movement_quantity: int = 10,
        **workbook_overrides,
    ) -> ConfigBundle:
        bundle_dir = tmp_path / f"bundle_{uuid.uuid4().hex}"
        workbook_path = workbook_factory(subdir=bundle_dir.name, **workbook_overrides)
        data_file_entry = workbook_path.name if make_relative else str(workbook_path)
        config_path = bundle_dir / "config.ini"
        config_path.write_text(
            _CONFIG_TEMPLATE.format(
                data_file=data_file_entry,
                company_name=company_name,
                schema_version=schema_version,
                movement_quantity=movement_quantity,
            ),
            encoding="utf-8",
        )
        return ConfigBundle(
            directory=bundle_dir,
            config_path=config_path,
            workbook_path=workbook_path,
            schema_version=schema_version,
            company_name=company_name,
        )

    return _create_config


@pytest.fixture
def config_file(config_factory: Callable[..., ConfigBundle]) -> Path:
    """Convenience fixture returning only the config path."""

    return config_factory().config_path


@pytest.fixture
def runtime_context(config_file: Path) -> core_logic.RuntimeContext:
    """Load the runtime context for tests through the public API."""

    context = core_logic.load_runtime_context(config_file)
    core_logic.ensure_schema_version(context)
    return context


@pytest.fixture
def settings(tmp_path: Path) -> data_manager.ConfigSettings:
    """Provide default configuration settings for in-memory contexts."""

    return data_manager.ConfigSettings(
        data_file=tmp_path / "seed_data.xlsx",
        company_name="Test Company",
        schema_version=constants.EXPECTED_SCHEMA_VERSION,
    )


@pytest.fixture
def context(settings: data_manager.ConfigSettings) -> core_logic.RuntimeContext:
    """Assemble an in-memory context from the demonstration data."""

    return core_logic.build_runtime_context(settings, SEED_SALES, SEED_PRODUCTS)


@pytest.fixture
def seed_sales() -> list[Sale]:
    return list(SEED_SALES)


@pytest.fixture
def ledger() -> StockLedger:
    """Ledger seeded with the four demonstration products."""

    return StockLedger(SEED_PRODUCTS)


# ---------------------------------------------------------------------------
# CLI layer fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_parser() -> argparse.ArgumentParser:
    """Return a fresh CLI parser instance for tests."""

    return argparse.ArgumentParser(prog="backoffice-cli", description="Back-office CLI")


@pytest.fixture
def subparsers_action(
    cli_parser: argparse.ArgumentParser,
) -> argparse._SubParsersAction[argparse.ArgumentParser]:
    """Return the subparser action used to register commands."""

    return cli_parser.add_subparsers(dest="command")


@pytest.fixture
def command_spec_iterable() -> list[cli.CommandSpec]:
    """Provide a list of command specs for indexing tests."""

    def _make_spec(name: str) -> cli.CommandSpec:
        return cli.CommandSpec(
            name,
            f"{name} help",
            lambda subparsers: subparsers.add_parser(name),
            lambda *_: 0,
        )

    return [_make_spec("alpha"), _make_spec("beta"), _make_spec("gamma")]
