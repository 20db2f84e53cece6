"""Unit tests for the orchestration layer and movement-target tracking."""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from unittest.mock import Mock

import pytest

from backoffice import constants, core_logic, data_manager
from backoffice.constants import ExportFormat, MovementKind, Severity
from backoffice.interest import Overdue
from backoffice.results import NotFoundError, ValidationError
from backoffice.stock_ledger import Product, ProductEdit, StockLedger


# ---------------------------------------------------------------------------
# Runtime/context management
# ---------------------------------------------------------------------------


def test_load_runtime_context_returns_context(monkeypatch, tmp_path, settings):
    """load_runtime_context should assemble settings and seed data into a context."""

    config_path = tmp_path / "config.ini"
    parser = Mock(name="parser")
    workbook = Mock(name="workbook")

    find_config_file = Mock(return_value=config_path)
    read_config = Mock(return_value=parser)
    parse_settings = Mock(return_value=settings)
    open_workbook = Mock(return_value=workbook)
    load_sales = Mock(return_value=[])
    load_products = Mock(return_value=[Product(7, "Cable", 3)])

    monkeypatch.setattr(data_manager, "find_config_file", find_config_file)
    monkeypatch.setattr(data_manager, "read_config", read_config)
    monkeypatch.setattr(data_manager, "parse_settings", parse_settings)
    monkeypatch.setattr(data_manager, "open_workbook", open_workbook)
    monkeypatch.setattr(data_manager, "load_sales", load_sales)
    monkeypatch.setattr(data_manager, "load_products", load_products)

    context = core_logic.load_runtime_context(config_path)

    assert context.settings is settings
    assert context.sales == ()
    assert context.ledger.products() == (Product(7, "Cable", 3),)
    assert context.target.code == 7
    read_config.assert_called_once_with(config_path.resolve())
    parse_settings.assert_called_once_with(parser, base_path=config_path.resolve().parent)
    open_workbook.assert_called_once_with(settings.data_file)
    load_sales.assert_called_once_with(workbook)


def test_ensure_schema_version_rejects_mismatch(context):
    bad_settings = replace(context.settings, schema_version="0.9")
    bad_context = core_logic.build_runtime_context(bad_settings, [], [])

    with pytest.raises(RuntimeError):
        core_logic.ensure_schema_version(bad_context)


def test_ensure_schema_version_accepts_expected(context):
    core_logic.ensure_schema_version(context)


def test_context_uses_configured_feedback_duration(settings):
    quick = replace(settings, feedback_duration_ms=1200)
    context = core_logic.build_runtime_context(quick, [], [Product(1, "A", 1)])

    outcome = core_logic.record_movement(context, MovementKind.INFLOW, quantity=1)

    assert outcome.feedback.display_ms == 1200


# ---------------------------------------------------------------------------
# Commission report
# ---------------------------------------------------------------------------


def test_commission_report_is_rebuilt_from_sales(context):
    first = core_logic.commission_report(context)
    second = core_logic.commission_report(context)

    assert first == second
    assert first.rows[0].seller == "Ana Paula"
    assert first.grand_total == Decimal("169.4999")


# ---------------------------------------------------------------------------
# Movement target
# ---------------------------------------------------------------------------


def test_target_defaults_to_first_product(context):
    assert core_logic.current_target(context) == 1001


def test_target_is_none_for_empty_ledger(settings):
    context = core_logic.build_runtime_context(settings, [], [])

    assert core_logic.current_target(context) is None


def test_movement_defaults_to_target_and_configured_quantity(context):
    outcome = core_logic.record_movement(context, MovementKind.INFLOW)

    assert outcome.value.product_code == 1001
    assert outcome.value.quantity == constants.DEFAULT_MOVEMENT_QUANTITY
    assert outcome.value.description == constants.DEFAULT_MOVEMENT_DESCRIPTION
    assert outcome.value.new_quantity == 55


def test_explicit_product_becomes_target(context):
    outcome = core_logic.record_movement(context, MovementKind.OUTFLOW, quantity=8, product_code=1004)

    assert outcome.value.new_quantity == 80
    assert core_logic.current_target(context) == 1004


def test_failed_movement_keeps_target(context):
    outcome = core_logic.record_movement(context, MovementKind.OUTFLOW, quantity=500, product_code=1004)

    assert not outcome.ok
    assert core_logic.current_target(context) == 1001


def test_movement_without_products_requires_selection(settings):
    context = core_logic.build_runtime_context(settings, [], [])

    outcome = core_logic.record_movement(context, MovementKind.INFLOW, quantity=1)

    assert isinstance(outcome.error, ValidationError)
    assert outcome.feedback.severity is Severity.DANGER


def test_select_target_unknown_code(context):
    outcome = core_logic.select_target(context, 4242)

    assert isinstance(outcome.error, NotFoundError)
    assert core_logic.current_target(context) == 1001


def test_edit_retargets_when_targeted_code_changes(context):
    core_logic.select_target(context, 1002)

    outcome = core_logic.edit_product(context, 1002, ProductEdit(2002, "Monitor 34in", 5))

    assert outcome.ok
    assert core_logic.current_target(context) == 2002


def test_edit_by_textual_code_still_retargets(context):
    core_logic.select_target(context, 1003)

    outcome = core_logic.edit_product(context, "1003", ProductEdit(3003, "Teclado", 5))

    assert outcome.ok
    assert core_logic.current_target(context) == 3003


def test_edit_of_other_product_leaves_target(context):
    core_logic.edit_product(context, 1003, ProductEdit(3003, "Teclado", 5))

    assert core_logic.current_target(context) == 1001


def test_rejected_edit_leaves_target(context):
    outcome = core_logic.edit_product(context, 1001, ProductEdit(1002, "Clash", 1))

    assert not outcome.ok
    assert core_logic.current_target(context) == 1001


def test_deleting_target_falls_back_to_new_first(context):
    pending = core_logic.request_deletion(context, 1001).value

    outcome = core_logic.confirm_deletion(context, pending)

    assert outcome.ok
    assert core_logic.current_target(context) == 1002


def test_deleting_other_product_keeps_target(context):
    core_logic.select_target(context, 1003)
    pending = core_logic.request_deletion(context, 1001).value

    core_logic.confirm_deletion(context, pending)

    assert core_logic.current_target(context) == 1003


def test_deleting_only_product_clears_target(settings):
    context = core_logic.build_runtime_context(settings, [], [Product(1001, "Notebook", 45)])

    pending = core_logic.request_deletion(context, 1001).value
    core_logic.confirm_deletion(context, pending)

    assert context.ledger.is_empty
    assert core_logic.current_target(context) is None


def test_request_deletion_does_not_mutate(context):
    outcome = core_logic.request_deletion(context, 1002)

    assert "Monitor Curvo UltraWide" in outcome.value.prompt
    assert 1002 in context.ledger


def test_request_deletion_unknown_code(context):
    outcome = core_logic.request_deletion(context, 4242)

    assert isinstance(outcome.error, NotFoundError)


def test_confirm_deletion_of_already_removed_product(context):
    pending = core_logic.request_deletion(context, 1004).value
    core_logic.confirm_deletion(context, pending)

    outcome = core_logic.confirm_deletion(context, pending)

    assert isinstance(outcome.error, NotFoundError)


def test_movement_target_sync_repairs_stale_code():
    ledger = StockLedger([Product(1, "A", 1), Product(2, "B", 1)])
    target = core_logic.MovementTarget(ledger)
    ledger.delete_product(1)

    assert target.sync(ledger) == 2


# ---------------------------------------------------------------------------
# Interest and export
# ---------------------------------------------------------------------------


def test_calculate_interest_routes_to_calculator(context):
    outcome = core_logic.calculate_interest(context, "500", "2025-01-01", "2025-01-08")

    assert isinstance(outcome.value, Overdue)
    assert outcome.value.days_overdue == 7


def test_export_stock_is_simulated(context):
    outcome = core_logic.export_stock(context, ExportFormat.SPREADSHEET)

    assert outcome.ok
    assert outcome.feedback.severity is Severity.INFO
    assert "simulated" in outcome.feedback.message
    assert [product.code for product in outcome.value] == [1001, 1002, 1003, 1004]
