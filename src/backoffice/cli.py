"""Command-line entry points for the back-office calculators.

All orchestration in this module is limited to argparse wiring, translating
command-line arguments into the requests consumed by :mod:`core_logic`, and
printing the results. Each invocation works on a freshly seeded ledger; stock
changes are not written back to the seed workbook.
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, Mapping, MutableMapping, Optional, Sequence, TextIO
import sys

from . import core_logic, log
from .constants import ExportFormat, MovementKind, Severity
from .formatting import format_currency, format_percent
from .results import BackOfficeError, Feedback, Outcome
from .stock_ledger import ProductEdit


@dataclass(frozen=True)
class CommandSpec:
    """Describe how a CLI sub-command is configured and executed."""

    name: str
    help_text: str
    register: Callable[[argparse._SubParsersAction[argparse.ArgumentParser]], argparse.ArgumentParser]
    execute: Callable[[core_logic.RuntimeContext, argparse.Namespace], int]


def build_parser() -> argparse.ArgumentParser:
    """Construct the top-level CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="backoffice-cli",
        description="Commission, stock, and overdue interest calculators for the back office.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional path to config.ini (defaults to searching upward from the working directory).",
    )
    return parser


def configure_subcommands(
    parser: argparse.ArgumentParser,
) -> Mapping[str, CommandSpec]:
    """Wire all CLI sub-commands onto the supplied parser."""
    subparsers = parser.add_subparsers(dest="command", required=True, title="commands")
    write_specs = register_write_commands(subparsers)
    read_specs = register_read_commands(subparsers)
    return build_command_table([*write_specs.values(), *read_specs.values()])


def register_write_commands(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> Dict[str, CommandSpec]:
    """Declare commands that mutate the in-memory ledger."""
    specs = {
        "move": register_move_command(subparsers),
        "edit-product": register_edit_product_command(subparsers),
        "delete-product": register_delete_product_command(subparsers),
    }
    for spec in specs.values():
        spec.register(subparsers)
    return specs


def register_read_commands(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> Dict[str, CommandSpec]:
    """Declare read-only commands such as reports and calculations."""
    specs = {
        "commissions": register_commissions_command(subparsers),
        "stock": register_stock_command(subparsers),
        "interest": register_interest_command(subparsers),
        "export": register_export_command(subparsers),
    }
    for spec in specs.values():
        spec.register(subparsers)
    return specs


def register_move_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``move``."""
    name = "move"
    help_text = "Apply a stock inflow or outflow."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--kind", choices=[member.value for member in MovementKind], required=True)
        parser.add_argument("--quantity", default=None, help="Defaults to the configured movement quantity.")
        parser.add_argument("--product-code", default=None, help="Defaults to the first product.")
        parser.add_argument("--description", default=None)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_move)


def register_edit_product_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``edit-product``."""
    name = "edit-product"
    help_text = "Replace the code, description, and stock of a product."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--original-code", type=int, required=True)
        parser.add_argument("--code", required=True)
        parser.add_argument("--description", required=True)
        parser.add_argument("--quantity", required=True)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_edit_product)


def register_delete_product_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``delete-product``."""
    name = "delete-product"
    help_text = "Delete a product (requires --yes to confirm)."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--code", type=int, required=True)
        parser.add_argument("--yes", action="store_true", help="Confirm the deletion.")
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_delete_product)


def register_commissions_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``commissions``."""
    name = "commissions"
    help_text = "Display commission totals and shares per seller."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_commissions_report)


def register_stock_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``stock``."""
    name = "stock"
    help_text = "Display current stock levels."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_stock_report)


def register_interest_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``interest``."""
    name = "interest"
    help_text = "Compute the fine and interest owed on a late payment."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--principal", required=True)
        parser.add_argument("--due-date", required=True, help="YYYY-MM-DD")
        parser.add_argument("--payment-date", required=True, help="YYYY-MM-DD")
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_interest)


def register_export_command(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> CommandSpec:
    """Register the parser and executor for ``export``."""
    name = "export"
    help_text = "Simulate exporting the stock table."

    def registrar(action: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
        parser = action.add_parser(name, help=help_text)
        parser.add_argument("--format", dest="export_format", choices=[member.value for member in ExportFormat], required=True)
        parser.set_defaults(command=name)
        return parser

    return CommandSpec(name=name, help_text=help_text, register=registrar, execute=run_export)


def load_runtime_context(config_path: Optional[Path] = None) -> core_logic.RuntimeContext:
    """Resolve the runtime context for CLI operations."""
    context = core_logic.load_runtime_context(config_path)
    core_logic.ensure_schema_version(context)
    return context


def dispatch_command(
    context: core_logic.RuntimeContext,
    args: argparse.Namespace,
    command_table: Mapping[str, CommandSpec],
) -> int:
    """Dispatch the parsed arguments to the configured executor."""
    if not hasattr(args, "command") or args.command is None:
        raise KeyError("No command specified")
    spec = command_table.get(args.command)
    if spec is None:
        raise KeyError(f"Unknown command: {args.command}")
    return spec.execute(context, args)


def build_command_table(
    specs: Iterable[CommandSpec],
) -> MutableMapping[str, CommandSpec]:
    """Build an index of command specifications keyed by command name."""
    table: Dict[str, CommandSpec] = {}
    for spec in specs:
        if spec.name in table:
            raise ValueError(f"Duplicate command name: {spec.name}")
        table[spec.name] = spec
    return table


def translate_edit_product(args: argparse.Namespace) -> ProductEdit:
    """Translate CLI args into a product edit."""
    return ProductEdit(code=args.code, description=args.description, quantity=args.quantity)


_SEVERITY_LABELS = {
    Severity.SUCCESS: "SUCCESS",
    Severity.DANGER: "ERROR",
    Severity.INFO: "INFO",
}


def render_feedback(feedback: Feedback, stream: Optional[TextIO] = None) -> None:
    out = stream or sys.stdout
    print(f"[{_SEVERITY_LABELS[feedback.severity]}] {feedback.message}", file=out)


def report_outcome(outcome: Outcome) -> int:
    """Print an outcome's feedback and map it to an exit code."""
    if outcome.feedback is not None:
        render_feedback(outcome.feedback)
    return 0 if outcome.ok else 2


def run_move(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute a stock movement via the orchestration layer."""
    outcome = core_logic.record_movement(
        context,
        args.kind,
        quantity=args.quantity,
        product_code=args.product_code,
        description=args.description,
    )
    return report_outcome(outcome)


def run_edit_product(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute a product edit via the orchestration layer."""
    outcome = core_logic.edit_product(context, args.original_code, translate_edit_product(args))
    return report_outcome(outcome)


def run_delete_product(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Request a deletion and carry it out only when ``--yes`` confirms it."""
    pending = core_logic.request_deletion(context, args.code)
    if not pending.ok:
        return report_outcome(pending)
    if not args.yes:
        print(pending.value.prompt)
        print("Re-run with --yes to confirm.")
        return 1
    return report_outcome(core_logic.confirm_deletion(context, pending.value))


def run_commissions_report(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Print the commission table sorted by total."""
    report = core_logic.commission_report(context)
    if not report.rows:
        print("No sales to report.")
        return 0
    print(f"{'Seller':<24}{'Commission':>18}{'Share':>10}")
    for row in report.rows:
        print(f"{row.seller:<24}{format_currency(row.total):>18}{format_percent(row.share_percent):>10}")
    print(
        f"{'TOTAL':<24}{format_currency(report.grand_total):>18}"
        f"{format_percent(report.grand_share_percent):>10}"
    )
    return 0


def run_stock_report(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Print the ordered stock table."""
    products = core_logic.list_products(context)
    if not products:
        print("No products registered.")
        return 0
    target = core_logic.current_target(context)
    print(f"{'Code':<8}{'Description':<32}{'Stock':>8}")
    for product in products:
        marker = " *" if product.code == target else ""
        print(f"{product.code:<8}{product.description:<32}{product.quantity:>8}{marker}")
    print(f"Next movement id: {context.ledger.next_movement_id}")
    return 0


def run_interest(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the overdue interest calculation."""
    outcome = core_logic.calculate_interest(context, args.principal, args.due_date, args.payment_date)
    return report_outcome(outcome)


def run_export(context: core_logic.RuntimeContext, args: argparse.Namespace) -> int:
    """Execute the simulated export hook."""
    return report_outcome(core_logic.export_stock(context, ExportFormat(args.export_format)))


def handle_cli_error(error: Exception) -> int:
    """Convert raised exceptions into user-friendly exit codes."""
    if isinstance(error, BackOfficeError):
        log.error("%s", error)
        return 2
    if isinstance(error, FileNotFoundError):
        log.error("%s", error)
        return 3
    log.error("%s", error)
    return 1


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point that orchestrates parsing and execution."""
    parser = build_parser()
    command_table = configure_subcommands(parser)
    args = parser.parse_args(argv)
    try:
        context = load_runtime_context(getattr(args, "config", None))
        return dispatch_command(context, args, command_table)
    except Exception as error:  # pragma: no cover - centralised error handler tested separately
        return handle_cli_error(error)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
