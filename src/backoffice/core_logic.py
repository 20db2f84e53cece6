"""Orchestration layer for the back-office calculators.

This module wires configuration, seed data, and the three engines together.
It owns the state that belongs to a working session rather than to any engine:
the loaded sales, the stock ledger instance, and which product is targeted by
the next movement. Every mutating request is routed through here so the
target selection stays consistent with the ledger contents.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple

from . import data_manager, log
from .commission import CommissionReport, Sale, build_commission_report
from .constants import EXPECTED_SCHEMA_VERSION, ExportFormat
from .interest import DateLike, InterestResult, compute_interest
from .results import Feedback, NotFoundError, Outcome, ValidationError
from .stock_ledger import MovementResult, Product, ProductEdit, StockLedger


class MovementTarget:
    """Tracks the product selected as the subject of the next movement.

    Whenever the ledger holds products exactly one of them is targeted,
    defaulting to the first. The target follows code changes made by edits
    and falls back to the new first product when the targeted one is deleted.
    """

    def __init__(self, ledger: StockLedger) -> None:
        self._code: Optional[int] = None
        self.sync(ledger)

    @property
    def code(self) -> Optional[int]:
        return self._code

    def sync(self, ledger: StockLedger) -> Optional[int]:
        """Fall back to the first product when the target is missing or stale."""
        if self._code is None or self._code not in ledger:
            self._code = ledger.first_code()
        return self._code

    def select(self, ledger: StockLedger, code: int) -> Outcome[int]:
        if code not in ledger:
            log.warning("Cannot target unknown product code '%s'", code)
            return Outcome.failure(NotFoundError(f"Product with code {code} not found in stock"))
        self._code = ledger.get_product(code).code
        return Outcome.success(self._code)

    def follow_edit(self, original_code: Optional[int], new_code: int) -> None:
        if self._code == original_code and original_code != new_code:
            log.debug("Retargeting movement selection %s -> %s", original_code, new_code)
            self._code = new_code

    def follow_delete(self, ledger: StockLedger, deleted_code: int) -> None:
        if self._code == deleted_code:
            self._code = ledger.first_code()
            log.debug("Targeted product deleted; target is now %s", self._code)


@dataclass(frozen=True)
class RuntimeContext:
    """Container for settings, seed sales, the ledger, and the target."""

    settings: data_manager.ConfigSettings
    sales: Tuple[Sale, ...]
    ledger: StockLedger
    target: MovementTarget = field(compare=False)


@dataclass(frozen=True)
class PendingDeletion:
    """First phase of a deletion: what will be removed and the prompt to show."""

    code: int
    description: str
    prompt: str


def build_runtime_context(
    settings: data_manager.ConfigSettings,
    sales: Iterable[Sale],
    products: Iterable[Product],
) -> RuntimeContext:
    """Assemble a context from already loaded seed data."""
    ledger = StockLedger(products, feedback_ms=settings.feedback_duration_ms)
    return RuntimeContext(
        settings=settings,
        sales=tuple(sales),
        ledger=ledger,
        target=MovementTarget(ledger),
    )


def load_runtime_context(config_path: Optional[Path] = None) -> RuntimeContext:
    """Load configuration and seed data into a fresh :class:`RuntimeContext`.

    Args:
        config_path (Path | None): Optional override path for the configuration
            file. When omitted the data layer searches upward from the current
            working directory.

    Returns:
        RuntimeContext: Context with a freshly seeded ledger.

    Raises:
        FileNotFoundError: If the configuration file or workbook is missing.
        KeyError: When mandatory configuration entries or sheets are missing.
        ValueError: When a seed row is malformed.
    """
    located_config = data_manager.find_config_file(config_path)
    resolved_config = Path(located_config).expanduser().resolve()
    parser = data_manager.read_config(resolved_config)
    settings = data_manager.parse_settings(parser, base_path=resolved_config.parent)
    workbook = data_manager.open_workbook(settings.data_file)
    sales = data_manager.load_sales(workbook)
    products = data_manager.load_products(workbook)
    log.info(
        "Loaded runtime context from '%s' (%d sales, %d products)",
        settings.data_file,
        len(sales),
        len(products),
    )
    return build_runtime_context(settings, sales, products)


def ensure_schema_version(context: RuntimeContext) -> None:
    """Reject a configuration written for a different seed workbook schema.

    Raises:
        RuntimeError: If the configured schema version does not match
            ``EXPECTED_SCHEMA_VERSION``.
    """
    if context.settings.schema_version != EXPECTED_SCHEMA_VERSION:
        log.error(
            "Workbook schema mismatch: expected %s, found %s",
            EXPECTED_SCHEMA_VERSION,
            context.settings.schema_version,
        )
        raise RuntimeError(
            "Workbook schema mismatch: expected %s, found %s"
            % (EXPECTED_SCHEMA_VERSION, context.settings.schema_version)
        )


def commission_report(context: RuntimeContext) -> CommissionReport:
    """Rebuild the commission report from the context's sales."""
    return build_commission_report(context.sales)


def list_products(context: RuntimeContext) -> Tuple[Product, ...]:
    return context.ledger.products()


def current_target(context: RuntimeContext) -> Optional[int]:
    return context.target.sync(context.ledger)


def select_target(context: RuntimeContext, code: int) -> Outcome[int]:
    return context.target.select(context.ledger, code)


def record_movement(
    context: RuntimeContext,
    kind: object,
    *,
    quantity: object = None,
    product_code: object = None,
    description: Optional[str] = None,
) -> Outcome[MovementResult]:
    """Apply a stock movement, defaulting to the targeted product.

    ``quantity`` and ``description`` fall back to the configured defaults.
    An explicit ``product_code`` also becomes the new target once the
    movement is accepted.
    """
    code = product_code if product_code is not None else current_target(context)
    if code is None:
        log.error("Movement rejected: no product selected")
        return Outcome.failure(
            ValidationError("Please select a product"),
            Feedback.danger(
                "Error: Please select a product.",
                display_ms=context.settings.feedback_duration_ms,
            ),
        )
    outcome = context.ledger.apply_movement(
        code,
        kind,
        quantity if quantity is not None else context.settings.movement_quantity,
        description if description is not None else context.settings.movement_description,
    )
    if outcome.ok and product_code is not None:
        context.target.select(context.ledger, outcome.value.product_code)
    return outcome


def edit_product(context: RuntimeContext, original_code: object, edit: ProductEdit) -> Outcome[Product]:
    """Replace a product and keep the movement target on it if it moved codes."""
    # resolve to the stored int code before the record is replaced
    previous = None
    if original_code in context.ledger:
        previous = context.ledger.get_product(original_code).code
    outcome = context.ledger.edit_product(original_code, edit)
    if outcome.ok:
        context.target.follow_edit(previous, outcome.value.code)
    return outcome


def request_deletion(context: RuntimeContext, code: int) -> Outcome[PendingDeletion]:
    """First phase of a deletion: describe what confirmation would remove."""
    try:
        product = context.ledger.get_product(code)
    except NotFoundError as error:
        return Outcome.failure(
            error,
            Feedback.danger(f"Error: {error}", display_ms=context.settings.feedback_duration_ms),
        )
    prompt = (
        f'Are you sure you want to DELETE product "{product.description}" '
        f"(code {product.code})? This action cannot be undone."
    )
    return Outcome.success(PendingDeletion(code=product.code, description=product.description, prompt=prompt))


def confirm_deletion(context: RuntimeContext, pending: PendingDeletion) -> Outcome[Product]:
    """Second phase of a deletion: remove the product and repair the target."""
    outcome = context.ledger.delete_product(pending.code)
    if outcome.ok:
        context.target.follow_delete(context.ledger, pending.code)
    return outcome


def calculate_interest(
    context: RuntimeContext,
    principal: object,
    due_date: DateLike,
    payment_date: DateLike,
) -> Outcome[InterestResult]:
    return compute_interest(
        principal,
        due_date,
        payment_date,
        display_ms=context.settings.feedback_duration_ms,
    )


_EXPORT_MESSAGES = {
    ExportFormat.SPREADSHEET: "Spreadsheet export is simulated; no file was written.",
    ExportFormat.DOCUMENT: "Document export is simulated; no file was written.",
}


def export_stock(context: RuntimeContext, export_format: ExportFormat) -> Outcome[Sequence[Product]]:
    """Simulated export hook: hands back the snapshot that would be exported."""
    snapshot = context.ledger.products()
    log.info("Simulated %s export of %d products", export_format.value, len(snapshot))
    return Outcome.success(
        snapshot,
        Feedback.info(
            _EXPORT_MESSAGES[export_format],
            display_ms=context.settings.feedback_duration_ms,
        ),
    )
