"""Stock ledger: the authoritative in-memory product collection.

The ledger owns an ordered list of :class:`Product` records and a movement
counter. Quantities change only through :meth:`StockLedger.apply_movement`;
records are replaced in place by :meth:`StockLedger.edit_product` and removed
by :meth:`StockLedger.delete_product`. Every public mutation validates first
and mutates last, so a rejected request leaves the ledger exactly as it was.

The ledger assumes a single writer. Callers sharing an instance across
threads must serialise access themselves.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional, Tuple

from . import log
from .constants import DEFAULT_FEEDBACK_DURATION_MS, DEFAULT_MOVEMENT_DESCRIPTION, MovementKind
from .results import (
    BackOfficeError,
    DuplicateCodeError,
    Feedback,
    InsufficientStockError,
    InvalidCodeError,
    NotFoundError,
    Outcome,
    ValidationError,
)


# Codes and quantities past this many digits are rejected before int() runs.
MAX_INTEGER_DIGITS = 18


@dataclass(frozen=True)
class Product:
    """A stocked product identified by a unique positive code."""

    code: int
    description: str
    quantity: int


@dataclass(frozen=True)
class MovementRequest:
    """User intent for moving stock in or out of a product."""

    product_code: int
    kind: MovementKind
    quantity: int
    description: str = DEFAULT_MOVEMENT_DESCRIPTION

    @classmethod
    def from_raw(
        cls,
        product_code: object,
        kind: object,
        quantity: object,
        description: Optional[str] = None,
    ) -> "MovementRequest":
        """Validate loosely typed input (form fields, CLI arguments).

        Raises:
            ValidationError: If no product is selected, the kind is unknown,
                or the quantity is not a positive integer.
        """
        if product_code is None or (isinstance(product_code, str) and not product_code.strip()):
            log.error("Movement rejected: no product selected")
            raise ValidationError("Please select a product")
        try:
            code = _coerce_int(product_code)
        except ValueError as exc:
            log.error("Movement rejected: product code %r is not numeric", product_code)
            raise ValidationError(f"Product code must be an integer: {product_code!r}") from exc
        return cls(
            product_code=code,
            kind=coerce_movement_kind(kind),
            quantity=require_positive_quantity(quantity),
            description=description if description is not None else DEFAULT_MOVEMENT_DESCRIPTION,
        )


@dataclass(frozen=True)
class ProductEdit:
    """Replacement data for an existing product record."""

    code: object
    description: str
    quantity: object


@dataclass(frozen=True)
class MovementResult:
    """Receipt for an accepted movement."""

    movement_id: int
    product_code: int
    new_quantity: int
    kind: MovementKind
    quantity: int
    description: str = DEFAULT_MOVEMENT_DESCRIPTION


def _coerce_int(raw: object) -> int:
    """Convert ``raw`` to ``int`` without silently truncating fractions."""
    if isinstance(raw, bool):
        raise ValueError("booleans are not quantities")
    if isinstance(raw, int):
        return raw
    try:
        value = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"not numeric: {raw!r}") from exc
    if not value.is_finite() or value.adjusted() > MAX_INTEGER_DIGITS:
        raise ValueError(f"not a usable integer: {raw!r}")
    if value != value.to_integral_value():
        raise ValueError(f"not an integer: {raw!r}")
    return int(value)


def coerce_movement_kind(raw: object) -> MovementKind:
    """Resolve ``raw`` into a :class:`MovementKind`.

    Raises:
        ValidationError: If ``raw`` names no known movement kind.
    """
    if isinstance(raw, MovementKind):
        return raw
    try:
        return MovementKind(str(raw).strip().lower())
    except ValueError as exc:
        log.error("Movement rejected: unknown kind %r", raw)
        raise ValidationError(f"Unknown movement kind: {raw!r}") from exc


def require_positive_quantity(quantity: object) -> int:
    """Validate that a movement quantity is a strictly positive integer.

    The ledger never clamps quantities; a non-positive or non-numeric value is
    a caller error and is reported as such.

    Raises:
        ValidationError: If ``quantity`` is not a positive integer.
    """
    try:
        value = _coerce_int(quantity)
    except ValueError as exc:
        log.error("Quantity validation failed: %r", quantity)
        raise ValidationError("Quantity must be a positive integer") from exc
    if value <= 0:
        log.error("Quantity validation failed: %s", value)
        raise ValidationError("Quantity must be a positive integer")
    return value


def require_nonnegative_quantity(quantity: object) -> int:
    """Validate that a stock level is a non-negative integer."""
    try:
        value = _coerce_int(quantity)
    except ValueError as exc:
        log.error("Stock level validation failed: %r", quantity)
        raise ValidationError("Stock quantity must be a non-negative integer") from exc
    if value < 0:
        log.error("Stock level validation failed: %s", value)
        raise ValidationError("Stock quantity must be a non-negative integer")
    return value


def require_positive_code(code: object) -> int:
    """Validate that a product code is a positive integer.

    Raises:
        InvalidCodeError: If ``code`` is not numeric or not greater than zero.
    """
    try:
        value = _coerce_int(code)
    except ValueError as exc:
        log.error("Product code validation failed: %r", code)
        raise InvalidCodeError("Product code must be a positive integer") from exc
    if value <= 0:
        log.error("Product code validation failed: %s", value)
        raise InvalidCodeError("Product code must be a positive integer")
    return value


def require_description(description: object) -> str:
    text = str(description).strip() if description is not None else ""
    if not text:
        log.error("Product description validation failed: blank")
        raise ValidationError("Product description must not be blank")
    return text


class StockLedger:
    """Ordered product collection plus the monotonic movement counter."""

    def __init__(
        self,
        products: Iterable[Product] = (),
        *,
        first_movement_id: int = 1,
        feedback_ms: int = DEFAULT_FEEDBACK_DURATION_MS,
    ) -> None:
        """Seed the ledger.

        Raises:
            InvalidCodeError: If a seed product has a non-positive code.
            DuplicateCodeError: If two seed products share a code.
            ValidationError: If a seed product has a negative quantity or a
                blank description.
        """
        if first_movement_id < 1:
            raise ValueError("Movement ids start at 1 or above")
        self._products: List[Product] = []
        seen = set()
        for product in products:
            code = require_positive_code(product.code)
            if code in seen:
                raise DuplicateCodeError(f"Duplicate product code in seed data: {code}")
            seen.add(code)
            self._products.append(
                Product(
                    code=code,
                    description=require_description(product.description),
                    quantity=require_nonnegative_quantity(product.quantity),
                )
            )
        self._next_movement_id = first_movement_id
        self._feedback_ms = feedback_ms
        log.info("Stock ledger initialized with %d products", len(self._products))

    def __len__(self) -> int:
        return len(self._products)

    def __contains__(self, code: object) -> bool:
        return self._find_index(code) is not None

    @property
    def is_empty(self) -> bool:
        return not self._products

    @property
    def next_movement_id(self) -> int:
        """Id that the next accepted movement will receive."""
        return self._next_movement_id

    def products(self) -> Tuple[Product, ...]:
        """Snapshot of the products in display order."""
        return tuple(self._products)

    def first_code(self) -> Optional[int]:
        """Code of the first product, or ``None`` when the ledger is empty."""
        return self._products[0].code if self._products else None

    def get_product(self, code: object) -> Product:
        """Return the product with ``code``.

        Raises:
            NotFoundError: If no product carries ``code``.
        """
        index = self._find_index(code)
        if index is None:
            log.warning("Product lookup failed for code '%s'", code)
            raise NotFoundError(f"Product with code {code} not found in stock")
        return self._products[index]

    def _find_index(self, code: object) -> Optional[int]:
        try:
            wanted = _coerce_int(code)
        except ValueError:
            return None
        for index, product in enumerate(self._products):
            if product.code == wanted:
                return index
        return None

    def _feedback(self, severity_factory, message: str) -> Feedback:
        return severity_factory(message, display_ms=self._feedback_ms)

    def _failure(self, error: BackOfficeError) -> Outcome:
        return Outcome.failure(error, self._feedback(Feedback.danger, f"Error: {error}"))

    # ------------------------------------------------------------------
    # Movements
    # ------------------------------------------------------------------

    def apply_movement(
        self,
        product_code: object,
        kind: object,
        quantity: object,
        description: Optional[str] = None,
    ) -> Outcome[MovementResult]:
        """Move stock in or out of a product.

        Returns:
            Outcome[MovementResult]: On success the receipt carries the
            pre-increment counter value as ``movement_id``. On failure the
            error is one of :class:`ValidationError`, :class:`NotFoundError`
            or :class:`InsufficientStockError`, and neither the product nor
            the counter has changed.
        """
        try:
            request = MovementRequest.from_raw(product_code, kind, quantity, description)
        except ValidationError as error:
            return self._failure(error)
        return self.submit_movement(request)

    def submit_movement(self, request: MovementRequest) -> Outcome[MovementResult]:
        """Apply an already constructed :class:`MovementRequest`."""
        try:
            quantity = require_positive_quantity(request.quantity)
            kind = coerce_movement_kind(request.kind)
            index = self._find_index(request.product_code)
            if index is None:
                log.warning("Movement rejected: unknown product code '%s'", request.product_code)
                raise NotFoundError(f"Product with code {request.product_code} not found in stock")
            product = self._products[index]
            if kind is MovementKind.OUTFLOW and quantity > product.quantity:
                log.warning(
                    "Movement rejected: outflow of %d exceeds stock %d for product '%s'",
                    quantity,
                    product.quantity,
                    product.code,
                )
                raise InsufficientStockError(
                    f"Movement {self._next_movement_id}: insufficient stock. "
                    f"Only {product.quantity} units remain",
                    available=product.quantity,
                    requested=quantity,
                )
        except BackOfficeError as error:
            return self._failure(error)

        delta = quantity if kind is MovementKind.INFLOW else -quantity
        updated = replace(product, quantity=product.quantity + delta)
        movement_id = self._next_movement_id
        self._products[index] = updated
        self._next_movement_id += 1

        result = MovementResult(
            movement_id=movement_id,
            product_code=updated.code,
            new_quantity=updated.quantity,
            kind=kind,
            quantity=quantity,
            description=request.description,
        )
        log.info(
            "Recorded %s movement %d for product '%s' (quantity=%d, stock=%d)",
            kind.value.upper(),
            movement_id,
            updated.code,
            quantity,
            updated.quantity,
        )
        message = (
            f"Movement {movement_id}: {kind.value.upper()} of {quantity} units. "
            f'Final stock of "{updated.description}": {updated.quantity} units'
        )
        return Outcome.success(result, self._feedback(Feedback.success, message))

    # ------------------------------------------------------------------
    # Product CRUD
    # ------------------------------------------------------------------

    def edit_product(self, original_code: object, new_data: ProductEdit) -> Outcome[Product]:
        """Replace the record at ``original_code`` with ``new_data`` in place.

        Checks run in this order: the new code must be positive
        (:class:`InvalidCodeError`), must not belong to a different product
        (:class:`DuplicateCodeError`), and ``original_code`` must exist
        (:class:`NotFoundError`). The new quantity must also be non-negative
        and the description non-blank (:class:`ValidationError`).
        """
        try:
            new_code = require_positive_code(new_data.code)
            index = self._find_index(original_code)
            for position, other in enumerate(self._products):
                if other.code == new_code and position != index:
                    log.warning(
                        "Edit rejected: code '%s' already used by '%s'",
                        new_code,
                        other.description,
                    )
                    raise DuplicateCodeError(
                        f'Code {new_code} is already used by another product ("{other.description}")'
                    )
            if index is None:
                log.warning("Edit rejected: unknown product code '%s'", original_code)
                raise NotFoundError(f"Product with code {original_code} not found for editing")
            replacement = Product(
                code=new_code,
                description=require_description(new_data.description),
                quantity=require_nonnegative_quantity(new_data.quantity),
            )
        except BackOfficeError as error:
            return self._failure(error)

        self._products[index] = replacement
        log.info("Edited product '%s' -> '%s'", original_code, replacement.code)
        message = f'Product "{replacement.description}" (code {replacement.code}) updated successfully'
        return Outcome.success(replacement, self._feedback(Feedback.success, message))

    def delete_product(self, code: object) -> Outcome[Product]:
        """Remove the product with ``code``; remaining order is preserved."""
        index = self._find_index(code)
        if index is None:
            log.warning("Delete rejected: unknown product code '%s'", code)
            return self._failure(NotFoundError(f"Could not delete product. Code {code} not found"))

        removed = self._products.pop(index)
        log.info("Deleted product '%s' (%s)", removed.code, removed.description)
        message = f'Product "{removed.description}" deleted successfully'
        return Outcome.success(removed, self._feedback(Feedback.success, message))


__all__ = [
    "Product",
    "MovementRequest",
    "ProductEdit",
    "MovementResult",
    "StockLedger",
    "coerce_movement_kind",
    "require_positive_quantity",
    "require_nonnegative_quantity",
    "require_positive_code",
    "require_description",
]
