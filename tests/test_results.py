"""Unit tests for the shared error kinds and structured results."""

from __future__ import annotations

import pytest

from backoffice.constants import DEFAULT_FEEDBACK_DURATION_MS, Severity
from backoffice.results import (
    BackOfficeError,
    DuplicateCodeError,
    Feedback,
    InsufficientStockError,
    InvalidCodeError,
    InvalidInputError,
    NotFoundError,
    Outcome,
    ValidationError,
)


@pytest.mark.parametrize(
    ("factory", "severity"),
    [
        (Feedback.success, Severity.SUCCESS),
        (Feedback.danger, Severity.DANGER),
        (Feedback.info, Severity.INFO),
    ],
)
def test_feedback_factories_set_severity_and_default_duration(factory, severity):
    feedback = factory("hello")

    assert feedback.severity is severity
    assert feedback.message == "hello"
    assert feedback.display_ms == DEFAULT_FEEDBACK_DURATION_MS


def test_feedback_duration_can_be_overridden():
    assert Feedback.info("hi", display_ms=250).display_ms == 250


def test_success_outcome_is_ok():
    outcome = Outcome.success(42, Feedback.success("done"))

    assert outcome.ok
    assert outcome.error is None
    assert outcome.unwrap() == 42


def test_failure_outcome_gets_default_danger_feedback():
    outcome = Outcome.failure(NotFoundError("Product with code 7 not found in stock"))

    assert not outcome.ok
    assert outcome.value is None
    assert outcome.feedback == Feedback.danger("Error: Product with code 7 not found in stock")


def test_failure_outcome_keeps_explicit_feedback():
    feedback = Feedback.danger("custom", display_ms=100)

    assert Outcome.failure(ValidationError("bad"), feedback).feedback is feedback


def test_unwrap_reraises_the_captured_error():
    error = InsufficientStockError("short", available=3, requested=5)

    with pytest.raises(InsufficientStockError) as excinfo:
        Outcome.failure(error).unwrap()

    assert excinfo.value is error
    assert (excinfo.value.available, excinfo.value.requested) == (3, 5)


@pytest.mark.parametrize(
    "error_type",
    [ValidationError, NotFoundError, DuplicateCodeError, InvalidCodeError, InvalidInputError],
)
def test_error_kinds_share_a_base(error_type):
    assert issubclass(error_type, BackOfficeError)
