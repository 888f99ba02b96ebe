"""Unit tests for ClassificationRecord."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from assignment_layer.models.input_models import ClassificationRecord


def make_record(amount):
    return ClassificationRecord(id="tx-1", description="Chipotle", amount=amount, date="2024-03-01")


# ============================================================================
# amount normalisation
# ============================================================================


@pytest.mark.parametrize(
    "amount,expected",
    [
        (Decimal("12.45"), "12.45"),
        (54, "54"),
        (" 23.10 ", "23.10"),
        ("-7.5", "-7.5"),
    ],
)
def test_amount_stored_as_decimal_string(amount, expected):
    assert make_record(amount).amount == expected


@pytest.mark.parametrize("amount", ["nan", "NaN", "Infinity", "-inf", Decimal("nan"), float("inf")])
def test_non_finite_amount_rejected(amount):
    with pytest.raises(ValidationError, match="finite"):
        make_record(amount)


@pytest.mark.parametrize("amount", ["abc", "", True, None])
def test_non_decimal_amount_rejected(amount):
    with pytest.raises(ValidationError):
        make_record(amount)


def test_record_is_frozen():
    record = make_record("1.00")

    with pytest.raises(ValidationError):
        record.amount = "2.00"
