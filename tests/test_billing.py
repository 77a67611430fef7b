from decimal import Decimal

import pytest

from psicomotriz.billing import (
    calculate_billing,
    calculate_commission,
    calculate_monthly_total,
    effective_session_count,
    split_amount,
)
from psicomotriz.exceptions import InvalidInputError
from psicomotriz.models import MonthlyFigure, SessionRecord
from psicomotriz.money import CENT


@pytest.mark.parametrize("module_value", [0, 1000, Decimal("12345.67"), "99.5"])
def test_billing_zero_sessions_is_zero(module_value) -> None:
    assert calculate_billing(0, module_value) == 0


def test_billing_multiplies_exactly() -> None:
    assert calculate_billing(3, Decimal("1500.50")) == Decimal("4501.50")
    assert calculate_billing(12, 0.1) == Decimal("1.2")


def test_billing_rejects_negative_and_fractional_input() -> None:
    with pytest.raises(InvalidInputError):
        calculate_billing(-1, 1000)
    with pytest.raises(InvalidInputError):
        calculate_billing(2, -5)
    with pytest.raises(ValueError):
        calculate_billing(1.5, 1000)  # type: ignore[arg-type]


def test_commission_defaults_to_quarter_rate() -> None:
    assert calculate_commission(Decimal("10000")) == Decimal("2500")
    assert calculate_commission(10000) == calculate_commission(10000, Decimal("0.25"))
    assert calculate_commission(1000, 0.1) == Decimal("100")


def test_commission_accepts_rates_outside_unit_interval() -> None:
    assert calculate_commission(1000, "1.5") == Decimal("1500")
    assert calculate_commission(1000, "-0.1") == Decimal("-100")


def test_monthly_total_from_count_and_records() -> None:
    assert calculate_monthly_total(5, 1000) == 5000
    assert calculate_monthly_total([{"count": 2}, {"count": 3}], 1000) == 5000
    assert calculate_monthly_total([SessionRecord(2), SessionRecord()], 1000) == 3000


def test_monthly_total_counts_missing_as_one_and_zero_as_zero() -> None:
    assert calculate_monthly_total([{"count": 0}, {}, {"count": 1}], 1000) == 2000
    assert effective_session_count([{"count": None}, SessionRecord(0)]) == 1
    assert calculate_monthly_total([], 1000) == 0


def test_effective_session_count_rejects_bad_input() -> None:
    with pytest.raises(InvalidInputError):
        effective_session_count([{"count": -2}])
    with pytest.raises(InvalidInputError):
        effective_session_count("12")  # type: ignore[arg-type]
    with pytest.raises(InvalidInputError):
        effective_session_count(-3)
    with pytest.raises(InvalidInputError):
        SessionRecord(-1)


@pytest.mark.parametrize(
    ("total", "percentage"),
    [
        (Decimal("1001"), Decimal("0.333")),
        (Decimal("136000"), Decimal("0.2868")),
        (Decimal("0"), Decimal("0.25")),
        (Decimal("7777.77"), Decimal("1")),
    ],
)
def test_split_reconciles_to_total(total, percentage) -> None:
    professional, clinic = split_amount(total, percentage)
    assert professional == total * percentage
    assert professional + clinic == total

    rounded, remainder = split_amount(total, percentage, quantum=CENT)
    assert rounded + remainder == total


def test_split_rounds_professional_share_half_up() -> None:
    professional, clinic = split_amount(Decimal("1001"), Decimal("0.333"), quantum=CENT)
    assert professional == Decimal("333.33")
    assert clinic == Decimal("667.67")


def test_monthly_figure_computes_total() -> None:
    figure = MonthlyFigure("ana", "child-1", 3, 2024, 4, Decimal("15000"))
    assert figure.total_amount == Decimal("60000")

    with pytest.raises(InvalidInputError):
        MonthlyFigure("ana", "child-1", 13, 2024, 4, Decimal("15000"))
    with pytest.raises(InvalidInputError):
        MonthlyFigure("ana", "child-1", 3, 2024, 4, Decimal("-1"))
