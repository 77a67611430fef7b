from decimal import Decimal

import pytest

from psicomotriz.api import ApiExporter
from psicomotriz.exceptions import InvalidInputError
from psicomotriz.i18n import MONTH_NAMES, Translator, get_month_name, month_name, period_label
from psicomotriz.models import LiquidationStatus
from psicomotriz.money import CENT, format_currency, to_decimal


def test_format_currency_uses_whole_pesos_with_dot_grouping() -> None:
    assert format_currency(1000000) == "$1.000.000"
    assert format_currency(0) == "$0"
    assert format_currency(999) == "$999"
    assert format_currency("1234567.4") == "$1.234.567"


def test_format_currency_rounds_half_up() -> None:
    assert format_currency(Decimal("2.5")) == "$3"
    assert format_currency(Decimal("3.5")) == "$4"
    assert format_currency(Decimal("1234.49")) == "$1.234"
    assert format_currency(Decimal("-2.5")) == "-$3"


def test_format_currency_negative_amounts() -> None:
    assert format_currency(-1500) == "-$1.500"
    assert format_currency(Decimal("-0.4")) == "$0"


def test_format_currency_rejects_amounts_beyond_decimal_precision() -> None:
    with pytest.raises(InvalidInputError):
        format_currency(Decimal("1e30"))
    assert format_currency(Decimal("1e20")) == "$100.000.000.000.000.000.000"


def test_to_decimal_conversions() -> None:
    assert to_decimal(0.1) == Decimal("0.1")
    assert to_decimal(" 42 ") == Decimal("42")
    assert to_decimal("1.005", quantum=CENT) == Decimal("1.01")
    with pytest.raises(ValueError):
        to_decimal("abc")
    with pytest.raises(ValueError):
        to_decimal("NaN")
    with pytest.raises(TypeError):
        to_decimal(True)


def test_month_names_in_spanish() -> None:
    assert get_month_name(1) == "Enero"
    assert get_month_name(12) == "Diciembre"
    assert month_name(9) == "Septiembre"
    assert len(MONTH_NAMES) == 12


@pytest.mark.parametrize("value", [0, 13, -1, "1", None, True, 1.0])
def test_month_name_out_of_range_is_empty(value) -> None:
    assert month_name(value) == ""


def test_period_label() -> None:
    assert period_label(3, 2024) == "Marzo 2024"
    assert period_label(0, 2024) == "2024"


def test_status_labels_follow_locale() -> None:
    exporter = ApiExporter()
    assert exporter.status_label(LiquidationStatus.PAID) == "Pagada"
    assert exporter.status_label("cancelled", locale="en") == "Cancelled"

    translator = Translator(translations={"es": {"liquidation.paid": "Liquidada"}})
    assert ApiExporter(translator).status_label("paid") == "Liquidada"
    assert translator.translate("missing.key") == "missing.key"
    assert translator.available_locales() == ("en", "es")
