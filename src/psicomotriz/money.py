"""Utilities for working with peso amounts in Psicomotriz."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

from .exceptions import InvalidInputError

PESO = Decimal("1")
CENT = Decimal("0.01")

AmountLike = Union[Decimal, int, float, str]


def to_decimal(value: AmountLike, *, quantum: Optional[Decimal] = None) -> Decimal:
    """Convert ``value`` to a :class:`~decimal.Decimal`.

    Values are kept exact unless ``quantum`` is given, in which case the result
    is rounded half-up to that precision.
    """

    if isinstance(value, bool):
        raise TypeError("Booleans are not valid amounts.")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation as exc:
            raise ValueError(f"Invalid amount: {value!r}") from exc
    else:
        raise TypeError(f"Unsupported amount type: {type(value)!r}")

    if not result.is_finite():
        raise ValueError(f"Amount must be finite, got {value!r}.")
    if quantum is not None:
        result = result.quantize(quantum, rounding=ROUND_HALF_UP)
    return result


def require_non_negative(amount: Decimal, *, label: str = "Amount") -> Decimal:
    """Ensure ``amount`` is zero or greater."""

    if amount < Decimal("0"):
        raise ValueError(f"{label} must be zero or greater.")
    return amount


def format_currency(amount: AmountLike) -> str:
    """Return ``amount`` as whole Chilean pesos (e.g. ``$1.000.000``).

    Fractions are rounded half-up to the nearest peso.
    """

    try:
        pesos = to_decimal(amount, quantum=PESO)
    except InvalidOperation as exc:
        raise InvalidInputError(f"Amount {amount!r} is too large to format.") from exc
    grouped = f"{abs(pesos):,.0f}".replace(",", ".")
    sign = "-" if pesos < 0 else ""
    return f"{sign}${grouped}"


__all__ = ["AmountLike", "CENT", "PESO", "format_currency", "require_non_negative", "to_decimal"]
