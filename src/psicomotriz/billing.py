"""Billing and commission arithmetic for monthly therapy sessions.

Every function here is pure: amounts go in as decimals (or anything
:func:`~psicomotriz.money.to_decimal` accepts) and come back as exact
:class:`~decimal.Decimal` values. Rounding only happens when formatting or
when a caller asks for a quantum in :func:`split_amount`.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Mapping, Optional, Tuple, Union

from .exceptions import InvalidInputError
from .models import SessionRecord, require_amount, require_count
from .money import AmountLike, to_decimal

DEFAULT_COMMISSION_RATE = Decimal("0.25")

SessionEntry = Union[SessionRecord, Mapping[str, object]]
SessionsLike = Union[int, Iterable[SessionEntry]]


def calculate_billing(session_count: int, module_value: AmountLike) -> Decimal:
    """Return the amount billed for ``session_count`` sessions of ``module_value`` each."""

    count = require_count(session_count, "Session count")
    value = require_amount(module_value, "Module value")
    return count * value


def calculate_commission(total_billed: AmountLike, commission_rate: AmountLike = DEFAULT_COMMISSION_RATE) -> Decimal:
    """Return ``total_billed * commission_rate``.

    The rate is not range checked; negotiated rates above 1 or below 0 simply
    scale the result.
    """

    total = require_amount(total_billed, "Total billed")
    try:
        rate = to_decimal(commission_rate)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(str(exc)) from exc
    return total * rate


def _entry_count(entry: SessionEntry) -> int:
    if isinstance(entry, SessionRecord):
        return entry.effective_count
    if isinstance(entry, Mapping):
        raw = entry.get("count")
    else:
        raw = getattr(entry, "count", None)
    if raw is None:
        return 1
    return require_count(raw, "Session count")


def effective_session_count(sessions: SessionsLike) -> int:
    """Fold ``sessions`` into a single count.

    An entry without a count is one session; an explicit ``0`` adds nothing.
    """

    if isinstance(sessions, int) and not isinstance(sessions, bool):
        return require_count(sessions, "Session count")
    if isinstance(sessions, (str, bytes, Mapping)) or not isinstance(sessions, Iterable):
        raise InvalidInputError(f"Sessions must be a count or a sequence of records, got {sessions!r}.")
    return sum(_entry_count(entry) for entry in sessions)


def calculate_monthly_total(sessions: SessionsLike, module_value: AmountLike) -> Decimal:
    """Return the monthly billed amount for ``sessions`` at ``module_value`` each."""

    return calculate_billing(effective_session_count(sessions), module_value)


def split_amount(
    total: AmountLike,
    percentage: AmountLike,
    *,
    quantum: Optional[Decimal] = None,
) -> Tuple[Decimal, Decimal]:
    """Split ``total`` into ``(professional_amount, clinic_amount)``.

    The professional share is ``total * percentage`` (rounded half-up to
    ``quantum`` when given); the clinic keeps the remainder.
    """

    total_value = require_amount(total, "Total amount")
    professional = calculate_commission(total_value, percentage)
    if quantum is not None:
        professional = professional.quantize(quantum, rounding=ROUND_HALF_UP)
    return professional, total_value - professional


__all__ = [
    "DEFAULT_COMMISSION_RATE",
    "SessionEntry",
    "SessionsLike",
    "calculate_billing",
    "calculate_commission",
    "calculate_monthly_total",
    "effective_session_count",
    "split_amount",
]
