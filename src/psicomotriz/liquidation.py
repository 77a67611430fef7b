"""Monthly liquidation of professionals' billed sessions."""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable, Mapping, Optional, Tuple

from .exceptions import InvalidInputError, InvalidTransitionError
from .models import (
    LiquidationFigure,
    LiquidationStats,
    LiquidationStatus,
    ModuleBreakdown,
    require_count,
    require_period,
)
from .money import AmountLike, to_decimal

DEFAULT_PROFESSIONAL_PERCENTAGE = Decimal("25")

_ALLOWED_TRANSITIONS: Dict[LiquidationStatus, frozenset[LiquidationStatus]] = {
    LiquidationStatus.PENDING: frozenset(
        {LiquidationStatus.APPROVED, LiquidationStatus.PAID, LiquidationStatus.CANCELLED}
    ),
    LiquidationStatus.APPROVED: frozenset({LiquidationStatus.PAID, LiquidationStatus.CANCELLED}),
    LiquidationStatus.PAID: frozenset(),
    LiquidationStatus.CANCELLED: frozenset(),
}


def percentage_to_rate(percentage: AmountLike) -> Decimal:
    """Convert a 0-100 percentage into a fraction (``25`` -> ``0.25``)."""

    try:
        return to_decimal(percentage) / Decimal(100)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(str(exc)) from exc


def calculate_liquidation(
    professional_id: str,
    year: int,
    month: int,
    sessions: Iterable[Tuple[str, int]],
    rates: Mapping[str, AmountLike],
    commissions: Optional[Mapping[str, AmountLike]] = None,
    *,
    default_percentage: AmountLike = DEFAULT_PROFESSIONAL_PERCENTAGE,
) -> LiquidationFigure:
    """Build the liquidation of ``professional_id`` for ``month``/``year``.

    ``sessions`` yields ``(module_name, session_count)`` rows; rows with no
    sessions are skipped and repeated modules are added together. ``rates``
    prices each module for the month (unknown modules bill at zero) and
    ``commissions`` holds the professional's 0-100 percentage per module,
    falling back to ``default_percentage``.

    ``professional_percentage`` on the result is the shared rate when every
    module pays the same commission, otherwise the unrounded blended rate
    ``professional_amount / total_amount``.
    """

    require_period(month, year)
    counts: Dict[str, int] = {}
    for module_name, session_count in sessions:
        if isinstance(session_count, int) and not isinstance(session_count, bool) and session_count <= 0:
            continue
        counts[module_name] = counts.get(module_name, 0) + require_count(session_count, "Session count")

    commission_map = commissions or {}
    breakdown = tuple(
        ModuleBreakdown(
            module_name=module_name,
            session_count=counts[module_name],
            rate=rates.get(module_name, 0),
            commission_rate=percentage_to_rate(commission_map.get(module_name, default_percentage)),
        )
        for module_name in sorted(counts, key=str.casefold)
    )

    total_sessions = sum(item.session_count for item in breakdown)
    total_amount = sum((item.amount for item in breakdown), Decimal("0"))
    professional_amount = sum((item.professional_amount for item in breakdown), Decimal("0"))

    rates_used = {item.commission_rate for item in breakdown}
    if len(rates_used) == 1:
        percentage = rates_used.pop()
    elif rates_used and total_amount > 0:
        percentage = professional_amount / total_amount
    else:
        percentage = percentage_to_rate(default_percentage)

    return LiquidationFigure(
        professional_id=professional_id,
        month=month,
        year=year,
        total_sessions=total_sessions,
        total_amount=total_amount,
        professional_percentage=percentage,
        professional_amount=professional_amount,
        module_breakdown=breakdown,
    )


def transition(current: LiquidationStatus | str, target: LiquidationStatus | str) -> LiquidationStatus:
    """Validate a status change and return the new status."""

    source = LiquidationStatus(current)
    destination = LiquidationStatus(target)
    if destination not in _ALLOWED_TRANSITIONS[source]:
        raise InvalidTransitionError(f"Cannot move a {source.value} liquidation to {destination.value}.")
    return destination


def ensure_recalculable(current: LiquidationStatus | str) -> LiquidationStatus:
    """Return the status a recalculated liquidation starts in.

    Paid liquidations are closed; anything else goes back to pending.
    """

    if LiquidationStatus(current) is LiquidationStatus.PAID:
        raise InvalidTransitionError("Paid liquidations cannot be recalculated.")
    return LiquidationStatus.PENDING


def _field(item: object, name: str) -> object:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def liquidation_stats(liquidations: Iterable[object]) -> LiquidationStats:
    """Count ``liquidations`` by status and add up their billed totals."""

    stats = LiquidationStats()
    for item in liquidations:
        status = LiquidationStatus(_field(item, "status"))
        amount = to_decimal(_field(item, "total_amount") or 0)
        stats.total += 1
        stats.total_amount += amount
        if status is LiquidationStatus.PENDING:
            stats.pending += 1
            stats.pending_amount += amount
        elif status is LiquidationStatus.APPROVED:
            stats.approved += 1
        elif status is LiquidationStatus.PAID:
            stats.paid += 1
            stats.paid_amount += amount
        else:
            stats.cancelled += 1
    return stats


__all__ = [
    "DEFAULT_PROFESSIONAL_PERCENTAGE",
    "calculate_liquidation",
    "ensure_recalculable",
    "liquidation_stats",
    "percentage_to_rate",
    "transition",
]
