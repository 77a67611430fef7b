"""Payments professionals make to the clinic and their admin review."""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable, Mapping

from .exceptions import InvalidInputError, InvalidTransitionError
from .models import PaymentStatus, PaymentType, require_amount
from .money import AmountLike, to_decimal

_REVIEW_DECISIONS = frozenset({PaymentStatus.APPROVED, PaymentStatus.REJECTED})


def require_payment_type(value: PaymentType | str) -> PaymentType:
    try:
        return PaymentType(value)
    except ValueError as exc:
        choices = ", ".join(item.value for item in PaymentType)
        raise InvalidInputError(f"Payment type must be one of {choices}, got {value!r}.") from exc


def require_payment_amount(value: AmountLike) -> Decimal:
    """Return ``value`` as a Decimal, refusing zero and negative payments."""

    amount = require_amount(value, "Payment amount")
    if amount == 0:
        raise InvalidInputError("Payment amount must be greater than zero.")
    return amount


def review_payment(current: PaymentStatus | str, decision: PaymentStatus | str) -> PaymentStatus:
    """Validate an admin review and return the resulting status.

    Only pending payments are reviewed, and the decision is either approve
    or reject.
    """

    try:
        target = PaymentStatus(decision)
    except ValueError as exc:
        raise InvalidInputError(f"Unknown review decision: {decision!r}.") from exc
    if target not in _REVIEW_DECISIONS:
        raise InvalidInputError("A review must approve or reject the payment.")
    source = PaymentStatus(current)
    if source is not PaymentStatus.PENDING:
        raise InvalidTransitionError(f"Payment was already {source.value}.")
    return target


def payment_totals(payments: Iterable[Mapping[str, object]]) -> Dict[str, Decimal]:
    """Add up payment amounts per verification status."""

    totals = {status.value: Decimal("0") for status in PaymentStatus}
    for payment in payments:
        status = PaymentStatus(payment["status"])
        totals[status.value] += to_decimal(payment["amount"])
    return totals


__all__ = ["payment_totals", "require_payment_amount", "require_payment_type", "review_payment"]
