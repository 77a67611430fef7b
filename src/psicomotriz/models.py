"""Domain models used by the Psicomotriz package."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from .exceptions import InvalidInputError
from .money import require_non_negative, to_decimal


def require_count(value: object, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"{label} must be an integer, got {value!r}.")
    if value < 0:
        raise InvalidInputError(f"{label} must be zero or greater.")
    return value


def require_period(month: int, year: int) -> None:
    if isinstance(month, bool) or not isinstance(month, int) or not 1 <= month <= 12:
        raise InvalidInputError(f"Month must be between 1 and 12, got {month!r}.")
    if isinstance(year, bool) or not isinstance(year, int):
        raise InvalidInputError(f"Year must be an integer, got {year!r}.")


def require_amount(value: Any, label: str) -> Decimal:
    try:
        return require_non_negative(to_decimal(value), label=label)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(str(exc)) from exc


class LiquidationStatus(str, Enum):
    """Lifecycle of a monthly liquidation."""

    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Verification state of a payment a professional makes to the clinic."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentType(str, Enum):
    CASH = "efectivo"
    TRANSFER = "transferencia"


@dataclass(slots=True, frozen=True)
class SessionRecord:
    """Sessions one professional held with one child within a period.

    ``count`` of ``None`` stands for a single session.
    """

    count: Optional[int] = None

    def __post_init__(self) -> None:
        if self.count is not None:
            require_count(self.count, "Session count")

    @property
    def effective_count(self) -> int:
        return 1 if self.count is None else self.count


@dataclass(slots=True)
class MonthlyFigure:
    """Billed amount for one professional/child pair in a month."""

    professional_id: str
    child_id: str
    month: int
    year: int
    session_count: int
    module_value: Decimal
    total_amount: Decimal = field(init=False)

    def __post_init__(self) -> None:
        require_period(self.month, self.year)
        require_count(self.session_count, "Session count")
        self.module_value = require_amount(self.module_value, "Module value")
        self.total_amount = self.session_count * self.module_value


@dataclass(slots=True)
class ModuleBreakdown:
    """Sessions and amounts of a single therapy module inside a liquidation."""

    module_name: str
    session_count: int
    rate: Decimal
    commission_rate: Decimal
    amount: Decimal = field(init=False)
    professional_amount: Decimal = field(init=False)

    def __post_init__(self) -> None:
        require_count(self.session_count, "Session count")
        self.rate = require_amount(self.rate, "Module value")
        self.commission_rate = to_decimal(self.commission_rate)
        self.amount = self.session_count * self.rate
        self.professional_amount = self.amount * self.commission_rate


@dataclass(slots=True)
class LiquidationFigure:
    """Monthly settlement between a professional and the clinic.

    ``clinic_amount`` is always derived as the remainder of the total so both
    shares add up to ``total_amount`` exactly.
    """

    professional_id: str
    month: int
    year: int
    total_sessions: int
    total_amount: Decimal
    professional_percentage: Decimal
    professional_amount: Decimal
    module_breakdown: tuple[ModuleBreakdown, ...] = ()
    clinic_amount: Decimal = field(init=False)

    def __post_init__(self) -> None:
        require_period(self.month, self.year)
        require_count(self.total_sessions, "Total sessions")
        self.total_amount = require_amount(self.total_amount, "Total amount")
        self.professional_percentage = to_decimal(self.professional_percentage)
        self.professional_amount = to_decimal(self.professional_amount)
        self.module_breakdown = tuple(self.module_breakdown)
        self.clinic_amount = self.total_amount - self.professional_amount


@dataclass(slots=True)
class LiquidationStats:
    """Counts and amounts of liquidations grouped by status."""

    total: int = 0
    pending: int = 0
    approved: int = 0
    paid: int = 0
    cancelled: int = 0
    total_amount: Decimal = Decimal("0")
    paid_amount: Decimal = Decimal("0")
    pending_amount: Decimal = Decimal("0")


@dataclass(slots=True)
class AuditEvent:
    """Represents an auditable admin action."""

    actor: str
    action: str
    target: str
    timestamp: datetime = field(default_factory=datetime.utcnow)
    details: Dict[str, Any] = field(default_factory=dict)


__all__ = [
    "AuditEvent",
    "LiquidationFigure",
    "LiquidationStats",
    "LiquidationStatus",
    "ModuleBreakdown",
    "MonthlyFigure",
    "PaymentStatus",
    "PaymentType",
    "SessionRecord",
]
