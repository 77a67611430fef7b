"""Psicomotriz: billing and liquidation for a psychomotricity clinic."""

from .admin import AuditLog
from .api import ApiExporter
from .billing import (
    DEFAULT_COMMISSION_RATE,
    calculate_billing,
    calculate_commission,
    calculate_monthly_total,
    effective_session_count,
    split_amount,
)
from .exceptions import (
    ClinicError,
    InvalidInputError,
    InvalidTransitionError,
    LiquidationNotFoundError,
)
from .i18n import MONTH_NAMES, Translator, get_month_name, month_name, period_label
from .liquidation import (
    DEFAULT_PROFESSIONAL_PERCENTAGE,
    calculate_liquidation,
    ensure_recalculable,
    liquidation_stats,
    percentage_to_rate,
    transition,
)
from .models import (
    AuditEvent,
    LiquidationFigure,
    LiquidationStats,
    LiquidationStatus,
    ModuleBreakdown,
    MonthlyFigure,
    PaymentStatus,
    PaymentType,
    SessionRecord,
)
from .money import format_currency, to_decimal
from .ops import StructuredLogger
from .payments import payment_totals, require_payment_amount, require_payment_type, review_payment

__all__ = [
    "ApiExporter",
    "AuditEvent",
    "AuditLog",
    "ClinicError",
    "DEFAULT_COMMISSION_RATE",
    "DEFAULT_PROFESSIONAL_PERCENTAGE",
    "InvalidInputError",
    "InvalidTransitionError",
    "LiquidationFigure",
    "LiquidationNotFoundError",
    "LiquidationStats",
    "LiquidationStatus",
    "MONTH_NAMES",
    "ModuleBreakdown",
    "MonthlyFigure",
    "PaymentStatus",
    "PaymentType",
    "SessionRecord",
    "StructuredLogger",
    "Translator",
    "calculate_billing",
    "calculate_commission",
    "calculate_liquidation",
    "calculate_monthly_total",
    "effective_session_count",
    "ensure_recalculable",
    "format_currency",
    "get_month_name",
    "liquidation_stats",
    "month_name",
    "payment_totals",
    "percentage_to_rate",
    "period_label",
    "require_payment_amount",
    "require_payment_type",
    "review_payment",
    "split_amount",
    "to_decimal",
    "transition",
]
