"""Convert billing figures into JSON friendly dictionaries."""

from __future__ import annotations

from typing import Dict

from .i18n import Translator, month_name
from .models import (
    LiquidationFigure,
    LiquidationStats,
    LiquidationStatus,
    ModuleBreakdown,
    MonthlyFigure,
    PaymentStatus,
)
from .money import format_currency


class ApiExporter:
    """Serialise domain values for the JSON endpoints.

    Amounts are emitted as floats alongside a ``*_display`` string in pesos.
    """

    def __init__(self, translator: Translator | None = None) -> None:
        self.translator = translator or Translator()

    def monthly_figure(self, figure: MonthlyFigure) -> Dict[str, object]:
        return {
            "professional_id": figure.professional_id,
            "child_id": figure.child_id,
            "month": figure.month,
            "month_name": month_name(figure.month),
            "year": figure.year,
            "session_count": figure.session_count,
            "module_value": float(figure.module_value),
            "total_amount": float(figure.total_amount),
            "total_amount_display": format_currency(figure.total_amount),
        }

    def liquidation(self, figure: LiquidationFigure) -> Dict[str, object]:
        return {
            "professional_id": figure.professional_id,
            "month": figure.month,
            "month_name": month_name(figure.month),
            "year": figure.year,
            "total_sessions": figure.total_sessions,
            "total_amount": float(figure.total_amount),
            "professional_percentage": float(figure.professional_percentage),
            "professional_amount": float(figure.professional_amount),
            "clinic_amount": float(figure.clinic_amount),
            "total_amount_display": format_currency(figure.total_amount),
            "professional_amount_display": format_currency(figure.professional_amount),
            "clinic_amount_display": format_currency(figure.clinic_amount),
            "module_breakdown": [self.module_breakdown(item) for item in figure.module_breakdown],
        }

    def module_breakdown(self, item: ModuleBreakdown) -> Dict[str, object]:
        return {
            "module_name": item.module_name,
            "session_count": item.session_count,
            "rate": float(item.rate),
            "amount": float(item.amount),
            "commission_rate": float(item.commission_rate),
            "professional_amount": float(item.professional_amount),
        }

    def stats(self, stats: LiquidationStats) -> Dict[str, object]:
        return {
            "total": stats.total,
            "pending": stats.pending,
            "approved": stats.approved,
            "paid": stats.paid,
            "cancelled": stats.cancelled,
            "total_amount": float(stats.total_amount),
            "paid_amount": float(stats.paid_amount),
            "pending_amount": float(stats.pending_amount),
        }

    def status_label(self, status: LiquidationStatus | str, *, locale: str | None = None) -> str:
        return self.translator.translate(f"liquidation.{LiquidationStatus(status).value}", locale=locale)

    def payment_status_label(self, status: PaymentStatus | str, *, locale: str | None = None) -> str:
        return self.translator.translate(f"payment.{PaymentStatus(status).value}", locale=locale)


__all__ = ["ApiExporter"]
