"""Spanish labels for months, liquidation states and payment reviews."""

from __future__ import annotations

from typing import Dict, Mapping, Optional

MONTH_NAMES: tuple[str, ...] = (
    "Enero",
    "Febrero",
    "Marzo",
    "Abril",
    "Mayo",
    "Junio",
    "Julio",
    "Agosto",
    "Septiembre",
    "Octubre",
    "Noviembre",
    "Diciembre",
)


def month_name(month: object) -> str:
    """Return the Spanish name for ``month`` (1-12), or ``""`` when out of range."""

    if isinstance(month, bool) or not isinstance(month, int):
        return ""
    if 1 <= month <= len(MONTH_NAMES):
        return MONTH_NAMES[month - 1]
    return ""


get_month_name = month_name


def period_label(month: int, year: int) -> str:
    name = month_name(month)
    return f"{name} {year}" if name else str(year)


class Translator:
    """Store translations for short interface strings."""

    def __init__(self, default_locale: str = "es", *, translations: Optional[Mapping[str, Mapping[str, str]]] = None) -> None:
        self.default_locale = default_locale
        self._translations: Dict[str, Dict[str, str]] = {
            "es": {
                "liquidation.pending": "Pendiente",
                "liquidation.approved": "Aprobada",
                "liquidation.paid": "Pagada",
                "liquidation.cancelled": "Anulada",
                "payment.pending": "Por verificar",
                "payment.approved": "Verificado",
                "payment.rejected": "Rechazado",
            },
            "en": {
                "liquidation.pending": "Pending",
                "liquidation.approved": "Approved",
                "liquidation.paid": "Paid",
                "liquidation.cancelled": "Cancelled",
                "payment.pending": "Awaiting review",
                "payment.approved": "Verified",
                "payment.rejected": "Rejected",
            },
        }
        if translations:
            for locale, mapping in translations.items():
                self._translations.setdefault(locale, {}).update(mapping)

    def set_translation(self, locale: str, key: str, value: str) -> None:
        self._translations.setdefault(locale, {})[key] = value

    def translate(self, key: str, *, locale: Optional[str] = None) -> str:
        target_locale = locale or self.default_locale
        language = self._translations.get(target_locale) or self._translations[self.default_locale]
        return language.get(key, key)

    def available_locales(self) -> tuple[str, ...]:
        return tuple(sorted(self._translations))


__all__ = ["MONTH_NAMES", "Translator", "get_month_name", "month_name", "period_label"]
