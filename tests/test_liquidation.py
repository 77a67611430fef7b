from decimal import Decimal
from types import SimpleNamespace

import pytest

from psicomotriz.admin import AuditLog
from psicomotriz.exceptions import InvalidInputError, InvalidTransitionError
from psicomotriz.liquidation import (
    calculate_liquidation,
    ensure_recalculable,
    liquidation_stats,
    percentage_to_rate,
    transition,
)
from psicomotriz.models import LiquidationFigure, LiquidationStatus
from psicomotriz.money import CENT
from psicomotriz.ops import StructuredLogger

ROWS = [("Psicomotricidad", 4), ("Lenguaje", 2), ("Psicomotricidad", 1), ("Conducta", 0)]
RATES = {"Psicomotricidad": Decimal("20000"), "Lenguaje": Decimal("18000")}


def test_liquidation_with_default_commission() -> None:
    figure = calculate_liquidation("ana", 2024, 3, ROWS, RATES)

    assert figure.total_sessions == 7
    assert figure.total_amount == Decimal("136000")
    assert figure.professional_percentage == Decimal("0.25")
    assert figure.professional_amount == Decimal("34000")
    assert figure.clinic_amount == Decimal("102000")
    assert [item.module_name for item in figure.module_breakdown] == ["Lenguaje", "Psicomotricidad"]
    psicomotricidad = figure.module_breakdown[1]
    assert psicomotricidad.session_count == 5
    assert psicomotricidad.amount == Decimal("100000")


def test_liquidation_with_module_specific_commissions() -> None:
    figure = calculate_liquidation("ana", 2024, 3, ROWS, RATES, {"Psicomotricidad": 30})

    assert figure.professional_amount == Decimal("39000")
    assert figure.clinic_amount == Decimal("97000")
    assert figure.professional_amount + figure.clinic_amount == figure.total_amount
    assert abs(figure.total_amount * figure.professional_percentage - figure.professional_amount) < CENT
    assert figure.professional_percentage == figure.professional_amount / figure.total_amount
    assert figure.professional_percentage != Decimal("0.2868")


def test_liquidation_uniform_custom_commission_keeps_exact_rate() -> None:
    figure = calculate_liquidation(
        "ana", 2024, 3, ROWS, RATES, {"Psicomotricidad": 40, "Lenguaje": "40"}
    )

    assert figure.professional_percentage == Decimal("0.4")
    assert figure.professional_amount == figure.total_amount * figure.professional_percentage


def test_liquidation_without_sessions_or_rates() -> None:
    empty = calculate_liquidation("ana", 2024, 3, [], RATES)
    assert empty.total_sessions == 0
    assert empty.total_amount == 0
    assert empty.professional_percentage == Decimal("0.25")
    assert empty.module_breakdown == ()

    unpriced = calculate_liquidation("ana", 2024, 3, [("Musicoterapia", 3)], {})
    assert unpriced.total_sessions == 3
    assert unpriced.total_amount == 0
    assert unpriced.clinic_amount == 0


def test_liquidation_validates_period_and_counts() -> None:
    with pytest.raises(InvalidInputError):
        calculate_liquidation("ana", 2024, 13, ROWS, RATES)
    with pytest.raises(InvalidInputError):
        calculate_liquidation("ana", 2024, 3, [("Lenguaje", "3")], RATES)


def test_liquidation_figure_derives_clinic_share() -> None:
    figure = LiquidationFigure(
        professional_id="ana",
        month=5,
        year=2024,
        total_sessions=3,
        total_amount=Decimal("1001"),
        professional_percentage=Decimal("0.333"),
        professional_amount=Decimal("333.333"),
    )
    assert figure.clinic_amount == Decimal("667.667")


def test_percentage_to_rate() -> None:
    assert percentage_to_rate(25) == Decimal("0.25")
    assert percentage_to_rate("12.5") == Decimal("0.125")
    with pytest.raises(InvalidInputError):
        percentage_to_rate("abc")


def test_status_transitions() -> None:
    status = transition(LiquidationStatus.PENDING, LiquidationStatus.APPROVED)
    status = transition(status, "paid")
    assert status is LiquidationStatus.PAID

    assert transition("pending", "paid") is LiquidationStatus.PAID
    assert transition("approved", "cancelled") is LiquidationStatus.CANCELLED

    with pytest.raises(InvalidTransitionError):
        transition("paid", "cancelled")
    with pytest.raises(InvalidTransitionError):
        transition("cancelled", "approved")
    with pytest.raises(InvalidTransitionError):
        transition("approved", "pending")


def test_recalculation_resets_to_pending_unless_paid() -> None:
    assert ensure_recalculable("approved") is LiquidationStatus.PENDING
    assert ensure_recalculable(LiquidationStatus.CANCELLED) is LiquidationStatus.PENDING
    with pytest.raises(InvalidTransitionError):
        ensure_recalculable("paid")


def test_liquidation_stats_groups_by_status() -> None:
    stats = liquidation_stats(
        [
            {"status": "pending", "total_amount": Decimal("1000")},
            {"status": "paid", "total_amount": Decimal("2500")},
            SimpleNamespace(status="paid", total_amount=500.0),
            SimpleNamespace(status="approved", total_amount=Decimal("700")),
            {"status": "cancelled", "total_amount": None},
        ]
    )

    assert (stats.total, stats.pending, stats.approved, stats.paid, stats.cancelled) == (5, 1, 1, 2, 1)
    assert stats.total_amount == Decimal("4700")
    assert stats.paid_amount == Decimal("3000")
    assert stats.pending_amount == Decimal("1000")


def test_audit_log_filters() -> None:
    audit = AuditLog()
    audit.record("admin", "liquidation.approved", "1", previous="pending")
    audit.record("admin", "value.set", "Lenguaje", value=Decimal("18000"))

    assert [event.target for event in audit.entries(action="value.set")] == ["Lenguaje"]
    assert audit.entries(actor="someone-else") == ()
    exported = audit.as_dicts()
    assert exported[1]["details"] == {"value": "18000"}
    audit.clear()
    assert audit.entries() == ()


def test_structured_logger_writes_json_lines(tmp_path) -> None:
    path = tmp_path / "logs" / "events.jsonl"
    logger = StructuredLogger(path=path, max_entries=2)
    logger.log("liquidation.calculated", total_amount=Decimal("136000"))
    logger.log("session.recorded", session_count=3)
    logger.log("session.recorded", session_count=4)

    assert len(logger.tail()) == 2
    assert logger.tail(event="session.recorded")[-1]["session_count"] == 4
    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 3
    assert '"total_amount": "136000"' in lines[0]


def test_audit_log_keeps_only_latest_entries() -> None:
    audit = AuditLog(max_entries=2)
    for target in ("1", "2", "3"):
        audit.record("admin", "liquidation.save", target)

    assert [event.target for event in audit.entries()] == ["2", "3"]
    assert len(audit.as_dicts(limit=10)) == 2
