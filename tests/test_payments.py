from decimal import Decimal

import pytest

from psicomotriz.api import ApiExporter
from psicomotriz.exceptions import InvalidInputError, InvalidTransitionError
from psicomotriz.models import PaymentStatus, PaymentType
from psicomotriz.payments import payment_totals, require_payment_amount, require_payment_type, review_payment


def test_review_moves_pending_payment_to_decision() -> None:
    assert review_payment("pending", "approved") is PaymentStatus.APPROVED
    assert review_payment(PaymentStatus.PENDING, PaymentStatus.REJECTED) is PaymentStatus.REJECTED


def test_review_refuses_reviewed_payments_and_bad_decisions() -> None:
    with pytest.raises(InvalidTransitionError):
        review_payment("approved", "rejected")
    with pytest.raises(InvalidTransitionError):
        review_payment("rejected", "approved")
    with pytest.raises(InvalidInputError):
        review_payment("pending", "pending")
    with pytest.raises(InvalidInputError):
        review_payment("pending", "maybe")


def test_payment_type_and_amount_validation() -> None:
    assert require_payment_type("efectivo") is PaymentType.CASH
    assert require_payment_type(PaymentType.TRANSFER) is PaymentType.TRANSFER
    with pytest.raises(InvalidInputError):
        require_payment_type("cheque")

    assert require_payment_amount("97000") == Decimal("97000")
    with pytest.raises(InvalidInputError):
        require_payment_amount(0)
    with pytest.raises(InvalidInputError):
        require_payment_amount("-1")


def test_payment_totals_by_status() -> None:
    totals = payment_totals(
        [
            {"status": "pending", "amount": 1000.0},
            {"status": "approved", "amount": Decimal("97000")},
            {"status": PaymentStatus.APPROVED, "amount": "3000"},
        ]
    )

    assert totals == {"pending": Decimal("1000"), "approved": Decimal("100000"), "rejected": Decimal("0")}


def test_payment_status_labels() -> None:
    exporter = ApiExporter()
    assert exporter.payment_status_label("approved") == "Verificado"
    assert exporter.payment_status_label(PaymentStatus.REJECTED, locale="en") == "Rejected"
