"""Persistence and SQLModel definitions for the Psicomotriz web service."""
from __future__ import annotations

import json
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Tuple

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Session, SQLModel, create_engine, select

from ..exceptions import InvalidInputError
from ..models import LiquidationFigure, LiquidationStatus, PaymentStatus
from ..money import AmountLike, CENT, to_decimal
from .config import SQLITE_FILE_NAME

# ---------------------------------------------------------------------------
# Database models
# ---------------------------------------------------------------------------
engine = create_engine(
    f"sqlite:///{SQLITE_FILE_NAME}",
    echo=False,
    connect_args={"check_same_thread": False},
)

# Ensure fresh metadata when re-importing in test contexts.
SQLModel.metadata.clear()


class Professional(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    professional_id: str = Field(index=True, unique=True)
    full_name: str
    email: str = ""
    pin: str = ""
    phone: Optional[str] = None
    specialization: Optional[str] = None
    license_number: Optional[str] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class Child(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    full_name: str
    birth_date: Optional[date] = None
    diagnosis: Optional[str] = None
    school: Optional[str] = None
    assigned_professional_id: Optional[str] = None
    fee_value_cents: int = 0
    is_active: bool = True
    discharge_date: Optional[date] = None
    discharge_reason: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class ValueHistory(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("value_type", "year", "month"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    value_type: str  # module name priced for the month
    year: int
    month: int
    value_cents: int
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class ProfessionalModule(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("professional_id", "value_type"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    professional_id: str = Field(index=True)
    value_type: str
    commission_bps: int = 2500  # professional share, 2500 = 25%
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)


class MonthlySession(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("child_id", "professional_id", "module_name", "year", "month"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    child_id: int = Field(index=True)
    professional_id: str = Field(index=True)
    module_name: str
    year: int
    month: int
    session_count: int = 0
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class Liquidation(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("professional_id", "year", "month"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    professional_id: str = Field(index=True)
    year: int
    month: int
    total_sessions: int = 0
    total_cents: int = 0
    professional_rate: str = "0.25"  # exact fraction paid to the professional
    professional_cents: int = 0
    clinic_cents: int = 0
    module_breakdown: str = "[]"
    status: str = LiquidationStatus.PENDING.value  # pending|approved|paid|cancelled
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    paid_at: Optional[datetime] = None
    paid_by: Optional[str] = None
    payment_reference: Optional[str] = None
    observations: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class PaymentToClinic(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    professional_id: str = Field(index=True)
    year: int
    month: int
    payment_date: date
    payment_type: str  # efectivo|transferencia
    amount_cents: int
    notes: Optional[str] = None
    verification_status: str = PaymentStatus.PENDING.value  # pending|approved|rejected
    verified_by: Optional[str] = None
    verified_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


# ---------------------------------------------------------------------------
# Amount conversions
# ---------------------------------------------------------------------------
def to_cents(amount: AmountLike) -> int:
    return int((to_decimal(amount) / CENT).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    return Decimal(cents) * CENT


def percentage_to_bps(percentage: AmountLike) -> int:
    """Store a 0-100 percentage in basis points, refusing finer precision."""

    bps = to_decimal(percentage) * 100
    if bps != bps.to_integral_value():
        raise InvalidInputError(f"Commission percentage {percentage} has more than two decimals.")
    return int(bps)


def bps_to_percentage(bps: int) -> Decimal:
    return Decimal(bps) / Decimal(100)


# ---------------------------------------------------------------------------
# Database initialisation
# ---------------------------------------------------------------------------
def create_db_and_tables() -> None:
    SQLModel.metadata.create_all(engine)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------
def get_professional(session: Session, professional_id: str) -> Optional[Professional]:
    return session.exec(select(Professional).where(Professional.professional_id == professional_id)).first()


def upsert_value(session: Session, value_type: str, year: int, month: int, value: AmountLike) -> ValueHistory:
    row = session.exec(
        select(ValueHistory).where(
            ValueHistory.value_type == value_type,
            ValueHistory.year == year,
            ValueHistory.month == month,
        )
    ).first()
    if row is None:
        row = ValueHistory(value_type=value_type, year=year, month=month, value_cents=to_cents(value))
    else:
        row.value_cents = to_cents(value)
        row.updated_at = datetime.utcnow()
    session.add(row)
    session.commit()
    session.refresh(row)
    return row


def upsert_professional_module(
    session: Session,
    professional_id: str,
    value_type: str,
    percentage: AmountLike,
    *,
    is_active: bool = True,
) -> ProfessionalModule:
    row = session.exec(
        select(ProfessionalModule).where(
            ProfessionalModule.professional_id == professional_id,
            ProfessionalModule.value_type == value_type,
        )
    ).first()
    if row is None:
        row = ProfessionalModule(professional_id=professional_id, value_type=value_type)
    row.commission_bps = percentage_to_bps(percentage)
    row.is_active = is_active
    session.add(row)
    session.commit()
    session.refresh(row)
    return row


def upsert_monthly_session(
    session: Session,
    *,
    child_id: int,
    professional_id: str,
    module_name: str,
    year: int,
    month: int,
    session_count: int,
) -> MonthlySession:
    row = session.exec(
        select(MonthlySession).where(
            MonthlySession.child_id == child_id,
            MonthlySession.professional_id == professional_id,
            MonthlySession.module_name == module_name,
            MonthlySession.year == year,
            MonthlySession.month == month,
        )
    ).first()
    if row is None:
        row = MonthlySession(
            child_id=child_id,
            professional_id=professional_id,
            module_name=module_name,
            year=year,
            month=month,
        )
    row.session_count = session_count
    row.updated_at = datetime.utcnow()
    session.add(row)
    session.commit()
    session.refresh(row)
    return row


def load_liquidation_inputs(
    session: Session, professional_id: str, year: int, month: int
) -> Tuple[List[Tuple[str, int]], Dict[str, Decimal], Dict[str, Decimal]]:
    """Return the session rows, module values and commission percentages of a month."""

    sessions = session.exec(
        select(MonthlySession).where(
            MonthlySession.professional_id == professional_id,
            MonthlySession.year == year,
            MonthlySession.month == month,
            MonthlySession.session_count > 0,
        )
    ).all()
    values = session.exec(
        select(ValueHistory).where(ValueHistory.year == year, ValueHistory.month == month)
    ).all()
    modules = session.exec(
        select(ProfessionalModule).where(
            ProfessionalModule.professional_id == professional_id,
            ProfessionalModule.is_active == True,  # noqa: E712
        )
    ).all()
    rows = [(item.module_name, item.session_count) for item in sessions]
    rates = {item.value_type: from_cents(item.value_cents) for item in values}
    commissions = {item.value_type: bps_to_percentage(item.commission_bps) for item in modules}
    return rows, rates, commissions


def apply_figure(row: Liquidation, figure: LiquidationFigure) -> Liquidation:
    """Copy ``figure`` onto ``row``; the clinic share is stored as the remainder."""

    row.total_sessions = figure.total_sessions
    row.total_cents = to_cents(figure.total_amount)
    row.professional_rate = str(figure.professional_percentage)
    row.professional_cents = to_cents(figure.professional_amount)
    row.clinic_cents = row.total_cents - row.professional_cents
    row.module_breakdown = json.dumps(
        [
            {
                "module_name": item.module_name,
                "session_count": item.session_count,
                "rate": str(item.rate),
                "amount": str(item.amount),
                "commission_rate": str(item.commission_rate),
            }
            for item in figure.module_breakdown
        ]
    )
    row.updated_at = datetime.utcnow()
    return row


def serialize_liquidation(row: Liquidation) -> Dict[str, object]:
    return {
        "id": row.id,
        "professional_id": row.professional_id,
        "year": row.year,
        "month": row.month,
        "total_sessions": row.total_sessions,
        "total_amount": float(from_cents(row.total_cents)),
        "professional_percentage": float(Decimal(row.professional_rate)),
        "professional_amount": float(from_cents(row.professional_cents)),
        "clinic_amount": float(from_cents(row.clinic_cents)),
        "module_breakdown": json.loads(row.module_breakdown or "[]"),
        "status": row.status,
        "approved_at": row.approved_at.isoformat() if row.approved_at else None,
        "approved_by": row.approved_by,
        "paid_at": row.paid_at.isoformat() if row.paid_at else None,
        "paid_by": row.paid_by,
        "payment_reference": row.payment_reference,
        "observations": row.observations,
    }


def serialize_payment(row: PaymentToClinic) -> Dict[str, object]:
    return {
        "id": row.id,
        "professional_id": row.professional_id,
        "year": row.year,
        "month": row.month,
        "payment_date": row.payment_date.isoformat(),
        "payment_type": row.payment_type,
        "amount": float(from_cents(row.amount_cents)),
        "notes": row.notes,
        "status": row.verification_status,
        "verified_by": row.verified_by,
        "verified_at": row.verified_at.isoformat() if row.verified_at else None,
    }


def serialize_professional(row: Professional) -> Dict[str, object]:
    # The PIN never leaves the database.
    return {
        "professional_id": row.professional_id,
        "full_name": row.full_name,
        "email": row.email,
        "phone": row.phone,
        "specialization": row.specialization,
        "license_number": row.license_number,
        "is_active": row.is_active,
    }


def serialize_child(row: Child, professional_name: Optional[str] = None) -> Dict[str, object]:
    return {
        "id": row.id,
        "full_name": row.full_name,
        "birth_date": row.birth_date.isoformat() if row.birth_date else None,
        "diagnosis": row.diagnosis,
        "school": row.school,
        "assigned_professional_id": row.assigned_professional_id,
        "professional_name": professional_name,
        "fee_value": float(from_cents(row.fee_value_cents)),
        "is_active": row.is_active,
        "discharge_date": row.discharge_date.isoformat() if row.discharge_date else None,
        "discharge_reason": row.discharge_reason,
    }


create_db_and_tables()


__all__ = [
    "Child",
    "Liquidation",
    "MonthlySession",
    "PaymentToClinic",
    "Professional",
    "ProfessionalModule",
    "ValueHistory",
    "apply_figure",
    "bps_to_percentage",
    "create_db_and_tables",
    "engine",
    "from_cents",
    "get_professional",
    "load_liquidation_inputs",
    "percentage_to_bps",
    "serialize_child",
    "serialize_liquidation",
    "serialize_payment",
    "serialize_professional",
    "to_cents",
    "upsert_monthly_session",
    "upsert_professional_module",
    "upsert_value",
]
