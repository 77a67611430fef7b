"""FastAPI service for the Psicomotriz clinic.

The service stores professionals, children, monthly session counts, module
values, commission settings and payments to the clinic in SQLite, and
computes monthly liquidations with :mod:`psicomotriz.liquidation`. Every endpoint answers JSON. Run it with
``uvicorn psicomotriz.webapp:app``.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Optional

from fastapi import FastAPI, Form, Query, Request
from fastapi.responses import JSONResponse
from sqlmodel import Session, desc, select
from starlette.middleware.sessions import SessionMiddleware

from ..admin import AuditLog
from ..api import ApiExporter
from ..billing import DEFAULT_COMMISSION_RATE, calculate_commission, calculate_monthly_total
from ..exceptions import InvalidInputError, InvalidTransitionError, LiquidationNotFoundError
from ..i18n import period_label
from ..liquidation import calculate_liquidation, ensure_recalculable, liquidation_stats, transition
from ..models import LiquidationFigure, LiquidationStatus, PaymentStatus, require_count, require_period
from ..money import format_currency, to_decimal
from ..ops import StructuredLogger
from ..payments import payment_totals, require_payment_amount, require_payment_type, review_payment
from .config import (
    ADMIN_PIN,
    DEFAULT_COMMISSION_PERCENTAGE,
    EVENT_LOG_PATH,
    ROLE_ADMIN,
    ROLE_PROFESSIONAL,
    SESSION_SECRET,
)
from .persistence import (
    Child,
    Liquidation,
    PaymentToClinic,
    Professional,
    ProfessionalModule,
    ValueHistory,
    apply_figure,
    bps_to_percentage,
    engine,
    from_cents,
    get_professional,
    load_liquidation_inputs,
    serialize_child,
    serialize_liquidation,
    serialize_payment,
    serialize_professional,
    to_cents,
    upsert_monthly_session,
    upsert_professional_module,
    upsert_value,
)

# ---------------------------------------------------------------------------
# FastAPI application setup
# ---------------------------------------------------------------------------
app = FastAPI(title="Psicomotriz")
app.add_middleware(
    SessionMiddleware,
    secret_key=SESSION_SECRET,
    same_site="lax",
    max_age=None,
)

event_log = StructuredLogger(path=EVENT_LOG_PATH)
audit_log = AuditLog()
exporter = ApiExporter()


@app.exception_handler(InvalidInputError)
async def _invalid_input(request: Request, exc: InvalidInputError) -> JSONResponse:
    return JSONResponse({"detail": str(exc)}, status_code=400)


@app.exception_handler(InvalidTransitionError)
async def _invalid_transition(request: Request, exc: InvalidTransitionError) -> JSONResponse:
    return JSONResponse({"detail": str(exc)}, status_code=400)


@app.exception_handler(LiquidationNotFoundError)
async def _liquidation_not_found(request: Request, exc: LiquidationNotFoundError) -> JSONResponse:
    return JSONResponse({"detail": str(exc)}, status_code=404)


# ---------------------------------------------------------------------------
# Session helpers
# ---------------------------------------------------------------------------
def current_role(request: Request) -> Optional[str]:
    return request.session.get("role")


def current_user(request: Request) -> Optional[str]:
    return request.session.get("user_id")


def require_role(request: Request, *roles: str) -> Optional[JSONResponse]:
    role = current_role(request)
    if not role:
        return JSONResponse({"detail": "Authentication required."}, status_code=401)
    if roles and role not in roles:
        return JSONResponse({"detail": "Not allowed for this role."}, status_code=403)
    return None


def _parse_amount(raw: str, label: str) -> Decimal:
    try:
        return to_decimal(raw)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"{label}: {exc}") from exc


def _visible_professional(request: Request, professional_id: Optional[str]) -> Optional[str]:
    """Professionals only ever see their own rows."""

    if current_role(request) == ROLE_PROFESSIONAL:
        return current_user(request)
    return professional_id


def _compute_figure(session: Session, professional_id: str, year: int, month: int) -> LiquidationFigure:
    rows, rates, commissions = load_liquidation_inputs(session, professional_id, year, month)
    figure = calculate_liquidation(
        professional_id,
        year,
        month,
        rows,
        rates,
        commissions,
        default_percentage=DEFAULT_COMMISSION_PERCENTAGE,
    )
    event_log.log(
        "liquidation.calculated",
        professional_id=professional_id,
        year=year,
        month=month,
        total_amount=figure.total_amount,
    )
    return figure


def _get_liquidation(session: Session, liquidation_id: int) -> Liquidation:
    row = session.get(Liquidation, liquidation_id)
    if row is None:
        raise LiquidationNotFoundError(f"Liquidation {liquidation_id} does not exist.")
    return row


def _change_status(
    request: Request,
    liquidation_id: int,
    target: LiquidationStatus,
    *,
    reference: Optional[str] = None,
) -> Dict[str, object]:
    actor = current_user(request) or ROLE_ADMIN
    with Session(engine, expire_on_commit=False) as session:
        row = _get_liquidation(session, liquidation_id)
        previous = row.status
        row.status = transition(previous, target).value
        now = datetime.utcnow()
        if target is LiquidationStatus.APPROVED:
            row.approved_at = now
            row.approved_by = actor
        elif target is LiquidationStatus.PAID:
            row.paid_at = now
            row.paid_by = actor
            row.payment_reference = reference or None
        row.updated_at = now
        session.add(row)
        session.commit()
        session.refresh(row)
    event_log.log("liquidation.status_changed", liquidation_id=liquidation_id, status=row.status, previous=previous)
    audit_log.record(actor, f"liquidation.{target.value}", str(liquidation_id), previous=previous)
    return serialize_liquidation(row)


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------
@app.post("/login/admin")
def admin_login(request: Request, pin: str = Form(...)):
    if pin != ADMIN_PIN:
        event_log.log("login.failed", role=ROLE_ADMIN)
        return JSONResponse({"detail": "Incorrect PIN."}, status_code=401)
    request.session["role"] = ROLE_ADMIN
    request.session["user_id"] = ROLE_ADMIN
    return {"role": ROLE_ADMIN}


@app.post("/login/professional")
def professional_login(request: Request, professional_id: str = Form(...), pin: str = Form(...)):
    with Session(engine) as session:
        professional = get_professional(session, professional_id)
        valid = professional is not None and professional.is_active and professional.pin == pin
    if not valid:
        event_log.log("login.failed", role=ROLE_PROFESSIONAL, professional_id=professional_id)
        return JSONResponse({"detail": "Incorrect professional or PIN."}, status_code=401)
    request.session["role"] = ROLE_PROFESSIONAL
    request.session["user_id"] = professional_id
    return {"role": ROLE_PROFESSIONAL, "professional_id": professional_id}


@app.post("/logout")
def logout(request: Request):
    request.session.clear()
    return {"ok": True}


# ---------------------------------------------------------------------------
# Billing
# ---------------------------------------------------------------------------
@app.get("/api/billing/preview")
def billing_preview(
    request: Request,
    sessions: int = Query(..., ge=0),
    module_value: str = Query(...),
    rate: Optional[str] = Query(None),
):
    if (denied := require_role(request)) is not None:
        return denied
    total = calculate_monthly_total(sessions, _parse_amount(module_value, "module_value"))
    commission_rate = _parse_amount(rate, "rate") if rate is not None else DEFAULT_COMMISSION_RATE
    commission = calculate_commission(total, commission_rate)
    return {
        "sessions": sessions,
        "total_amount": float(total),
        "commission_rate": float(commission_rate),
        "commission": float(commission),
        "total_amount_display": format_currency(total),
        "commission_display": format_currency(commission),
    }


# ---------------------------------------------------------------------------
# Admin catalogue
# ---------------------------------------------------------------------------
@app.post("/api/professionals")
def create_professional(
    request: Request,
    professional_id: str = Form(...),
    full_name: str = Form(...),
    pin: str = Form(...),
    email: str = Form(""),
    specialization: str = Form(""),
):
    if (denied := require_role(request, ROLE_ADMIN)) is not None:
        return denied
    with Session(engine) as session:
        if get_professional(session, professional_id) is not None:
            return JSONResponse({"detail": "Professional already exists."}, status_code=409)
        professional = Professional(
            professional_id=professional_id,
            full_name=full_name,
            pin=pin,
            email=email,
            specialization=specialization or None,
        )
        session.add(professional)
        session.commit()
    audit_log.record(ROLE_ADMIN, "professional.create", professional_id)
    return JSONResponse({"professional_id": professional_id, "full_name": full_name}, status_code=201)


@app.post("/api/children")
def create_child(
    request: Request,
    full_name: str = Form(...),
    assigned_professional_id: str = Form(""),
    fee_value: str = Form("0"),
    diagnosis: str = Form(""),
):
    if (denied := require_role(request, ROLE_ADMIN)) is not None:
        return denied
    fee = _parse_amount(fee_value, "fee_value")
    if fee < 0:
        raise InvalidInputError("fee_value must be zero or greater.")
    with Session(engine, expire_on_commit=False) as session:
        child = Child(
            full_name=full_name,
            assigned_professional_id=assigned_professional_id or None,
            fee_value_cents=to_cents(fee),
            diagnosis=diagnosis or None,
        )
        session.add(child)
        session.commit()
        session.refresh(child)
    audit_log.record(ROLE_ADMIN, "child.create", str(child.id))
    return JSONResponse({"id": child.id, "full_name": child.full_name}, status_code=201)


@app.post("/api/values")
def set_module_value(
    request: Request,
    value_type: str = Form(...),
    year: int = Form(...),
    month: int = Form(...),
    value: str = Form(...),
):
    if (denied := require_role(request, ROLE_ADMIN)) is not None:
        return denied
    require_period(month, year)
    amount = _parse_amount(value, "value")
    if amount < 0:
        raise InvalidInputError("value must be zero or greater.")
    with Session(engine) as session:
        row = upsert_value(session, value_type, year, month, amount)
        stored = from_cents(row.value_cents)
    audit_log.record(ROLE_ADMIN, "value.set", value_type, year=year, month=month, value=stored)
    return {
        "value_type": value_type,
        "year": year,
        "month": month,
        "value": float(stored),
        "value_display": format_currency(stored),
    }


@app.post("/api/professionals/{professional_id}/modules")
def set_professional_module(
    request: Request,
    professional_id: str,
    value_type: str = Form(...),
    commission_percentage: str = Form(...),
    is_active: bool = Form(True),
):
    if (denied := require_role(request, ROLE_ADMIN)) is not None:
        return denied
    percentage = _parse_amount(commission_percentage, "commission_percentage")
    with Session(engine) as session:
        if get_professional(session, professional_id) is None:
            return JSONResponse({"detail": "Unknown professional."}, status_code=404)
        row = upsert_professional_module(session, professional_id, value_type, percentage, is_active=is_active)
        bps = row.commission_bps
    audit_log.record(ROLE_ADMIN, "commission.set", professional_id, value_type=value_type, percentage=percentage)
    return {
        "professional_id": professional_id,
        "value_type": value_type,
        "commission_percentage": bps / 100,
        "is_active": is_active,
    }


@app.get("/api/professionals")
def list_professionals(request: Request, include_inactive: bool = Query(False)):
    if (denied := require_role(request, ROLE_ADMIN)) is not None:
        return denied
    query = select(Professional).order_by(Professional.full_name)
    if not include_inactive:
        query = query.where(Professional.is_active == True)  # noqa: E712
    with Session(engine) as session:
        rows = session.exec(query).all()
    return {"professionals": [serialize_professional(row) for row in rows]}


def _set_professional_active(professional_id: str, active: bool) -> JSONResponse | Dict[str, object]:
    with Session(engine, expire_on_commit=False) as session:
        professional = get_professional(session, professional_id)
        if professional is None:
            return JSONResponse({"detail": "Unknown professional."}, status_code=404)
        if not active:
            assigned = session.exec(
                select(Child).where(
                    Child.assigned_professional_id == professional_id,
                    Child.is_active == True,  # noqa: E712
                )
            ).all()
            if assigned:
                return JSONResponse(
                    {"detail": f"Professional still has {len(assigned)} active child(ren) assigned."},
                    status_code=409,
                )
        professional.is_active = active
        professional.updated_at = datetime.utcnow()
        session.add(professional)
        session.commit()
        session.refresh(professional)
    audit_log.record(ROLE_ADMIN, "professional.reactivate" if active else "professional.deactivate", professional_id)
    return serialize_professional(professional)


@app.post("/api/professionals/{professional_id}/deactivate")
def deactivate_professional(request: Request, professional_id: str):
    if (denied := require_role(request, ROLE_ADMIN)) is not None:
        return denied
    return _set_professional_active(professional_id, False)


@app.post("/api/professionals/{professional_id}/reactivate")
def reactivate_professional(request: Request, professional_id: str):
    if (denied := require_role(request, ROLE_ADMIN)) is not None:
        return denied
    return _set_professional_active(professional_id, True)


@app.get("/api/professionals/{professional_id}/modules")
def list_professional_modules(request: Request, professional_id: str):
    if (denied := require_role(request, ROLE_ADMIN, ROLE_PROFESSIONAL)) is not None:
        return denied
    if current_role(request) == ROLE_PROFESSIONAL and current_user(request) != professional_id:
        return JSONResponse({"detail": "Not allowed for this role."}, status_code=403)
    with Session(engine) as session:
        if get_professional(session, professional_id) is None:
            return JSONResponse({"detail": "Unknown professional."}, status_code=404)
        rows = session.exec(
            select(ProfessionalModule)
            .where(ProfessionalModule.professional_id == professional_id)
            .order_by(ProfessionalModule.value_type)
        ).all()
    return {
        "professional_id": professional_id,
        "modules": [
            {
                "value_type": row.value_type,
                "commission_percentage": float(bps_to_percentage(row.commission_bps)),
                "is_active": row.is_active,
            }
            for row in rows
        ],
    }


@app.get("/api/children")
def list_children(request: Request, include_inactive: bool = Query(False)):
    if (denied := require_role(request, ROLE_ADMIN, ROLE_PROFESSIONAL)) is not None:
        return denied
    query = select(Child).order_by(Child.full_name)
    if not include_inactive:
        query = query.where(Child.is_active == True)  # noqa: E712
    if current_role(request) == ROLE_PROFESSIONAL:
        query = query.where(Child.assigned_professional_id == current_user(request))
    with Session(engine) as session:
        rows = session.exec(query).all()
        names = {row.professional_id: row.full_name for row in session.exec(select(Professional)).all()}
    return {"children": [serialize_child(row, names.get(row.assigned_professional_id)) for row in rows]}


@app.post("/api/children/{child_id}/discharge")
def discharge_child(request: Request, child_id: int, reason: str = Form("")):
    if (denied := require_role(request, ROLE_ADMIN)) is not None:
        return denied
    with Session(engine, expire_on_commit=False) as session:
        child = session.get(Child, child_id)
        if child is None:
            return JSONResponse({"detail": "Unknown child."}, status_code=404)
        if not child.is_active:
            raise InvalidInputError("Child is already discharged.")
        child.is_active = False
        child.discharge_date = date.today()
        child.discharge_reason = reason or None
        child.updated_at = datetime.utcnow()
        session.add(child)
        session.commit()
        session.refresh(child)
    audit_log.record(ROLE_ADMIN, "child.discharge", str(child_id), reason=reason)
    return serialize_child(child)


@app.post("/api/children/{child_id}/reactivate")
def reactivate_child(request: Request, child_id: int):
    if (denied := require_role(request, ROLE_ADMIN)) is not None:
        return denied
    with Session(engine, expire_on_commit=False) as session:
        child = session.get(Child, child_id)
        if child is None:
            return JSONResponse({"detail": "Unknown child."}, status_code=404)
        child.is_active = True
        child.discharge_date = None
        child.discharge_reason = None
        child.updated_at = datetime.utcnow()
        session.add(child)
        session.commit()
        session.refresh(child)
    audit_log.record(ROLE_ADMIN, "child.reactivate", str(child_id))
    return serialize_child(child)


@app.get("/api/values")
def list_module_values(
    request: Request,
    value_type: Optional[str] = Query(None),
    year: Optional[int] = Query(None),
):
    if (denied := require_role(request, ROLE_ADMIN, ROLE_PROFESSIONAL)) is not None:
        return denied
    query = select(ValueHistory).order_by(desc(ValueHistory.year), desc(ValueHistory.month), ValueHistory.value_type)
    if value_type:
        query = query.where(ValueHistory.value_type == value_type)
    if year is not None:
        query = query.where(ValueHistory.year == year)
    with Session(engine) as session:
        rows = session.exec(query).all()
    return {
        "values": [
            {
                "value_type": row.value_type,
                "year": row.year,
                "month": row.month,
                "value": float(from_cents(row.value_cents)),
                "value_display": format_currency(from_cents(row.value_cents)),
            }
            for row in rows
        ]
    }


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------
@app.post("/api/sessions")
def record_sessions(
    request: Request,
    child_id: int = Form(...),
    module_name: str = Form(...),
    year: int = Form(...),
    month: int = Form(...),
    session_count: int = Form(...),
    professional_id: str = Form(""),
):
    if (denied := require_role(request, ROLE_ADMIN, ROLE_PROFESSIONAL)) is not None:
        return denied
    owner = _visible_professional(request, professional_id or None)
    if not owner:
        raise InvalidInputError("professional_id is required.")
    require_period(month, year)
    require_count(session_count, "Session count")
    with Session(engine) as session:
        child = session.get(Child, child_id)
        if child is None:
            return JSONResponse({"detail": "Unknown child."}, status_code=404)
        if get_professional(session, owner) is None:
            return JSONResponse({"detail": "Unknown professional."}, status_code=404)
        row = upsert_monthly_session(
            session,
            child_id=child_id,
            professional_id=owner,
            module_name=module_name,
            year=year,
            month=month,
            session_count=session_count,
        )
        row_id = row.id
    event_log.log(
        "session.recorded",
        professional_id=owner,
        child_id=child_id,
        module_name=module_name,
        year=year,
        month=month,
        session_count=session_count,
    )
    return {
        "id": row_id,
        "professional_id": owner,
        "child_id": child_id,
        "module_name": module_name,
        "year": year,
        "month": month,
        "session_count": session_count,
    }


# ---------------------------------------------------------------------------
# Liquidations
# ---------------------------------------------------------------------------
@app.get("/api/liquidations/preview")
def preview_liquidation(
    request: Request,
    year: int = Query(...),
    month: int = Query(...),
    professional_id: str = Query(""),
):
    if (denied := require_role(request, ROLE_ADMIN, ROLE_PROFESSIONAL)) is not None:
        return denied
    owner = _visible_professional(request, professional_id or None)
    if not owner:
        raise InvalidInputError("professional_id is required.")
    with Session(engine) as session:
        figure = _compute_figure(session, owner, year, month)
    return exporter.liquidation(figure)


@app.post("/api/liquidations")
def create_or_update_liquidation(
    request: Request,
    professional_id: str = Form(...),
    year: int = Form(...),
    month: int = Form(...),
    observations: str = Form(""),
):
    if (denied := require_role(request, ROLE_ADMIN)) is not None:
        return denied
    with Session(engine, expire_on_commit=False) as session:
        if get_professional(session, professional_id) is None:
            return JSONResponse({"detail": "Unknown professional."}, status_code=404)
        row = session.exec(
            select(Liquidation).where(
                Liquidation.professional_id == professional_id,
                Liquidation.year == year,
                Liquidation.month == month,
            )
        ).first()
        if row is None:
            row = Liquidation(professional_id=professional_id, year=year, month=month)
        else:
            row.status = ensure_recalculable(row.status).value
            row.approved_at = None
            row.approved_by = None
        figure = _compute_figure(session, professional_id, year, month)
        apply_figure(row, figure)
        if observations:
            row.observations = observations
        session.add(row)
        session.commit()
        session.refresh(row)
    audit_log.record(ROLE_ADMIN, "liquidation.save", str(row.id), year=year, month=month)
    return serialize_liquidation(row)


@app.get("/api/liquidations")
def list_liquidations(
    request: Request,
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None),
    professional_id: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
):
    if (denied := require_role(request, ROLE_ADMIN, ROLE_PROFESSIONAL)) is not None:
        return denied
    owner = _visible_professional(request, professional_id)
    query = select(Liquidation).order_by(desc(Liquidation.year), desc(Liquidation.month), Liquidation.id)
    if year is not None:
        query = query.where(Liquidation.year == year)
    if month is not None:
        query = query.where(Liquidation.month == month)
    if owner:
        query = query.where(Liquidation.professional_id == owner)
    if status:
        try:
            wanted = LiquidationStatus(status)
        except ValueError as exc:
            raise InvalidInputError(f"Unknown status: {status!r}.") from exc
        query = query.where(Liquidation.status == wanted.value)
    with Session(engine) as session:
        rows = session.exec(query).all()
    return {"liquidations": [serialize_liquidation(row) for row in rows]}


@app.post("/api/liquidations/{liquidation_id}/approve")
def approve_liquidation(request: Request, liquidation_id: int):
    if (denied := require_role(request, ROLE_ADMIN)) is not None:
        return denied
    return _change_status(request, liquidation_id, LiquidationStatus.APPROVED)


@app.post("/api/liquidations/{liquidation_id}/pay")
def pay_liquidation(request: Request, liquidation_id: int, reference: str = Form("")):
    if (denied := require_role(request, ROLE_ADMIN)) is not None:
        return denied
    return _change_status(request, liquidation_id, LiquidationStatus.PAID, reference=reference)


@app.post("/api/liquidations/{liquidation_id}/cancel")
def cancel_liquidation(request: Request, liquidation_id: int):
    if (denied := require_role(request, ROLE_ADMIN)) is not None:
        return denied
    return _change_status(request, liquidation_id, LiquidationStatus.CANCELLED)


@app.get("/api/liquidations/stats")
def liquidations_stats(request: Request, year: int = Query(...), month: Optional[int] = Query(None)):
    if (denied := require_role(request, ROLE_ADMIN)) is not None:
        return denied
    query = select(Liquidation).where(Liquidation.year == year)
    if month is not None:
        query = query.where(Liquidation.month == month)
    with Session(engine) as session:
        rows = session.exec(query).all()
    stats = liquidation_stats({"status": row.status, "total_amount": from_cents(row.total_cents)} for row in rows)
    return exporter.stats(stats)


@app.get("/api/summary")
def professional_summary(
    request: Request,
    year: int = Query(...),
    month: int = Query(...),
    professional_id: str = Query(""),
):
    if (denied := require_role(request, ROLE_ADMIN, ROLE_PROFESSIONAL)) is not None:
        return denied
    owner = _visible_professional(request, professional_id or None)
    if not owner:
        raise InvalidInputError("professional_id is required.")
    with Session(engine) as session:
        figure = _compute_figure(session, owner, year, month)
        stored = session.exec(
            select(Liquidation).where(
                Liquidation.professional_id == owner,
                Liquidation.year == year,
                Liquidation.month == month,
            )
        ).first()
    status = stored.status if stored is not None else None
    return {
        "professional_id": owner,
        "period": period_label(month, year),
        "total_sessions": figure.total_sessions,
        "total_amount": format_currency(figure.total_amount),
        "professional_amount": format_currency(figure.professional_amount),
        "clinic_amount": format_currency(figure.clinic_amount),
        "status": status,
        "status_label": exporter.status_label(status) if status else None,
    }


# ---------------------------------------------------------------------------
# Payments to the clinic
# ---------------------------------------------------------------------------
@app.post("/api/payments")
def record_payment(
    request: Request,
    year: int = Form(...),
    month: int = Form(...),
    payment_type: str = Form(...),
    amount: str = Form(...),
    payment_date: Optional[date] = Form(None),
    notes: str = Form(""),
    professional_id: str = Form(""),
):
    if (denied := require_role(request, ROLE_ADMIN, ROLE_PROFESSIONAL)) is not None:
        return denied
    owner = _visible_professional(request, professional_id or None)
    if not owner:
        raise InvalidInputError("professional_id is required.")
    require_period(month, year)
    kind = require_payment_type(payment_type)
    paid = require_payment_amount(_parse_amount(amount, "amount"))
    with Session(engine, expire_on_commit=False) as session:
        if get_professional(session, owner) is None:
            return JSONResponse({"detail": "Unknown professional."}, status_code=404)
        row = PaymentToClinic(
            professional_id=owner,
            year=year,
            month=month,
            payment_date=payment_date or date.today(),
            payment_type=kind.value,
            amount_cents=to_cents(paid),
            notes=notes or None,
        )
        session.add(row)
        session.commit()
        session.refresh(row)
    event_log.log("payment.recorded", professional_id=owner, payment_id=row.id, amount=paid, payment_type=kind)
    return JSONResponse(serialize_payment(row), status_code=201)


@app.get("/api/payments")
def list_payments(
    request: Request,
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None),
    professional_id: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
):
    if (denied := require_role(request, ROLE_ADMIN, ROLE_PROFESSIONAL)) is not None:
        return denied
    owner = _visible_professional(request, professional_id)
    query = select(PaymentToClinic).order_by(desc(PaymentToClinic.payment_date), desc(PaymentToClinic.id))
    if year is not None:
        query = query.where(PaymentToClinic.year == year)
    if month is not None:
        query = query.where(PaymentToClinic.month == month)
    if owner:
        query = query.where(PaymentToClinic.professional_id == owner)
    if status:
        try:
            wanted = PaymentStatus(status)
        except ValueError as exc:
            raise InvalidInputError(f"Unknown status: {status!r}.") from exc
        query = query.where(PaymentToClinic.verification_status == wanted.value)
    with Session(engine) as session:
        rows = session.exec(query).all()
        names = {row.professional_id: row.full_name for row in session.exec(select(Professional)).all()}
    payments = []
    for row in rows:
        payload = serialize_payment(row)
        payload["professional_name"] = names.get(row.professional_id)
        payload["status_label"] = exporter.payment_status_label(row.verification_status)
        payments.append(payload)
    totals = payment_totals(payments)
    return {"payments": payments, "totals": {key: float(value) for key, value in totals.items()}}


@app.post("/api/payments/{payment_id}/review")
def review_clinic_payment(request: Request, payment_id: int, status: str = Form(...)):
    if (denied := require_role(request, ROLE_ADMIN)) is not None:
        return denied
    actor = current_user(request) or ROLE_ADMIN
    with Session(engine, expire_on_commit=False) as session:
        row = session.get(PaymentToClinic, payment_id)
        if row is None:
            return JSONResponse({"detail": "Unknown payment."}, status_code=404)
        row.verification_status = review_payment(row.verification_status, status).value
        row.verified_by = actor
        row.verified_at = datetime.utcnow()
        session.add(row)
        session.commit()
        session.refresh(row)
    event_log.log("payment.reviewed", payment_id=payment_id, status=row.verification_status)
    audit_log.record(actor, f"payment.{row.verification_status}", str(payment_id))
    return serialize_payment(row)


@app.get("/api/audit")
def audit_entries(request: Request, limit: int = Query(100, ge=1, le=1000)):
    if (denied := require_role(request, ROLE_ADMIN)) is not None:
        return denied
    return {"entries": audit_log.as_dicts(limit)}


__all__ = [
    "app",
    "audit_log",
    "current_role",
    "event_log",
    "exporter",
    "require_role",
]
