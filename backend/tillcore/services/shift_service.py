"""
Shift (Till) Management Service

WHY: Each shift is a period of cash accountability for one staff member.
Sales are attributed to the open shift; at close the drawer count is
reconciled against opening float + cash sales.

DESIGN PRINCIPLES:
- At most one open shift per staff member (or per staff + unit, see SHIFT_SCOPE)
- "Current shift" is always a query, never cached state
- Shifts are immutable once closed
- Discrepancy never blocks close; it only raises an alert
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Shift, Staff, BusinessUnit, Sale
from ..validation import (
    AccessDeniedError,
    ConflictError,
    NotFoundError,
    ValidationError,
    parse_cents,
)
from tillcore.time_utils import utcnow
from . import alert_service, reconciliation_service
from .concurrency import lock_for_update, run_with_retry
from .reconciliation_service import ShiftSummary


SHIFT_OPEN = "open"
SHIFT_CLOSED = "closed"

SCOPE_STAFF = "staff"
SCOPE_UNIT = "unit"


def _scope() -> str:
    scope = current_app.config.get("SHIFT_SCOPE", SCOPE_STAFF)
    return scope if scope in (SCOPE_STAFF, SCOPE_UNIT) else SCOPE_STAFF


def _open_slot(staff_id: int, business_unit_id: int) -> str:
    """Key that is unique among open shifts."""
    if _scope() == SCOPE_UNIT:
        return f"staff:{staff_id}:unit:{business_unit_id}"
    return f"staff:{staff_id}"


# =============================================================================
# QUERIES
# =============================================================================

def get_current_shift(staff_id: int, business_unit_id: int | None = None) -> Shift | None:
    """Get the open shift for a staff member, if any."""
    query = db.session.query(Shift).filter_by(staff_id=staff_id, status=SHIFT_OPEN)
    if _scope() == SCOPE_UNIT and business_unit_id is not None:
        query = query.filter_by(business_unit_id=business_unit_id)
    return query.order_by(desc(Shift.opened_at)).first()


def get_shift(shift_id: int) -> Shift:
    shift = db.session.get(Shift, shift_id)
    if not shift:
        raise NotFoundError(f"Shift {shift_id} not found")
    return shift


def list_shift_history(
    business_unit_id: int,
    *,
    status: str | None = None,
    staff_id: int | None = None,
    limit: int = 50,
) -> list[Shift]:
    """Shifts for a business unit, newest first."""
    query = db.session.query(Shift).filter_by(business_unit_id=business_unit_id)
    if status:
        if status not in (SHIFT_OPEN, SHIFT_CLOSED):
            raise ValidationError(f"Invalid status: {status}")
        query = query.filter_by(status=status)
    if staff_id:
        query = query.filter_by(staff_id=staff_id)
    return query.order_by(desc(Shift.opened_at), desc(Shift.id)).limit(limit).all()


def list_open_shifts(business_unit_id: int) -> list[Shift]:
    return list_shift_history(business_unit_id, status=SHIFT_OPEN, limit=500)


def get_shift_sales(shift_id: int) -> list[Sale]:
    return db.session.query(Sale).filter_by(shift_id=shift_id).order_by(Sale.created_at, Sale.id).all()


def get_shift_detail(shift_id: int) -> dict:
    """
    Shift with its attributed sales.

    Open shifts get a reconciliation preview assuming the drawer holds
    exactly the expected cash; closed shifts report their stamped result.
    """
    shift = get_shift(shift_id)
    sales = get_shift_sales(shift_id)

    if shift.is_open:
        preview = reconciliation_service.build_summary(
            shift, reconciliation_service.expected_cash(shift)
        )
    else:
        preview = reconciliation_service.build_summary(shift, shift.closing_cash_cents)

    return {
        "shift": shift.to_dict(),
        "sales": [s.to_dict() for s in sales],
        "summary": preview.to_dict(),
    }


# =============================================================================
# LIFECYCLE
# =============================================================================

def open_shift(staff_id: int, business_unit_id: int, opening_cash_cents) -> Shift:
    """
    Open a new shift for a staff member.

    Args:
        staff_id: Staff member accountable for the drawer
        business_unit_id: Store front the drawer belongs to
        opening_cash_cents: Starting float (in cents, >= 0)

    Raises:
        ValidationError: opening cash missing or invalid
        NotFoundError: staff or business unit missing
        ConflictError: staff already has an open shift
    """
    opening_cash_cents = parse_cents(opening_cash_cents, "opening_cash_cents")

    staff = db.session.get(Staff, staff_id)
    if not staff or not staff.is_active:
        raise NotFoundError(f"Staff {staff_id} not found")

    unit = db.session.get(BusinessUnit, business_unit_id)
    if not unit or not unit.is_active:
        raise NotFoundError(f"Business unit {business_unit_id} not found")

    existing = get_current_shift(staff_id, business_unit_id)
    if existing:
        raise ConflictError(f"A shift is already open for {staff.name} (shift {existing.id})")

    shift = Shift(
        staff_id=staff_id,
        staff_name=staff.name,
        business_unit_id=business_unit_id,
        status=SHIFT_OPEN,
        open_slot=_open_slot(staff_id, business_unit_id),
        opening_cash_cents=opening_cash_cents,
        opened_at=utcnow(),
    )
    db.session.add(shift)

    try:
        db.session.commit()
    except IntegrityError:
        # A concurrent open for the same slot committed first.
        db.session.rollback()
        raise ConflictError(f"A shift is already open for {staff.name}")

    current_app.logger.info(
        "Shift %s opened for staff %s with float %s",
        shift.id, staff_id, reconciliation_service.format_cents(opening_cash_cents),
    )
    return shift


def close_shift(
    shift_id: int,
    actual_cash_cents,
    notes: str | None = None,
    *,
    current_staff_id: int | None = None,
    manager_override: bool = False,
) -> ShiftSummary:
    """
    Close a shift and reconcile the counted cash.

    IMMUTABLE: Once closed, the shift cannot be reopened or modified.

    The shift-discrepancy alert is raised after the close commits and
    can never undo it.

    Returns:
        ShiftSummary with expected cash and signed discrepancy
    """
    if actual_cash_cents is None or actual_cash_cents == "":
        raise ValidationError("Enter the counted cash amount to close the shift")
    actual_cash_cents = parse_cents(actual_cash_cents, "actual_cash_cents")

    def _op() -> ShiftSummary:
        shift = lock_for_update(db.session.query(Shift).filter_by(id=shift_id)).first()

        if not shift:
            raise NotFoundError(f"Shift {shift_id} not found")

        if shift.status != SHIFT_OPEN:
            raise ConflictError(f"Shift {shift_id} is already closed")

        if current_staff_id is not None and shift.staff_id != current_staff_id and not manager_override:
            raise AccessDeniedError("You can only close your own shift")

        summary = reconciliation_service.build_summary(shift, actual_cash_cents)

        shift.status = SHIFT_CLOSED
        shift.open_slot = None
        shift.closed_at = utcnow()
        shift.closing_cash_cents = actual_cash_cents
        shift.expected_cash_cents = summary.expected_cash_cents
        shift.discrepancy_cents = summary.discrepancy_cents
        shift.notes = notes

        db.session.commit()
        return summary

    try:
        summary = run_with_retry(_op)
    except (NotFoundError, ConflictError, AccessDeniedError):
        db.session.rollback()
        raise

    current_app.logger.info(
        "Shift %s closed: expected %s, counted %s, discrepancy %s",
        summary.shift_id,
        reconciliation_service.format_cents(summary.expected_cash_cents),
        reconciliation_service.format_cents(summary.actual_cash_cents),
        reconciliation_service.format_cents(summary.discrepancy_cents),
    )

    alert_service.on_shift_closed(summary)
    return summary
