# Overview: Management alerts raised from shift close and ledger checks.

"""
Alert Emitter

Alerts are best-effort observability. Every emitter here commits its own
small transaction after the business operation has already committed, and
a failure is logged, rolled back and reported as None instead of being
raised into the caller.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import desc

from ..extensions import db
from ..models import Alert, Customer
from ..validation import NotFoundError
from tillcore.time_utils import utcnow
from .reconciliation_service import ShiftSummary, format_cents, RESULT_OVER


ALERT_SHIFT_DISCREPANCY = "shift_discrepancy"
ALERT_HIGH_DEBT = "high_debt"
ALERT_SYSTEM = "system"


def _persist(alert: Alert) -> Alert | None:
    try:
        db.session.add(alert)
        db.session.commit()
        return alert
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to persist %s alert", alert.alert_type)
        return None


def discrepancy_message(summary: ShiftSummary) -> str:
    direction = "over" if summary.result == RESULT_OVER else "short"
    return (
        f"Shift {summary.shift_id} closed by {summary.staff_name} is "
        f"{direction} by {format_cents(abs(summary.discrepancy_cents))}. "
        f"Expected cash {format_cents(summary.expected_cash_cents)}, "
        f"counted {format_cents(summary.actual_cash_cents)} "
        f"(opening {format_cents(summary.opening_cash_cents)} + "
        f"cash sales {format_cents(summary.cash_sales_cents)})."
    )


def on_shift_closed(summary: ShiftSummary) -> Alert | None:
    """Raise a shift_discrepancy alert when the count did not balance."""
    if summary.discrepancy_cents == 0:
        return None

    try:
        message = discrepancy_message(summary)
    except Exception:
        current_app.logger.exception("Failed to build discrepancy alert for shift %s", summary.shift_id)
        return None

    return _persist(Alert(
        business_unit_id=summary.business_unit_id,
        alert_type=ALERT_SHIFT_DISCREPANCY,
        title="Shift cash discrepancy",
        message=message,
        staff_id=summary.staff_id,
        staff_name=summary.staff_name,
        shift_id=summary.shift_id,
        amount_cents=summary.discrepancy_cents,
        is_read=False,
        created_at=utcnow(),
    ))


def on_credit_limit_exceeded(entry) -> Alert | None:
    customer = db.session.get(Customer, entry.customer_id)
    name = customer.name if customer else f"customer {entry.customer_id}"
    limit = customer.credit_limit_cents if customer else None

    return _persist(Alert(
        business_unit_id=entry.business_unit_id,
        alert_type=ALERT_HIGH_DEBT,
        title="Credit limit exceeded",
        message=(
            f"{name} owes {format_cents(entry.balance_after_cents)} after sale "
            f"{entry.related_sale_id}; limit is {format_cents(limit or 0)}."
        ),
        staff_id=entry.created_by_staff_id,
        customer_id=entry.customer_id,
        amount_cents=entry.balance_after_cents,
        is_read=False,
        created_at=utcnow(),
    ))


def on_consistency_failure(customer_id: int, business_unit_id: int | None, message: str) -> Alert | None:
    """
    Raise a system alert for a drifted ledger.

    While an earlier alert for the same customer is still unread, that
    alert is returned instead of persisting another one.
    """
    pending = db.session.query(Alert).filter_by(
        alert_type=ALERT_SYSTEM,
        customer_id=customer_id,
        is_read=False,
    ).order_by(desc(Alert.id)).first()
    if pending:
        current_app.logger.info("Unread ledger alert %s already open for customer %s", pending.id, customer_id)
        return pending

    return _persist(Alert(
        business_unit_id=business_unit_id,
        alert_type=ALERT_SYSTEM,
        title="Credit ledger inconsistency",
        message=message,
        customer_id=customer_id,
        is_read=False,
        created_at=utcnow(),
    ))


def list_alerts(business_unit_id: int | None = None, *, unread_only: bool = False, limit: int = 100) -> list[Alert]:
    query = db.session.query(Alert)
    if business_unit_id is not None:
        query = query.filter_by(business_unit_id=business_unit_id)
    if unread_only:
        query = query.filter_by(is_read=False)
    return query.order_by(desc(Alert.created_at), desc(Alert.id)).limit(limit).all()


def mark_alert_read(alert_id: int, business_unit_id: int | None = None) -> Alert:
    """Mark an alert read. With business_unit_id, alerts of other units are not found."""
    alert = db.session.get(Alert, alert_id)
    if not alert or (business_unit_id is not None and alert.business_unit_id != business_unit_id):
        raise NotFoundError(f"Alert {alert_id} not found")
    alert.is_read = True
    db.session.commit()
    return alert
