# Overview: Service-layer operations for till posting; attributes completed sales to the open shift.

"""
Till Posting (Sale Attribution)

WHY: Every completed sale moves money into exactly one shift. Cash sales
raise the drawer's expected cash; credit sales also raise the customer's
credit balance.

DESIGN PRINCIPLES:
- Server-side guard: no open shift, no attribution
- Sale row, shift counters and credit ledger entry commit together
- Counters are bumped in SQL (col = col + x), never read-then-written
- Retrying the same sale id is a no-op
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Sale, Shift
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    parse_cents,
    parse_int_id,
)
from tillcore.time_utils import utcnow, parse_sale_timestamp
from . import alert_service, credit_ledger_service, shift_service
from .concurrency import run_with_retry


PAYMENT_CASH = "cash"
PAYMENT_MOBILE = "mobile"
PAYMENT_CREDIT = "credit"

VALID_PAYMENT_METHODS = [PAYMENT_CASH, PAYMENT_MOBILE, PAYMENT_CREDIT]

_METHOD_COUNTERS = {
    PAYMENT_CASH: Shift.cash_sales_cents,
    PAYMENT_MOBILE: Shift.mobile_sales_cents,
    PAYMENT_CREDIT: Shift.credit_sales_cents,
}


class NoOpenShiftError(ConflictError):
    """Sale cannot be accepted: the staff member has no open shift."""


def _bump_shift_counters(shift_id: int, payment_method: str, total_cents: int) -> None:
    method_col = _METHOD_COUNTERS[payment_method]
    updated = db.session.query(Shift).filter(
        Shift.id == shift_id,
        Shift.status == shift_service.SHIFT_OPEN,
    ).update(
        {
            Shift.total_sales_cents: Shift.total_sales_cents + total_cents,
            method_col: method_col + total_cents,
            Shift.sale_count: Shift.sale_count + 1,
            Shift.version_id: Shift.version_id + 1,
        },
        synchronize_session=False,
    )
    if updated != 1:
        raise NoOpenShiftError(f"Shift {shift_id} closed before the sale could be attributed")


def attribute_sale(
    *,
    sale_id: str,
    staff_id: int,
    payment_method: str,
    total_cents,
    customer_id: int | None = None,
    business_unit_id: int | None = None,
    occurred_at=None,
) -> Sale:
    """
    Attribute a completed sale to the staff member's open shift.

    Args:
        sale_id: Checkout's identifier for the sale (de-duplication key)
        staff_id: Staff member who rang the sale
        payment_method: cash, mobile or credit
        total_cents: Sale total (in cents)
        customer_id: Required for credit sales
        business_unit_id: Store front; defaults to the shift's
        occurred_at: Sale time (datetime or ISO-8601); defaults to now

    Returns:
        The Sale posting record (the existing one on a retry)

    Raises:
        ValidationError: bad method, amount, or missing customer on credit
        NoOpenShiftError: staff has no open shift
        NotFoundError: credit customer missing
    """
    if not sale_id or not str(sale_id).strip():
        raise ValidationError("sale_id is required")
    sale_id = str(sale_id).strip()

    if payment_method not in VALID_PAYMENT_METHODS:
        raise ValidationError(
            f"Invalid payment method: {payment_method}. Must be one of {VALID_PAYMENT_METHODS}"
        )

    customer_id = parse_int_id(customer_id, "customer_id", required=False)
    if payment_method == PAYMENT_CREDIT:
        if customer_id is None:
            raise ValidationError("customer_id is required for credit sales")
        total_cents = parse_cents(total_cents, "total_cents", allow_zero=False)
    else:
        total_cents = parse_cents(total_cents, "total_cents")

    occurred_at = parse_sale_timestamp(occurred_at)

    def _op() -> tuple[Sale, bool]:
        existing = db.session.get(Sale, sale_id)
        if existing:
            return existing, False

        shift = shift_service.get_current_shift(staff_id, business_unit_id)
        if not shift:
            raise NoOpenShiftError(f"Staff {staff_id} has no open shift; open a shift before selling")

        now = utcnow()
        sale = Sale(
            id=sale_id,
            staff_id=staff_id,
            business_unit_id=business_unit_id or shift.business_unit_id,
            shift_id=shift.id,
            payment_method=payment_method,
            total_cents=total_cents,
            customer_id=customer_id if payment_method == PAYMENT_CREDIT else None,
            created_at=occurred_at or now,
            attributed_at=now,
        )
        db.session.add(sale)
        db.session.flush()

        _bump_shift_counters(shift.id, payment_method, total_cents)
        db.session.expire(shift)

        if payment_method == PAYMENT_CREDIT:
            credit_ledger_service.post_entry(
                customer_id,
                credit_ledger_service.ENTRY_SALE,
                total_cents,
                related_sale_id=sale.id,
                created_by_staff_id=staff_id,
                description=f"Sale {sale.id}",
                commit=False,
            )

        db.session.commit()
        return sale, True

    try:
        sale, created = run_with_retry(_op)
    except IntegrityError:
        # A concurrent retry of the same sale committed first.
        db.session.rollback()
        existing = db.session.get(Sale, sale_id)
        if existing:
            return existing
        raise
    except (ValidationError, ConflictError, NotFoundError):
        db.session.rollback()
        raise

    if not created:
        current_app.logger.info("Sale %s already attributed to shift %s", sale.id, sale.shift_id)
        return sale

    if payment_method == PAYMENT_CREDIT:
        entry = credit_ledger_service.get_sale_entry(sale.id)
        if entry is not None and entry.over_limit:
            alert_service.on_credit_limit_exceeded(entry)

    return sale
