from __future__ import annotations

from ..extensions import db
from tillcore.time_utils import shift_duration_seconds, to_utc_z


class Shift(db.Model):
    """
    One cash-drawer session for which a single staff member is accountable.

    LIFECYCLE:
    - open: counters are bumped by till posting
    - closed: cash counted, discrepancy stamped; terminal

    open_slot holds the staff (or staff+unit) key while the shift is open
    and is cleared on close. Its unique constraint is what enforces the
    at-most-one-open-shift rule under concurrent opens.
    """
    __tablename__ = "shifts"
    __table_args__ = (
        db.Index("ix_shifts_unit_opened", "business_unit_id", "opened_at"),
        db.Index("ix_shifts_staff_status", "staff_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    staff_id = db.Column(db.Integer, db.ForeignKey("staff.id"), nullable=False, index=True)
    staff_name = db.Column(db.String(128), nullable=False)
    business_unit_id = db.Column(db.Integer, db.ForeignKey("business_units.id"), nullable=False, index=True)

    status = db.Column(db.String(16), nullable=False, default="open", index=True)  # open, closed
    open_slot = db.Column(db.String(64), nullable=True, unique=True)

    # Cash tracking (all amounts in cents)
    opening_cash_cents = db.Column(db.Integer, nullable=False, default=0)
    closing_cash_cents = db.Column(db.Integer, nullable=True)
    expected_cash_cents = db.Column(db.Integer, nullable=True)
    discrepancy_cents = db.Column(db.Integer, nullable=True)

    # Running counters, bumped by till posting
    total_sales_cents = db.Column(db.Integer, nullable=False, default=0)
    cash_sales_cents = db.Column(db.Integer, nullable=False, default=0)
    mobile_sales_cents = db.Column(db.Integer, nullable=False, default=0)
    credit_sales_cents = db.Column(db.Integer, nullable=False, default=0)
    sale_count = db.Column(db.Integer, nullable=False, default=0)

    opened_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    closed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    notes = db.Column(db.Text, nullable=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    staff = db.relationship("Staff", backref=db.backref("shifts", lazy=True))
    business_unit = db.relationship("BusinessUnit", backref=db.backref("shifts", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_open(self) -> bool:
        return self.status == "open"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "staff_id": self.staff_id,
            "staff_name": self.staff_name,
            "business_unit_id": self.business_unit_id,
            "status": self.status,
            "opening_cash_cents": self.opening_cash_cents,
            "closing_cash_cents": self.closing_cash_cents,
            "expected_cash_cents": self.expected_cash_cents,
            "discrepancy_cents": self.discrepancy_cents,
            "total_sales_cents": self.total_sales_cents,
            "cash_sales_cents": self.cash_sales_cents,
            "mobile_sales_cents": self.mobile_sales_cents,
            "credit_sales_cents": self.credit_sales_cents,
            "sale_count": self.sale_count,
            "opened_at": to_utc_z(self.opened_at),
            "closed_at": to_utc_z(self.closed_at) if self.closed_at else None,
            "duration_seconds": shift_duration_seconds(self.opened_at, self.closed_at),
            "notes": self.notes,
            "version_id": self.version_id,
        }


class Sale(db.Model):
    """
    Till posting record of a completed checkout sale.

    The sale itself is priced and validated by checkout; this row records
    which shift it was attributed to. Its primary key is the checkout's
    sale identifier, so a retried attribution finds the existing row.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_shift_method", "shift_id", "payment_method"),
    )

    id = db.Column(db.String(64), primary_key=True)
    staff_id = db.Column(db.Integer, db.ForeignKey("staff.id"), nullable=False, index=True)
    business_unit_id = db.Column(db.Integer, db.ForeignKey("business_units.id"), nullable=False, index=True)
    shift_id = db.Column(db.Integer, db.ForeignKey("shifts.id"), nullable=False, index=True)

    payment_method = db.Column(db.String(16), nullable=False)  # cash, mobile, credit
    total_cents = db.Column(db.Integer, nullable=False)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    attributed_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    shift = db.relationship("Shift", backref=db.backref("sales", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "staff_id": self.staff_id,
            "business_unit_id": self.business_unit_id,
            "shift_id": self.shift_id,
            "payment_method": self.payment_method,
            "total_cents": self.total_cents,
            "customer_id": self.customer_id,
            "created_at": to_utc_z(self.created_at),
            "attributed_at": to_utc_z(self.attributed_at),
        }
