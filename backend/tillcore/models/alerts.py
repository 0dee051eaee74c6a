from __future__ import annotations

from ..extensions import db
from tillcore.time_utils import to_utc_z


class Alert(db.Model):
    """
    Management-visible notice.

    ALERT TYPES:
    - shift_discrepancy: counted cash differed from expected at close
    - high_debt: a credit sale pushed a customer past their credit limit
    - system: persisted state failed a consistency check

    Alerts never mutate shift or ledger state; only is_read changes.
    """
    __tablename__ = "alerts"
    __table_args__ = (
        db.UniqueConstraint("alert_type", "shift_id", name="uq_alerts_type_shift"),
        db.Index("ix_alerts_unit_created", "business_unit_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    business_unit_id = db.Column(db.Integer, db.ForeignKey("business_units.id"), nullable=True, index=True)

    alert_type = db.Column(db.String(32), nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)

    staff_id = db.Column(db.Integer, db.ForeignKey("staff.id"), nullable=True)
    staff_name = db.Column(db.String(128), nullable=True)
    shift_id = db.Column(db.Integer, db.ForeignKey("shifts.id"), nullable=True, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True)
    amount_cents = db.Column(db.Integer, nullable=True)

    is_read = db.Column(db.Boolean, nullable=False, default=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "business_unit_id": self.business_unit_id,
            "type": self.alert_type,
            "title": self.title,
            "message": self.message,
            "staff_id": self.staff_id,
            "staff_name": self.staff_name,
            "shift_id": self.shift_id,
            "customer_id": self.customer_id,
            "amount_cents": self.amount_cents,
            "read": self.is_read,
            "created_at": to_utc_z(self.created_at),
        }
