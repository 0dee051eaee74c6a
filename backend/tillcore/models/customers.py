from __future__ import annotations

from ..extensions import db
from tillcore.time_utils import to_utc_z


class Customer(db.Model):
    """
    Customer account with a credit line.

    current_balance_cents is a denormalized projection of the credit ledger:
    it must always equal the balance_after_cents of the customer's latest
    ledger entry. It is written only by credit_ledger_service.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_unit_status", "business_unit_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    business_unit_id = db.Column(db.Integer, db.ForeignKey("business_units.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=True)
    status = db.Column(db.String(16), nullable=False, default="active")

    # None = no credit limit configured
    credit_limit_cents = db.Column(db.Integer, nullable=True)
    current_balance_cents = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    business_unit = db.relationship("BusinessUnit", backref=db.backref("customers", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "business_unit_id": self.business_unit_id,
            "name": self.name,
            "phone": self.phone,
            "status": self.status,
            "credit_limit_cents": self.credit_limit_cents,
            "current_balance_cents": self.current_balance_cents,
            "created_at": to_utc_z(self.created_at),
            "version_id": self.version_id,
        }


class CreditLedgerEntry(db.Model):
    """
    Append-only ledger of a customer's credit sales and repayments.

    ENTRY TYPES:
    - sale: balance increases by amount
    - repayment: balance decreases by amount

    amount_cents is always the unsigned magnitude; balance_after_cents is
    the signed running balance right after this entry.

    IMMUTABLE: Records are never updated or deleted.
    """
    __tablename__ = "credit_ledger_entries"
    __table_args__ = (
        db.UniqueConstraint("related_sale_id", "entry_type", name="uq_credit_ledger_sale_type"),
        db.Index("ix_credit_ledger_customer_created", "customer_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    business_unit_id = db.Column(db.Integer, db.ForeignKey("business_units.id"), nullable=False, index=True)

    entry_type = db.Column(db.String(16), nullable=False, index=True)  # sale, repayment
    amount_cents = db.Column(db.Integer, nullable=False)
    balance_after_cents = db.Column(db.Integer, nullable=False)

    related_sale_id = db.Column(db.String(64), db.ForeignKey("sales.id"), nullable=True, index=True)
    description = db.Column(db.String(255), nullable=True)
    over_limit = db.Column(db.Boolean, nullable=False, default=False)

    created_by_staff_id = db.Column(db.Integer, db.ForeignKey("staff.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    customer = db.relationship("Customer", backref=db.backref("ledger_entries", lazy=True))

    @property
    def signed_amount_cents(self) -> int:
        if self.entry_type == "repayment":
            return -self.amount_cents
        return self.amount_cents

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "business_unit_id": self.business_unit_id,
            "entry_type": self.entry_type,
            "amount_cents": self.amount_cents,
            "balance_after_cents": self.balance_after_cents,
            "related_sale_id": self.related_sale_id,
            "description": self.description,
            "over_limit": self.over_limit,
            "created_by_staff_id": self.created_by_staff_id,
            "created_at": to_utc_z(self.created_at),
        }
