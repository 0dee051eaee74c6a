from __future__ import annotations

from ..extensions import db
from tillcore.time_utils import to_utc_z


class BusinessUnit(db.Model):
    """
    Store front / tenant scope.

    Shifts, customers, ledger entries and alerts all carry a
    business_unit_id so several store fronts can share one deployment.
    """
    __tablename__ = "business_units"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(32), nullable=True, unique=True, index=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<BusinessUnit id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class Staff(db.Model):
    """
    Staff identity as handed over by the auth layer.

    Only name, role and home business unit are consumed here; credentials
    live with the authentication collaborator.
    """
    __tablename__ = "staff"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    business_unit_id = db.Column(db.Integer, db.ForeignKey("business_units.id"), nullable=True, index=True)

    name = db.Column(db.String(128), nullable=False)
    role = db.Column(db.String(16), nullable=False, default="cashier")  # owner, manager, cashier

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    business_unit = db.relationship("BusinessUnit", backref=db.backref("staff", lazy=True))

    @property
    def is_manager(self) -> bool:
        return self.role in ("owner", "manager")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "business_unit_id": self.business_unit_id,
            "name": self.name,
            "role": self.role,
            "is_active": self.is_active,
        }
