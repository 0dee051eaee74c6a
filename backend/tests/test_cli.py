# Overview: Pytest coverage for the Flask CLI command groups.

from tillcore.models import Alert, BusinessUnit, Customer, Staff
from tillcore.services import shift_service, till_service


def _invoke(app, *args):
    return app.test_cli_runner().invoke(args=list(args))


def test_system_init_is_idempotent(app, db_session):
    first = _invoke(app, "system", "init", "--unit", "Corner Shop", "--code", "CRNR")
    second = _invoke(app, "system", "init", "--unit", "Corner Shop", "--code", "CRNR")

    assert first.exit_code == 0
    assert "Created business unit: Corner Shop" in first.output
    assert "Business unit exists: Corner Shop" in second.output

    db_session.expire_all()
    assert db_session.query(BusinessUnit).filter_by(code="CRNR").count() == 1
    assert db_session.query(Staff).filter_by(role="owner").count() == 1


def test_reset_requires_confirmation(app, db_session):
    result = _invoke(app, "system", "reset-db")
    assert result.exit_code == 1
    assert "Refusing" in result.output


def test_shifts_list(app, db_session, unit, cashier):
    shift = shift_service.open_shift(cashier.id, unit.id, 2500)
    shift_service.close_shift(shift.id, 2400)

    result = _invoke(app, "shifts", "list", "--unit-id", str(unit.id))

    assert result.exit_code == 0
    assert "Dana Cashier" in result.output
    assert "discrepancy=-1.00" in result.output


class TestLedgerVerify:

    def _credit_sale(self, unit, cashier, customer):
        shift_service.open_shift(cashier.id, unit.id, 0)
        till_service.attribute_sale(
            sale_id="S-CLI-1", staff_id=cashier.id, payment_method="credit",
            total_cents=1200, customer_id=customer.id,
        )

    def test_consistent_ledgers_exit_zero(self, app, db_session, unit, cashier, customer):
        self._credit_sale(unit, cashier, customer)

        result = _invoke(app, "ledger", "verify")

        assert result.exit_code == 0
        assert f"OK    customer={customer.id}" in result.output
        assert "0 inconsistent" in result.output

    def test_drift_exits_non_zero_and_alerts(self, app, db_session, unit, cashier, customer):
        self._credit_sale(unit, cashier, customer)
        db_session.query(Customer).filter_by(id=customer.id).update(
            {Customer.current_balance_cents: 5}, synchronize_session=False
        )
        db_session.commit()

        result = _invoke(app, "ledger", "verify", "--customer-id", str(customer.id))

        assert result.exit_code == 1
        assert f"FAIL  customer={customer.id}" in result.output

        db_session.expire_all()
        assert db_session.query(Customer).filter_by(id=customer.id).one().current_balance_cents == 5
        assert db_session.query(Alert).filter_by(alert_type="system", customer_id=customer.id).count() == 1

    def test_repeated_runs_do_not_stack_alerts(self, app, db_session, unit, cashier, customer):
        self._credit_sale(unit, cashier, customer)
        db_session.query(Customer).filter_by(id=customer.id).update(
            {Customer.current_balance_cents: 5}, synchronize_session=False
        )
        db_session.commit()

        for _ in range(2):
            assert _invoke(app, "ledger", "verify").exit_code == 1

        db_session.expire_all()
        assert db_session.query(Alert).filter_by(alert_type="system").count() == 1
