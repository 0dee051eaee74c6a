# Overview: Pytest coverage for the alert emitter and alert inbox.

import pytest

from tillcore.models import Alert, Shift
from tillcore.services import alert_service, shift_service
from tillcore.services.reconciliation_service import ShiftSummary
from tillcore.validation import NotFoundError


def _summary(discrepancy, **overrides):
    values = dict(
        shift_id=1,
        staff_id=1,
        staff_name="Dana Cashier",
        business_unit_id=None,
        opening_cash_cents=10000,
        total_sales_cents=5000,
        cash_sales_cents=3000,
        expected_cash_cents=13000,
        actual_cash_cents=13000 + discrepancy,
        discrepancy_cents=discrepancy,
    )
    values.update(overrides)
    return ShiftSummary(**values)


def test_balanced_close_raises_nothing(db_session):
    assert alert_service.on_shift_closed(_summary(0)) is None
    assert db_session.query(Alert).count() == 0


def test_discrepancy_message_shows_direction_and_amounts():
    over = alert_service.discrepancy_message(_summary(250))
    short = alert_service.discrepancy_message(_summary(-500))

    assert "over by 2.50" in over
    assert "short by 5.00" in short
    assert "Expected cash 130.00" in short
    assert "counted 125.00" in short


def test_alert_failure_never_undoes_close(db_session, unit, cashier, monkeypatch):
    shift = shift_service.open_shift(cashier.id, unit.id, 10000)

    def _boom(summary):
        raise RuntimeError("template exploded")

    monkeypatch.setattr(alert_service, "discrepancy_message", _boom)

    summary = shift_service.close_shift(shift.id, 9000)

    assert summary.discrepancy_cents == -1000
    db_session.expire_all()
    assert db_session.get(Shift, shift.id).status == "closed"
    assert db_session.query(Alert).count() == 0


def test_persist_failure_is_swallowed(db_session, unit, cashier):
    shift = shift_service.open_shift(cashier.id, unit.id, 10000)
    summary = shift_service.close_shift(shift.id, 10000)

    # A second discrepancy alert for the same shift violates the unique constraint.
    first = alert_service.on_shift_closed(_summary(-1, shift_id=summary.shift_id, staff_id=cashier.id))
    second = alert_service.on_shift_closed(_summary(-2, shift_id=summary.shift_id, staff_id=cashier.id))

    assert first is not None
    assert second is None
    assert db_session.query(Alert).count() == 1


class TestAlertInbox:

    def test_list_and_mark_read(self, db_session, unit, other_unit, cashier, customer):
        shift = shift_service.open_shift(cashier.id, unit.id, 10000)
        shift_service.close_shift(shift.id, 10100)
        alert_service.on_consistency_failure(customer.id, other_unit.id, "drift")

        alerts = alert_service.list_alerts(unit.id)
        assert len(alerts) == 1
        assert alerts[0].alert_type == "shift_discrepancy"
        assert alerts[0].to_dict()["type"] == "shift_discrepancy"

        alert_service.mark_alert_read(alerts[0].id)

        assert alert_service.list_alerts(unit.id, unread_only=True) == []
        assert len(alert_service.list_alerts()) == 2

    def test_mark_missing_alert(self, db_session):
        with pytest.raises(NotFoundError):
            alert_service.mark_alert_read(31337)


def test_consistency_alert_reused_while_unread(db_session, unit, customer):
    first = alert_service.on_consistency_failure(customer.id, unit.id, "drift")
    again = alert_service.on_consistency_failure(customer.id, unit.id, "drift again")

    assert again.id == first.id
    assert db_session.query(Alert).count() == 1

    alert_service.mark_alert_read(first.id, unit.id)
    fresh = alert_service.on_consistency_failure(customer.id, unit.id, "still drifting")

    assert fresh.id != first.id
    assert db_session.query(Alert).count() == 2


def test_mark_read_scoped_to_unit(db_session, unit, other_unit, customer):
    alert = alert_service.on_consistency_failure(customer.id, unit.id, "drift")

    with pytest.raises(NotFoundError):
        alert_service.mark_alert_read(alert.id, other_unit.id)

    assert alert_service.mark_alert_read(alert.id, unit.id).is_read is True
