# Overview: Pytest coverage for credit ledger posting, replay, and consistency checks.

from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from tillcore.models import CreditLedgerEntry, Customer
from tillcore.services import credit_ledger_service, shift_service, till_service
from tillcore.validation import ConsistencyError, NotFoundError, ValidationError


def _balance(db_session, customer_id):
    db_session.expire_all()
    return db_session.get(Customer, customer_id).current_balance_cents


@pytest.fixture
def credit_sale(db_session, unit, cashier, customer):
    """Customer C owes 20.00 from one credit sale."""
    shift_service.open_shift(cashier.id, unit.id, 10000)
    return till_service.attribute_sale(
        sale_id="S-CREDIT-1",
        staff_id=cashier.id,
        payment_method="credit",
        total_cents=2000,
        customer_id=customer.id,
    )


class TestRepayment:

    def test_repayment_returns_balance_to_zero(self, db_session, cashier, customer, credit_sale):
        credit_ledger_service.record_repayment(customer.id, 2000, created_by_staff_id=cashier.id)

        assert _balance(db_session, customer.id) == 0

        entries = credit_ledger_service.get_customer_ledger(customer.id)
        assert [e.entry_type for e in entries] == ["sale", "repayment"]
        assert [e.balance_after_cents for e in entries] == [2000, 0]
        assert entries[1].amount_cents == 2000
        assert entries[1].created_by_staff_id == cashier.id

    @pytest.mark.parametrize("amount", [0, -5, None, "ten", 1.5])
    def test_non_positive_or_non_numeric_rejected(self, db_session, customer, credit_sale, amount):
        with pytest.raises(ValidationError):
            credit_ledger_service.record_repayment(customer.id, amount)

        assert _balance(db_session, customer.id) == 2000
        assert db_session.query(CreditLedgerEntry).count() == 1

    def test_repayment_beyond_balance_goes_negative(self, db_session, customer, credit_sale):
        entry = credit_ledger_service.record_repayment(customer.id, 2500)

        assert entry.balance_after_cents == -500
        assert _balance(db_session, customer.id) == -500

    def test_unknown_customer(self, db_session):
        with pytest.raises(NotFoundError):
            credit_ledger_service.record_repayment(99999, 100)


class TestPostEntry:

    def test_invalid_entry_type(self, db_session, customer):
        with pytest.raises(ValidationError):
            credit_ledger_service.post_entry(customer.id, "refund", 100)

    def test_zero_sale_entry_rejected(self, db_session, customer):
        with pytest.raises(ValidationError):
            credit_ledger_service.post_entry(customer.id, "sale", 0)

    def test_failed_balance_write_leaves_no_entry(self, db_session, customer, monkeypatch):
        """Retry budget exhausted: neither the entry nor the balance is written."""
        calls = []

        def _locked(*args, **kwargs):
            calls.append(1)
            raise OperationalError("UPDATE customers", {}, Exception("database is locked"))

        monkeypatch.setattr(credit_ledger_service, "_write_balance", _locked)

        with pytest.raises(OperationalError):
            credit_ledger_service.post_entry(customer.id, "sale", 700)

        assert len(calls) == 3
        assert db_session.query(CreditLedgerEntry).count() == 0
        assert _balance(db_session, customer.id) == 0

    def test_stale_write_is_retried(self, db_session, customer, monkeypatch):
        original = credit_ledger_service._write_balance
        attempts = []

        def _flaky(customer_row, new_balance):
            attempts.append(new_balance)
            if len(attempts) == 1:
                raise StaleDataError("customers row changed underneath us")
            return original(customer_row, new_balance)

        monkeypatch.setattr(credit_ledger_service, "_write_balance", _flaky)

        entry = credit_ledger_service.post_entry(customer.id, "sale", 700)

        assert attempts == [700, 700]
        assert entry.balance_after_cents == 700
        assert db_session.query(CreditLedgerEntry).count() == 1
        assert _balance(db_session, customer.id) == 700


class TestReplayAndVerify:

    def test_replay_reproduces_every_balance(self, db_session, unit, cashier, customer):
        shift_service.open_shift(cashier.id, unit.id, 0)
        for i, amount in enumerate([1500, 250, 4000]):
            till_service.attribute_sale(
                sale_id=f"S-{i}", staff_id=cashier.id, payment_method="credit",
                total_cents=amount, customer_id=customer.id,
            )
        credit_ledger_service.record_repayment(customer.id, 1000)
        credit_ledger_service.record_repayment(customer.id, 750)

        entries = credit_ledger_service.get_customer_ledger(customer.id)
        replayed = credit_ledger_service.replay_balances(entries)

        assert replayed == [e.balance_after_cents for e in entries]
        assert replayed[-1] == _balance(db_session, customer.id) == 4000

        result = credit_ledger_service.verify_customer_ledger(customer.id)
        assert result.entry_count == 5
        assert result.replayed_balance_cents == 4000

    def test_backward_clock_keeps_posting_order(self, db_session, customer, monkeypatch):
        stamps = iter([datetime(2026, 10, 17, 12, 0, 1), datetime(2026, 10, 17, 12, 0, 0)])
        monkeypatch.setattr(credit_ledger_service, "utcnow", lambda: next(stamps))

        credit_ledger_service.post_entry(customer.id, "sale", 2000)
        credit_ledger_service.record_repayment(customer.id, 500)

        entries = credit_ledger_service.get_customer_ledger(customer.id)
        assert [e.entry_type for e in entries] == ["sale", "repayment"]
        assert [e.balance_after_cents for e in entries] == [2000, 1500]
        assert credit_ledger_service.verify_customer_ledger(customer.id).replayed_balance_cents == 1500

    def test_empty_ledger_is_consistent(self, db_session, customer):
        result = credit_ledger_service.verify_customer_ledger(customer.id)
        assert result.entry_count == 0
        assert result.current_balance_cents == 0

    def test_drifted_balance_is_reported_not_healed(self, db_session, customer, credit_sale):
        db_session.query(Customer).filter_by(id=customer.id).update(
            {Customer.current_balance_cents: 2600}, synchronize_session=False
        )
        db_session.commit()

        with pytest.raises(ConsistencyError) as exc_info:
            credit_ledger_service.verify_customer_ledger(customer.id)

        assert exc_info.value.details[0]["current_balance_cents"] == 2600
        assert exc_info.value.details[0]["replayed_balance_cents"] == 2000
        assert _balance(db_session, customer.id) == 2600

    def test_tampered_entry_is_reported(self, db_session, customer, credit_sale):
        db_session.query(CreditLedgerEntry).update(
            {CreditLedgerEntry.balance_after_cents: 1999}, synchronize_session=False
        )
        db_session.commit()

        with pytest.raises(ConsistencyError) as exc_info:
            credit_ledger_service.verify_customer_ledger(customer.id)

        assert exc_info.value.details[0]["stored_balance_after_cents"] == 1999
        assert exc_info.value.details[0]["replayed_balance_after_cents"] == 2000


def test_total_receivables_ignores_credit_balances(db_session, unit, customer, limited_customer, credit_sale):
    credit_ledger_service.record_repayment(limited_customer.id, 300)

    assert credit_ledger_service.get_total_receivables(unit.id) == 2000
