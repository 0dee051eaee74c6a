# Overview: Service-layer operations for the customer credit ledger.

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Customer, CreditLedgerEntry
from ..validation import (
    ConflictError,
    ConsistencyError,
    NotFoundError,
    ValidationError,
    require_positive_cents,
)
from tillcore.time_utils import utcnow
from .concurrency import lock_for_update, run_with_retry
"""
Credit Ledger Invariants (authoritative)

- Append-only: entries are never updated or deleted.
- amount_cents is a positive magnitude; entry_type gives the sign
  (sale = +amount, repayment = -amount).
- balance_after_cents of the newest entry == customer.current_balance_cents
  == sum of signed amounts replayed from 0.
- The entry insert and the balance update commit together or not at all.
- A (related_sale_id, entry_type) pair is posted at most once.
"""


ENTRY_SALE = "sale"
ENTRY_REPAYMENT = "repayment"

VALID_ENTRY_TYPES = [ENTRY_SALE, ENTRY_REPAYMENT]

LIMIT_POLICY_WARN = "warn"
LIMIT_POLICY_BLOCK = "block"


class CreditLimitExceededError(ConflictError):
    """Credit sale would exceed the customer's limit under the block policy."""


@dataclass(frozen=True)
class LedgerVerification:
    customer_id: int
    entry_count: int
    replayed_balance_cents: int
    current_balance_cents: int

    def to_dict(self) -> dict:
        return {
            "customer_id": self.customer_id,
            "entry_count": self.entry_count,
            "replayed_balance_cents": self.replayed_balance_cents,
            "current_balance_cents": self.current_balance_cents,
            "consistent": True,
        }


def _limit_policy() -> str:
    return current_app.config.get("CREDIT_LIMIT_POLICY", LIMIT_POLICY_WARN)


def _find_posted(related_sale_id: str, entry_type: str) -> CreditLedgerEntry | None:
    return db.session.query(CreditLedgerEntry).filter_by(
        related_sale_id=related_sale_id,
        entry_type=entry_type,
    ).first()


def _write_balance(customer: Customer, new_balance_cents: int) -> None:
    customer.current_balance_cents = new_balance_cents
    db.session.flush()


# =============================================================================
# POSTING
# =============================================================================

def post_entry(
    customer_id: int,
    entry_type: str,
    amount_cents,
    *,
    related_sale_id: str | None = None,
    created_by_staff_id: int | None = None,
    description: str | None = None,
    commit: bool = True,
) -> CreditLedgerEntry:
    """
    Append one entry to a customer's credit ledger.

    Locks the customer row, computes the new running balance, writes the
    entry and the denormalized balance in one transaction.

    With commit=False the caller owns the transaction (till posting folds
    the entry into the sale's own commit) and is responsible for retries.

    Raises:
        ValidationError: amount not a positive integer, or bad entry type
        NotFoundError: customer missing
        CreditLimitExceededError: limit exceeded under the block policy
    """
    if entry_type not in VALID_ENTRY_TYPES:
        raise ValidationError(f"Invalid entry type: {entry_type}. Must be one of {VALID_ENTRY_TYPES}")
    amount_cents = require_positive_cents(amount_cents, "amount_cents")

    def _op() -> CreditLedgerEntry:
        if related_sale_id:
            already = _find_posted(related_sale_id, entry_type)
            if already:
                return already

        customer = lock_for_update(db.session.query(Customer).filter_by(id=customer_id)).first()
        if not customer:
            raise NotFoundError(f"Customer {customer_id} not found")

        entry = CreditLedgerEntry(
            customer_id=customer.id,
            business_unit_id=customer.business_unit_id,
            entry_type=entry_type,
            amount_cents=amount_cents,
            related_sale_id=related_sale_id,
            description=description,
            created_by_staff_id=created_by_staff_id,
            created_at=utcnow(),
        )
        new_balance = customer.current_balance_cents + entry.signed_amount_cents

        over_limit = (
            entry_type == ENTRY_SALE
            and customer.credit_limit_cents is not None
            and new_balance > customer.credit_limit_cents
        )
        if over_limit:
            if _limit_policy() == LIMIT_POLICY_BLOCK:
                raise CreditLimitExceededError(
                    f"Credit limit exceeded for {customer.name}: "
                    f"balance would be {new_balance} cents, limit {customer.credit_limit_cents} cents"
                )
            current_app.logger.warning(
                "Customer %s exceeds credit limit: balance %s > limit %s",
                customer.id, new_balance, customer.credit_limit_cents,
            )

        entry.balance_after_cents = new_balance
        entry.over_limit = over_limit
        db.session.add(entry)
        _write_balance(customer, new_balance)

        if commit:
            db.session.commit()
        return entry

    if not commit:
        return _op()

    try:
        return run_with_retry(_op)
    except IntegrityError:
        # Lost a race against an identical posting for the same sale.
        db.session.rollback()
        if related_sale_id:
            already = _find_posted(related_sale_id, entry_type)
            if already:
                return already
        raise
    except (NotFoundError, ConflictError):
        db.session.rollback()
        raise


def record_repayment(
    customer_id: int,
    amount_cents,
    created_by_staff_id: int | None = None,
    description: str | None = None,
) -> CreditLedgerEntry:
    """
    Record money received against a customer's credit balance.

    A repayment larger than the balance is accepted and leaves the
    customer with a negative balance (credit in their favour).
    """
    return post_entry(
        customer_id,
        ENTRY_REPAYMENT,
        amount_cents,
        created_by_staff_id=created_by_staff_id,
        description=description or "Repayment",
    )


# =============================================================================
# READS & VERIFICATION
# =============================================================================

def get_customer(customer_id: int) -> Customer:
    customer = db.session.get(Customer, customer_id)
    if not customer:
        raise NotFoundError(f"Customer {customer_id} not found")
    return customer


def get_customer_ledger(customer_id: int) -> list[CreditLedgerEntry]:
    """
    All entries for a customer in posting order.

    Ids are assigned under the customer lock, so they follow the
    balance_after chain even when app server clocks disagree.
    """
    get_customer(customer_id)
    return db.session.query(CreditLedgerEntry).filter_by(
        customer_id=customer_id
    ).order_by(CreditLedgerEntry.id).all()


def get_sale_entry(sale_id: str) -> CreditLedgerEntry | None:
    return _find_posted(sale_id, ENTRY_SALE)


def replay_balances(entries) -> list[int]:
    """Running balances obtained by replaying signed amounts from 0."""
    balances = []
    running = 0
    for entry in entries:
        running += entry.signed_amount_cents
        balances.append(running)
    return balances


def verify_customer_ledger(customer_id: int) -> LedgerVerification:
    """
    Replay a customer's ledger and compare against stored balances.

    Raises ConsistencyError listing every mismatch. Nothing is corrected.
    """
    customer = get_customer(customer_id)
    entries = get_customer_ledger(customer_id)
    balances = replay_balances(entries)

    mismatches = []
    for entry, expected in zip(entries, balances):
        if entry.balance_after_cents != expected:
            mismatches.append({
                "entry_id": entry.id,
                "stored_balance_after_cents": entry.balance_after_cents,
                "replayed_balance_after_cents": expected,
            })

    replayed = balances[-1] if balances else 0
    if customer.current_balance_cents != replayed:
        mismatches.append({
            "customer_id": customer.id,
            "current_balance_cents": customer.current_balance_cents,
            "replayed_balance_cents": replayed,
        })

    if mismatches:
        raise ConsistencyError(
            f"Credit ledger for customer {customer_id} does not match its balance",
            details=mismatches,
        )

    return LedgerVerification(
        customer_id=customer.id,
        entry_count=len(entries),
        replayed_balance_cents=replayed,
        current_balance_cents=customer.current_balance_cents,
    )


def get_total_receivables(business_unit_id: int) -> int:
    """Sum of outstanding customer balances in a business unit."""
    total = db.session.query(
        db.func.coalesce(db.func.sum(Customer.current_balance_cents), 0)
    ).filter(
        Customer.business_unit_id == business_unit_id,
        Customer.current_balance_cents > 0,
    ).scalar()
    return int(total or 0)
