# Overview: Pure cash reconciliation math for shift close.

"""
Cash Reconciliation

expected cash = opening float + cash sales
discrepancy   = counted cash - expected cash

Positive discrepancy means the drawer is over, negative means short.
Nothing here touches the database.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict


RESULT_BALANCED = "balanced"
RESULT_OVER = "over"
RESULT_SHORT = "short"


@dataclass(frozen=True)
class ShiftSummary:
    shift_id: int
    staff_id: int
    staff_name: str
    business_unit_id: int
    opening_cash_cents: int
    total_sales_cents: int
    cash_sales_cents: int
    expected_cash_cents: int
    actual_cash_cents: int
    discrepancy_cents: int

    @property
    def result(self) -> str:
        return classify(self.discrepancy_cents)

    @property
    def is_discrepant(self) -> bool:
        return self.discrepancy_cents != 0

    def to_dict(self) -> dict:
        data = asdict(self)
        data["result"] = self.result
        return data


def expected_cash(shift) -> int:
    return (shift.opening_cash_cents or 0) + (shift.cash_sales_cents or 0)


def discrepancy(actual_cash_cents: int, expected_cash_cents: int) -> int:
    return actual_cash_cents - expected_cash_cents


def classify(discrepancy_cents: int) -> str:
    if discrepancy_cents == 0:
        return RESULT_BALANCED
    return RESULT_OVER if discrepancy_cents > 0 else RESULT_SHORT


def build_summary(shift, actual_cash_cents: int) -> ShiftSummary:
    """Reconcile a shift's counters against a physical count."""
    expected = expected_cash(shift)
    return ShiftSummary(
        shift_id=shift.id,
        staff_id=shift.staff_id,
        staff_name=shift.staff_name,
        business_unit_id=shift.business_unit_id,
        opening_cash_cents=shift.opening_cash_cents or 0,
        total_sales_cents=shift.total_sales_cents or 0,
        cash_sales_cents=shift.cash_sales_cents or 0,
        expected_cash_cents=expected,
        actual_cash_cents=actual_cash_cents,
        discrepancy_cents=discrepancy(actual_cash_cents, expected),
    )


def format_cents(cents: int) -> str:
    sign = "-" if cents < 0 else ""
    cents = abs(cents)
    return f"{sign}{cents // 100}.{cents % 100:02d}"
