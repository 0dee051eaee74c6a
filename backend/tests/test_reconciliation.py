# Overview: Pytest coverage for cash reconciliation math.

from types import SimpleNamespace

from tillcore.services import reconciliation_service as recon


def _shift(opening=10000, cash=3000, total=5000):
    return SimpleNamespace(
        id=1,
        staff_id=2,
        staff_name="Dana",
        business_unit_id=3,
        opening_cash_cents=opening,
        cash_sales_cents=cash,
        total_sales_cents=total,
    )


class TestExpectedCash:

    def test_opening_plus_cash_sales(self):
        assert recon.expected_cash(_shift(opening=10000, cash=3000)) == 13000

    def test_non_cash_sales_do_not_count(self):
        assert recon.expected_cash(_shift(opening=10000, cash=0, total=9000)) == 10000

    def test_zero_sales_expects_opening_float(self):
        assert recon.expected_cash(_shift(opening=2500, cash=0, total=0)) == 2500


class TestDiscrepancy:

    def test_sign_is_preserved(self):
        assert recon.discrepancy(12500, 13000) == -500
        assert recon.discrepancy(13100, 13000) == 100
        assert recon.discrepancy(13000, 13000) == 0

    def test_classify(self):
        assert recon.classify(0) == recon.RESULT_BALANCED
        assert recon.classify(1) == recon.RESULT_OVER
        assert recon.classify(-1) == recon.RESULT_SHORT


class TestBuildSummary:

    def test_balanced_summary(self):
        summary = recon.build_summary(_shift(), 13000)

        assert summary.expected_cash_cents == 13000
        assert summary.discrepancy_cents == 0
        assert summary.total_sales_cents == 5000
        assert summary.cash_sales_cents == 3000
        assert not summary.is_discrepant
        assert summary.to_dict()["result"] == "balanced"

    def test_short_summary(self):
        summary = recon.build_summary(_shift(), 12500)

        assert summary.discrepancy_cents == -500
        assert summary.is_discrepant
        assert summary.to_dict()["result"] == "short"


def test_format_cents():
    assert recon.format_cents(0) == "0.00"
    assert recon.format_cents(13005) == "130.05"
    assert recon.format_cents(-500) == "-5.00"
    assert recon.format_cents(-7) == "-0.07"
