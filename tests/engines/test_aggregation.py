"""
Tests for yearend_engines.aggregation.
"""

from yearend_engines.aggregation import aggregate_annual_earnings, slip_qualifies
from yearend_kernel.domain.dtos import AnnualEarnings, Slip, SlipKind


def _salary(period, gross, tax=0, status="confirmed", health=0):
    return Slip(
        kind=SlipKind.SALARY,
        pay_period=period,
        status=status,
        gross_pay=gross,
        income_tax=tax,
        health_insurance=health,
    )


def _bonus(period, gross, tax=0, status="approved"):
    return Slip(kind=SlipKind.BONUS, pay_period=period, status=status, gross_pay=gross, income_tax=tax)


class TestSlipQualifies:
    def test_salary_statuses(self):
        assert slip_qualifies(_salary("2024-01", 1), 2024)
        assert slip_qualifies(_salary("2024-01", 1, status="paid"), 2024)
        assert not slip_qualifies(_salary("2024-01", 1, status="draft"), 2024)
        assert not slip_qualifies(_salary("2024-01", 1, status="approved"), 2024)

    def test_bonus_statuses(self):
        assert slip_qualifies(_bonus("2024-06", 1), 2024)
        assert slip_qualifies(_bonus("2024-06", 1, status="paid"), 2024)
        assert not slip_qualifies(_bonus("2024-06", 1, status="confirmed"), 2024)

    def test_other_year_excluded(self):
        assert not slip_qualifies(_salary("2023-12", 1), 2024)


class TestAggregateAnnualEarnings:
    def test_sums_salary_bonus_tax_and_social_insurance(self):
        earnings = aggregate_annual_earnings(
            [_salary("2024-01", 300_000, 10_000, health=40_000),
             _salary("2024-02", 300_000, 10_000, health=40_000)],
            [_bonus("2024-06", 500_000, 30_000)],
            2024,
        )

        assert earnings == AnnualEarnings(
            total_salary=600_000,
            total_bonus=500_000,
            withheld_tax=50_000,
            social_insurance_paid=80_000,
        )
        assert earnings.total_income == 1_100_000

    def test_non_qualifying_slips_are_ignored(self):
        earnings = aggregate_annual_earnings(
            [_salary("2024-01", 300_000), _salary("2024-02", 999_999, status="draft"),
             _salary("2023-12", 999_999)],
            [_bonus("2024-06", 999_999, status="submitted")],
            2024,
        )

        assert earnings.total_salary == 300_000
        assert earnings.total_bonus == 0

    def test_no_qualifying_slip_is_no_data(self):
        assert aggregate_annual_earnings([], [], 2024) is None
        assert aggregate_annual_earnings([_salary("2024-01", 1, status="draft")], [], 2024) is None

    def test_bonus_only(self):
        earnings = aggregate_annual_earnings([], [_bonus("2024-12", 800_000, 40_000)], 2024)

        assert earnings.total_salary == 0
        assert earnings.total_bonus == 800_000
        assert earnings.withheld_tax == 40_000
