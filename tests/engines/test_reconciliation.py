"""
Tests for yearend_engines.reconciliation -- end-to-end pure figures.
"""

from decimal import Decimal

from yearend_engines.reconciliation import reconcile
from yearend_kernel.domain.dtos import AnnualEarnings, Declaration
from yearend_kernel.models.result import FIGURE_COLUMNS


class TestReconcileWithoutDeclaration:
    """Salary 4,000,000, no bonus, no declaration, 300,000 withheld."""

    def setup_method(self):
        self.figures = reconcile(
            AnnualEarnings(total_salary=4_000_000, withheld_tax=300_000),
            Declaration.empty(),
        )

    def test_income(self):
        assert self.figures.total_income == 4_000_000
        assert self.figures.employment_income_deduction == 1_240_000
        assert self.figures.employment_income == 2_760_000

    def test_deductions(self):
        assert self.figures.deductions.basic_deduction == 480_000
        assert self.figures.total_deductions == 480_000
        assert self.figures.taxable_income == 2_280_000

    def test_tax(self):
        assert self.figures.tax.calculated_tax == 130_500
        assert self.figures.tax.special_reconstruction_tax == 2_740
        assert self.figures.tax.final_tax == 133_240

    def test_refund(self):
        assert self.figures.withheld_tax_total == 300_000
        assert self.figures.adjustment_amount == 166_760
        assert self.figures.is_refund is True


class TestReconcileThirtyPercentBand:
    def test_chain(self):
        figures = reconcile(
            AnnualEarnings(total_salary=3_600_000, withheld_tax=90_000),
            Declaration.empty(),
        )

        assert figures.employment_income_deduction == 1_160_000
        assert figures.employment_income == 2_440_000
        assert figures.taxable_income == 1_960_000
        assert figures.tax.calculated_tax == 98_500
        assert figures.tax.special_reconstruction_tax == 2_068
        assert figures.tax.final_tax == 100_568
        assert figures.adjustment_amount == -10_568
        assert figures.is_refund is False


class TestReconcileWithDeclaration:
    def setup_method(self):
        self.earnings = AnnualEarnings(
            total_salary=6_000_000,
            total_bonus=1_000_000,
            withheld_tax=250_000,
            social_insurance_paid=900_000,
        )
        self.declaration = Declaration(
            has_spouse=True,
            spouse_income=0,
            dependent_count=2,
            specific_dependent_count=1,
            life_insurance_new=80_000,
            earthquake_insurance=20_000,
            ideco_amount=276_000,
            has_mortgage=True,
            mortgage_balance=5_000_000,
        )

    def test_figures(self):
        figures = reconcile(self.earnings, self.declaration)

        assert figures.employment_income_deduction == 1_800_000
        assert figures.employment_income == 5_200_000
        assert figures.total_deductions == 3_106_000
        assert figures.taxable_income == 2_094_000
        assert figures.tax.calculated_tax == 111_900
        assert figures.tax.special_reconstruction_tax == 2_349
        assert figures.tax.mortgage_deduction == 50_000
        assert figures.tax.final_tax == 64_249
        assert figures.adjustment_amount == 185_751

    def test_declared_mortgage_terms_win_over_defaults(self):
        declaration = Declaration(
            has_mortgage=True,
            mortgage_balance=5_000_000,
            mortgage_rate=Decimal("0.007"),
            mortgage_cap=30_000,
        )
        figures = reconcile(self.earnings, declaration, default_mortgage_rate=Decimal("0.5"))

        assert figures.tax.mortgage_deduction == 30_000

    def test_configured_defaults_apply_when_declaration_is_silent(self):
        figures = reconcile(
            self.earnings,
            self.declaration,
            default_mortgage_rate=Decimal("0.005"),
            default_mortgage_cap=10_000,
        )

        assert figures.tax.mortgage_deduction == 10_000


class TestReconcileContract:
    def test_deterministic(self):
        earnings = AnnualEarnings(total_salary=5_123_457, withheld_tax=123_456)
        assert reconcile(earnings, Declaration.empty()) == reconcile(earnings, Declaration.empty())

    def test_record_matches_result_columns(self):
        record = reconcile(AnnualEarnings(total_salary=1), Declaration.empty()).as_record()
        assert set(record) == set(FIGURE_COLUMNS)

    def test_zero_income_still_has_no_negative_figures(self):
        figures = reconcile(AnnualEarnings(total_bonus=100_000), Declaration.empty())

        assert figures.employment_income == 0
        assert figures.taxable_income == 0
        assert figures.tax.final_tax == 0

    def test_emits_engine_trace(self, captured_logs):
        reconcile(AnnualEarnings(total_salary=4_000_000), Declaration.empty())

        traces = [r for r in captured_logs() if r["message"] == "YEAREND_ENGINE_TRACE"]
        assert traces
        assert traces[-1]["engine_name"] == "reconciliation"
        assert len(traces[-1]["input_fingerprint"]) == 16
