"""
Withholding statement builder.

Pure mapping from a finalized year-end result (plus the employee's approved
declaration, when there is one) to the annual withholding statement.  The
statement reports final tax as the amount withheld for the year.
"""

from __future__ import annotations

from datetime import date

from yearend_kernel.domain.dtos import Declaration, WithholdingSlip, YearEndResult


def build_withholding_slip(
    result: YearEndResult,
    declaration: Declaration | None,
    employee_name: str,
    issue_date: date,
) -> WithholdingSlip:
    return WithholdingSlip(
        tenant_id=result.tenant_id,
        user_id=result.user_id,
        fiscal_year=result.fiscal_year,
        employee_name=employee_name,
        payment_amount=result.total_income,
        employment_income=result.employment_income,
        deduction_total=result.total_deductions,
        withheld_tax=result.final_tax,
        has_spouse=declaration.has_spouse if declaration is not None else False,
        spouse_income=declaration.spouse_income if declaration is not None else None,
        dependent_count=declaration.dependent_count if declaration is not None else 0,
        social_insurance_amount=result.social_insurance_deduction,
        life_insurance_deduction=result.life_insurance_deduction,
        earthquake_insurance_deduction=result.earthquake_insurance_deduction,
        mortgage_deduction=result.mortgage_deduction,
        mortgage_balance=declaration.mortgage_balance if declaration is not None else None,
        issue_date=issue_date,
        status="draft",
    )
