"""ORM models for the year-end kernel."""

from yearend_kernel.models.declaration import YearEndDeclaration
from yearend_kernel.models.employee import Employee
from yearend_kernel.models.payroll import BonusSlip, SalarySlip
from yearend_kernel.models.result import FIGURE_COLUMNS, YearEndResultModel
from yearend_kernel.models.withholding_slip import WithholdingSlipModel

__all__ = [
    "BonusSlip",
    "Employee",
    "FIGURE_COLUMNS",
    "SalarySlip",
    "WithholdingSlipModel",
    "YearEndDeclaration",
    "YearEndResultModel",
]
