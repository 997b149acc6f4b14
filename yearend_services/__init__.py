"""
yearend_services -- collaborator protocols and per-employee services.

Architecture:
    Sits above yearend_kernel, yearend_engines and yearend_config; below
    yearend_batch.  Services flush but never commit.
"""

from yearend_services.reconciliation_service import (
    EmployeeComputation,
    ReconciliationService,
)
from yearend_services.result_workflow_service import ResultWorkflowService
from yearend_services.sources import (
    DeclarationSource,
    EmployeeDirectory,
    PayrollLedgerSource,
    ResultRepository,
    SqlReconciliationSources,
    SqlResultRepository,
)
from yearend_services.withholding_slip_service import WithholdingSlipService

__all__ = [
    "DeclarationSource",
    "EmployeeComputation",
    "EmployeeDirectory",
    "PayrollLedgerSource",
    "ReconciliationService",
    "ResultRepository",
    "ResultWorkflowService",
    "SqlReconciliationSources",
    "SqlResultRepository",
    "WithholdingSlipService",
]
