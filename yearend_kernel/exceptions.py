"""
Typed Exception Hierarchy for the year-end reconciliation engine.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

The batch runner must tell a whole-batch precondition failure apart from a
per-employee problem without parsing message strings.  Every error therefore:
  1. Has a TYPED exception class (catch by type, not message)
  2. Has a CODE attribute (machine-readable, API-safe)
  3. Carries structured DATA (tenant, user, fiscal year, statuses ...)

Example - RIGHT way:
    try:
        service.reconcile_employee(tenant_id, user_id, fiscal_year, actor_id)
    except ResultAlreadyFinalizedError as e:
        log.warning("skip", extra={"status": e.status})

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    YearEndError (base)
    |
    +-- BatchPreconditionError           (whole batch rejected, raised)
    |   +-- MissingFiscalYearError
    |
    +-- EmployeeReconciliationError      (captured per employee in the summary)
    |   +-- NoEarningsDataError
    |   +-- InvalidDeclarationError
    |   +-- ResultAlreadyFinalizedError
    |   +-- NoFinalizedResultError
    |   +-- EmployeeNotFoundError
    |
    +-- ResultWorkflowError
    |   +-- ResultNotFoundError
    |   +-- InvalidStatusTransitionError
    |
    +-- BatchError
        +-- BatchJobNotFoundError
        +-- BatchAlreadyRunningError
        +-- BatchIdempotencyError
        +-- TaskNotRegisteredError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                       | When Raised
-------------|----------------------------|------------------------------------------
Batch        | MISSING_FISCAL_YEAR        | run requested without a fiscal year
-------------|----------------------------|------------------------------------------
Employee     | NO_EARNINGS_DATA           | no qualifying salary/bonus slips
             | INVALID_DECLARATION        | approved declaration is inconsistent
             | RESULT_ALREADY_FINALIZED   | recompute of a confirmed/paid result
             | NO_FINALIZED_RESULT        | slip issue without confirmed/paid result
             | EMPLOYEE_NOT_FOUND         | user id unknown to the directory
-------------|----------------------------|------------------------------------------
Workflow     | RESULT_NOT_FOUND           | result id does not exist
             | INVALID_STATUS_TRANSITION  | skip / reverse / unknown action
-------------|----------------------------|------------------------------------------
Batch infra  | BATCH_JOB_NOT_FOUND        | job id does not exist
             | BATCH_ALREADY_RUNNING      | job not PENDING at execute time
             | BATCH_IDEMPOTENCY_CONFLICT | idempotency key reused
             | TASK_NOT_REGISTERED        | unknown task type
             | BATCH_PREPARATION_FAILED   | target items could not be resolved

===============================================================================
"""


class YearEndError(Exception):
    """
    Base exception for all year-end reconciliation errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "YEAR_END_ERROR"


# Batch precondition exceptions


class BatchPreconditionError(YearEndError):
    """A whole-batch precondition was violated; no employee was processed."""

    code: str = "BATCH_PRECONDITION_ERROR"


class MissingFiscalYearError(BatchPreconditionError):
    """Reconciliation run requested without a fiscal year."""

    code: str = "MISSING_FISCAL_YEAR"

    def __init__(self, tenant_id: str | None = None):
        self.tenant_id = tenant_id
        super().__init__("fiscal_year is required")


# Per-employee exceptions


class EmployeeReconciliationError(YearEndError):
    """Base for failures isolated to a single employee."""

    code: str = "EMPLOYEE_RECONCILIATION_ERROR"


class NoEarningsDataError(EmployeeReconciliationError):
    """No qualifying salary or bonus slips for the fiscal year."""

    code: str = "NO_EARNINGS_DATA"

    def __init__(self, tenant_id: str, user_id: str, fiscal_year: int):
        self.tenant_id = tenant_id
        self.user_id = user_id
        self.fiscal_year = fiscal_year
        super().__init__("no earnings data")


class InvalidDeclarationError(EmployeeReconciliationError):
    """Approved declaration is present but internally inconsistent."""

    code: str = "INVALID_DECLARATION"

    def __init__(self, user_id: str, fiscal_year: int, problems: list[str]):
        self.user_id = user_id
        self.fiscal_year = fiscal_year
        self.problems = problems
        super().__init__(
            f"invalid declaration for {user_id}/{fiscal_year}: "
            + "; ".join(problems)
        )


class ResultAlreadyFinalizedError(EmployeeReconciliationError):
    """Recompute refused: the stored result has advanced past 'calculated'."""

    code: str = "RESULT_ALREADY_FINALIZED"

    def __init__(self, tenant_id: str, user_id: str, fiscal_year: int, status: str):
        self.tenant_id = tenant_id
        self.user_id = user_id
        self.fiscal_year = fiscal_year
        self.status = status
        super().__init__("result already finalized")


class NoFinalizedResultError(EmployeeReconciliationError):
    """Withholding slip requested for an employee with no confirmed/paid result."""

    code: str = "NO_FINALIZED_RESULT"

    def __init__(self, tenant_id: str, user_id: str, fiscal_year: int):
        self.tenant_id = tenant_id
        self.user_id = user_id
        self.fiscal_year = fiscal_year
        super().__init__("no finalized result")


class EmployeeNotFoundError(EmployeeReconciliationError):
    """User id is not known to the employee directory."""

    code: str = "EMPLOYEE_NOT_FOUND"

    def __init__(self, tenant_id: str, user_id: str):
        self.tenant_id = tenant_id
        self.user_id = user_id
        super().__init__(f"employee not found: {user_id}")


# Result workflow exceptions


class ResultWorkflowError(YearEndError):
    """Base for result status workflow errors."""

    code: str = "RESULT_WORKFLOW_ERROR"


class ResultNotFoundError(ResultWorkflowError):
    """Result with given ID was not found."""

    code: str = "RESULT_NOT_FOUND"

    def __init__(self, result_id: str):
        self.result_id = result_id
        super().__init__(f"Result not found: {result_id}")


class InvalidStatusTransitionError(ResultWorkflowError):
    """Requested action is not a legal forward step from the current status."""

    code: str = "INVALID_STATUS_TRANSITION"

    def __init__(self, result_id: str, current_status: str, action: str):
        self.result_id = result_id
        self.current_status = current_status
        self.action = action
        super().__init__(
            f"Cannot apply '{action}' to result {result_id} in status {current_status}"
        )


# Batch infrastructure exceptions


class BatchError(YearEndError):
    """Base exception for batch processing errors."""

    code: str = "BATCH_ERROR"


class BatchJobNotFoundError(BatchError):
    """Batch job with given ID was not found."""

    code: str = "BATCH_JOB_NOT_FOUND"

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Batch job not found: {job_id}")


class BatchAlreadyRunningError(BatchError):
    """Batch job is not in an executable state."""

    code: str = "BATCH_ALREADY_RUNNING"

    def __init__(self, job_name: str, job_id: str):
        self.job_name = job_name
        self.job_id = job_id
        super().__init__(f"Batch job '{job_name}' ({job_id}) is not pending")


class BatchIdempotencyError(BatchError):
    """Idempotency key has already been used by another job."""

    code: str = "BATCH_IDEMPOTENCY_CONFLICT"

    def __init__(self, idempotency_key: str, existing_job_id: str):
        self.idempotency_key = idempotency_key
        self.existing_job_id = existing_job_id
        super().__init__(
            f"Idempotency key '{idempotency_key}' already used by job {existing_job_id}"
        )


class TaskNotRegisteredError(BatchError):
    """No batch task is registered for the requested task type."""

    code: str = "TASK_NOT_REGISTERED"

    def __init__(self, task_type: str, available: tuple[str, ...] = ()):
        self.task_type = task_type
        self.available = available
        super().__init__(
            f"Task type '{task_type}' is not registered. Available: {list(available)}"
        )


class BatchPreparationError(BatchError):
    """The target item set could not be resolved; no item was processed."""

    code: str = "BATCH_PREPARATION_FAILED"

    def __init__(self, job_id: str, error_summary: str):
        self.job_id = job_id
        self.error_summary = error_summary
        super().__init__(f"Batch job {job_id} failed before processing: {error_summary}")
