"""
YearEndOrchestrator -- DI container and public API of the year-end engine.

Contract:
    Wires collaborators, services, the TaskRegistry and the BatchExecutor,
    and exposes the engine's operations:

    * ``run_reconciliation(tenant, fiscal_year, user_ids=None)``
    * ``issue_withholding_slips(tenant, fiscal_year, user_ids=None, issue_date=None)``
    * ``get_results(tenant, filters, pagination)``
    * ``advance_result_status(result_id, action, actor)``

Architecture: yearend_batch (top-level).  Nothing in kernel, engines,
    config or services imports from here.

Invariants enforced:
    - A missing fiscal year raises MissingFiscalYearError before any job is
      submitted or any employee is touched.
    - Per-employee failures never raise; they are reported in the summary.
    - All services share one Clock and one actor.
    - Worker sessions come from ``session_factory``; without one the run is
      sequential in the caller's session.

Non-goals:
    - Does NOT commit -- caller controls the transaction boundary.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import date
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from yearend_config.schema import YearEndConfig
from yearend_kernel.domain.clock import Clock, SystemClock
from yearend_kernel.domain.dtos import (
    Pagination,
    ResultAction,
    ResultFilters,
    ResultPage,
    YearEndResult,
)
from yearend_kernel.exceptions import BatchPreparationError, MissingFiscalYearError
from yearend_kernel.logging_config import LogContext, get_logger
from yearend_services.reconciliation_service import ReconciliationService
from yearend_services.result_workflow_service import ResultWorkflowService
from yearend_services.sources import SqlReconciliationSources, SqlResultRepository
from yearend_services.withholding_slip_service import WithholdingSlipService

from yearend_batch.domain.types import (
    BatchItemResult,
    BatchItemStatus,
    BatchJob,
    BatchJobStatus,
    BatchRunResult,
    EmployeeOutcome,
    ReconciliationRunSummary,
)
from yearend_batch.services.executor import BatchExecutor
from yearend_batch.tasks.base import TaskRegistry
from yearend_batch.tasks.reconciliation_tasks import ReconciliationTask
from yearend_batch.tasks.withholding_tasks import WithholdingSlipTask

logger = get_logger("batch.orchestrator")

RECONCILIATION_TASK = "yearend.reconciliation"
WITHHOLDING_SLIP_TASK = "yearend.withholding_slips"


def _require_fiscal_year(tenant_id: str, fiscal_year: int | None) -> int:
    if (
        fiscal_year is None
        or isinstance(fiscal_year, bool)
        or not isinstance(fiscal_year, int)
        or fiscal_year <= 0
    ):
        logger.error("batch_rejected_missing_fiscal_year", extra={"tenant_id": tenant_id})
        raise MissingFiscalYearError(tenant_id)
    return fiscal_year


def _outcome(item: BatchItemResult) -> EmployeeOutcome:
    if item.status == BatchItemStatus.SUCCEEDED:
        return EmployeeOutcome(user_id=item.item_key, success=True, result=item.value)
    return EmployeeOutcome(
        user_id=item.item_key,
        success=False,
        error=item.error_message,
        error_code=item.error_code,
    )


class YearEndOrchestrator:
    """DI container for the year-end engine.

    Contract:
        - ``from_session()`` factory creates a fully wired orchestrator.
        - Every service built here shares the orchestrator's clock, config
          and actor.
    """

    def __init__(
        self,
        session: Session,
        config: YearEndConfig,
        clock: Clock | None = None,
        session_factory: Callable[[], Session] | None = None,
        actor_id: UUID | None = None,
        task_registry: TaskRegistry | None = None,
    ) -> None:
        self._session = session
        self._config = config
        self._clock = clock or SystemClock()
        self._session_factory = session_factory
        self._actor_id = actor_id or config.actor_id
        self._task_registry = (
            task_registry if task_registry is not None else self._default_task_registry()
        )

    # -------------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------------

    @classmethod
    def from_session(
        cls,
        session: Session,
        session_factory: Callable[[], Session] | None = None,
        config: YearEndConfig | None = None,
        clock: Clock | None = None,
        actor_id: UUID | None = None,
        task_registry: TaskRegistry | None = None,
    ) -> YearEndOrchestrator:
        """Create a fully wired orchestrator from a session.

        Args:
            session: Caller-owned session; all writes go here.
            session_factory: Source of per-worker read sessions.  Omit for
                sequential execution (required for in-memory SQLite).
            config: Runtime config.  Defaults to ``get_active_config()``.
            clock: Optional clock for deterministic testing.
            actor_id: Audit actor; defaults to ``config.actor_id``.
            task_registry: Optional pre-configured registry.
        """
        if config is None:
            from yearend_config import get_active_config

            config = get_active_config()
        return cls(
            session=session,
            config=config,
            clock=clock,
            session_factory=session_factory,
            actor_id=actor_id,
            task_registry=task_registry,
        )

    # -------------------------------------------------------------------------
    # Service factories
    # -------------------------------------------------------------------------

    def reconciliation_service(self, session: Session) -> ReconciliationService:
        sources = SqlReconciliationSources(session)
        return ReconciliationService(
            declarations=sources,
            ledger=sources,
            results=SqlResultRepository(session, clock=self._clock, actor_id=self._actor_id),
            default_mortgage_rate=self._config.default_mortgage_rate,
            default_mortgage_cap=self._config.default_mortgage_cap,
        )

    def withholding_slip_service(self, session: Session) -> WithholdingSlipService:
        sources = SqlReconciliationSources(session)
        return WithholdingSlipService(session, declarations=sources, directory=sources)

    def _default_task_registry(self) -> TaskRegistry:
        registry = TaskRegistry()
        registry.register(ReconciliationTask(self.reconciliation_service, self._actor_id))
        registry.register(WithholdingSlipTask(self.withholding_slip_service, self._actor_id))
        return registry

    def create_executor(self) -> BatchExecutor:
        return BatchExecutor(
            session=self._session,
            task_registry=self._task_registry,
            clock=self._clock,
            session_factory=self._session_factory,
            max_workers=self._config.max_workers,
        )

    # -------------------------------------------------------------------------
    # Batch operations
    # -------------------------------------------------------------------------

    def run_reconciliation(
        self,
        tenant_id: str,
        fiscal_year: int | None,
        user_ids: Sequence[str] | None = None,
    ) -> ReconciliationRunSummary:
        """Reconcile every target employee and return the run summary.

        Raises:
            MissingFiscalYearError: fiscal_year is absent.
            BatchPreparationError: target employees could not be resolved.
        """
        fiscal_year = _require_fiscal_year(tenant_id, fiscal_year)
        return self._run(
            RECONCILIATION_TASK,
            f"Year-end reconciliation {tenant_id} {fiscal_year}",
            tenant_id,
            fiscal_year,
            {"user_ids": list(user_ids or [])},
        )

    def issue_withholding_slips(
        self,
        tenant_id: str,
        fiscal_year: int | None,
        user_ids: Sequence[str] | None = None,
        issue_date: date | None = None,
    ) -> ReconciliationRunSummary:
        """Issue withholding statements from finalized results.

        Raises:
            MissingFiscalYearError: fiscal_year is absent.
            BatchPreparationError: target employees could not be resolved.
        """
        fiscal_year = _require_fiscal_year(tenant_id, fiscal_year)
        issue_date = issue_date or self._clock.now().date()
        return self._run(
            WITHHOLDING_SLIP_TASK,
            f"Withholding statements {tenant_id} {fiscal_year}",
            tenant_id,
            fiscal_year,
            {"user_ids": list(user_ids or []), "issue_date": issue_date.isoformat()},
        )

    def _run(
        self,
        task_type: str,
        job_name: str,
        tenant_id: str,
        fiscal_year: int,
        extra_parameters: dict,
    ) -> ReconciliationRunSummary:
        correlation_id = str(uuid4())
        executor = self.create_executor()

        with LogContext.bind(
            tenant_id=tenant_id,
            correlation_id=correlation_id,
            actor_id=str(self._actor_id),
        ):
            job = executor.submit_job(
                job_name=job_name,
                task_type=task_type,
                idempotency_key=f"{task_type}:{tenant_id}:{fiscal_year}:{correlation_id}",
                actor_id=self._actor_id,
                parameters={
                    "tenant_id": tenant_id,
                    "fiscal_year": fiscal_year,
                    **extra_parameters,
                },
                correlation_id=correlation_id,
            )
            run = executor.execute_job(job.job_id, actor_id=self._actor_id)
            if run.status == BatchJobStatus.FAILED and run.total_items == 0:
                failed_job = executor.get_job(job.job_id)
                raise BatchPreparationError(
                    str(job.job_id), failed_job.error_summary or "unknown error",
                )
            if run.total_items == 0:
                logger.warning(
                    "batch_no_target_employees",
                    extra={"task_type": task_type, "fiscal_year": fiscal_year},
                )

            summary = ReconciliationRunSummary.from_outcomes(
                tuple(_outcome(item) for item in run.item_results),
                fiscal_year=fiscal_year,
                job_id=run.job_id,
            )
            logger.info(
                "yearend_run_summary",
                extra={
                    "task_type": task_type,
                    "fiscal_year": fiscal_year,
                    "total": summary.summary.total,
                    "success": summary.summary.success,
                    "error": summary.summary.error,
                },
            )
            return summary

    # -------------------------------------------------------------------------
    # Queries and workflow
    # -------------------------------------------------------------------------

    def get_results(
        self,
        tenant_id: str,
        filters: ResultFilters | None = None,
        pagination: Pagination | None = None,
    ) -> ResultPage:
        """Results ordered fiscal_year desc, user_id asc; page size clamped to config."""
        pagination = pagination or Pagination(limit=self._config.default_page_size)
        pagination = Pagination(
            page=max(1, pagination.page),
            limit=min(max(1, pagination.limit), self._config.max_page_size),
        )
        return SqlResultRepository(self._session, clock=self._clock).list_results(
            tenant_id, filters, pagination,
        )

    def advance_result_status(
        self,
        result_id: UUID,
        action: ResultAction | str,
        actor: str,
    ) -> YearEndResult:
        """External workflow step: confirm or pay.  Never called by batch runs."""
        workflow = ResultWorkflowService(
            SqlResultRepository(self._session, clock=self._clock, actor_id=self._actor_id),
        )
        return workflow.advance_result_status(result_id, action, actor)

    def get_job(self, job_id: UUID) -> BatchJob:
        return self.create_executor().get_job(job_id)

    def get_job_items(self, job_id: UUID) -> tuple[BatchItemResult, ...]:
        return self.create_executor().get_job_items(job_id)

    def cancel_job(self, job_id: UUID, reason: str) -> BatchJob:
        return self.create_executor().cancel_job(job_id, reason, self._actor_id)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def session(self) -> Session:
        return self._session

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def config(self) -> YearEndConfig:
        return self._config

    @property
    def task_registry(self) -> TaskRegistry:
        return self._task_registry

    @property
    def actor_id(self) -> UUID:
        return self._actor_id
