"""
ResultWorkflowService -- external status workflow for year-end results.

Contract:
    ``advance_result_status(result_id, action, actor)`` moves a result one
    step forward: ``confirm`` from calculated, ``pay`` from confirmed.

Non-goals:
    Never invoked by the batch runner.  Reversal and skipping are not
    supported.
"""

from __future__ import annotations

from uuid import UUID

from yearend_kernel.domain.dtos import ResultAction, YearEndResult
from yearend_kernel.logging_config import LogContext, get_logger
from yearend_services.sources import ResultRepository

logger = get_logger("services.result_workflow")


class ResultWorkflowService:
    def __init__(self, results: ResultRepository):
        self._results = results

    def advance_result_status(
        self,
        result_id: UUID,
        action: ResultAction | str,
        actor: str,
    ) -> YearEndResult:
        """
        Raises:
            ResultNotFoundError: unknown result_id.
            InvalidStatusTransitionError: illegal step or unknown action.
        """
        with LogContext.bind(actor_id=actor):
            try:
                return self._results.advance_result_status(result_id, action, actor)
            except Exception:
                logger.warning(
                    "result_status_advance_rejected",
                    extra={"result_id": str(result_id), "action": str(action)},
                    exc_info=True,
                )
                raise

    def confirm(self, result_id: UUID, actor: str) -> YearEndResult:
        return self.advance_result_status(result_id, ResultAction.CONFIRM, actor)

    def pay(self, result_id: UUID, actor: str) -> YearEndResult:
        return self.advance_result_status(result_id, ResultAction.PAY, actor)
