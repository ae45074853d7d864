"""
Base Workflow class for Warp Gate.
The deployment engine and the issue lifecycle handlers inherit from this base.
"""

from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

from ..config import WarpGateSettings
from ..core.bamboo_client import BambooClient
from ..core.errors import PreconditionFailure, ReportedFailure, WarpGateError
from ..core.jira_client import JiraClient
from ..core.locks import IssueLockRegistry
from ..core.logger import WorkflowLogger, bind_workflow_context, clear_workflow_context
from ..core.scheduler import DeferredTaskScheduler
from ..models.deployment import WorkflowTrace
from ..models.properties import Properties
from ..utils.formatting import format_error_for_jira
from ..utils.helpers import format_duration
from .registry import ProjectRegistry
from .transitions import TransitionOperation, transition_for

TracedJob = Callable[[WorkflowTrace], Awaitable[Any]]


class BaseWorkflow:
    """
    Shared plumbing for webhook-driven workflows.

    Subclasses validate requests synchronously and hand the actual work to
    ``_detach``, which runs it in the background under an issue lock and
    reports failures as Jira comments.
    """

    def __init__(
        self,
        name: str,
        settings: WarpGateSettings,
        properties: Properties,
        jira: JiraClient,
        bamboo: BambooClient,
        scheduler: DeferredTaskScheduler = None,
        locks: IssueLockRegistry = None,
    ):
        self.name = name
        self.settings = settings
        self.properties = properties
        self.jira = jira
        self.bamboo = bamboo
        self.scheduler = scheduler or DeferredTaskScheduler()
        self.locks = locks or IssueLockRegistry()
        self.registry = ProjectRegistry(properties)
        self.logger = WorkflowLogger(name)

    def transition(self, transition_code: str) -> TransitionOperation:
        """Operation moving an issue through the transition mapped to ``transition_code``."""
        return transition_for(self.jira, self.properties, transition_code)

    def log_step(self, trace: WorkflowTrace, message: str) -> None:
        trace.begin(message)
        self.logger.step(trace, message)

    def _detach(
        self,
        operation: str,
        issue_key: str,
        job: TracedJob,
        delay: Optional[float] = None,
        lock_name: Optional[str] = None,
        report_failures: bool = True,
    ) -> WorkflowTrace:
        """
        Run ``job`` in the background after ``delay`` seconds.

        The (issue, lock_name) key is held from now until the job ends, so a
        retried webhook for the same issue is rejected instead of starting an
        overlapping workflow.

        Raises:
            PreconditionFailure: the same workflow is already in flight
        """
        lock_name = lock_name or operation
        if not self.locks.try_acquire(issue_key, lock_name):
            raise PreconditionFailure(f"A {operation} workflow is already in progress for issue {issue_key}")

        trace = WorkflowTrace(operation=operation, issue_key=issue_key)
        if delay is None:
            delay = self.settings.async_delay_seconds

        async def guarded() -> None:
            bind_workflow_context(issue_key=issue_key, operation=operation)
            try:
                await job(trace)
                trace.finish()
                elapsed = (datetime.now() - trace.started_at).total_seconds()
                self.logger.success(issue_key, f"{operation} workflow finished in {format_duration(elapsed)}")
            except Exception as e:
                self.logger.failure(trace, e)
                if report_failures and not isinstance(e, ReportedFailure):
                    await self._report_failure(issue_key, e, trace)
            finally:
                self.locks.release(issue_key, lock_name)
                clear_workflow_context()

        try:
            self.scheduler.schedule(delay, guarded, name=f"{operation}:{issue_key}")
        except RuntimeError:
            self.locks.release(issue_key, lock_name)
            raise
        return trace

    async def _report_failure(self, issue_key: str, error: BaseException, trace: WorkflowTrace) -> None:
        """Post the error and workflow progress on the issue, visible to IT only."""
        try:
            await self.jira.add_comment(
                issue_key,
                format_error_for_jira(error, trace),
                self.properties.it_visibility,
            )
        except WarpGateError as e:
            self.logger.error(issue_key, "Could not report failure", e)
