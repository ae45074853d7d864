"""
Deployment Workflow Engine - prelive, production, yolo and validation flows.

Each webhook is answered as soon as its inputs are checked; the flow itself
runs in the background after ``async_delay_seconds`` and reports failures
on the issue.

Prelive: transition -> Jira version -> Bamboo deployment version -> queue on prelive
Production: transition -> target colour -> start environment -> announce -> wait -> queue
Yolo: prelive, then deployedToPrelive and pass transitions
Validate: read deployment result -> transition or report failure
"""

from typing import Any, Dict, Optional

from ..config import WarpGateSettings
from ..core.bamboo_client import BambooClient
from ..core.colours import ProductionColourResolver
from ..core.errors import require
from ..core.jira_client import JiraClient
from ..core.locks import IssueLockRegistry
from ..core.scheduler import DeferredTaskScheduler
from ..models.deployment import (
    DeploymentState,
    PreliveRelease,
    ProductionPromotion,
    WorkflowOperation,
    WorkflowTrace,
)
from ..models.properties import Properties
from ..utils.formatting import (
    DEPLOYED_TO_PRODUCTION,
    deployment_failed,
    format_error_for_jira,
    production_scheduled,
)
from ..utils.helpers import (
    FTL_BUILD_NAME_PREFIX,
    extract_deployment_result_id,
    ftl_release_name,
    is_ftl_release_name,
    project_key_from_issue_key,
)
from .base import BaseWorkflow
from .registry import find_environment
from .transitions import TransitionCode


class DeploymentWorkflowEngine(BaseWorkflow):
    """
    Moves FTL issues and their builds through prelive and production.

    Usage:
        engine = DeploymentWorkflowEngine(settings, properties, jira, bamboo)
        engine.request_prelive_deployment("WL-BFT9-14", "CQS-21")
    """

    def __init__(
        self,
        settings: WarpGateSettings,
        properties: Properties,
        jira: JiraClient,
        bamboo: BambooClient,
        colour_resolver: ProductionColourResolver = None,
        scheduler: DeferredTaskScheduler = None,
        locks: IssueLockRegistry = None,
    ):
        super().__init__("DeploymentWorkflow", settings, properties, jira, bamboo, scheduler, locks)
        self.colour_resolver = colour_resolver or ProductionColourResolver(
            properties.production_colours_url,
            freshness_minutes=settings.colour_freshness_minutes,
        )

    # ==================== Webhook entry points ====================

    def request_prelive_deployment(self, plan_result_key: Optional[str], issue_key: Optional[str]) -> WorkflowTrace:
        """
        Start a prelive deployment for a finished FTL build.

        Raises:
            PreconditionFailure: missing inputs or a prelive flow already running for the issue
        """
        require(plan_result_key, "planResultKey must be defined")
        require(issue_key, "issueKey must be defined")
        return self._detach(
            WorkflowOperation.PRELIVE.value,
            issue_key,
            lambda trace: self.run_prelive_deployment(plan_result_key, issue_key, trace),
        )

    def request_production_deployment(self, project_key: Optional[str], issue_key: Optional[str]) -> WorkflowTrace:
        """
        Start a production deployment of the issue's release.

        Raises:
            PreconditionFailure: missing inputs or a production flow already running for the issue
        """
        require(project_key, "projectKey must be defined")
        require(issue_key, "issueKey must be defined")
        return self._detach(
            WorkflowOperation.PRODUCTION.value,
            issue_key,
            lambda trace: self.run_production_deployment(project_key, issue_key, trace),
        )

    def request_yolo_deployment(self, plan_result_key: Optional[str], issue_key: Optional[str]) -> WorkflowTrace:
        """Prelive deployment that also passes the issue on, so production follows without manual QA."""
        require(plan_result_key, "planResultKey must be defined")
        require(issue_key, "issueKey must be defined")
        # Shares the prelive lock: both flows create versions for the same build.
        return self._detach(
            "yolo",
            issue_key,
            lambda trace: self.run_yolo_deployment(plan_result_key, issue_key, trace),
            lock_name=WorkflowOperation.PRELIVE.value,
        )

    def request_validation(
        self,
        issue_key: Optional[str],
        results_url: Optional[str],
        transition_code: Optional[str] = None,
    ) -> str:
        """
        Check a finished deployment and move the issue on; returns the deployment result id.

        Raises:
            PreconditionFailure: missing inputs or no deploymentResultId in the URL
        """
        require(issue_key, "issueKey body or url param must be defined")
        require(results_url, "resultsUrl body param must be defined")
        result_id = extract_deployment_result_id(results_url)
        require(result_id, f"Can't extract deploymentResultId from resultsUrl: {results_url}")

        self._detach(
            WorkflowOperation.VALIDATE.value,
            issue_key,
            lambda trace: self.run_validation(issue_key, results_url, result_id, transition_code, trace),
            lock_name=f"{WorkflowOperation.VALIDATE.value}:{result_id}",
            report_failures=False,
        )
        return result_id

    # ==================== Flows ====================

    async def run_prelive_deployment(
        self,
        plan_result_key: str,
        issue_key: str,
        trace: Optional[WorkflowTrace] = None,
    ) -> PreliveRelease:
        """Create the FTL release for a build and queue it on the prelive environment."""
        trace = trace or WorkflowTrace(WorkflowOperation.PRELIVE.value, issue_key)
        name = ftl_release_name()
        project_key = project_key_from_issue_key(issue_key)
        trace.record(planResultKey=plan_result_key, releaseName=name)

        self.log_step(trace, f"transition {TransitionCode.DEPLOY_TO_PRELIVE}")
        await self.transition(TransitionCode.DEPLOY_TO_PRELIVE)(issue_key)

        self.log_step(trace, "create Jira project version")
        version = await self.jira.create_project_version(project_key, name, FTL_BUILD_NAME_PREFIX)
        version_id = version.get("id")
        require(version_id, f"Jira did not return an id for project version {name}")
        trace.record(projectVersionId=version_id)

        self.log_step(trace, "add issue to project version")
        await self.jira.add_issue_to_project_version(issue_key, version_id)

        self.log_step(trace, "resolve deployment project")
        plans = await self.bamboo.get_deployment_projects_for_plan(plan_result_key)
        plan_ids = [plan.get("id") for plan in plans or []]
        project = self.registry.for_deployment(plan_ids, plan_result_key)
        require(
            project,
            f"No project properties found for planResultKey: {plan_result_key}, deploymentPlansIds: {plan_ids}",
        )
        trace.record(deploymentProjectId=project.bamboo_deployment_id)

        self.log_step(trace, "create Bamboo deployment version")
        deployment_version = await self.bamboo.create_deployment_version(
            project.bamboo_deployment_id, plan_result_key, name
        )
        deployment_version_id = deployment_version.get("id")
        require(deployment_version_id, f"Bamboo did not return an id for deployment version {name}")
        trace.record(deploymentVersionId=deployment_version_id)

        self.log_step(trace, "find prelive environment")
        deployment_project = await self.bamboo.get_deployment_project_by_id(project.bamboo_deployment_id)
        environment = find_environment(deployment_project, self.registry.prelive_environment_name)
        require(environment, "Prelive environment not found as target deployment")
        trace.record(preliveEnvironmentId=environment["id"])

        self.log_step(trace, "queue prelive deployment")
        await self.bamboo.queue_deployment(environment["id"], deployment_version_id)
        trace.finish()

        self.logger.success(issue_key, f"release {name} queued on prelive", deployment_version_id=deployment_version_id)
        return PreliveRelease(
            name=name,
            project_key=project_key,
            project_version_id=version_id,
            deployment_project_id=project.bamboo_deployment_id,
            deployment_version_id=deployment_version_id,
            environment_id=environment["id"],
        )

    async def run_production_deployment(
        self,
        project_key: str,
        issue_key: str,
        trace: Optional[WorkflowTrace] = None,
    ) -> ProductionPromotion:
        """Start the idle colour and deploy the latest FTL release from prelive onto it."""
        trace = trace or WorkflowTrace(WorkflowOperation.PRODUCTION.value, issue_key)
        project = self.registry.for_jira_project(project_key)
        require(project, f"There are no FTL properties for project {project_key}")

        self.log_step(trace, f"transition {TransitionCode.DEPLOY_TO_PRODUCTION}")
        await self.transition(TransitionCode.DEPLOY_TO_PRODUCTION)(issue_key)

        self.log_step(trace, "resolve production colour")
        current_colour = await self.colour_resolver.get_colour()
        require(current_colour, "Cannot set target production colour")
        target_colour = current_colour.opposite
        trace.record(currentColour=current_colour.value, targetColour=target_colour.value)

        self.log_step(trace, f"start {target_colour.value} environment")
        start_environment_id = self.registry.lifecycle_for(target_colour).start
        start_history = await self.bamboo.get_latest_deployment_versions_for_environment(start_environment_id, 1)
        start_results = start_history.get("results") or []
        require(start_results, f"No deployments found for lifecycle environment {start_environment_id}")
        start_version = start_results[0]["deploymentVersion"]
        await self.bamboo.queue_deployment(start_environment_id, start_version["id"])
        trace.record(startEnvironmentId=start_environment_id, startVersionId=start_version["id"])

        self.log_step(trace, "find prelive and production environments")
        deployment_project = await self.bamboo.get_deployment_project_by_id(project.bamboo_deployment_id)
        prelive_environment = find_environment(deployment_project, self.registry.prelive_environment_name)
        require(prelive_environment, "Prelive environment not found")
        production_name = self.registry.production_environment_name(target_colour)
        production_environment = find_environment(deployment_project, production_name)
        require(production_environment, f"Production environment {production_name} not found")
        trace.record(productionEnvironmentId=production_environment["id"])

        self.log_step(trace, "select FTL release from prelive")
        history = await self.bamboo.get_latest_deployment_versions_for_environment(
            prelive_environment["id"], self.settings.prelive_history_size
        )
        results = history.get("results") or []
        require(results, "No deployments found for prelive environment")
        release = _latest_ftl_version(results)
        require(
            release,
            f"No recent deployments matching '{FTL_BUILD_NAME_PREFIX}' pattern were found for prelive environment",
        )
        trace.record(deploymentVersionId=release["id"], deploymentVersionName=release["name"])

        wait = self.settings.production_start_wait_seconds
        self.log_step(trace, "announce production deployment")
        await self.jira.add_comment(
            issue_key,
            production_scheduled(target_colour, wait, release["name"], self.deployment_version_url(release["id"])),
            self.properties.it_visibility,
        )

        self.log_step(trace, "wait for environment start-up")
        await self.scheduler.sleep(wait)

        self.log_step(trace, "queue production deployment")
        await self.bamboo.queue_deployment(production_environment["id"], release["id"])
        trace.finish()

        self.logger.success(issue_key, f"release {release['name']} queued on {production_name}", colour=target_colour.value)
        return ProductionPromotion(
            current_colour=current_colour,
            target_colour=target_colour,
            start_environment_id=start_environment_id,
            production_environment_id=production_environment["id"],
            deployment_version_id=release["id"],
            deployment_version_name=release["name"],
        )

    async def run_yolo_deployment(
        self,
        plan_result_key: str,
        issue_key: str,
        trace: Optional[WorkflowTrace] = None,
    ) -> PreliveRelease:
        """
        Prelive deployment followed by the deployedToPrelive and pass transitions.

        Passing the issue is expected to fire the Jira webhook that requests the
        production deployment; nothing here calls production directly.
        """
        trace = trace or WorkflowTrace("yolo", issue_key)
        release = await self.run_prelive_deployment(plan_result_key, issue_key, trace)

        self.log_step(trace, f"transition {TransitionCode.DEPLOYED_TO_PRELIVE}")
        await self.transition(TransitionCode.DEPLOYED_TO_PRELIVE)(issue_key)

        self.log_step(trace, f"transition {TransitionCode.PASS}")
        await self.transition(TransitionCode.PASS)(issue_key)
        trace.finish()
        return release

    async def run_validation(
        self,
        issue_key: str,
        results_url: str,
        result_id: str,
        transition_code: Optional[str] = None,
        trace: Optional[WorkflowTrace] = None,
    ) -> DeploymentState:
        """
        Transition the issue on success, otherwise comment the failure and run ``fail``.

        Upstream errors propagate; the detached runner logs them without commenting.
        """
        trace = trace or WorkflowTrace(WorkflowOperation.VALIDATE.value, issue_key)

        self.log_step(trace, "fetch deployment result")
        result = await self.bamboo.get_deployment_result(result_id)
        state = DeploymentState.parse(result.get("deploymentState"))
        trace.record(deploymentResultId=result_id, deploymentState=state.value)

        if state is DeploymentState.SUCCESS:
            if transition_code == TransitionCode.DEPLOYED_TO_PRODUCTION:
                self.log_step(trace, "announce production release")
                await self.jira.add_comment(issue_key, DEPLOYED_TO_PRODUCTION)
            if transition_code:
                self.log_step(trace, f"transition {transition_code}")
                await self.transition(transition_code)(issue_key)
            else:
                self.logger.info(issue_key, f"deployment #{result_id} succeeded, no transition requested")
            trace.finish()
            return state

        self.log_step(trace, "report failed deployment")
        await self.jira.add_comment(issue_key, format_error_for_jira(deployment_failed(result_id, results_url)))

        self.log_step(trace, f"transition {TransitionCode.FAIL}")
        await self.transition(TransitionCode.FAIL)(issue_key)
        trace.finish()
        return state

    def deployment_version_url(self, version_id: Any) -> str:
        return f"{self.bamboo.base_url}/deploy/viewDeploymentVersion.action?versionId={version_id}"


def _latest_ftl_version(results: Any) -> Optional[Dict[str, Any]]:
    """Deployment version of the most recent result whose name carries the FTL prefix."""
    for result in results:
        version = result.get("deploymentVersion") or {}
        if is_ftl_release_name(version.get("name")):
            return version
    return None
