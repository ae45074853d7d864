"""
Issue Lifecycle handlers - FTL build kick-off and release closing.

Build: an issue labelled FTL is ready, so queue a release build of the
project's release branch unless another unreleased FTL issue exists.
Release: the issue is done, so mark its single fix version as released.
"""

from typing import Any, Dict, Optional

from ..core.errors import ReportedFailure, require
from ..models.deployment import WorkflowOperation, WorkflowTrace
from ..models.properties import ProjectProperties
from ..utils.formatting import READY_FOR_PRELIVE, building_release, too_many_ftl_issues
from .base import BaseWorkflow
from .transitions import TransitionCode


class TooManyFtlIssues(ReportedFailure):
    """Another unreleased FTL issue blocks the build; the issue was already told why."""


class IssueLifecycle(BaseWorkflow):
    """Handlers for the Jira issue webhooks that open and close an FTL release."""

    def __init__(self, settings, properties, jira, bamboo, scheduler=None, locks=None):
        super().__init__("IssueLifecycle", settings, properties, jira, bamboo, scheduler, locks)

    def request_build(self, issue: Optional[Dict[str, Any]]) -> bool:
        """
        Queue a release build for a Jira issue webhook payload.

        Returns False without doing anything when the issue is not labelled FTL.

        Raises:
            PreconditionFailure: missing issue, unknown project or a build already running
        """
        require(issue, "Issue must be specified in the body")
        issue_key = issue.get("key")
        fields = issue.get("fields") or {}
        project_key = (fields.get("project") or {}).get("key")
        require(issue_key, "Issue key must be specified in the body")
        require(project_key, f"Project of issue {issue_key} must be specified in the body")

        project = self.registry.for_jira_project(project_key)
        require(project, f"There are no FTL properties for project {project_key}")

        if self.properties.label not in (fields.get("labels") or []):
            self.logger.debug("Issue is not labelled for FTL, ignoring", issue_key=issue_key)
            return False

        self._detach(
            WorkflowOperation.BUILD.value,
            issue_key,
            lambda trace: self.run_build(project, issue_key, trace),
            delay=0,
        )
        return True

    def request_release(self, issue_key: Optional[str]) -> WorkflowTrace:
        require(issue_key, "issueKey must be defined")
        return self._detach(
            WorkflowOperation.RELEASE.value,
            issue_key,
            lambda trace: self.run_release(issue_key, trace),
            delay=0,
        )

    async def run_build(
        self,
        project: ProjectProperties,
        issue_key: str,
        trace: Optional[WorkflowTrace] = None,
    ) -> Dict[str, Any]:
        trace = trace or WorkflowTrace(WorkflowOperation.BUILD.value, issue_key)

        self.log_step(trace, "check for other unreleased FTL issues")
        issues = await self.jira.search_issues_by_labels_excluding_statuses(
            project.jira_project_key,
            self.properties.label,
            self.properties.done_statuses,
        )
        if len(issues) > 1:
            others = [item.get("key") for item in issues if item.get("key") != issue_key]
            await self.jira.add_comment(issue_key, too_many_ftl_issues(others))
            await self.transition(TransitionCode.THINGS_WENT_WRONG)(issue_key)
            raise TooManyFtlIssues(f"Other unreleased FTL issues block {issue_key}: {', '.join(others)}")

        self.log_step(trace, f"find release branch {project.release_branch}")
        data = await self.bamboo.get_plan_branches(project.bamboo_build_plan_key)
        branches = (data.get("branches") or {}).get("branch") or []
        branch = next((item for item in branches if item.get("shortName") == project.release_branch), None)
        require(branch, f"Release branch {project.release_branch} not found in plan {project.bamboo_build_plan_key}")
        trace.record(branchKey=branch["key"])

        self.log_step(trace, "queue release build")
        build = await self.bamboo.queue_build(
            branch["key"],
            {"bamboo.variable.isFTL": True, "bamboo.variable.issueKey": issue_key},
        )
        trace.record(buildResultKey=build.get("buildResultKey"))

        self.log_step(trace, "announce release build")
        await self.jira.add_comment(issue_key, READY_FOR_PRELIVE)
        await self.jira.add_comment(
            issue_key,
            building_release(build.get("buildNumber"), f"{self.bamboo.base_url}/browse/{build.get('buildResultKey')}"),
            self.properties.it_visibility,
        )
        trace.finish()
        return build

    async def run_release(self, issue_key: str, trace: Optional[WorkflowTrace] = None) -> Dict[str, Any]:
        """Release the issue's fix version; exactly one is expected."""
        trace = trace or WorkflowTrace(WorkflowOperation.RELEASE.value, issue_key)

        self.log_step(trace, "read fix versions")
        issue = await self.jira.get_issue(issue_key)
        fix_versions = (issue.get("fields") or {}).get("fixVersions") or []
        require(fix_versions, f"There are no release versions for issue {issue_key}")
        require(len(fix_versions) == 1, f"There are too many release versions for issue {issue_key}")
        version = fix_versions[0]
        trace.record(projectVersionId=version.get("id"), projectVersionName=version.get("name"))

        self.log_step(trace, "release project version")
        released = await self.jira.release_project_version(version["id"])
        trace.finish()
        self.logger.success(issue_key, f"version {version.get('name')} released")
        return released
