"""
Jira Client - async Jira REST API v2 access.

Provides:
- Issue lookup, comments and transitions
- Project version creation and release
- FTL issue search
"""

from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Union

from .http import AtlassianRestClient

VersionId = Union[str, int]


def _quoted(values: Union[str, Iterable[str]]) -> str:
    if isinstance(values, str):
        values = [values]
    return ",".join(f'"{value}"' for value in values)


class JiraClient(AtlassianRestClient):
    """
    Jira REST client.

    Usage:
        jira = JiraClient(settings.jira)
        issue = await jira.get_issue("CQS-21", expand="transitions")
        await jira.add_comment("CQS-21", "Hello from Warp Gate")
    """

    service_name = "Jira"

    @property
    def headers(self) -> Dict[str, str]:
        return {"Accept": "application/json", "Content-Type": "application/json"}

    async def get_issue(self, issue_key: str, expand: Optional[str] = None) -> Dict[str, Any]:
        self.logger.debug("get_issue", issue_key=issue_key, expand=expand)
        return await self._request_json(
            "GET",
            f"/rest/api/2/issue/{issue_key}",
            params={"expand": expand or ""},
        )

    async def add_comment(
        self,
        issue_key: str,
        comment: str,
        visibility: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        self.logger.debug("add_comment", issue_key=issue_key)
        body: Dict[str, Any] = {"body": comment}
        if visibility:
            body["visibility"] = visibility
        return await self._request_json("POST", f"/rest/api/2/issue/{issue_key}/comment", json=body)

    async def transition(self, issue_key: str, transition_id: str) -> Dict[str, Any]:
        self.logger.debug("transition", issue_key=issue_key, transition_id=transition_id)
        return await self._request_json(
            "POST",
            f"/rest/api/2/issue/{issue_key}/transitions",
            json={"transition": {"id": transition_id}},
        )

    async def create_project_version(
        self,
        project_key: str,
        name: str,
        description: str = "",
    ) -> Dict[str, Any]:
        self.logger.debug("create_project_version", project_key=project_key, name=name)
        return await self._request_json(
            "POST",
            "/rest/api/2/version",
            json={
                "description": description,
                "name": name,
                "project": project_key,
                "startDate": date.today().isoformat(),
            },
        )

    async def add_issue_to_project_version(self, issue_key: str, version_id: VersionId) -> Dict[str, Any]:
        """Replace the issue's fixVersions with the given version."""
        self.logger.debug("add_issue_to_project_version", issue_key=issue_key, version_id=version_id)
        return await self._request_json(
            "PUT",
            f"/rest/api/2/issue/{issue_key}",
            json={"update": {"fixVersions": [{"set": [{"id": str(version_id)}]}]}},
        )

    async def release_project_version(self, version_id: VersionId) -> Dict[str, Any]:
        """Mark a project version as released today."""
        self.logger.debug("release_project_version", version_id=version_id)
        return await self._request_json(
            "PUT",
            f"/rest/api/2/version/{version_id}",
            json={"released": True, "releaseDate": date.today().isoformat()},
        )

    async def search_issues_by_labels_excluding_statuses(
        self,
        project_key: str,
        labels: Union[str, Iterable[str]],
        excluded_statuses: Union[str, Iterable[str]],
    ) -> List[Dict[str, Any]]:
        """Issues of a project carrying any of ``labels`` whose status is not in ``excluded_statuses``."""
        formatted_labels = _quoted(labels)
        formatted_statuses = _quoted(excluded_statuses)
        if not project_key or not formatted_labels or not formatted_statuses:
            raise ValueError("project key, at least one label and at least one status are required")

        jql = (
            f"project = {project_key} AND status not in ({formatted_statuses}) "
            f"AND labels in ({formatted_labels})"
        )
        self.logger.debug("search_issues", jql=jql)
        data = await self._request_json("GET", "/rest/api/2/search", params={"jql": jql})
        return data.get("issues", [])
