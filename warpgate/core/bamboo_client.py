"""
Bamboo Client - async Bamboo REST API access.

Provides:
- Plan branches and build queueing
- Deployment projects, versions and environment history
- Deployment queueing and result lookup
"""

from typing import Any, Dict, List, Union

from .http import AtlassianRestClient

EntityId = Union[str, int]


class BambooClient(AtlassianRestClient):
    """
    Bamboo REST client.

    Usage:
        bamboo = BambooClient(settings.bamboo)
        projects = await bamboo.get_deployment_projects_for_plan("WL-BFT9-14")
        await bamboo.queue_deployment(environment_id=123, version_id=456)
    """

    service_name = "Bamboo"

    async def get_plan_branches(self, plan_key: str) -> Dict[str, Any]:
        self.logger.debug("get_plan_branches", plan_key=plan_key)
        return await self._request_json(
            "GET",
            f"/rest/api/latest/plan/{plan_key}",
            params={"expand": "branches", "max-result": 100},
        )

    async def get_deployment_projects_for_plan(self, plan_key: str) -> List[Dict[str, Any]]:
        self.logger.debug("get_deployment_projects_for_plan", plan_key=plan_key)
        return await self._request_json(
            "GET",
            "/rest/api/latest/deploy/project/forPlan",
            params={"planKey": plan_key},
        )

    async def get_deployment_project_by_id(self, deployment_id: EntityId) -> Dict[str, Any]:
        self.logger.debug("get_deployment_project_by_id", deployment_id=deployment_id)
        return await self._request_json("GET", f"/rest/api/latest/deploy/project/{deployment_id}")

    async def get_latest_deployment_versions_for_environment(
        self,
        environment_id: EntityId,
        max_results: int = 10,
    ) -> Dict[str, Any]:
        """Deployment results of an environment, most recent first."""
        self.logger.debug("get_latest_deployment_versions", environment_id=environment_id, max_results=max_results)
        return await self._request_json(
            "GET",
            f"/rest/api/latest/deploy/environment/{environment_id}/results",
            params={"max-result": max_results},
        )

    async def queue_build(self, branch_key: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        self.logger.debug("queue_build", branch_key=branch_key)
        form = {key: str(value).lower() if isinstance(value, bool) else str(value) for key, value in variables.items()}
        return await self._request_json(
            "POST",
            f"/rest/api/latest/queue/{branch_key}",
            params={"executeAllStages": "true"},
            data=form,
        )

    async def queue_deployment(self, environment_id: EntityId, version_id: EntityId) -> Dict[str, Any]:
        self.logger.debug("queue_deployment", environment_id=environment_id, version_id=version_id)
        return await self._request_json(
            "POST",
            "/rest/api/latest/queue/deployment",
            params={"environmentId": environment_id, "versionId": version_id},
        )

    async def create_deployment_version(
        self,
        deployment_id: EntityId,
        plan_result_key: str,
        name: str,
    ) -> Dict[str, Any]:
        self.logger.debug("create_deployment_version", deployment_id=deployment_id, plan_result_key=plan_result_key)
        return await self._request_json(
            "POST",
            f"/rest/api/latest/deploy/project/{deployment_id}/version",
            json={"planResultKey": plan_result_key, "name": name},
        )

    async def get_deployment_result(self, deployment_result_id: EntityId) -> Dict[str, Any]:
        self.logger.debug("get_deployment_result", deployment_result_id=deployment_result_id)
        return await self._request_json("GET", f"/rest/api/latest/deploy/result/{deployment_result_id}")
