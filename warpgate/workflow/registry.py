"""
Project/Environment Registry - read-only lookups over the frozen properties.
"""

from typing import Any, Dict, Iterable, Optional

from ..models.deployment import Colour
from ..models.properties import LifecycleControl, ProjectProperties, Properties


class ProjectRegistry:
    """
    Lookups that route a Jira issue or a Bamboo build to its FTL properties.

    Every method is a pure function of the properties it was built with;
    ``None`` means "no match" and callers treat it as a failed precondition.
    """

    def __init__(self, properties: Properties):
        self.properties = properties

    def for_jira_project(self, jira_project_key: str) -> Optional[ProjectProperties]:
        """Project properties by exact Jira project key."""
        return next(
            (item for item in self.properties.projects if item.jira_project_key == jira_project_key),
            None,
        )

    def for_deployment(
        self,
        deployment_plan_ids: Iterable[int],
        plan_result_key: str,
    ) -> Optional[ProjectProperties]:
        """
        First project (in declaration order) that uses one of the deployment
        plans and whose build plan key is part of the plan result key.

        For example {"bambooBuildPlanKey": "WL-BFT", "bambooDeploymentId": 61276164}
        matches for_deployment([61276164, 61276199], "WL-BFT9-14").
        """
        plan_ids = set(deployment_plan_ids)
        return next(
            (
                item for item in self.properties.projects
                if item.bamboo_deployment_id in plan_ids and item.bamboo_build_plan_key in plan_result_key
            ),
            None,
        )

    @property
    def prelive_environment_name(self) -> str:
        return self.properties.environments.prelive

    def production_environment_name(self, colour: Colour) -> str:
        return self.properties.environments.production.for_colour(colour)

    def lifecycle_for(self, colour: Colour) -> LifecycleControl:
        return self.properties.environment_lifecycle.for_colour(colour)


def find_environment(deployment_project: Dict[str, Any], name: str) -> Optional[Dict[str, Any]]:
    """Environment of a Bamboo deployment project by exact name."""
    return next(
        (env for env in deployment_project.get("environments") or [] if env.get("name") == name),
        None,
    )
