"""Unit tests for the project/environment registry."""

import pytest

from warpgate.models.deployment import Colour
from warpgate.models.properties import Properties
from warpgate.workflow.registry import ProjectRegistry, find_environment


@pytest.fixture
def registry(properties):
    return ProjectRegistry(properties)


class TestProjectRegistry:

    def test_for_jira_project(self, registry):
        assert registry.for_jira_project("OPS").bamboo_build_plan_key == "OPS-SITE"
        assert registry.for_jira_project("ops") is None
        assert registry.for_jira_project("NOPE") is None

    def test_for_deployment_matches_plan_id_and_build_key(self, registry):
        project = registry.for_deployment([61276164, 61276199], "WL-BFT9-14")

        assert project.jira_project_key == "CQS"
        assert project.bamboo_deployment_id == 61276164

    def test_for_deployment_requires_both_conditions(self, registry):
        assert registry.for_deployment([61276199], "WL-BFT9-14") is None
        assert registry.for_deployment([61276164], "XYZ-1") is None
        assert registry.for_deployment([], "WL-BFT9-14") is None

    def test_for_deployment_first_match_wins(self, properties_data):
        properties_data["projects"].append({
            "jiraProjectKey": "CQS2",
            "bambooBuildPlanKey": "WL-BFT",
            "bambooDeploymentId": 61276164,
            "releaseBranch": "release",
        })
        registry = ProjectRegistry(Properties.model_validate(properties_data))

        assert registry.for_deployment([61276164], "WL-BFT9-14").jira_project_key == "CQS"

    def test_environment_names(self, registry):
        assert registry.prelive_environment_name == "Prelive"
        assert registry.production_environment_name(Colour.GREEN) == "Production Green"
        assert registry.production_environment_name(Colour.BLUE) == "Production Blue"

    def test_lifecycle_for(self, registry):
        assert registry.lifecycle_for(Colour.GREEN).start == 61341697
        assert registry.lifecycle_for(Colour.GREEN).stop == 61341698
        assert registry.lifecycle_for(Colour.BLUE).stop is None


class TestFindEnvironment:

    def test_exact_name(self):
        project = {"environments": [{"id": 1, "name": "Prelive"}, {"id": 2, "name": "Prelive 2"}]}

        assert find_environment(project, "Prelive")["id"] == 1
        assert find_environment(project, "prelive") is None

    def test_project_without_environments(self):
        assert find_environment({}, "Prelive") is None
