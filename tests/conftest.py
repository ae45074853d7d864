"""Shared fixtures for Warp Gate tests."""

import copy
from typing import Any, Dict, Iterable, List, Optional
from unittest.mock import AsyncMock

import pytest

from warpgate.config import ServiceCredentials, WarpGateSettings
from warpgate.core.scheduler import DeferredTaskScheduler
from warpgate.models.properties import Properties

JIRA_URL = "https://jira.example.com"
BAMBOO_URL = "https://bamboo.example.com"

PRELIVE_ENV_ID = 1001
PRODUCTION_GREEN_ENV_ID = 1002
PRODUCTION_BLUE_ENV_ID = 1003

PROPERTIES_DATA: Dict[str, Any] = {
    "label": "FTL",
    "allowMultipleFTLsWithStatuses": ["Done", "Closed", "Released"],
    "productionColoursUrl": "https://status.example.com/colours.json",
    "commentsVisibility": {"IT": {"type": "role", "value": "Developers"}},
    "transitions": {
        "deployToPrelive": "Deploy to Prelive",
        "deployedToPrelive": "Deployed to Prelive",
        "pass": "QA Passed",
        "fail": "QA Failed",
        "deployToProduction": "Deploy to Production",
        "deployedToProduction": "Deployed to Production",
        "thingsWentWrong": "Things Went Wrong",
    },
    "environments": {
        "prelive": "Prelive",
        "production": {"green": "Production Green", "blue": "Production Blue"},
    },
    "environmentLifecycle": {
        "green": {"start": 61341697, "stop": 61341698},
        "blue": {"start": 61341699},
    },
    "projects": [
        {
            "jiraProjectKey": "CQS",
            "bambooBuildPlanKey": "WL-BFT",
            "bambooDeploymentId": 61276164,
            "releaseBranch": "release",
        },
        {
            "jiraProjectKey": "OPS",
            "bambooBuildPlanKey": "OPS-SITE",
            "bambooDeploymentId": 61276199,
            "releaseBranch": "master",
        },
    ],
}

# Jira transition ids for the names above
TRANSITIONS: List[Dict[str, str]] = [
    {"id": "11", "name": "Deploy to Prelive"},
    {"id": "21", "name": "Deployed to Prelive"},
    {"id": "31", "name": "QA Passed"},
    {"id": "41", "name": "QA Failed"},
    {"id": "51", "name": "Deploy to Production"},
    {"id": "61", "name": "Deployed to Production"},
    {"id": "71", "name": "Things Went Wrong"},
]

DEPLOYMENT_PROJECT: Dict[str, Any] = {
    "id": 61276164,
    "name": "Web Lottery",
    "environments": [
        {"id": PRELIVE_ENV_ID, "name": "Prelive"},
        {"id": PRODUCTION_GREEN_ENV_ID, "name": "Production Green"},
        {"id": PRODUCTION_BLUE_ENV_ID, "name": "Production Blue"},
    ],
}


def make_issue(
    key: str = "CQS-21",
    labels: Iterable[str] = ("FTL",),
    transitions: Optional[List[Dict[str, str]]] = None,
    fix_versions: Optional[List[Dict[str, str]]] = None,
    project_key: str = "CQS",
) -> Dict[str, Any]:
    """Jira issue as returned by GET /issue/{key}?expand=transitions."""
    return {
        "key": key,
        "fields": {
            "project": {"key": project_key},
            "labels": list(labels),
            "fixVersions": fix_versions or [],
        },
        "transitions": TRANSITIONS if transitions is None else transitions,
    }


def transition_ids(jira: AsyncMock) -> List[str]:
    """Transition ids executed on the mocked Jira client, in order."""
    return [call.args[1] for call in jira.transition.await_args_list]


@pytest.fixture
def properties_data() -> Dict[str, Any]:
    return copy.deepcopy(PROPERTIES_DATA)


@pytest.fixture
def properties(properties_data) -> Properties:
    return Properties.model_validate(properties_data)


@pytest.fixture
def settings() -> WarpGateSettings:
    return WarpGateSettings(
        _env_file=None,
        async_delay_seconds=0,
        production_start_wait_seconds=300,
        jira=ServiceCredentials(base_url=JIRA_URL, username="warpgate", password="jira-secret"),
        bamboo=ServiceCredentials(base_url=BAMBOO_URL, username="warpgate", password="bamboo-secret"),
    )


@pytest.fixture
def jira() -> AsyncMock:
    mock = AsyncMock()
    mock.base_url = JIRA_URL
    mock.get_issue.return_value = make_issue()
    mock.create_project_version.return_value = {"id": "10500", "name": "FTL"}
    mock.search_issues_by_labels_excluding_statuses.return_value = [{"key": "CQS-21"}]
    return mock


@pytest.fixture
def bamboo() -> AsyncMock:
    mock = AsyncMock()
    mock.base_url = BAMBOO_URL
    mock.get_deployment_projects_for_plan.return_value = [{"id": 61276164}, {"id": 61276199}]
    mock.create_deployment_version.return_value = {"id": 777}
    mock.get_deployment_project_by_id.return_value = copy.deepcopy(DEPLOYMENT_PROJECT)
    return mock


@pytest.fixture
def sleep() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def scheduler(sleep) -> DeferredTaskScheduler:
    return DeferredTaskScheduler(sleep=sleep)


@pytest.fixture
def issue_factory():
    return make_issue


@pytest.fixture
def executed_transitions():
    return transition_ids
