"""
FTL properties models.

The properties file binds Jira projects to Bamboo build plans, deployment
projects and environment names. It is validated once at startup and frozen:
sequences become tuples and mappings become read-only views.
"""

import json
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_serializer, field_validator

from ..core.errors import PropertiesError
from .deployment import Colour


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")


class ProjectProperties(FrozenModel):
    """One Jira project bound to one Bamboo build plan and deployment project."""

    jira_project_key: str = Field(alias="jiraProjectKey", min_length=1)
    bamboo_build_plan_key: str = Field(alias="bambooBuildPlanKey", min_length=1)
    bamboo_deployment_id: int = Field(alias="bambooDeploymentId")
    release_branch: str = Field(alias="releaseBranch", min_length=1)


class ProductionEnvironments(FrozenModel):
    green: str = Field(min_length=1)
    blue: str = Field(min_length=1)

    def for_colour(self, colour: Colour) -> str:
        return self.green if colour is Colour.GREEN else self.blue


class Environments(FrozenModel):
    """Bamboo environment names inside each deployment project."""

    prelive: str = Field(min_length=1)
    production: ProductionEnvironments


class LifecycleControl(FrozenModel):
    """Bamboo environments that start/stop one production colour."""

    start: int
    stop: Optional[int] = None


class EnvironmentLifecycle(FrozenModel):
    green: LifecycleControl
    blue: LifecycleControl

    def for_colour(self, colour: Colour) -> LifecycleControl:
        return self.green if colour is Colour.GREEN else self.blue


class CommentVisibility(FrozenModel):
    type: str
    value: str


class Properties(FrozenModel):
    label: str = Field(min_length=1, description="Jira label marking an issue as FTL")
    done_statuses: Tuple[str, ...] = Field(
        alias="allowMultipleFTLsWithStatuses",
        min_length=1,
        description="Statuses of FTL issues that no longer block a new FTL build",
    )
    production_colours_url: str = Field(alias="productionColoursUrl", min_length=1)
    comments_visibility: Mapping[str, CommentVisibility] = Field(
        alias="commentsVisibility",
        default_factory=dict,
    )
    transitions: Mapping[str, str] = Field(description="Stage code -> Jira transition name")
    environments: Environments
    environment_lifecycle: EnvironmentLifecycle = Field(alias="environmentLifecycle")
    projects: Tuple[ProjectProperties, ...] = Field(min_length=1)

    @field_validator("transitions", "comments_visibility", mode="after")
    @classmethod
    def freeze_mapping(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(value))

    @field_serializer("transitions")
    def serialize_transitions(self, value: Mapping[str, str]) -> Dict[str, str]:
        return dict(value)

    @field_serializer("comments_visibility")
    def serialize_visibility(self, value: Mapping[str, CommentVisibility]) -> Dict[str, Dict[str, str]]:
        return {key: item.model_dump() for key, item in value.items()}

    @property
    def it_visibility(self) -> Optional[Dict[str, str]]:
        """Visibility restriction for technical comments, if configured."""
        visibility = self.comments_visibility.get("IT")
        return visibility.model_dump() if visibility else None


def load_properties(path: str | Path) -> Properties:
    """
    Read and validate the properties file.

    Raises:
        PropertiesError: if the file is missing, is not JSON, or has the wrong shape
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise PropertiesError(f"Properties file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise PropertiesError(f"Properties file is not valid JSON: {path}: {e}") from e

    try:
        return Properties.model_validate(raw)
    except ValidationError as e:
        raise PropertiesError(f"Properties file {path} is invalid:\n{e}") from e
