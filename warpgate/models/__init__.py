"""Data models for Warp Gate."""

from .deployment import (
    Colour,
    DeploymentState,
    PreliveRelease,
    ProductionPromotion,
    WorkflowOperation,
    WorkflowTrace,
)
from .properties import (
    CommentVisibility,
    EnvironmentLifecycle,
    Environments,
    LifecycleControl,
    ProductionEnvironments,
    ProjectProperties,
    Properties,
    load_properties,
)

__all__ = [
    "Colour",
    "DeploymentState",
    "PreliveRelease",
    "ProductionPromotion",
    "WorkflowOperation",
    "WorkflowTrace",
    "CommentVisibility",
    "EnvironmentLifecycle",
    "Environments",
    "LifecycleControl",
    "ProductionEnvironments",
    "ProjectProperties",
    "Properties",
    "load_properties",
]
