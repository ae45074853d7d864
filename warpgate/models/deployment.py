"""
Deployment workflow models for Warp Gate.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class Colour(str, Enum):
    """Production stack colour."""
    GREEN = "green"
    BLUE = "blue"

    @property
    def opposite(self) -> "Colour":
        return Colour.BLUE if self is Colour.GREEN else Colour.GREEN


class DeploymentState(str, Enum):
    """Bamboo deployment result state."""
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: Any) -> "DeploymentState":
        try:
            return cls(str(value).upper())
        except ValueError:
            return cls.UNKNOWN


class WorkflowOperation(str, Enum):
    """Background operations that can be in flight for an issue."""
    PRELIVE = "prelive"
    PRODUCTION = "production"
    VALIDATE = "validate"
    BUILD = "build"
    RELEASE = "release"


@dataclass
class WorkflowTrace:
    """
    Progress of one workflow instance.

    Failure comments render the trace so an operator can see which step
    failed and which Jira/Bamboo objects were already created.
    """
    operation: str
    issue_key: str
    started_at: datetime = field(default_factory=datetime.now)
    current_step: Optional[str] = None
    completed_steps: List[str] = field(default_factory=list)
    artifacts: Dict[str, Any] = field(default_factory=dict)

    def begin(self, step: str) -> None:
        if self.current_step:
            self.completed_steps.append(self.current_step)
        self.current_step = step

    def finish(self) -> None:
        if self.current_step:
            self.completed_steps.append(self.current_step)
        self.current_step = None

    def record(self, **artifacts: Any) -> None:
        self.artifacts.update(artifacts)

    def describe(self) -> str:
        lines = [f"Operation: {self.operation} ({self.issue_key})"]
        if self.current_step:
            lines.append(f"Failed step: {self.current_step}")
        if self.completed_steps:
            lines.append(f"Completed steps: {', '.join(self.completed_steps)}")
        if self.artifacts:
            created = ", ".join(f"{key}={value}" for key, value in self.artifacts.items())
            lines.append(f"Known ids: {created}")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "issue_key": self.issue_key,
            "started_at": self.started_at.isoformat(),
            "current_step": self.current_step,
            "completed_steps": list(self.completed_steps),
            "artifacts": dict(self.artifacts),
        }


@dataclass
class PreliveRelease:
    """Objects created by a prelive deployment."""
    name: str
    project_key: str
    project_version_id: str
    deployment_project_id: int
    deployment_version_id: int
    environment_id: int


@dataclass
class ProductionPromotion:
    """Target and artifact chosen for a production deployment."""
    current_colour: "Colour"
    target_colour: "Colour"
    start_environment_id: int
    production_environment_id: int
    deployment_version_id: int
    deployment_version_name: str
