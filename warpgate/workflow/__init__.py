"""Workflow module initialization."""

from .base import BaseWorkflow
from .engine import DeploymentWorkflowEngine
from .lifecycle import IssueLifecycle, TooManyFtlIssues
from .registry import ProjectRegistry, find_environment
from .transitions import TransitionCode, transition_for

__all__ = [
    "BaseWorkflow",
    "DeploymentWorkflowEngine",
    "IssueLifecycle",
    "TooManyFtlIssues",
    "ProjectRegistry",
    "find_environment",
    "TransitionCode",
    "transition_for",
]
