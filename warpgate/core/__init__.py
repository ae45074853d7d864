"""Core module initialization."""

from .errors import (
    WarpGateError,
    PreconditionFailure,
    UpstreamFailure,
    UpstreamTimeout,
    ReportedFailure,
    PropertiesError,
    require,
)
from .logger import get_logger, setup_logging, WorkflowLogger
from .jira_client import JiraClient
from .bamboo_client import BambooClient
from .colours import ProductionColourResolver
from .scheduler import DeferredTaskScheduler
from .locks import IssueLockRegistry


__all__ = [
    # Errors
    "WarpGateError",
    "PreconditionFailure",
    "UpstreamFailure",
    "UpstreamTimeout",
    "ReportedFailure",
    "PropertiesError",
    "require",
    # Logging
    "get_logger",
    "setup_logging",
    "WorkflowLogger",
    # External services
    "JiraClient",
    "BambooClient",
    "ProductionColourResolver",
    # Workflow plumbing
    "DeferredTaskScheduler",
    "IssueLockRegistry",
]
