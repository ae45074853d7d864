"""
Structured logging for Warp Gate.
Uses structlog for contextual logging and rich for operator-facing output.
"""

import logging
from typing import Any, Optional

import structlog
from rich.console import Console
from rich.markup import escape
from rich.theme import Theme

from ..models.deployment import WorkflowTrace

# Custom theme for rich output
custom_theme = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "bold green",
    "step": "bold magenta",
})

console = Console(theme=custom_theme, stderr=True)


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Configure structured logging."""
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if json_output:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger instance with the given name."""
    return structlog.get_logger(name)


def bind_workflow_context(**values: Any) -> None:
    """Attach workflow identifiers (issue key, operation) to every log line of the current task."""
    structlog.contextvars.bind_contextvars(**values)


def clear_workflow_context() -> None:
    structlog.contextvars.clear_contextvars()


class WorkflowLogger:
    """
    High-level logger for workflow steps with rich output.

    Every line names the issue it belongs to, and the structured events carry
    ``issue_key`` so background workflows for different issues can be told apart.
    """

    def __init__(self, workflow_name: str):
        self.workflow_name = workflow_name
        self.logger = get_logger(workflow_name)

    def _print(self, style: str, icon: str, issue_key: str, message: str) -> None:
        console.print(f"[{style}]{escape(icon)}[/{style}] [{self.workflow_name}] {issue_key}: {escape(message)}")

    def step(self, trace: WorkflowTrace, message: str) -> None:
        """Log the step ``trace`` has just entered."""
        step_num = len(trace.completed_steps) + 1
        self._print("step", f"[Step {step_num}]", trace.issue_key, message)
        self.logger.info(message, issue_key=trace.issue_key, operation=trace.operation, step=step_num)

    def success(self, issue_key: str, message: str, **kwargs: Any) -> None:
        self._print("success", "✓", issue_key, message)
        self.logger.info(message, issue_key=issue_key, status="success", **kwargs)

    def failure(self, trace: WorkflowTrace, exc: BaseException) -> None:
        """Log a failed workflow together with its progress and the ids it created."""
        where = f" at '{trace.current_step}'" if trace.current_step else ""
        self._print("error", "✗", trace.issue_key, f"{trace.operation} workflow failed{where}: {exc}")
        self.logger.error("Workflow failed", exc_info=exc, **trace.to_dict())

    def error(self, issue_key: str, message: str, exc: Optional[BaseException] = None) -> None:
        self._print("error", "✗", issue_key, message)
        self.logger.error(message, issue_key=issue_key, exc_info=exc)

    def info(self, issue_key: str, message: str, **kwargs: Any) -> None:
        self._print("info", "ℹ", issue_key, message)
        self.logger.info(message, issue_key=issue_key, **kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        self.logger.debug(message, **kwargs)
