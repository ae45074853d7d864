"""
Jira comment texts and formatting.

Comments use Jira wiki markup ({color}, {code}, [text|url]).
"""

import traceback
from typing import Iterable, Optional, Union

from ..models.deployment import Colour, WorkflowTrace
from .helpers import format_minutes

COMMENT_HEADER = "*FTL automated message:* \n"

READY_FOR_PRELIVE = f"{COMMENT_HEADER}This issue is marked as FTL and will be deployed as part of a new release"
DEPLOYED_TO_PRODUCTION = f"{COMMENT_HEADER}Release including this issue has been deployed to Production"


def format_error_for_jira(
    error: Union[BaseException, str],
    trace: Optional[WorkflowTrace] = None,
) -> str:
    """Format an error (and the workflow progress, if known) for a Jira comment."""
    text = f"{COMMENT_HEADER}{{color:red}}*{error}*{{color}}\n"
    if trace is not None:
        text += f"{{noformat}}{trace.describe()}{{noformat}}\n"
    if isinstance(error, BaseException) and error.__traceback__ is not None:
        stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        text += f"{{code}}{stack}{{code}}"
    return text


def deployment_failed(result_id: str, results_url: str) -> str:
    return f"Deployment failed: [#{result_id}|{results_url}]"


def production_scheduled(
    colour: Colour,
    wait_seconds: float,
    version_name: str,
    version_url: str,
) -> str:
    return (
        f"{COMMENT_HEADER} Issue will be deployed to Production \"{colour.value.upper()}\""
        f" in {format_minutes(wait_seconds)} mins"
        f" as release [{version_name}|{version_url}]."
        " Environment is starting..."
    )


def too_many_ftl_issues(other_issue_keys: Iterable[str]) -> str:
    listed = "".join(f"\n{key}" for key in other_issue_keys)
    return f"{COMMENT_HEADER}Can't start FTL workflow as there are other unreleased FTL issues for this project:{listed}"


def building_release(build_number: object, build_url: str) -> str:
    return f"{COMMENT_HEADER}Bamboo is building release: [#{build_number}|{build_url}]"
