"""
Transition Mapper - executes Jira transitions by abstract stage code.

Jira workflows name their transitions differently per project, so the
properties file maps stage codes (deployToPrelive, pass, fail, ...) to
display names. Only issues carrying the FTL label may be moved.
"""

from typing import Any, Awaitable, Callable, Dict

from ..core.errors import PreconditionFailure, require
from ..core.jira_client import JiraClient
from ..core.logger import get_logger
from ..models.properties import Properties

logger = get_logger("TransitionMapper")

TransitionOperation = Callable[[str], Awaitable[Dict[str, Any]]]


class TransitionCode:
    """Stage codes used as keys of ``Properties.transitions``."""
    DEPLOY_TO_PRELIVE = "deployToPrelive"
    DEPLOYED_TO_PRELIVE = "deployedToPrelive"
    PASS = "pass"
    FAIL = "fail"
    DEPLOY_TO_PRODUCTION = "deployToProduction"
    DEPLOYED_TO_PRODUCTION = "deployedToProduction"
    THINGS_WENT_WRONG = "thingsWentWrong"


def transition_for(jira: JiraClient, properties: Properties, transition_code: str) -> TransitionOperation:
    """
    Build a reusable operation that moves an issue through ``transition_code``.

    Raises (when invoked):
        PreconditionFailure: issue not labelled for FTL, unknown code, or the
            transition is not currently available for the issue
    """

    async def run(issue_key: str) -> Dict[str, Any]:
        issue = await jira.get_issue(issue_key, expand="transitions")

        labels = (issue.get("fields") or {}).get("labels") or []
        if properties.label not in labels:
            raise PreconditionFailure(
                f"Issue {issue_key} doesn't have label for FTL deployment and will be ignored"
            )

        transitions = issue.get("transitions")
        require(transitions, f"There are no known transitions for issue {issue_key}")

        transition_name = properties.transitions.get(transition_code)
        require(transition_name, f"Properties.transitions.{transition_code} is not defined")

        target = next(
            (item for item in transitions if str(item.get("name", "")).lower() == transition_name.lower()),
            None,
        )
        if target is None:
            raise PreconditionFailure(
                f'Transition "{transition_name}" not available for issue {issue_key}, '
                "ignore it if that was YOLO mode"
            )

        result = await jira.transition(issue_key, target["id"])
        logger.info("Transition executed", issue_key=issue_key, transition=transition_name)
        return result

    return run
