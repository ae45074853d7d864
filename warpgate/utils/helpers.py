"""Helper utilities."""

from datetime import datetime
from typing import Optional

# Used in release names; promotion to production searches prelive history for it.
FTL_BUILD_NAME_PREFIX = "FTL"

DEPLOYMENT_RESULT_MARKER = "deploymentResultId="


def project_key_from_issue_key(issue_key: str) -> str:
    """Extract the Jira project key, e.g. CQS from CQS-21."""
    return issue_key.rsplit("-", 1)[0]


def ftl_release_name(now: Optional[datetime] = None) -> str:
    """Name shared by the Jira project version and the Bamboo deployment version."""
    now = now or datetime.now()
    return f"{FTL_BUILD_NAME_PREFIX} {now.strftime('%d/%m/%Y %I:%M')}"


def is_ftl_release_name(name: Optional[str]) -> bool:
    return bool(name) and FTL_BUILD_NAME_PREFIX in name


def extract_deployment_result_id(results_url: str) -> Optional[str]:
    """
    Extract the Bamboo deployment result id from a results URL.

    Bamboo only exposes the result through a URL such as
    http://bamboo:8085/deploy/viewDeploymentResult.action?deploymentResultId=67797436
    """
    if not results_url or DEPLOYMENT_RESULT_MARKER not in results_url:
        return None
    result_id = results_url.split(DEPLOYMENT_RESULT_MARKER, 1)[1].split("&", 1)[0]
    return result_id or None


def format_minutes(seconds: float) -> str:
    """Format a wait as minutes with two decimals."""
    return f"{seconds / 60:.2f}"


def format_duration(seconds: float) -> str:
    """Format duration in human-readable format."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        return f"{seconds / 60:.1f}m"
    return f"{seconds / 3600:.1f}h"
