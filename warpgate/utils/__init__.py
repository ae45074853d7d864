"""Utility functions for Warp Gate."""

from .helpers import (
    FTL_BUILD_NAME_PREFIX,
    extract_deployment_result_id,
    ftl_release_name,
    is_ftl_release_name,
    project_key_from_issue_key,
)
from .formatting import format_error_for_jira

__all__ = [
    "FTL_BUILD_NAME_PREFIX",
    "extract_deployment_result_id",
    "ftl_release_name",
    "is_ftl_release_name",
    "project_key_from_issue_key",
    "format_error_for_jira",
]
