"""
In-flight workflow registry.

A webhook retried by Jira or Bamboo must not start a second, overlapping
workflow for the same issue. Each background workflow holds a key of
(issue key, operation) until it finishes; a duplicate request while the key
is held is rejected. Sequential requests are not deduplicated.
"""

from typing import Set, Tuple

from .logger import get_logger

LockKey = Tuple[str, str]


class IssueLockRegistry:
    """Tracks which (issue, operation) workflows are running in this process."""

    def __init__(self):
        self._held: Set[LockKey] = set()
        self.logger = get_logger("IssueLockRegistry")

    def try_acquire(self, issue_key: str, operation: str) -> bool:
        """Claim the key; False if a workflow for it is already in flight."""
        key = (issue_key, operation)
        if key in self._held:
            self.logger.warning("Workflow already in flight", issue_key=issue_key, operation=operation)
            return False
        self._held.add(key)
        return True

    def release(self, issue_key: str, operation: str) -> None:
        self._held.discard((issue_key, operation))

    def is_held(self, issue_key: str, operation: str) -> bool:
        return (issue_key, operation) in self._held

    def __len__(self) -> int:
        return len(self._held)
