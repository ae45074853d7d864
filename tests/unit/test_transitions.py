"""Unit tests for the transition mapper."""

import pytest

from warpgate.core.errors import PreconditionFailure
from warpgate.workflow.transitions import TransitionCode, transition_for


class TestTransitionFor:

    @pytest.mark.asyncio
    async def test_executes_transition_by_code(self, jira, properties):
        await transition_for(jira, properties, TransitionCode.PASS)("CQS-21")

        jira.get_issue.assert_awaited_once_with("CQS-21", expand="transitions")
        jira.transition.assert_awaited_once_with("CQS-21", "31")

    @pytest.mark.asyncio
    async def test_transition_names_match_case_insensitively(self, jira, properties, issue_factory):
        jira.get_issue.return_value = issue_factory(transitions=[{"id": "99", "name": "qa PASSED"}])

        await transition_for(jira, properties, TransitionCode.PASS)("CQS-21")

        jira.transition.assert_awaited_once_with("CQS-21", "99")

    @pytest.mark.asyncio
    async def test_unlabelled_issue_is_ignored(self, jira, properties, issue_factory):
        jira.get_issue.return_value = issue_factory(labels=[])

        with pytest.raises(PreconditionFailure, match="Issue CQS-21 doesn't have label for FTL deployment"):
            await transition_for(jira, properties, TransitionCode.PASS)("CQS-21")

        jira.transition.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_code(self, jira, properties):
        with pytest.raises(PreconditionFailure, match="Properties.transitions.rollback is not defined"):
            await transition_for(jira, properties, "rollback")("CQS-21")

        jira.transition.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unavailable_transition(self, jira, properties, issue_factory):
        jira.get_issue.return_value = issue_factory(transitions=[{"id": "11", "name": "Deploy to Prelive"}])

        with pytest.raises(
            PreconditionFailure,
            match='Transition "QA Passed" not available for issue CQS-21, ignore it if that was YOLO mode',
        ):
            await transition_for(jira, properties, TransitionCode.PASS)("CQS-21")

        jira.transition.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_issue_without_transitions(self, jira, properties, issue_factory):
        jira.get_issue.return_value = issue_factory(transitions=[])

        with pytest.raises(PreconditionFailure, match="no known transitions"):
            await transition_for(jira, properties, TransitionCode.PASS)("CQS-21")
