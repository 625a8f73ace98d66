"""Tests for the AI grounding review."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from identity_system.agents.sifters.quality.grounding_evaluator import (
    NOT_GROUNDED_MESSAGE,
    UNEVALUATED_MESSAGE,
    ClaimGroundingEvaluator,
    ClaimWithEvidence,
    EvidenceSnippet,
)
from identity_system.data_management.schemas import IssueType


def sampled_claims():
    return [
        ClaimWithEvidence(
            id="c-1",
            label="React Development",
            description="Builds React apps",
            evidence=[EvidenceSnippet(text="Built 3 React dashboards", strength="strong")],
        ),
        ClaimWithEvidence(id="c-2", label="Delivered Commits", evidence=[]),
    ]


def make_evaluator(response=None, side_effect=None):
    oracle = MagicMock()
    oracle.complete = AsyncMock(return_value=response, side_effect=side_effect)
    return ClaimGroundingEvaluator(oracle, max_attempts=2, retry_backoff=0), oracle


class TestGroundingEvaluator:
    @pytest.mark.asyncio
    async def test_empty_sample(self):
        evaluator, oracle = make_evaluator("{}")

        assert await evaluator.evaluate([]) == []
        oracle.complete.assert_not_called()

    @pytest.mark.asyncio
    async def test_all_grounded(self):
        evaluator, _ = make_evaluator(json.dumps({"evaluations": [
            {"claim_id": "c-1", "grounded": True, "quality_issue": None},
            {"claim_id": "c-2", "grounded": True, "quality_issue": None},
        ]}))

        assert await evaluator.evaluate(sampled_claims()) == []

    @pytest.mark.asyncio
    async def test_not_grounded_and_low_quality(self):
        """Grounding and quality verdicts produce independent warnings."""
        evaluator, _ = make_evaluator("```json\n" + json.dumps({"evaluations": [
            {"claim_id": "c-1", "grounded": False, "quality_issue": None},
            {
                "claim_id": "c-2",
                "grounded": False,
                "quality_issue": "Restates a raw metric",
            },
        ]}) + "\n```")

        issues = await evaluator.evaluate(sampled_claims())

        assert [(i.claim_id, i.issue_type) for i in issues] == [
            ("c-1", IssueType.NOT_GROUNDED),
            ("c-2", IssueType.NOT_GROUNDED),
            ("c-2", IssueType.LOW_QUALITY),
        ]
        assert issues[0].message == NOT_GROUNDED_MESSAGE
        assert issues[2].message == "Restates a raw metric"

    @pytest.mark.asyncio
    async def test_legacy_issue_message(self):
        evaluator, _ = make_evaluator(json.dumps({"evaluations": [
            {"claim_id": "c-1", "grounded": False, "issue": "Overstates scope"},
        ]}))

        issues = await evaluator.evaluate(sampled_claims())

        assert issues[0].message == "Overstates scope"

    @pytest.mark.asyncio
    async def test_unknown_claim_ignored(self):
        evaluator, _ = make_evaluator(json.dumps({"evaluations": [
            {"claim_id": "someone-else", "grounded": False},
        ]}))

        assert await evaluator.evaluate(sampled_claims()) == []

    @pytest.mark.parametrize("response", ["", "no json here", '{"evaluations": "nope"}'])
    @pytest.mark.asyncio
    async def test_unusable_response_marks_unevaluated(self, response):
        evaluator, _ = make_evaluator(response)

        issues = await evaluator.evaluate(sampled_claims())

        assert [(i.claim_id, i.issue_type) for i in issues] == [
            ("c-1", IssueType.UNEVALUATED),
            ("c-2", IssueType.UNEVALUATED),
        ]
        assert issues[0].message == UNEVALUATED_MESSAGE

    @pytest.mark.asyncio
    async def test_oracle_failure_marks_unevaluated(self):
        evaluator, oracle = make_evaluator(side_effect=ConnectionError("down"))

        issues = await evaluator.evaluate(sampled_claims())

        assert {i.issue_type for i in issues} == {IssueType.UNEVALUATED}
        assert len(issues) == 2
        assert oracle.complete.await_count == 2

    def test_prompt_contains_claims_and_evidence(self):
        evaluator, _ = make_evaluator("{}")

        prompt = evaluator.build_prompt(sampled_claims())

        assert '"label": "React Development"' in prompt
        assert "Built 3 React dashboards" in prompt
        assert '"evaluations"' in prompt

    def test_zero_attempts_rejected(self):
        with pytest.raises(ValueError):
            ClaimGroundingEvaluator(MagicMock(), max_attempts=0)
