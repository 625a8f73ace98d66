"""Tests for SynthesisPipeline (synthesis followed by audit)."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from identity_system.agents.sifters.synthesis import SynthesisResult
from identity_system.data_management import ClaimStore
from identity_system.data_management.schemas import EvidenceItem, EvidenceType
from identity_system.pipeline import SynthesisPipeline


def new_claim(label):
    return json.dumps({
        "match": None,
        "strength": "strong",
        "new_claim": {"type": "skill", "label": label, "description": None},
    })


def evidence(evidence_id, text):
    return EvidenceItem(id=evidence_id, text=text, type=EvidenceType.SKILL_LISTED, embedding=[0.0, 1.0])


@pytest.fixture
def embedder():
    mock = MagicMock()
    mock.embed = AsyncMock(return_value=[1.0, 0.0])
    return mock


class TestSynthesisPipeline:
    @pytest.mark.asyncio
    async def test_process_document_synthesizes_then_audits(self, embedder):
        """Two near-identical proposals become a flagged duplicate pair."""
        oracle = MagicMock()
        oracle.complete = AsyncMock(side_effect=[
            new_claim("React Development"),
            new_claim("React Developer"),
        ])
        store = ClaimStore()
        pipeline = SynthesisPipeline(
            claim_store=store,
            oracle=oracle,
            embedder=embedder,
            run_grounding_review=False,
        )

        stats = await pipeline.process_document(
            "user-1",
            [evidence("ev-1", "Built React apps"), evidence("ev-2", "React developer for 3 years")],
            document_id="doc-1",
        )

        assert stats["user_id"] == "user-1"
        assert stats["document_id"] == "doc-1"
        assert stats["claims_created"] == 2
        assert stats["claims_updated"] == 0
        assert stats["issues_found"] == 1
        assert stats["issues_stored"] == 1

        issues = await store.list_issues(user_id="user-1")
        assert issues[0].document_id == "doc-1"

    @pytest.mark.asyncio
    async def test_audit_skipped_without_changes(self, embedder):
        oracle = MagicMock()
        oracle.complete = AsyncMock(return_value='{"match": null, "strength": "weak", "new_claim": null}')
        pipeline = SynthesisPipeline(oracle=oracle, embedder=embedder)

        stats = await pipeline.process_document("user-1", [evidence("ev-1", "Likes coffee")])

        assert stats["claims_created"] == 0
        assert stats["audit_skipped"] == "no claim changes"
        assert oracle.complete.await_count == 1

    @pytest.mark.asyncio
    async def test_empty_document(self, embedder):
        oracle = MagicMock()
        oracle.complete = AsyncMock()
        pipeline = SynthesisPipeline(oracle=oracle, embedder=embedder)

        stats = await pipeline.process_document("user-1", [])

        assert stats["claims_created"] == 0
        assert stats["issues_found"] == 0
        oracle.complete.assert_not_called()

    @pytest.mark.asyncio
    async def test_audit_failure_reported(self):
        auditor = MagicMock()
        auditor.run_claim_eval = AsyncMock(side_effect=RuntimeError("store offline"))
        pipeline = SynthesisPipeline(auditor=auditor, oracle=MagicMock(), embedder=MagicMock())

        stats = await pipeline.on_synthesis_complete(
            "user-1", "doc-1", SynthesisResult(claims_created=1)
        )

        assert stats["audit_error"] == "store offline"
        assert stats["issues_stored"] == 0

    @pytest.mark.asyncio
    async def test_grounding_review_uses_shared_oracle(self, embedder):
        oracle = MagicMock()
        oracle.complete = AsyncMock(side_effect=[
            new_claim("Kubernetes"),
            json.dumps({"evaluations": [
                {"claim_id": "unknown", "grounded": False, "quality_issue": None},
            ]}),
        ])
        pipeline = SynthesisPipeline(oracle=oracle, embedder=embedder)

        stats = await pipeline.process_document("user-1", [evidence("ev-1", "Ran Kubernetes clusters")])

        assert stats["claims_created"] == 1
        assert stats["issues_found"] == 0
        assert oracle.complete.await_count == 2
