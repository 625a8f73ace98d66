"""Tests for confidence scoring.

Tests cover:
1. Base confidence tiers and strength multipliers
2. Recency decay (half-lives, null/future dates, infinite half-life)
3. Source weights and combined evidence weight
4. Claim confidence formulas and the 0.95 cap
5. ConfidenceScorer recalculation against a ClaimStore
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from identity_system.agents.sifters.scoring import (
    ConfidenceScorer,
    EvidenceWeightInput,
    base_confidence,
    calculate_claim_confidence,
    calculate_evidence_weight,
    calculate_recency_decay,
    calculate_strength_confidence,
    get_source_weight,
    strength_multiplier,
)
from identity_system.data_management.claim_store import ClaimStore
from identity_system.data_management.schemas import (
    Claim,
    ClaimEvidenceLink,
    ClaimType,
    SourceType,
    Strength,
)

NOW = datetime(2025, 1, 1, tzinfo=timezone.utc)
YEAR = timedelta(days=365.25)


class TestBaseConfidence:
    @pytest.mark.parametrize(
        "count,expected",
        [(0, 0.5), (1, 0.5), (2, 0.7), (3, 0.8), (4, 0.9), (12, 0.9)],
    )
    def test_tiers(self, count, expected):
        assert base_confidence(count) == expected


class TestStrengthMultiplier:
    def test_known_strengths(self):
        assert strength_multiplier(Strength.STRONG) == 1.2
        assert strength_multiplier(Strength.MEDIUM) == 1.0
        assert strength_multiplier("weak") == 0.7

    def test_unknown_strength_counts_as_medium(self):
        assert strength_multiplier("overwhelming") == 1.0


class TestRecencyDecay:
    def test_fresh_evidence_no_decay(self):
        assert calculate_recency_decay(NOW, ClaimType.SKILL, NOW) == pytest.approx(1.0)

    def test_one_half_life(self):
        """Skill evidence 4 years old is worth half."""
        date = NOW - 4 * YEAR
        assert calculate_recency_decay(date, ClaimType.SKILL, NOW) == pytest.approx(0.5)

    def test_two_half_lives(self):
        date = NOW - 14 * YEAR
        assert calculate_recency_decay(date, "achievement", NOW) == pytest.approx(0.25)

    def test_attribute_decays_slowly(self):
        date = NOW - 4 * YEAR
        assert calculate_recency_decay(date, ClaimType.ATTRIBUTE, NOW) > 0.8

    @pytest.mark.parametrize("claim_type", [ClaimType.EDUCATION, ClaimType.CERTIFICATION])
    def test_infinite_half_life(self, claim_type):
        date = NOW - 30 * YEAR
        assert calculate_recency_decay(date, claim_type, NOW) == 1.0

    def test_null_date(self):
        assert calculate_recency_decay(None, ClaimType.SKILL, NOW) == 1.0

    def test_future_date(self):
        assert calculate_recency_decay(NOW + YEAR, ClaimType.SKILL, NOW) == 1.0

    def test_naive_dates_treated_as_utc(self):
        naive_now = datetime(2025, 1, 1)
        date = naive_now - 4 * YEAR
        assert calculate_recency_decay(date, ClaimType.SKILL, NOW) == pytest.approx(0.5)


class TestEvidenceWeight:
    def test_source_weights(self):
        assert get_source_weight(SourceType.CERTIFICATION) == 1.5
        assert get_source_weight("resume") == 1.0
        assert get_source_weight(SourceType.STORY) == 0.8
        assert get_source_weight(SourceType.INFERRED) == 0.6
        assert get_source_weight("unknown") == 1.0
        assert get_source_weight(None) == 1.0

    def test_combined_weight(self):
        """Weight is strength x decay x source."""
        evidence = EvidenceWeightInput(
            strength=Strength.STRONG,
            source_type=SourceType.STORY,
            evidence_date=NOW - 4 * YEAR,
            claim_type=ClaimType.SKILL,
        )
        assert calculate_evidence_weight(evidence, NOW) == pytest.approx(1.2 * 0.5 * 0.8)


class TestClaimConfidence:
    def test_empty_is_zero(self):
        assert calculate_claim_confidence([]) == 0.0
        assert calculate_strength_confidence([]) == 0.0

    def test_single_strong(self):
        assert calculate_strength_confidence([Strength.STRONG]) == pytest.approx(0.6)

    def test_mixed_strengths(self):
        """Two links (strong, weak): 0.7 x mean(1.2, 0.7)."""
        confidence = calculate_strength_confidence([Strength.STRONG, Strength.WEAK])
        assert confidence == pytest.approx(0.7 * 0.95)

    def test_capped(self):
        confidence = calculate_strength_confidence([Strength.STRONG] * 5)
        assert confidence == 0.95

    def test_weighted_certification_capped(self):
        items = [
            EvidenceWeightInput(Strength.STRONG, SourceType.CERTIFICATION, None, ClaimType.SKILL)
            for _ in range(2)
        ]
        assert calculate_claim_confidence(items, NOW) == 0.95

    def test_weighted_matches_strength_only_for_fresh_resume(self):
        items = [
            EvidenceWeightInput(Strength.MEDIUM, SourceType.RESUME, NOW, ClaimType.SKILL),
            EvidenceWeightInput(Strength.WEAK, SourceType.RESUME, None, ClaimType.SKILL),
        ]
        assert calculate_claim_confidence(items, NOW) == pytest.approx(
            calculate_strength_confidence([Strength.MEDIUM, Strength.WEAK])
        )


class TestConfidenceScorer:
    @pytest.fixture
    def store(self):
        return ClaimStore()

    async def _claim_with_links(self, store, links):
        claim = Claim(user_id="user-1", type=ClaimType.SKILL, label="Python")
        first, *rest = links
        await store.create_claim(claim, ClaimEvidenceLink(claim_id=claim.id, **first))
        for link in rest:
            await store.upsert_link(ClaimEvidenceLink(claim_id=claim.id, **link))
        return claim

    @pytest.mark.asyncio
    async def test_recalculate_strength_only(self, store):
        claim = await self._claim_with_links(
            store,
            [
                {"evidence_id": "ev-1", "strength": Strength.STRONG},
                {"evidence_id": "ev-2", "strength": Strength.MEDIUM},
                {"evidence_id": "ev-3", "strength": Strength.WEAK},
            ],
        )
        scorer = ConfidenceScorer(store, weighted=False)

        confidence = await scorer.recalculate(claim.id)

        assert confidence == pytest.approx(0.8 * (1.2 + 1.0 + 0.7) / 3)
        assert (await store.get_claim(claim.id)).confidence == pytest.approx(confidence)

    @pytest.mark.asyncio
    async def test_recalculate_weighted(self, store):
        """Weighted mode folds in source weight and recency."""
        claim = await self._claim_with_links(
            store,
            [
                {
                    "evidence_id": "ev-1",
                    "strength": Strength.MEDIUM,
                    "source_type": SourceType.STORY,
                    "evidence_date": NOW - 4 * YEAR,
                },
            ],
        )
        scorer = ConfidenceScorer(store, weighted=True)

        confidence = await scorer.recalculate(claim.id, reference_date=NOW)

        assert confidence == pytest.approx(0.5 * 1.0 * 0.8 * 0.5)

    @pytest.mark.asyncio
    async def test_recalculate_without_links(self, store):
        """A claim that lost all links keeps its confidence."""
        claim = await self._claim_with_links(store, [{"evidence_id": "ev-1"}])
        store._links[claim.id].clear()
        scorer = ConfidenceScorer(store, weighted=False)

        assert await scorer.recalculate(claim.id) is None

    @pytest.mark.asyncio
    async def test_concurrent_recalculations_converge(self, store):
        """Concurrent link + recalc on one claim ends at the full-link-set value."""
        claim = await self._claim_with_links(store, [{"evidence_id": "ev-0"}])
        scorer = ConfidenceScorer(store, weighted=False)

        async def link_and_score(i):
            await store.upsert_link(
                ClaimEvidenceLink(claim_id=claim.id, evidence_id=f"ev-{i}", strength=Strength.STRONG)
            )
            await scorer.recalculate(claim.id)

        await asyncio.gather(*(link_and_score(i) for i in range(1, 4)))

        expected = calculate_strength_confidence(
            [Strength.MEDIUM, Strength.STRONG, Strength.STRONG, Strength.STRONG]
        )
        assert (await store.get_claim(claim.id)).confidence == pytest.approx(expected)

    def test_initial_confidence(self, store):
        assert ConfidenceScorer(store, weighted=False).initial_confidence(
            Strength.STRONG
        ) == pytest.approx(0.6)
        assert ConfidenceScorer(store, weighted=True).initial_confidence(
            Strength.STRONG, ClaimType.SKILL, SourceType.INFERRED
        ) == pytest.approx(0.5 * 1.2 * 0.6)
