"""Tests for oracle decision parsing."""

import pytest

from identity_system.agents.sifters.synthesis.schemas import (
    MatchDecision,
    NewClaimDecision,
    NoOpDecision,
    parse_decision,
    strip_code_fences,
)
from identity_system.data_management.schemas import ClaimType, Strength


class TestStripCodeFences:
    def test_json_fence(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence(self):
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_no_fence(self):
        assert strip_code_fences('  {"a": 1} ') == '{"a": 1}'


class TestParseMatch:
    def test_match(self):
        decision = parse_decision('{"match": "Python", "strength": "strong", "new_claim": null}')

        assert isinstance(decision, MatchDecision)
        assert decision.label == "Python"
        assert decision.strength == Strength.STRONG

    def test_match_in_fence(self):
        decision = parse_decision(
            '```json\n{"match": "Large Scale Systems", "strength": "medium"}\n```'
        )
        assert isinstance(decision, MatchDecision)

    def test_match_takes_priority(self):
        """When both are present, the match wins."""
        decision = parse_decision(
            '{"match": "Python", "strength": "weak", '
            '"new_claim": {"type": "skill", "label": "Go", "description": "Go"}}'
        )
        assert isinstance(decision, MatchDecision)

    @pytest.mark.parametrize("text", [
        '{"match": "Python"}',
        '{"match": "Python", "strength": "huge"}',
        '{"match": "Python", "strength": null}',
    ])
    def test_missing_or_unknown_strength_is_medium(self, text):
        decision = parse_decision(text)
        assert isinstance(decision, MatchDecision)
        assert decision.strength == Strength.MEDIUM


class TestParseNewClaim:
    def test_new_claim(self):
        decision = parse_decision(
            '{"match": null, "strength": "strong", "new_claim": '
            '{"type": "achievement", "label": "  Performance Engineering ", '
            '"description": "Cut latency by 85%"}}'
        )

        assert isinstance(decision, NewClaimDecision)
        assert decision.claim.label == "Performance Engineering"
        assert decision.claim.claim_type == ClaimType.ACHIEVEMENT
        assert decision.strength == Strength.STRONG

    @pytest.mark.parametrize(
        "new_claim",
        [
            '{"type": "education", "label": "BSc", "description": "Degree"}',
            '{"type": "skill", "label": "   ", "description": "Blank"}',
            '{"type": "skill", "label": "Go", "description": null}',
            '{"type": "skill", "label": "Go"}',
            '{"type": "skill", "label": 42, "description": "Number"}',
        ],
    )
    def test_invalid_new_claim(self, new_claim):
        decision = parse_decision(
            f'{{"match": null, "strength": "medium", "new_claim": {new_claim}}}'
        )
        assert isinstance(decision, NoOpDecision)
        assert decision.reason == "invalid_new_claim"


class TestParseNoOp:
    @pytest.mark.parametrize(
        "text,reason",
        [
            ("", "empty_response"),
            ("   ", "empty_response"),
            (None, "empty_response"),
            ("not json at all", "unparsable"),
            ("[1, 2]", "invalid_shape"),
            ('{"match": null, "new_claim": null}', "no_decision"),
            ('{"match": "", "strength": "strong", "new_claim": "Go"}', "invalid_shape"),
        ],
    )
    def test_noop_reasons(self, text, reason):
        decision = parse_decision(text)
        assert isinstance(decision, NoOpDecision)
        assert decision.reason == reason
