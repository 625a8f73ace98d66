"""Tests for rule-based claim checks.

Tests cover:
1. Duplicate detection (exact, near, case-insensitive, type-scoped)
2. Distinct labels that share a prefix are not flagged
3. Which claim of a pair is reported as the duplicate
4. Missing field validation
5. Combined rule checks
6. Sampling for the grounding review
"""

from datetime import datetime, timedelta, timezone

import pytest

from identity_system.agents.sifters.quality.rule_checks import (
    MISSING_LABEL_MESSAGE,
    MISSING_TYPE_MESSAGE,
    find_duplicates,
    find_missing_fields,
    run_rule_checks,
    sample_claims_for_eval,
)
from identity_system.data_management.schemas import ClaimForEval, IssueSeverity, IssueType

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def claim(claim_id, label, claim_type="skill", days=0, evidence_count=None, created=True):
    return ClaimForEval(
        id=claim_id,
        type=claim_type,
        label=label,
        description=None,
        created_at=BASE_TIME + timedelta(days=days) if created else None,
        evidence_count=evidence_count,
    )


class TestFindDuplicates:
    """Pairs that should be flagged."""

    def test_exact_duplicate(self):
        issues = find_duplicates([claim("1", "React"), claim("2", "React", days=1)])

        assert len(issues) == 1
        issue = issues[0]
        assert issue.claim_id == "2"
        assert issue.related_claim_id == "1"
        assert issue.issue_type == IssueType.DUPLICATE
        assert issue.severity == IssueSeverity.WARNING
        assert issue.message == 'Possible duplicate of "React"'

    def test_near_duplicate(self):
        issues = find_duplicates([
            claim("1", "React Development"),
            claim("2", "React Developer", days=1),
        ])
        assert len(issues) == 1
        assert issues[0].claim_id == "2"

    def test_case_insensitive(self):
        issues = find_duplicates([claim("1", "REACT"), claim("2", "react", days=1)])
        assert len(issues) == 1

    @pytest.mark.parametrize("label,claim_type", [
        ("Founded TechCorp", "achievement"),
        ("AWS Lambda", "skill"),
    ])
    def test_identical_labels(self, label, claim_type):
        issues = find_duplicates([
            claim("1", label, claim_type),
            claim("2", label, claim_type, days=1),
        ])
        assert len(issues) == 1

    def test_newer_claim_is_duplicate_regardless_of_order(self):
        issues = find_duplicates([claim("new", "React", days=5), claim("old", "React")])

        assert issues[0].claim_id == "new"
        assert issues[0].related_claim_id == "old"

    def test_null_created_at_treated_as_oldest(self):
        """The dated claim is reported against the undated one."""
        issues = find_duplicates([
            claim("dated", "React", days=3),
            claim("undated", "React", created=False),
        ])

        assert issues[0].claim_id == "dated"
        assert issues[0].related_claim_id == "undated"

    def test_equal_timestamps_later_in_list_is_duplicate(self):
        issues = find_duplicates([claim("first", "React"), claim("second", "React")])
        assert issues[0].claim_id == "second"

    def test_cluster_of_three(self):
        """Each newer copy is reported once against the oldest."""
        issues = find_duplicates([
            claim("1", "React"),
            claim("2", "React", days=1),
            claim("3", "React", days=2),
        ])

        assert sorted((i.claim_id, i.related_claim_id) for i in issues) == [
            ("2", "1"),
            ("3", "1"),
        ]

    def test_inflected_trailing_word(self):
        issues = find_duplicates([
            claim("1", "Data Analysis"),
            claim("2", "Data Analytics", days=1),
        ])
        assert [(i.claim_id, i.related_claim_id) for i in issues] == [("2", "1")]

    def test_custom_threshold(self):
        claims = [claim("1", "JavaScript"), claim("2", "JavaScripts", days=1)]
        assert len(find_duplicates(claims, threshold=0.99)) == 0
        assert len(find_duplicates(claims)) == 1


class TestFindDuplicatesNotFlagged:
    """Pairs that must not be flagged."""

    @pytest.mark.parametrize("label_a,label_b,claim_type", [
        ("React", "Python", "skill"),
        ("Founded TechCorp", "Founded StartupXYZ", "achievement"),
        ("Co-Founded StartupA", "Founded StartupB", "achievement"),
        ("AWS Lambda", "AWS EC2", "skill"),
        ("React", "React Native", "skill"),
    ])
    def test_distinct_labels(self, label_a, label_b, claim_type):
        issues = find_duplicates([
            claim("1", label_a, claim_type),
            claim("2", label_b, claim_type, days=1),
        ])
        assert issues == []

    def test_different_types(self):
        issues = find_duplicates([
            claim("1", "Leadership", "skill"),
            claim("2", "Leadership", "attribute", days=1),
        ])
        assert issues == []

    def test_empty_labels_left_to_field_check(self):
        issues = find_duplicates([claim("1", ""), claim("2", "  ", days=1)])
        assert issues == []

    def test_empty_input(self):
        assert find_duplicates([]) == []


class TestFindMissingFields:
    def test_complete_claim(self):
        assert find_missing_fields([claim("1", "React")]) == []

    def test_missing_type(self):
        issues = find_missing_fields([claim("1", "React", claim_type=None)])

        assert len(issues) == 1
        assert issues[0].issue_type == IssueType.MISSING_FIELD
        assert issues[0].severity == IssueSeverity.ERROR
        assert issues[0].message == MISSING_TYPE_MESSAGE

    @pytest.mark.parametrize("label", ["", "   ", None])
    def test_missing_label(self, label):
        issues = find_missing_fields([claim("1", label)])

        assert len(issues) == 1
        assert issues[0].message == MISSING_LABEL_MESSAGE

    def test_both_missing(self):
        """Type and label missing yield two issues."""
        issues = find_missing_fields([claim("1", "", claim_type=None)])
        assert [i.message for i in issues] == [MISSING_TYPE_MESSAGE, MISSING_LABEL_MESSAGE]


class TestRunRuleChecks:
    def test_duplicates_then_missing_fields(self):
        issues = run_rule_checks([
            claim("1", "React"),
            claim("2", "React", days=1),
            claim("3", "Python", claim_type=None),
        ])

        assert [i.issue_type for i in issues] == [IssueType.DUPLICATE, IssueType.MISSING_FIELD]


class TestSampleClaimsForEval:
    def test_small_input_returned_as_is(self):
        claims = [claim(str(i), f"Claim {i}") for i in range(3)]
        assert [c.id for c in sample_claims_for_eval(claims, 5)] == ["0", "1", "2"]

    def test_fewest_evidence_first(self):
        claims = [claim(str(i), f"Claim {i}", evidence_count=n) for i, n in enumerate([5, 1, 3, 2])]

        sampled = sample_claims_for_eval(claims, 2)

        assert [c.id for c in sampled] == ["1", "3"]

    def test_ties_newest_first(self):
        claims = [
            claim("old", "A", days=0, evidence_count=1),
            claim("new", "B", days=10, evidence_count=1),
            claim("mid", "C", days=5, evidence_count=1),
            claim("many", "D", days=20, evidence_count=4),
        ]

        sampled = sample_claims_for_eval(claims, 3)

        assert [c.id for c in sampled] == ["new", "mid", "old"]

    def test_unknown_evidence_count_is_zero(self):
        claims = [
            claim("some", "A", evidence_count=2),
            claim("unknown", "B"),
            claim("one", "C", evidence_count=1),
        ]
        assert sample_claims_for_eval(claims, 1)[0].id == "unknown"

    def test_default_max_is_five(self):
        claims = [claim(str(i), f"Claim {i}", days=i) for i in range(8)]
        assert len(sample_claims_for_eval(claims)) == 5

    def test_negative_max_selects_nothing(self):
        claims = [claim(str(i), f"Claim {i}") for i in range(3)]
        assert sample_claims_for_eval(claims, -1) == []
