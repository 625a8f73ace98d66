"""Rule-based claim checks that need no oracle call.

- Duplicate detection via Jaro-Winkler label similarity
- Required field validation
- Sampling of claims for the AI grounding review
"""

from datetime import datetime, timezone
from typing import List, Optional

from identity_system.agents.sifters.quality.distinguishing_tokens import (
    DistinguishingTokenGuard,
)
from identity_system.agents.sifters.quality.string_similarity import (
    jaro_winkler_similarity,
)
from identity_system.config.settings import settings
from identity_system.data_management.schemas import (
    ClaimForEval,
    ClaimIssue,
    IssueSeverity,
    IssueType,
)

MISSING_TYPE_MESSAGE = "Claim is missing a type (skill, achievement, or attribute)"
MISSING_LABEL_MESSAGE = "Claim is missing a label"
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _created(claim: ClaimForEval) -> datetime:
    # Claims of unknown age count as the oldest
    if claim.created_at is None:
        return EPOCH
    if claim.created_at.tzinfo is None:
        return claim.created_at.replace(tzinfo=timezone.utc)
    return claim.created_at


def find_duplicates(
    claims: List[ClaimForEval],
    threshold: Optional[float] = None,
    guard: Optional[DistinguishingTokenGuard] = None,
) -> List[ClaimIssue]:
    """
    Flag pairs of same-type claims whose labels are near-identical.

    Labels are compared lowercased and trimmed. A pair is flagged when the
    labels are identical, or when their Jaro-Winkler similarity reaches the
    threshold and the guard does not find distinguishing trailing tokens.

    The newer claim of a pair is reported as the duplicate (on equal
    timestamps, the later one in the list). A claim already reported as a
    duplicate is skipped as the second member of later pairs. Claims with
    an empty label are left to find_missing_fields().

    Args:
        claims: Claims to check
        threshold: Similarity cutoff (default from settings)
        guard: Trailing-token policy (default DistinguishingTokenGuard())

    Returns:
        One duplicate warning per flagged pair
    """
    threshold = settings.duplicate_threshold if threshold is None else threshold
    guard = guard or DistinguishingTokenGuard()

    issues: List[ClaimIssue] = []
    processed: set[str] = set()

    for i, first in enumerate(claims):
        if first.id in processed:
            continue

        for second in claims[i + 1:]:
            if second.id in processed:
                continue
            if first.type != second.type:
                continue

            label1 = (first.label or "").lower().strip()
            label2 = (second.label or "").lower().strip()
            if not label1 or not label2:
                continue

            if label1 != label2:
                if jaro_winkler_similarity(label1, label2) < threshold:
                    continue
                if guard.is_distinct(first.label, second.label):
                    continue

            if _created(first) > _created(second):
                duplicate, original = first, second
            else:
                duplicate, original = second, first

            issues.append(
                ClaimIssue(
                    claim_id=duplicate.id,
                    issue_type=IssueType.DUPLICATE,
                    severity=IssueSeverity.WARNING,
                    message=f'Possible duplicate of "{original.label}"',
                    related_claim_id=original.id,
                )
            )
            processed.add(duplicate.id)

    return issues


def find_missing_fields(claims: List[ClaimForEval]) -> List[ClaimIssue]:
    """One error per missing type and per empty label."""
    issues: List[ClaimIssue] = []

    for claim in claims:
        if not claim.type:
            issues.append(
                ClaimIssue(
                    claim_id=claim.id,
                    issue_type=IssueType.MISSING_FIELD,
                    severity=IssueSeverity.ERROR,
                    message=MISSING_TYPE_MESSAGE,
                )
            )

        if not claim.label or not claim.label.strip():
            issues.append(
                ClaimIssue(
                    claim_id=claim.id,
                    issue_type=IssueType.MISSING_FIELD,
                    severity=IssueSeverity.ERROR,
                    message=MISSING_LABEL_MESSAGE,
                )
            )

    return issues


def run_rule_checks(
    claims: List[ClaimForEval],
    threshold: Optional[float] = None,
    guard: Optional[DistinguishingTokenGuard] = None,
) -> List[ClaimIssue]:
    """Duplicate issues followed by missing-field issues."""
    return find_duplicates(claims, threshold, guard) + find_missing_fields(claims)


def sample_claims_for_eval(
    claims: List[ClaimForEval],
    max_count: int = 5,
) -> List[ClaimForEval]:
    """
    Pick the claims most in need of an AI grounding review.

    Claims with fewer evidence links come first (unknown counts as zero),
    ties broken newest first. When there are no more than max_count claims
    they are returned as given. A negative max_count selects nothing.
    """
    max_count = max(0, max_count)
    if len(claims) <= max_count:
        return list(claims)

    ranked = sorted(
        claims,
        key=lambda c: (c.evidence_count or 0, -_created(c).timestamp()),
    )
    return ranked[:max_count]
