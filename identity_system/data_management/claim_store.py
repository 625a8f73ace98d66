"""Claim storage adapter for claims, evidence links and quality issues.

Features:
- In-memory storage with optional JSON persistence
- User-based organization (user_id -> claim ids)
- O(1) lookup by claim_id, and by evidence_id for idempotency checks
- Upsert semantics for (claim_id, evidence_id) links, last strength wins
- Cascading delete of links and issues
- Issue suppression: dismissed (claim, related claim, type) tuples are never re-created
- Per-claim locks so confidence recalculation reads and writes atomically
"""

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

from identity_system.config.scoring import MAX_CONFIDENCE, MIN_CONFIDENCE
from identity_system.data_management.schemas import (
    Claim,
    ClaimEvidenceLink,
    ClaimIssue,
    ClaimType,
    EvidenceItem,
)
from identity_system.errors import ClaimNotFoundError, ClaimStoreError


class ClaimStore:
    """
    Storage adapter for the claim graph.

    Uses in-memory storage with optional JSON file persistence. A database
    backend would implement the same coroutine interface.

    Data structure (persisted form):
    {
        "claims": {"claim_id": {...Claim...}},
        "links": {"claim_id": {"evidence_id": {...ClaimEvidenceLink...}}},
        "issues": {"issue_id": {...ClaimIssue...}},
        "evidence": {"evidence_id": {...EvidenceItem...}}
    }

    Indexes:
    - _user_index: user_id -> list[claim_id]
    - _evidence_index: evidence_id -> set[claim_id]
    """

    def __init__(self, persistence_path: Optional[str] = None):
        """
        Initialize claim store.

        Args:
            persistence_path: Optional path to JSON file for persistence.
                            If None, storage is memory-only.
        """
        self._claims: Dict[str, Claim] = {}
        self._links: Dict[str, Dict[str, ClaimEvidenceLink]] = {}
        self._issues: Dict[str, ClaimIssue] = {}
        self._evidence: Dict[str, EvidenceItem] = {}

        self._user_index: Dict[str, List[str]] = {}
        self._evidence_index: Dict[str, set[str]] = {}

        self._lock = asyncio.Lock()
        self._claim_locks: Dict[str, asyncio.Lock] = {}
        self.persistence_path = Path(persistence_path) if persistence_path else None
        self.logger = logger.bind(component="ClaimStore")

        if self.persistence_path and self.persistence_path.exists():
            self._load_from_file()

        self.logger.info(
            "ClaimStore initialized",
            persistence_enabled=self.persistence_path is not None
        )

    # ── Claims ──────────────────────────────────────────────────────────

    async def create_claim(
        self,
        claim: Claim,
        first_link: ClaimEvidenceLink,
    ) -> Claim:
        """
        Create a claim together with its first evidence link.

        Args:
            claim: Claim to store
            first_link: Link to the evidence that produced the claim

        Returns:
            The stored claim

        Raises:
            ClaimStoreError: If the claim id exists or the link targets another claim
        """
        if first_link.claim_id != claim.id:
            raise ClaimStoreError(
                f"First link targets {first_link.claim_id}, expected {claim.id}"
            )

        async with self._lock:
            if claim.id in self._claims:
                raise ClaimStoreError(f"Claim already exists: {claim.id}")

            self._claims[claim.id] = claim
            self._user_index.setdefault(claim.user_id, []).append(claim.id)
            self._put_link(first_link)

            self._persist()

        self.logger.debug(f"Created claim {claim.id}", label=claim.label)
        return claim

    async def get_claim(self, claim_id: str) -> Optional[Claim]:
        """O(1) claim lookup."""
        async with self._lock:
            return self._claims.get(claim_id)

    async def list_claims(self, user_id: str) -> List[Claim]:
        """All claims owned by a user, in creation order."""
        async with self._lock:
            return [
                self._claims[cid]
                for cid in self._user_index.get(user_id, [])
                if cid in self._claims
            ]

    async def find_claim_by_label(
        self,
        user_id: str,
        claim_type: ClaimType,
        label: str,
    ) -> Optional[Claim]:
        """
        Find a user's claim with exactly this (type, label).

        Independent of vector retrieval: guards against creating a second
        claim for a label that already exists but was not retrieved.

        Args:
            user_id: Owner
            claim_type: Claim type to match
            label: Label to match (compared after trimming)

        Returns:
            The existing claim, or None
        """
        wanted = label.strip()
        async with self._lock:
            for cid in self._user_index.get(user_id, []):
                claim = self._claims.get(cid)
                if claim and claim.type == claim_type and claim.label.strip() == wanted:
                    return claim
            return None

    async def update_confidence(self, claim_id: str, confidence: float) -> Claim:
        """
        Write a recalculated confidence back to a claim.

        The value is clamped into [0, 0.95] and updated_at is refreshed.

        Raises:
            ClaimNotFoundError: If the claim does not exist
        """
        async with self._lock:
            claim = self._claims.get(claim_id)
            if claim is None:
                raise ClaimNotFoundError(claim_id)

            claim.confidence = max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, confidence))
            claim.updated_at = datetime.now(timezone.utc)
            self._persist()
            return claim

    async def user_edit_claim(
        self,
        claim_id: str,
        label: Optional[str] = None,
        description: Optional[str] = None,
        claim_type: Optional[ClaimType] = None,
    ) -> Claim:
        """
        Apply an explicit user edit.

        The user's correction is trusted over inferred findings, so every
        open issue that references the claim is cleared. Dismissed issues are
        kept so their suppression still holds.

        Raises:
            ClaimNotFoundError: If the claim does not exist
            ClaimStoreError: If the edited label is empty
        """
        async with self._lock:
            claim = self._claims.get(claim_id)
            if claim is None:
                raise ClaimNotFoundError(claim_id)

            if label is not None:
                if not label.strip():
                    raise ClaimStoreError("Claim label cannot be empty")
                claim.label = label.strip()
            if description is not None:
                claim.description = description
            if claim_type is not None:
                claim.type = claim_type
            claim.updated_at = datetime.now(timezone.utc)

            cleared = [
                issue_id
                for issue_id, issue in self._issues.items()
                if not issue.is_dismissed
                and claim_id in (issue.claim_id, issue.related_claim_id)
            ]
            for issue_id in cleared:
                del self._issues[issue_id]

            self._persist()

        self.logger.info(
            f"User edited claim {claim_id}",
            issues_cleared=len(cleared)
        )
        return claim

    async def delete_claim(self, claim_id: str) -> bool:
        """
        Delete a claim, cascading its evidence links and issues.

        Returns:
            True if deleted, False if not found
        """
        async with self._lock:
            claim = self._claims.pop(claim_id, None)
            if claim is None:
                return False

            user_claims = self._user_index.get(claim.user_id, [])
            if claim_id in user_claims:
                user_claims.remove(claim_id)
            if not user_claims:
                self._user_index.pop(claim.user_id, None)

            for evidence_id in self._links.pop(claim_id, {}):
                linked = self._evidence_index.get(evidence_id)
                if linked is not None:
                    linked.discard(claim_id)
                    if not linked:
                        del self._evidence_index[evidence_id]

            for issue_id in [
                iid
                for iid, issue in self._issues.items()
                if claim_id in (issue.claim_id, issue.related_claim_id)
            ]:
                del self._issues[issue_id]

            self._claim_locks.pop(claim_id, None)
            self._persist()

        self.logger.info(f"Deleted claim: {claim_id}")
        return True

    def claim_lock(self, claim_id: str) -> asyncio.Lock:
        """Lock serializing read-links-then-write-confidence for one claim."""
        if claim_id not in self._claim_locks:
            self._claim_locks[claim_id] = asyncio.Lock()
        return self._claim_locks[claim_id]

    # ── Evidence links ──────────────────────────────────────────────────

    async def upsert_link(self, link: ClaimEvidenceLink) -> bool:
        """
        Insert or update the (claim_id, evidence_id) link.

        Returns:
            True if a new link was inserted, False if an existing one was updated

        Raises:
            ClaimNotFoundError: If the claim does not exist
        """
        async with self._lock:
            if link.claim_id not in self._claims:
                raise ClaimNotFoundError(link.claim_id)

            is_new = link.evidence_id not in self._links.get(link.claim_id, {})
            self._put_link(link)
            self._persist()
            return is_new

    async def get_links(self, claim_id: str) -> List[ClaimEvidenceLink]:
        """All evidence links of a claim."""
        async with self._lock:
            return list(self._links.get(claim_id, {}).values())

    async def count_links(self, claim_id: str) -> int:
        async with self._lock:
            return len(self._links.get(claim_id, {}))

    async def get_link_counts(self, user_id: str) -> Dict[str, int]:
        """claim_id -> number of evidence links, for every claim of a user."""
        async with self._lock:
            return {
                cid: len(self._links.get(cid, {}))
                for cid in self._user_index.get(user_id, [])
            }

    async def find_claim_for_evidence(
        self,
        user_id: str,
        evidence_id: str,
    ) -> Optional[str]:
        """
        Return the id of a user's claim already linked to this evidence.

        Used as the idempotency check before synthesizing an evidence item.
        """
        async with self._lock:
            for cid in self._evidence_index.get(evidence_id, set()):
                claim = self._claims.get(cid)
                if claim and claim.user_id == user_id:
                    return cid
            return None

    async def is_evidence_linked(self, user_id: str, evidence_id: str) -> bool:
        return await self.find_claim_for_evidence(user_id, evidence_id) is not None

    # ── Evidence ────────────────────────────────────────────────────────

    async def save_evidence(self, item: EvidenceItem) -> None:
        """Register an evidence item so audits can read its text later."""
        async with self._lock:
            if item.id in self._evidence:
                return
            self._evidence[item.id] = item
            self._persist()

    async def get_evidence(self, evidence_id: str) -> Optional[EvidenceItem]:
        async with self._lock:
            return self._evidence.get(evidence_id)

    async def get_claim_evidence(
        self,
        claim_id: str,
    ) -> List[Tuple[ClaimEvidenceLink, Optional[EvidenceItem]]]:
        """
        Links of a claim paired with their evidence items.

        The evidence side is None for links whose evidence was never registered.
        """
        async with self._lock:
            return [
                (link, self._evidence.get(eid))
                for eid, link in self._links.get(claim_id, {}).items()
            ]

    def _put_link(self, link: ClaimEvidenceLink) -> None:
        self._links.setdefault(link.claim_id, {})[link.evidence_id] = link
        self._evidence_index.setdefault(link.evidence_id, set()).add(link.claim_id)

    # ── Issues ──────────────────────────────────────────────────────────

    async def add_issues(self, issues: List[ClaimIssue]) -> int:
        """
        Store issues, skipping suppressed ones.

        An issue is skipped when a dismissed or open issue with the same
        ClaimIssue.dedup_key is already stored. Issues for unknown claims are
        skipped.

        Returns:
            Number of issues stored
        """
        async with self._lock:
            existing_keys = {issue.dedup_key for issue in self._issues.values()}
            stored = 0
            skipped = 0

            for issue in issues:
                if issue.claim_id not in self._claims or issue.dedup_key in existing_keys:
                    skipped += 1
                    continue
                self._issues[issue.id] = issue
                existing_keys.add(issue.dedup_key)
                stored += 1

            if stored:
                self._persist()

        self.logger.debug(f"Stored {stored} issues", skipped=skipped)
        return stored

    async def list_issues(
        self,
        user_id: Optional[str] = None,
        claim_id: Optional[str] = None,
        include_dismissed: bool = False,
    ) -> List[ClaimIssue]:
        """
        Query issues, optionally filtered by owner or claim.

        Args:
            user_id: Only issues on this user's claims
            claim_id: Only issues on this claim
            include_dismissed: Include dismissed issues

        Returns:
            Issues ordered by creation time
        """
        async with self._lock:
            result = []
            for issue in self._issues.values():
                if not include_dismissed and issue.is_dismissed:
                    continue
                if claim_id is not None and issue.claim_id != claim_id:
                    continue
                if user_id is not None:
                    claim = self._claims.get(issue.claim_id)
                    if claim is None or claim.user_id != user_id:
                        continue
                result.append(issue)
            return sorted(result, key=lambda i: i.created_at)

    async def dismiss_issue(self, issue_id: str) -> Optional[ClaimIssue]:
        """
        Mark an issue dismissed by the user.

        Returns:
            The dismissed issue, or None if not found
        """
        async with self._lock:
            issue = self._issues.get(issue_id)
            if issue is None:
                return None
            if issue.dismissed_at is None:
                issue.dismissed_at = datetime.now(timezone.utc)
                self._persist()
            return issue

    # ── Stats & persistence ─────────────────────────────────────────────

    async def get_stats(self, user_id: Optional[str] = None) -> Dict[str, Any]:
        """Storage statistics, overall or for one user."""
        async with self._lock:
            if user_id is None:
                claim_ids = list(self._claims)
            else:
                claim_ids = list(self._user_index.get(user_id, []))

            type_counts: Dict[str, int] = {}
            for cid in claim_ids:
                claim_type = self._claims[cid].type
                key = claim_type.value if claim_type else "untyped"
                type_counts[key] = type_counts.get(key, 0) + 1

            claim_set = set(claim_ids)
            open_issues = sum(
                1 for i in self._issues.values()
                if i.claim_id in claim_set and not i.is_dismissed
            )

            return {
                "total_claims": len(claim_ids),
                "total_links": sum(len(self._links.get(cid, {})) for cid in claim_ids),
                "open_issues": open_issues,
                "type_breakdown": type_counts,
                "persistence_enabled": self.persistence_path is not None,
            }

    def _persist(self) -> None:
        if self.persistence_path:
            self._save_to_file()

    def _save_to_file(self) -> None:
        """Save current storage to JSON file (synchronous)."""
        if not self.persistence_path:
            return

        try:
            self.persistence_path.parent.mkdir(parents=True, exist_ok=True)

            data = {
                "claims": {
                    cid: claim.model_dump(mode="json")
                    for cid, claim in self._claims.items()
                },
                "links": {
                    cid: {
                        eid: link.model_dump(mode="json")
                        for eid, link in links.items()
                    }
                    for cid, links in self._links.items()
                },
                "issues": {
                    iid: issue.model_dump(mode="json")
                    for iid, issue in self._issues.items()
                },
                "evidence": {
                    eid: item.model_dump(mode="json")
                    for eid, item in self._evidence.items()
                },
            }

            with open(self.persistence_path, "w") as f:
                json.dump(data, f, indent=2)

            self.logger.debug(f"Persisted to {self.persistence_path}")

        except OSError as e:
            self.logger.error(f"Failed to persist to file: {e}", exc_info=True)

    def _load_from_file(self) -> None:
        """Load storage from JSON file and rebuild indexes (synchronous)."""
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            with open(self.persistence_path, "r") as f:
                data = json.load(f)

            self._claims = {
                cid: Claim.model_validate(raw)
                for cid, raw in data.get("claims", {}).items()
            }
            self._links = {
                cid: {
                    eid: ClaimEvidenceLink.model_validate(raw)
                    for eid, raw in links.items()
                }
                for cid, links in data.get("links", {}).items()
            }
            self._issues = {
                iid: ClaimIssue.model_validate(raw)
                for iid, raw in data.get("issues", {}).items()
            }
            self._evidence = {
                eid: EvidenceItem.model_validate(raw)
                for eid, raw in data.get("evidence", {}).items()
            }

            self._rebuild_indexes()

            self.logger.info(
                f"Loaded from {self.persistence_path}",
                claims=len(self._claims),
                issues=len(self._issues)
            )

        except (OSError, ValueError) as e:
            self.logger.error(f"Failed to load from file: {e}", exc_info=True)
            self._claims = {}
            self._links = {}
            self._issues = {}
            self._evidence = {}
            self._user_index = {}
            self._evidence_index = {}

    def _rebuild_indexes(self) -> None:
        """Rebuild all indexes from storage (called after loading from file)."""
        self._user_index = {}
        self._evidence_index = {}

        for claim in sorted(
            self._claims.values(),
            key=lambda c: c.created_at or datetime.min.replace(tzinfo=timezone.utc),
        ):
            self._user_index.setdefault(claim.user_id, []).append(claim.id)

        for cid, links in self._links.items():
            for eid in links:
                self._evidence_index.setdefault(eid, set()).add(cid)
